"""
Prompt template and industry profile registries.

Populated once at import time and exposed read-only. The composer receives
these mappings by default; tests and deployments may hand it their own.
"""

from types import MappingProxyType
from typing import Mapping, Tuple

from autoflow_ai.models.prompts import IndustryProfile, PromptTemplate


WORKFLOW_GENERATION = "workflow_generation_main"
WORKFLOW_OPTIMIZATION = "workflow_optimization"
TROUBLESHOOTING = "troubleshooting"
INTEGRATION_SUGGESTIONS = "integration_suggestions"
QUESTION_ANSWERING = "question_answering"
GENERAL_CONVERSATION = "general_conversation"

GENERIC_INDUSTRY = "geral"


_TEMPLATES = (
    PromptTemplate(
        id=WORKFLOW_GENERATION,
        name="Geração Principal de Workflow",
        category="workflow_generation",
        template="""Você é Alex, especialista em automação para pequenas e médias empresas brasileiras.

Sua tarefa é transformar pedidos escritos em linguagem natural em workflows práticos e eficientes.

DIRETRIZES:
1. Priorize processos com retorno claro para a PME
2. Prefira integrações brasileiras (WhatsApp, PIX, ERPs nacionais)
3. Ajuste a complexidade ao perfil do usuário
4. Estime a economia de tempo de forma realista
5. Sugira melhorias com base em boas práticas

O WORKFLOW DEVE SER:
- Prático e implementável
- Composto de passos claros e sequenciais
- Baseado em integrações viáveis
- Mensurável em ROI
- Fácil de manter""",
        variables=["user_prompt", "industry", "complexity", "integrations"],
        examples=[
            "Criar automação para abandono de carrinho",
            "Automatizar cobrança via PIX",
            "Follow-up automático pós-venda",
        ],
    ),
    PromptTemplate(
        id=WORKFLOW_OPTIMIZATION,
        name="Otimização de Workflow",
        category="optimization",
        template="""Analise o workflow abaixo e aponte oportunidades de melhoria.

CRITÉRIOS:
1. Eficiência: remover passos desnecessários
2. Confiabilidade: tratar erros
3. Desempenho: acelerar a execução
4. Custo: reduzir recursos consumidos
5. Manutenção: facilitar futuras alterações

Para cada melhoria, informe:
- Problema identificado
- Solução proposta
- Impacto esperado
- Dificuldade de implementação""",
        variables=["workflow_data", "improvement_goals"],
    ),
    PromptTemplate(
        id=TROUBLESHOOTING,
        name="Resolução de Problemas",
        category="troubleshooting",
        template="""Analise o problema relatado e ofereça soluções práticas.

DIAGNÓSTICO:
1. Encontre a causa raiz
2. Revise configurações que costumam estar erradas
3. Considere limites das integrações externas
4. Separe problemas de dados de problemas de lógica
5. Ordene as soluções por prioridade

RESPONDA COM:
- Causa provável
- Soluções imediatas
- Como evitar no futuro
- Monitoramento recomendado""",
        variables=["error", "workflow_context"],
    ),
    PromptTemplate(
        id=INTEGRATION_SUGGESTIONS,
        name="Sugestões de Integração",
        category="integration",
        template="""Considerando o tipo de negócio e as integrações atuais, sugira novas integrações que gerem mais valor.

CRITÉRIOS:
1. Relevância para o setor
2. Facilidade de implementação
3. Potencial de ROI
4. Sinergia com o que já existe
5. Custo-benefício

Para cada integração, informe:
- Nome
- Benefício principal
- Casos de uso
- Complexidade de implementação
- ROI estimado""",
        variables=["business_type", "current_integrations"],
    ),
    PromptTemplate(
        id=QUESTION_ANSWERING,
        name="Resposta a Perguntas",
        category="question_answering",
        template="""Você é um especialista em automação para PMEs brasileiras.
Responda à pergunta do usuário de forma clara e prática e, quando fizer sentido, sugira automações relacionadas.""",
        variables=["question", "industry", "organization_size", "integrations"],
        examples=["Como funciona o PIX?", "O que é um gatilho?"],
    ),
    PromptTemplate(
        id=GENERAL_CONVERSATION,
        name="Conversa Geral",
        category="conversation",
        template="""Você é um assistente de automação amigável para PMEs brasileiras.
Responda de forma conversacional e conduza o usuário a criar automações úteis, sugerindo ideias com base no contexto.""",
        variables=["user_text"],
    ),
)

DEFAULT_TEMPLATES: Mapping[str, PromptTemplate] = MappingProxyType(
    {t.id: t for t in _TEMPLATES}
)


DEFAULT_INDUSTRY_PROFILES: Mapping[str, IndustryProfile] = MappingProxyType({
    "ecommerce": IndustryProfile(
        industry="E-commerce",
        common_processes=[
            "Abandono de carrinho", "Pós-venda", "Gestão de estoque",
            "Atendimento ao cliente", "Marketing automation",
        ],
        preferred_integrations=[
            "VTEX", "Shopify", "WooCommerce", "Mercado Livre",
            "WhatsApp Business", "E-mail Marketing", "PIX",
        ],
        pain_points=[
            "Abandono alto de carrinho", "Atendimento manual",
            "Gestão de múltiplos canais", "Controle de estoque",
        ],
        vocabulary={
            "carrinho": "carrinho de compras",
            "checkout": "finalização de compra",
            "upsell": "venda adicional",
            "cross-sell": "venda cruzada",
        },
    ),
    "servicos": IndustryProfile(
        industry="Serviços",
        common_processes=[
            "Agendamento", "Follow-up cliente", "Cobrança",
            "Confirmação de serviços", "Coleta de feedback",
        ],
        preferred_integrations=[
            "WhatsApp Business", "Google Calendar", "PIX",
            "RD Station", "Pipedrive", "E-mail",
        ],
        pain_points=[
            "No-shows em agendamentos", "Cobrança manual",
            "Falta de follow-up", "Gestão de agenda",
        ],
        vocabulary={
            "no-show": "falta em agendamento",
            "follow-up": "acompanhamento",
            "upsell": "venda adicional de serviços",
        },
    ),
    "educacao": IndustryProfile(
        industry="Educação",
        common_processes=[
            "Matrículas", "Comunicação com pais", "Acompanhamento acadêmico",
            "Cobrança mensalidades", "Eventos escolares",
        ],
        preferred_integrations=[
            "WhatsApp Business", "E-mail", "SMS", "Sistema acadêmico",
            "PIX", "Google Classroom",
        ],
        pain_points=[
            "Comunicação com responsáveis", "Inadimplência",
            "Acompanhamento de faltas", "Organização de eventos",
        ],
        vocabulary={
            "responsável": "pai/mãe ou responsável legal",
            "inadimplência": "atraso no pagamento",
            "boletim": "relatório de notas",
        },
    ),
    GENERIC_INDUSTRY: IndustryProfile(
        industry="Geral",
        common_processes=[
            "Atendimento ao cliente", "Cobrança", "Follow-up",
            "Notificações", "Relatórios",
        ],
        preferred_integrations=["WhatsApp Business", "E-mail", "PIX", "CRM", "ERP"],
        pain_points=[
            "Processos manuais", "Falta de integração",
            "Retrabalho", "Perda de informações",
        ],
    ),
})


# (label, purpose, aliases matched against configured integration names)
PRIORITY_INTEGRATIONS: Tuple[Tuple[str, str, Tuple[str, ...]], ...] = (
    ("WhatsApp Business API", "comunicação", ("whatsapp",)),
    ("PIX Mercado Pago/PagBank", "pagamentos", ("pix", "mercado_pago", "mercado pago", "pagbank")),
    ("RD Station/Pipedrive/HubSpot", "CRM", ("rd_station", "rd station", "pipedrive", "hubspot", "crm")),
    ("Omie/ContaAzul/Bling", "ERP", ("omie", "contaazul", "conta azul", "bling", "erp")),
    ("VTEX/Shopify", "E-commerce", ("vtex", "shopify", "woocommerce")),
)
