"""
Prompt Composer: deterministic, industry-aware assembly of LLM prompts.

Every builder emits, in order:
  1. The static template body for its category
  2. A context section from the matching IndustryProfile
     (generic business section when the industry is unknown)
  3. Category-specific guidance
  4. For workflow generation only, the fixed JSON output-format section

No section is ever omitted. Missing inputs fall back to documented defaults.
"""

import json
from typing import Any, Dict, Iterable, List, Mapping, Optional

from autoflow_ai.models.prompts import IndustryProfile, PromptTemplate, WorkflowPromptConfig
from autoflow_ai.prompts import registry


CONTEXT_HEADER = "CONTEXTO ESPECÍFICO:"
INTEGRATIONS_HEADER = "INTEGRAÇÕES DISPONÍVEIS:"
COMPLEXITY_HEADER = "COMPLEXIDADE ALVO:"
USER_PROMPT_HEADER = "PROMPT DO USUÁRIO:"
OUTPUT_FORMAT_HEADER = "FORMATO DE SAÍDA:"
JSON_ONLY_INSTRUCTION = "NÃO inclua texto explicativo, apenas o JSON."

NO_INTEGRATIONS = "Nenhuma integração configurada"
NO_USER_PROMPT = "(nenhuma descrição fornecida)"
UNKNOWN_SIZE = "não informado"

DEFAULT_IMPROVEMENT_GOALS = ["melhorar a eficiência geral do workflow"]

COMPLEXITY_GUIDANCE = {
    "simple": """COMPLEXIDADE SIMPLES:
- Máximo 5 passos no workflow
- Apenas integrações básicas
- Lógica linear sem condições complexas
- Fácil de entender e manter""",
    "intermediate": """COMPLEXIDADE INTERMEDIÁRIA:
- 5-15 passos no workflow
- Até 3 integrações diferentes
- Condicionais simples (if/else)
- Loops básicos se necessário""",
    "advanced": """COMPLEXIDADE AVANÇADA:
- 15+ passos permitidos
- Múltiplas integrações
- Lógica condicional complexa
- Processamento paralelo
- Tratamento robusto de erros""",
}

_OUTPUT_EXAMPLE = {
    "id": "workflow_unique_id",
    "name": "Nome Descritivo do Workflow",
    "description": "Descrição clara do que o workflow faz",
    "nodes": [
        {
            "id": "node_1",
            "type": "trigger|action|condition|delay",
            "name": "Nome do Node",
            "description": "O que este node faz especificamente",
            "config": {"campo1": "valor1", "campo2": "valor2"},
            "position": {"x": 100, "y": 100},
        }
    ],
    "edges": [
        {
            "id": "edge_1",
            "source": "node_1",
            "target": "node_2",
            "type": "default|conditional",
            "condition": "condição se aplicável",
        }
    ],
    "estimatedROI": {
        "timeSaved": "X horas por semana",
        "costSaved": 1200,
        "complexity": "Simples|Intermediário|Avançado",
    },
    "suggestedIntegrations": ["integração1", "integração2"],
    "tags": ["tag1", "tag2", "tag3"],
}


class TemplateNotFoundError(Exception):
    """Raised when a prompt template id is missing from the registry. A configuration error."""

    def __init__(self, template_id: str):
        super().__init__(f"Prompt template not registered: {template_id}")
        self.template_id = template_id


def _to_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)


def _join(values: Iterable[str], empty: str) -> str:
    values = list(values)
    return ", ".join(values) if values else empty


class PromptComposer:
    """
    Stateless given its registries. Both registries are treated as read-only.
    """

    REQUIRED_TEMPLATES = (
        registry.WORKFLOW_GENERATION,
        registry.WORKFLOW_OPTIMIZATION,
        registry.TROUBLESHOOTING,
        registry.INTEGRATION_SUGGESTIONS,
        registry.QUESTION_ANSWERING,
        registry.GENERAL_CONVERSATION,
    )

    def __init__(
        self,
        templates: Optional[Mapping[str, PromptTemplate]] = None,
        industry_profiles: Optional[Mapping[str, IndustryProfile]] = None,
        required: Iterable[str] = REQUIRED_TEMPLATES,
    ):
        self._templates = templates if templates is not None else registry.DEFAULT_TEMPLATES
        self._profiles = (
            industry_profiles if industry_profiles is not None
            else registry.DEFAULT_INDUSTRY_PROFILES
        )
        for template_id in required:
            if template_id not in self._templates:
                raise TemplateNotFoundError(template_id)

    def get_template(self, template_id: str) -> PromptTemplate:
        template = self._templates.get(template_id)
        if template is None:
            raise TemplateNotFoundError(template_id)
        return template

    def get_industry_profile(self, industry: Optional[str]) -> Optional[IndustryProfile]:
        if not industry:
            return None
        return self._profiles.get(industry)

    # --- Builders ---

    def build_workflow_prompt(self, config: WorkflowPromptConfig) -> str:
        template = self.get_template(registry.WORKFLOW_GENERATION)
        user_prompt = config.user_prompt.strip() or NO_USER_PROMPT

        return "\n\n".join([
            template.template,
            f"{CONTEXT_HEADER}\n{self._context_section(config.industry, config.organization_size)}",
            f"{INTEGRATIONS_HEADER}\n{self._integration_guidance(config.existing_integrations)}",
            f"{COMPLEXITY_HEADER}\n{self._complexity_guidance(config.complexity)}",
            f'{USER_PROMPT_HEADER} "{user_prompt}"',
            f"{OUTPUT_FORMAT_HEADER}\n{self.workflow_output_format()}",
        ]).strip()

    def build_optimization_prompt(
        self,
        workflow_data: Any,
        goals: Optional[List[str]] = None,
        industry: Optional[str] = None,
    ) -> str:
        template = self.get_template(registry.WORKFLOW_OPTIMIZATION)
        goals = goals or DEFAULT_IMPROVEMENT_GOALS

        return "\n\n".join([
            template.template,
            f"{CONTEXT_HEADER}\n{self._context_section(industry)}",
            f"WORKFLOW ATUAL:\n{_to_json(workflow_data)}",
            "OBJETIVOS DE MELHORIA:\n" + "\n".join(f"- {g}" for g in goals),
            "Analise o workflow e sugira melhorias específicas.",
        ]).strip()

    def build_troubleshooting_prompt(
        self, error_text: str, context: Optional[Dict[str, Any]] = None
    ) -> str:
        template = self.get_template(registry.TROUBLESHOOTING)
        context = context or {}

        return "\n\n".join([
            template.template,
            f"{CONTEXT_HEADER}\n"
            f"{self._context_section(context.get('industry'), context.get('organization_size'))}",
            f"ERRO REPORTADO:\n{error_text.strip() or NO_USER_PROMPT}",
            f"CONTEXTO DO WORKFLOW:\n{_to_json(context)}",
            "Identifique a causa raiz e forneça soluções práticas.",
        ]).strip()

    def build_integration_suggestion_prompt(
        self, business_type: str, current_integrations: Optional[List[str]] = None
    ) -> str:
        template = self.get_template(registry.INTEGRATION_SUGGESTIONS)
        profile = self.get_industry_profile(business_type)
        relevant = profile.preferred_integrations if profile else []

        return "\n\n".join([
            template.template,
            f"{CONTEXT_HEADER}\n{self._context_section(business_type)}",
            f"TIPO DE NEGÓCIO: {business_type or registry.GENERIC_INDUSTRY}\n"
            f"INTEGRAÇÕES ATUAIS: {_join(current_integrations or [], NO_INTEGRATIONS)}\n"
            f"INTEGRAÇÕES RELEVANTES PARA O SETOR: {_join(relevant, 'nenhuma específica')}",
            "Sugira 3-5 integrações prioritárias que agreguem mais valor.",
        ]).strip()

    def build_question_prompt(
        self,
        question: str,
        industry: Optional[str] = None,
        organization_size: Optional[str] = None,
        integrations: Optional[List[str]] = None,
    ) -> str:
        template = self.get_template(registry.QUESTION_ANSWERING)

        return "\n\n".join([
            template.template,
            f'PERGUNTA: "{question.strip() or NO_USER_PROMPT}"',
            f"{CONTEXT_HEADER}\n{self._context_section(industry, organization_size)}\n"
            f"Integrações disponíveis: {_join(integrations or [], NO_INTEGRATIONS)}",
        ]).strip()

    def build_conversation_prompt(self, user_text: str, industry: Optional[str] = None) -> str:
        template = self.get_template(registry.GENERAL_CONVERSATION)

        return "\n\n".join([
            template.template,
            f'O usuário disse: "{user_text.strip() or NO_USER_PROMPT}"',
            f"{CONTEXT_HEADER}\n{self._context_section(industry)}",
        ]).strip()

    # --- Sections ---

    def _context_section(
        self, industry: Optional[str], organization_size: Optional[str] = None
    ) -> str:
        size = organization_size or UNKNOWN_SIZE
        profile = self.get_industry_profile(industry)
        if profile is None:
            return (
                "Negócio genérico - aplicar boas práticas gerais de automação.\n"
                f"Tamanho da organização: {size}"
            )

        vocabulary = "\n".join(f"{k}: {v}" for k, v in profile.vocabulary.items())
        return (
            f"Setor: {profile.industry}\n"
            f"Processos comuns: {', '.join(profile.common_processes)}\n"
            f"Dores principais: {', '.join(profile.pain_points)}\n"
            f"Tamanho da organização: {size}\n\n"
            "Considere o vocabulário específico do setor:\n"
            f"{vocabulary or '(sem vocabulário específico)'}"
        )

    @staticmethod
    def _integration_guidance(existing: List[str]) -> str:
        configured_names = [i.lower() for i in existing]

        def is_configured(aliases) -> bool:
            return any(a in name for name in configured_names for a in aliases)

        # Unconfigured integrations rank first
        ranked = sorted(
            registry.PRIORITY_INTEGRATIONS,
            key=lambda entry: is_configured(entry[2]),
        )
        lines = [
            f"- {label} ({purpose}) "
            f"[{'já configurada' if is_configured(aliases) else 'não configurada'}]"
            for label, purpose, aliases in ranked
        ]

        return (
            f"Integrações já configuradas: {_join(existing, NO_INTEGRATIONS)}\n\n"
            "Integrações brasileiras prioritárias:\n"
            + "\n".join(lines)
            + "\n\nPriorize integrações que não estão na lista atual."
        )

    @staticmethod
    def _complexity_guidance(complexity: str) -> str:
        return COMPLEXITY_GUIDANCE.get(complexity, COMPLEXITY_GUIDANCE["simple"])

    @staticmethod
    def workflow_output_format() -> str:
        return (
            "Retorne APENAS um JSON válido no seguinte formato:\n"
            f"{_to_json(_OUTPUT_EXAMPLE)}\n\n"
            f"{JSON_ONLY_INSTRUCTION}"
        )
