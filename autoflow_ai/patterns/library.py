"""
Entity / Pattern Library: ordered matchers for Brazilian Portuguese requests.

Pure data: every table here is read by the Instruction Parser and nothing is
mutated at runtime. Order is significant wherever a tuple is used; the first
matching entry wins unless the caller documents otherwise.
"""

import re
from typing import Iterable, Pattern, Tuple

from pydantic import BaseModel, ConfigDict

from autoflow_ai.models.entities import EntityType
from autoflow_ai.models.instruction import Intent


def _compile(*patterns: str) -> Tuple[Pattern, ...]:
    return tuple(re.compile(p, re.IGNORECASE) for p in patterns)


def any_match(patterns: Iterable[Pattern], text: str) -> bool:
    return any(p.search(text) for p in patterns)


# --- Intent classification ---

class IntentRule(BaseModel):
    """Maps a keyword group to an intent. Keywords are matched as lower-case substrings."""

    model_config = ConfigDict(frozen=True)

    intent: Intent
    keywords: Tuple[str, ...]

    def matches(self, lowered: str) -> bool:
        return any(k in lowered for k in self.keywords)


# Checked top to bottom. "como" and "quando" appear in more than one group,
# so creation must stay ahead of questions.
INTENT_RULES: Tuple[IntentRule, ...] = (
    IntentRule(
        intent=Intent.CREATE_WORKFLOW,
        keywords=(
            "criar", "fazer", "automatizar", "automação", "workflow",
            "quando", "toda vez que", "assim que", "gostaria", "quero",
            "preciso", "como fazer", "disparar",
        ),
    ),
    IntentRule(
        intent=Intent.MODIFY_WORKFLOW,
        keywords=(
            "alterar", "modificar", "mudar", "ajustar", "editar",
            "melhorar", "otimizar", "corrigir",
        ),
    ),
    IntentRule(
        intent=Intent.ASK_QUESTION,
        keywords=(
            "como", "por que", "o que", "qual", "onde", "quando", "?",
            "dúvida", "pergunta",
        ),
    ),
    IntentRule(
        intent=Intent.GET_HELP,
        keywords=(
            "ajuda", "help", "socorro", "não sei", "não entendo",
            "tutorial", "exemplo",
        ),
    ),
)


# --- Structural phrases (intent fallback and suggestions) ---

TRIGGER_PHRASES = _compile(
    r"quando|assim que|toda vez que",
    r"\bse\b.*receber|ao receber",
    r"após|depois de",
    r"a cada|todo",
)

ACTION_PHRASES = _compile(
    r"\b(enviar|envie|envia|mandar|mande|manda|disparar|dispare|dispara)\b",
    r"\b(salvar|salve|armazenar|armazene|guardar|guarde)\b",
    r"\b(notificar|notifique|avisar|avise|alertar|alerte)\b",
    r"\b(agendar|agende|programar|programe)\b",
    r"\b(criar|crie|gerar|gere)\b",
)

GENERIC_VERB = re.compile(r"\b(criar|crie|fazer|faça|executar|execute)\b", re.IGNORECASE)


# --- Entity families ---

TIME_PATTERNS = _compile(
    r"(\d+)\s*(horas?|minutos?|dias?|semanas?)\b",
    r"\b(todo|toda|a cada)\s*(dia|semana|m[eê]s|hora)\b",
    r"\b(às|as)\s*(\d{1,2})(?::(\d{2})|h(\d{2})?)?(?!\d)",
)

INTEGRATION_PATTERNS = _compile(
    r"whatsapp",
    r"e-?mail",
    r"\bpix\b",
    r"mercado pago|pagbank",
    r"rd station|pipedrive|hubspot",
    r"omie|conta ?azul|bling",
    r"vtex|shopify|woocommerce",
)

INTEGRATION_ALIASES = {
    "e-mail": "email",
    "conta azul": "contaazul",
}

AMOUNT_PATTERNS = _compile(
    r"R\$\s*(\d+(?:[.,]\d+)*)",
    r"(\d+(?:[.,]\d+)*)\s*reais\b",
)

CONTACT_PATTERN = re.compile(r"[\w.+-]+@[\w-]+(?:\.[\w-]+)*\.\w+")

ENTITY_CONFIDENCE = {
    EntityType.TIME: 0.9,
    EntityType.INTEGRATION: 0.95,
    EntityType.AMOUNT: 0.9,
    EntityType.CONTACT: 0.95,
}


# --- Building-block rules: (type, pattern, confidence), evaluated independently ---

_SEND_VERBS = r"(enviar|envie|envia|mandar|mande|manda|disparar|dispare|dispara)\b"

TRIGGER_RULES = (
    ("schedule",
     re.compile(r"\btod[oa]s?\b(?!\s+vez)|a cada|\bàs\b|diariamente|semanalmente|mensalmente",
                re.IGNORECASE),
     0.8),
    ("whatsapp_received",
     re.compile(r"whatsapp.*receb|receb.*whatsapp|mensagem.*whatsapp", re.IGNORECASE),
     0.9),
    ("email_received",
     re.compile(r"e-?mail.*receb|receb.*e-?mail", re.IGNORECASE),
     0.9),
    ("form_submitted",
     re.compile(r"formul[aá]rio|\bform\b|cadastro.*enviado", re.IGNORECASE),
     0.8),
)

MANUAL_TRIGGER_CONFIDENCE = 0.6

ACTION_RULES = (
    ("send_whatsapp",
     re.compile(_SEND_VERBS + r".*whatsapp", re.IGNORECASE),
     0.9),
    ("send_email",
     re.compile(_SEND_VERBS + r".*e-?mail", re.IGNORECASE),
     0.9),
    ("generate_pix",
     re.compile(r"\b(gerar|gere|criar|crie)\b.*\bpix\b|" + _SEND_VERBS + r".*cobran[cç]a|cobrar.*\bpix\b",
                re.IGNORECASE),
     0.85),
    ("save_data",
     re.compile(r"\b(salvar|salve|armazenar|armazene|registrar|registre)\b|guardar.*dados",
                re.IGNORECASE),
     0.8),
    ("send_notification",
     re.compile(r"notificar|notifique|avisar|avise|alertar|alerte|notifica[cç][aã]o", re.IGNORECASE),
     0.8),
)

CONDITION_RULES = (
    ("if_then",
     re.compile(r"\bse\b.*\bent[aã]o\b|\bse\b.*\benviar\b|\bse\b.*\bfor\b|\bcaso\b", re.IGNORECASE),
     0.8),
    ("delay",
     re.compile(r"(aguardar|aguarde|esperar|espere|após|depois de).*\d+", re.IGNORECASE),
     0.9),
    ("loop",
     re.compile(r"repetir|repita|\bloop\b|para cada|até que", re.IGNORECASE),
     0.7),
)


# --- Workflow naming, first match wins ---

NAME_RULES = (
    (re.compile(r"whatsapp", re.IGNORECASE), "Automação WhatsApp"),
    (re.compile(r"e-?mail", re.IGNORECASE), "Automação Email"),
    (re.compile(r"\bpix\b|cobran[cç]a", re.IGNORECASE), "Automação de Cobrança"),
    (re.compile(r"cliente|atendimento", re.IGNORECASE), "Automação de Atendimento"),
)

DEFAULT_WORKFLOW_NAME = "Automação Personalizada"

DESCRIPTION_PREFIX = "Workflow criado automaticamente: "


# --- User-facing suggestions ---

MISSING_TRIGGER_SUGGESTION = (
    'Especifique quando o workflow deve ser executado (ex: "quando receber um email")'
)
MISSING_ACTION_SUGGESTION = (
    'Defina que ação deve ser realizada (ex: "enviar WhatsApp", "salvar dados")'
)
MISSING_INTEGRATION_SUGGESTION = "Mencione quais integrações usar (WhatsApp, Email, PIX, etc.)"

UNDERSTANDING_FAILED_SUGGESTION = "Não consegui entender. Pode reformular?"

INDUSTRY_OPTIMIZATION_SUGGESTIONS = {
    "ecommerce": (
        "Considere adicionar follow-up para carrinho abandonado",
        "Integre com sistema de estoque para avisos automáticos",
    ),
    "servicos": (
        "Adicione confirmação automática de agendamentos",
        "Configure lembretes para reduzir no-shows",
    ),
}
