"""
Workflow building blocks inferred from text.

Each trigger/action/condition kind is its own model keyed by ``type``, with a
config model holding only the fields that kind understands. Fields the parser
could not resolve carry the ``Unresolved`` sentinel so downstream consumers
(the LLM, or the user) know resolution was deferred.
"""

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


UNRESOLVED_MARKER = "detect_from_context"


class Unresolved(BaseModel):
    """Placeholder for a config value still to be resolved from context."""

    model_config = ConfigDict(frozen=True)

    marker: Literal["detect_from_context"] = UNRESOLVED_MARKER


def is_unresolved(value: object) -> bool:
    return isinstance(value, Unresolved)


Resolvable = Union[Unresolved, str]


class _Candidate(BaseModel):
    confidence: float = Field(ge=0.0, le=1.0)


# --- Triggers ---

class ScheduleConfig(BaseModel):
    schedule: str = "daily"                 # Time expression as the user wrote it
    cron: Optional[str] = None              # Derived cron expression, when derivable
    timezone: str = "America/Sao_Paulo"


class MessageReceivedConfig(BaseModel):
    integration: str
    filters: dict = {}


class FormSubmittedConfig(BaseModel):
    form_id: Resolvable = Field(default_factory=Unresolved)


class ManualConfig(BaseModel):
    pass


class ScheduleTrigger(_Candidate):
    type: Literal["schedule"] = "schedule"
    config: ScheduleConfig = ScheduleConfig()


class WhatsAppReceivedTrigger(_Candidate):
    type: Literal["whatsapp_received"] = "whatsapp_received"
    config: MessageReceivedConfig = MessageReceivedConfig(integration="whatsapp_business")


class EmailReceivedTrigger(_Candidate):
    type: Literal["email_received"] = "email_received"
    config: MessageReceivedConfig = MessageReceivedConfig(integration="email")


class FormSubmittedTrigger(_Candidate):
    type: Literal["form_submitted"] = "form_submitted"
    config: FormSubmittedConfig = FormSubmittedConfig()


class ManualTrigger(_Candidate):
    type: Literal["manual"] = "manual"
    config: ManualConfig = ManualConfig()


TriggerCandidate = Annotated[
    Union[
        ScheduleTrigger,
        WhatsAppReceivedTrigger,
        EmailReceivedTrigger,
        FormSubmittedTrigger,
        ManualTrigger,
    ],
    Field(discriminator="type"),
]


# --- Actions ---

class SendWhatsAppConfig(BaseModel):
    integration: str = "whatsapp_business"
    template: Resolvable = Field(default_factory=Unresolved)
    recipient: Resolvable = Field(default_factory=Unresolved)


class SendEmailConfig(BaseModel):
    to: Resolvable = Field(default_factory=Unresolved)
    subject: Resolvable = Field(default_factory=Unresolved)
    template: Resolvable = Field(default_factory=Unresolved)


class GeneratePixConfig(BaseModel):
    integration: str = "mercado_pago"
    amount: Resolvable = Field(default_factory=Unresolved)
    description: Resolvable = Field(default_factory=Unresolved)


class SaveDataConfig(BaseModel):
    database: str = "default"
    table: Resolvable = Field(default_factory=Unresolved)
    fields: Resolvable = Field(default_factory=Unresolved)


class SendNotificationConfig(BaseModel):
    channel: Resolvable = Field(default_factory=Unresolved)
    message: Resolvable = Field(default_factory=Unresolved)
    recipients: Resolvable = Field(default_factory=Unresolved)


class SendWhatsAppAction(_Candidate):
    type: Literal["send_whatsapp"] = "send_whatsapp"
    config: SendWhatsAppConfig = SendWhatsAppConfig()


class SendEmailAction(_Candidate):
    type: Literal["send_email"] = "send_email"
    config: SendEmailConfig = SendEmailConfig()


class GeneratePixAction(_Candidate):
    type: Literal["generate_pix"] = "generate_pix"
    config: GeneratePixConfig = GeneratePixConfig()


class SaveDataAction(_Candidate):
    type: Literal["save_data"] = "save_data"
    config: SaveDataConfig = SaveDataConfig()


class SendNotificationAction(_Candidate):
    type: Literal["send_notification"] = "send_notification"
    config: SendNotificationConfig = SendNotificationConfig()


ActionCandidate = Annotated[
    Union[
        SendWhatsAppAction,
        SendEmailAction,
        GeneratePixAction,
        SaveDataAction,
        SendNotificationAction,
    ],
    Field(discriminator="type"),
]


# --- Conditions ---

class IfThenConfig(BaseModel):
    condition: Resolvable = Field(default_factory=Unresolved)
    true_action: Resolvable = Field(default_factory=Unresolved)
    false_action: Optional[str] = None


class DelayConfig(BaseModel):
    duration: str = "1 hour"
    unit: Resolvable = Field(default_factory=Unresolved)


class LoopConfig(BaseModel):
    condition: Resolvable = Field(default_factory=Unresolved)
    max_iterations: int = Field(default=10, ge=1)


class IfThenCondition(_Candidate):
    type: Literal["if_then"] = "if_then"
    config: IfThenConfig = IfThenConfig()


class DelayCondition(_Candidate):
    type: Literal["delay"] = "delay"
    config: DelayConfig = DelayConfig()


class LoopCondition(_Candidate):
    type: Literal["loop"] = "loop"
    config: LoopConfig = LoopConfig()


ConditionCandidate = Annotated[
    Union[IfThenCondition, DelayCondition, LoopCondition],
    Field(discriminator="type"),
]
