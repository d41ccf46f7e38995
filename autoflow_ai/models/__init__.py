"""AutoFlow AI data models."""

from autoflow_ai.models.candidates import (
    UNRESOLVED_MARKER,
    ActionCandidate,
    ConditionCandidate,
    DelayCondition,
    EmailReceivedTrigger,
    FormSubmittedTrigger,
    GeneratePixAction,
    IfThenCondition,
    LoopCondition,
    ManualTrigger,
    SaveDataAction,
    ScheduleTrigger,
    SendEmailAction,
    SendNotificationAction,
    SendWhatsAppAction,
    TriggerCandidate,
    Unresolved,
    WhatsAppReceivedTrigger,
    is_unresolved,
)
from autoflow_ai.models.conversation import (
    AIResponse,
    ConversationSession,
    ConversationStats,
    Message,
    MessageMetadata,
    MessageRole,
    Preferences,
    PreferencesUpdate,
    SessionContextUpdate,
    UserInputRequest,
)
from autoflow_ai.models.entities import Entity, EntityType
from autoflow_ai.models.instruction import (
    Intent,
    ParseDegraded,
    ParsedInstruction,
    ParseOutcome,
    ParserContext,
    ParseSuccess,
    WorkflowSkeleton,
)
from autoflow_ai.models.prompts import IndustryProfile, PromptTemplate, WorkflowPromptConfig
from autoflow_ai.models.workflow import GeneratedWorkflow, WorkflowEdge, WorkflowNode

__all__ = [
    "AIResponse",
    "ActionCandidate",
    "ConditionCandidate",
    "ConversationSession",
    "ConversationStats",
    "DelayCondition",
    "EmailReceivedTrigger",
    "Entity",
    "EntityType",
    "FormSubmittedTrigger",
    "GeneratePixAction",
    "GeneratedWorkflow",
    "IfThenCondition",
    "IndustryProfile",
    "Intent",
    "LoopCondition",
    "ManualTrigger",
    "Message",
    "MessageMetadata",
    "MessageRole",
    "ParseDegraded",
    "ParseOutcome",
    "ParseSuccess",
    "ParsedInstruction",
    "ParserContext",
    "Preferences",
    "PreferencesUpdate",
    "PromptTemplate",
    "SaveDataAction",
    "ScheduleTrigger",
    "SendEmailAction",
    "SendNotificationAction",
    "SendWhatsAppAction",
    "SessionContextUpdate",
    "TriggerCandidate",
    "UNRESOLVED_MARKER",
    "Unresolved",
    "UserInputRequest",
    "WhatsAppReceivedTrigger",
    "WorkflowEdge",
    "WorkflowNode",
    "WorkflowPromptConfig",
    "WorkflowSkeleton",
    "is_unresolved",
]
