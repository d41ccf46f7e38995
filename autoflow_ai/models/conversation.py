"""Conversation session, messages and the orchestrator's response shape."""

from datetime import datetime
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from autoflow_ai.models.entities import Entity
from autoflow_ai.models.instruction import OrganizationSize, ParsedInstruction
from autoflow_ai.models.workflow import GeneratedWorkflow


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class MessageMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    intent: Optional[str] = None
    entities: List[Entity] = []
    confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    workflow_generated: Optional[bool] = None


class Message(BaseModel):
    """One conversation turn. Append-only: never edited once in a history."""

    model_config = ConfigDict(frozen=True)

    id: str
    role: MessageRole
    content: str
    timestamp: datetime
    metadata: Optional[MessageMetadata] = None


ComplexityPreference = Literal["beginner", "intermediate", "advanced"]


class Preferences(BaseModel):
    language: str = "pt-BR"
    complexity: ComplexityPreference = "intermediate"
    communication_style: Literal["formal", "casual", "technical"] = "casual"


class ConversationSession(BaseModel):
    """Per-user accumulated conversation context, keyed by user_id."""

    user_id: str
    organization_id: str = "default"
    industry: str = "geral"
    organization_size: OrganizationSize = "small"
    preferences: Preferences = Preferences()
    history: List[Message] = []
    available_integrations: List[str] = []
    current_workflow: Optional[dict] = None
    created_at: datetime
    last_activity: datetime


class PreferencesUpdate(BaseModel):
    language: Optional[str] = None
    complexity: Optional[ComplexityPreference] = None
    communication_style: Optional[Literal["formal", "casual", "technical"]] = None


class SessionContextUpdate(BaseModel):
    """Partial context merged into a session. Only explicitly set fields overwrite."""

    organization_id: Optional[str] = None
    industry: Optional[str] = None
    organization_size: Optional[OrganizationSize] = None
    preferences: Optional[PreferencesUpdate] = None
    available_integrations: Optional[List[str]] = None
    current_workflow: Optional[dict] = None


class UserInputRequest(BaseModel):
    type: Literal["confirmation", "additional_info", "clarification"]
    prompt: str
    options: Optional[List[str]] = None


class AIResponse(BaseModel):
    message: str
    suggestions: List[str] = []
    workflow_generated: Optional[ParsedInstruction] = None
    workflow_definition: Optional[GeneratedWorkflow] = None
    next_steps: List[str] = []
    confidence: float = Field(ge=0.0, le=1.0)
    requires_user_input: Optional[UserInputRequest] = None


class ConversationStats(BaseModel):
    message_count: int
    workflows_created: int
    last_activity: Optional[datetime] = None
    average_confidence: float = 0.0
