"""Parsed Instruction: the Instruction Parser's output for one utterance."""

from enum import Enum
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field, model_validator

from autoflow_ai.models.candidates import (
    ActionCandidate,
    ConditionCandidate,
    TriggerCandidate,
)
from autoflow_ai.models.entities import Entity


class Intent(str, Enum):
    CREATE_WORKFLOW = "create_workflow"
    MODIFY_WORKFLOW = "modify_workflow"
    ASK_QUESTION = "ask_question"
    GET_HELP = "get_help"


OrganizationSize = Literal["micro", "small", "medium"]


class ParserContext(BaseModel):
    """Lightweight request context handed to the parser."""

    industry: str = "geral"
    prior_utterances: List[str] = []
    available_integrations: List[str] = []
    organization_size: OrganizationSize = "small"


class WorkflowSkeleton(BaseModel):
    """Partially-confident workflow inferred from one utterance."""

    name: str
    description: str
    triggers: List[TriggerCandidate] = []
    actions: List[ActionCandidate] = []
    conditions: List[ConditionCandidate] = []


class ParsedInstruction(BaseModel):
    intent: Intent
    workflow: Optional[WorkflowSkeleton] = None
    entities: List[Entity] = []
    confidence: float = Field(ge=0.0, le=1.0)
    suggestions: List[str] = []

    @model_validator(mode="after")
    def _workflow_only_for_creation(self) -> "ParsedInstruction":
        if self.workflow is not None and self.intent != Intent.CREATE_WORKFLOW:
            raise ValueError("workflow is only present for create_workflow intents")
        return self


class ParseSuccess(BaseModel):
    status: Literal["success"] = "success"
    instruction: ParsedInstruction


class ParseDegraded(BaseModel):
    """The parser could not understand the utterance."""

    status: Literal["degraded"] = "degraded"
    reason: str


ParseOutcome = Union[ParseSuccess, ParseDegraded]
