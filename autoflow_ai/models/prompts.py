"""Prompt templates and industry profiles: read-only registries populated at startup."""

from typing import Dict, List, Literal

from pydantic import BaseModel, ConfigDict


TemplateCategory = Literal[
    "workflow_generation",
    "optimization",
    "troubleshooting",
    "integration",
    "question_answering",
    "conversation",
]

Complexity = Literal["simple", "intermediate", "advanced"]


class PromptTemplate(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    category: TemplateCategory
    template: str                           # Static body, emitted first in every prompt
    variables: List[str] = []
    examples: List[str] = []


class IndustryProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    industry: str                           # Display name, e.g. "E-commerce"
    common_processes: List[str]
    preferred_integrations: List[str]
    pain_points: List[str]
    vocabulary: Dict[str, str] = {}


class WorkflowPromptConfig(BaseModel):
    """Structured input for the workflow-generation prompt."""

    user_prompt: str
    industry: str = "geral"
    complexity: Complexity = "simple"
    existing_integrations: List[str] = []
    organization_size: Literal["micro", "small", "medium"] = "small"
