"""
Generated Workflow: the JSON document the LLM is instructed to return.

Downstream consumers (the execution engine) parse this shape, so field names
on the wire keep the camelCase keys written in the output-format section of
the workflow prompt.
"""

import json
from typing import Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class NodePosition(BaseModel):
    x: float
    y: float


class WorkflowNode(BaseModel):
    id: str
    type: Literal["trigger", "action", "condition", "delay"]
    name: str
    description: str = ""
    config: Dict[str, object] = {}
    position: NodePosition = NodePosition(x=0, y=0)


class WorkflowEdge(BaseModel):
    id: str
    source: str
    target: str
    type: Literal["default", "conditional"] = "default"
    condition: Optional[str] = None


class EstimatedROI(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    time_saved: str = Field(alias="timeSaved")
    cost_saved: Union[float, str] = Field(alias="costSaved")
    complexity: str


class GeneratedWorkflow(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    description: str
    nodes: List[WorkflowNode]
    edges: List[WorkflowEdge] = []
    estimated_roi: Optional[EstimatedROI] = Field(default=None, alias="estimatedROI")
    suggested_integrations: List[str] = Field(default=[], alias="suggestedIntegrations")
    tags: List[str] = []

    def node_ids(self) -> List[str]:
        return [n.id for n in self.nodes]

    def dangling_edges(self) -> List[WorkflowEdge]:
        """Edges pointing at nodes that are not in the document."""
        ids = set(self.node_ids())
        return [e for e in self.edges if e.source not in ids or e.target not in ids]


def parse_generated_workflow(text: str) -> Optional[GeneratedWorkflow]:
    """
    Extract the workflow JSON object from an LLM completion.

    The model is told to answer with the JSON only, but fenced blocks or a
    stray sentence around it are tolerated by slicing the outermost braces.
    Returns None when no valid document can be recovered.
    """
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    try:
        payload = json.loads(text[start:end + 1])
        if not isinstance(payload, dict):
            return None
        return GeneratedWorkflow.model_validate(payload)
    except ValueError:
        # json.JSONDecodeError and pydantic.ValidationError are both ValueErrors
        return None
