from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from api.condition_models import Condition
from api.calculator_models import ExportFormat, ParameterDefinition


class NodeType(str, Enum):
    QUESTION = "question"
    DECISION = "decision"
    ACTION = "action"
    RESULT = "result"


class Branch(BaseModel):
    model_config = ConfigDict(frozen=True)

    condition_id: str  # short name, e.g. "has-cvd"; the choice value on decision nodes
    label: str
    condition: Condition
    next_node_id: str


class AlgorithmNode(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    type: NodeType
    content: str
    description: Optional[str] = None
    parameters: list[ParameterDefinition] = Field(default_factory=list)
    branches: list[Branch] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)


class Preparation(BaseModel):
    model_config = ConfigDict(frozen=True)

    required_parameters: list[str] = Field(default_factory=list)
    potential_parameters: list[str] = Field(default_factory=list)


class AlgorithmDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str
    category: str
    start_node_id: str
    nodes: dict[str, AlgorithmNode]
    references: list[str] = Field(default_factory=list)
    preparation: Preparation = Field(default_factory=Preparation)

    def node(self, node_id: str) -> AlgorithmNode:
        """Look up a node by id; raises KeyError for unknown ids."""
        return self.nodes[node_id]


class AlgorithmSummary(BaseModel):
    id: str
    name: str
    description: str
    category: str


class PreparationParameter(BaseModel):
    id: str
    name: str
    unit: Optional[str] = None
    stored_value: Any = None
    available: bool = False


class PreparationResponse(BaseModel):
    algorithm_id: str
    required: list[PreparationParameter] = Field(default_factory=list)
    potential: list[PreparationParameter] = Field(default_factory=list)


class TraversalResult(BaseModel):
    """Completed walk: full path, accumulated inputs and the terminal node."""

    algorithm_id: str
    path: list[str]
    inputs: dict[str, Any]
    final_node: AlgorithmNode


class TraverseRequest(BaseModel):
    inputs: dict[str, Any] = Field(default_factory=dict)
    use_stored: bool = False


class TraverseResponse(BaseModel):
    algorithm_id: str
    completed: bool
    path: list[str]
    current_node_id: str
    result: Optional[TraversalResult] = None
    # Why the walk stopped short of a result node
    message: Optional[str] = None
    missing: list[dict[str, str]] = Field(default_factory=list)


class NavigatorState(BaseModel):
    algorithm_id: str
    current_node: AlgorithmNode
    path: list[str]
    inputs: dict[str, Any]
    # Values for the current node's parameters, from inputs or the parameter store
    prefill: dict[str, Any] = Field(default_factory=dict)
    can_go_back: bool = False
    completed: bool = False
    result: Optional[TraversalResult] = None


class NavigatorStepRequest(BaseModel):
    inputs: dict[str, Any] = Field(default_factory=dict)
    save: list[str] = Field(default_factory=list)


class AlgorithmExportRequest(BaseModel):
    inputs: dict[str, Any] = Field(default_factory=dict)
    format: ExportFormat = ExportFormat.CLINICAL


class NodePosition(BaseModel):
    id: str
    x: float
    y: float
    level: int
    type: NodeType
    content: str
    on_path: bool = False
    current: bool = False


class EdgeLayout(BaseModel):
    source: str
    target: str
    label: str
    on_path: bool = False


class AlgorithmLayout(BaseModel):
    algorithm_id: str
    width: float
    height: float
    nodes: list[NodePosition]
    edges: list[EdgeLayout]


class ValidationReport(BaseModel):
    valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
