"""
Traversal engine for branching clinical algorithms.

The module-level functions are pure: they take an AlgorithmDefinition and an
input map and return node ids. AlgorithmNavigator adds the per-user state a
step-by-step form needs (current node, visited path, cumulative inputs) on top
of them.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Mapping, Optional

from api.algorithm_models import (
    AlgorithmDefinition,
    AlgorithmNode,
    NavigatorState,
    NodeType,
    TraversalResult,
)
from api.calculator_models import ParameterDefinition, ParameterType, SelectOption
from calculators.errors import CalculatorError
from calculators.validation import as_number, check_domain, find_missing, is_blank
from .errors import (
    MissingParametersError,
    NavigationHistoryError,
    NoMatchingBranchError,
    TraversalError,
    UnknownNodeError,
)

if TYPE_CHECKING:
    from storage.parameter_store import ParameterStore

logger = logging.getLogger(__name__)

# Input key holding the chosen branch (its condition_id) on decision nodes
DECISION_KEY = "decision"


def _node(algorithm: AlgorithmDefinition, node_id: str) -> AlgorithmNode:
    try:
        return algorithm.node(node_id)
    except KeyError:
        raise UnknownNodeError(node_id) from None


def decision_parameter(node: AlgorithmNode) -> ParameterDefinition:
    """Synthetic select parameter for a decision node's branch choice."""
    return ParameterDefinition(
        id=DECISION_KEY,
        name="Decision",
        type=ParameterType.SELECT,
        options=[SelectOption(value=b.condition_id, label=b.label) for b in node.branches],
    )


def is_choice_node(node: AlgorithmNode) -> bool:
    return node.type == NodeType.DECISION and not node.parameters


def start(algorithm: AlgorithmDefinition) -> str:
    return algorithm.start_node_id


def is_terminal(algorithm: AlgorithmDefinition, node_id: str) -> bool:
    return _node(algorithm, node_id).type == NodeType.RESULT


def normalize_inputs(
    parameters: list[ParameterDefinition], inputs: Mapping[str, Any],
) -> dict[str, Any]:
    """Check domains and coerce numeric strings to floats for this node's parameters."""
    normalized = dict(inputs)
    for param in parameters:
        value = inputs.get(param.id)
        if is_blank(value):
            continue
        check_domain(param, value)
        if param.type == ParameterType.NUMBER:
            normalized[param.id] = as_number(param, value)
    return normalized


def next_node(algorithm: AlgorithmDefinition, node_id: str, inputs: Mapping[str, Any]) -> str:
    """Return the target of the first branch whose condition holds.

    Raises MissingParametersError when a parameter of the node has no value,
    NoMatchingBranchError when no branch applies.
    """
    node = _node(algorithm, node_id)
    if node.type == NodeType.RESULT:
        raise TraversalError(f"'{node_id}' is a result node and has no next step.")

    if is_choice_node(node):
        choice = inputs.get(DECISION_KEY)
        if is_blank(choice):
            raise MissingParametersError([decision_parameter(node)])
        for branch in node.branches:
            if branch.condition_id == choice:
                return branch.next_node_id
        raise NoMatchingBranchError(node_id)

    missing = find_missing(node.parameters, inputs)
    if missing:
        raise MissingParametersError(missing)
    inputs = normalize_inputs(node.parameters, inputs)

    for branch in node.branches:
        if branch.condition.evaluate(inputs):
            return branch.next_node_id
    raise NoMatchingBranchError(node_id)


def traverse(algorithm: AlgorithmDefinition, inputs: Mapping[str, Any]) -> tuple[list[str], dict]:
    """Replay the algorithm from its start node over a single input map.

    Returns (path, inputs) when a result node is reached. Errors from
    next_node propagate with the path so far attached as ``path``.
    """
    cumulative = dict(inputs)
    node_id = start(algorithm)
    path = [node_id]
    while not is_terminal(algorithm, node_id):
        if len(path) > len(algorithm.nodes):
            raise TraversalError(f"Algorithm '{algorithm.id}' does not terminate.")
        try:
            node_id = next_node(algorithm, node_id, cumulative)
        except (TraversalError, CalculatorError) as e:
            e.path = path
            raise
        cumulative = normalize_inputs(_node(algorithm, path[-1]).parameters, cumulative)
        path.append(node_id)
    return path, cumulative


class AlgorithmNavigator:
    """Step-by-step traversal state for one user and one algorithm."""

    def __init__(self, algorithm: AlgorithmDefinition, store: Optional["ParameterStore"] = None):
        self.algorithm = algorithm
        self.store = store
        self.current_node_id = start(algorithm)
        self.path: list[str] = [self.current_node_id]
        self.inputs: dict[str, Any] = {}
        # Branch choices on decision nodes, keyed by node id
        self.decisions: dict[str, str] = {}

    @property
    def current_node(self) -> AlgorithmNode:
        return _node(self.algorithm, self.current_node_id)

    @property
    def completed(self) -> bool:
        return self.current_node.type == NodeType.RESULT

    def prefill(self) -> dict[str, Any]:
        """Values to show for the current node: entered inputs first, then stored ones."""
        node = self.current_node
        values: dict[str, Any] = {}
        for param in node.parameters:
            if not is_blank(self.inputs.get(param.id)):
                values[param.id] = self.inputs[param.id]
            elif self.store is not None:
                stored = self.store.get_value(param.id)
                if stored is not None:
                    values[param.id] = stored
        if is_choice_node(node) and node.id in self.decisions:
            values[DECISION_KEY] = self.decisions[node.id]
        return values

    def submit(self, inputs: Mapping[str, Any]) -> str:
        """Merge inputs for the current node and advance one step.

        The cumulative inputs are only updated when the step succeeds, so a
        rejected submission leaves the navigator unchanged.
        """
        node = self.current_node
        if node.type == NodeType.RESULT:
            raise TraversalError("The algorithm is already complete.")

        merged = {**self.inputs, **self.prefill(), **dict(inputs)}
        if is_choice_node(node):
            choice = merged.pop(DECISION_KEY, None)
            target = next_node(self.algorithm, node.id, {DECISION_KEY: choice})
            self.decisions[node.id] = choice
        else:
            merged.pop(DECISION_KEY, None)
            target = next_node(self.algorithm, node.id, merged)
            merged = normalize_inputs(node.parameters, merged)

        self.inputs = merged
        self.current_node_id = target
        self.path.append(target)
        logger.debug(f"{self.algorithm.id}: {node.id} -> {target}")
        return target

    def back(self) -> str:
        """Return to the previous node; entered inputs are kept."""
        if len(self.path) <= 1:
            raise NavigationHistoryError()
        self.path.pop()
        self.current_node_id = self.path[-1]
        return self.current_node_id

    def reset(self) -> None:
        self.current_node_id = start(self.algorithm)
        self.path = [self.current_node_id]
        self.inputs = {}
        self.decisions = {}

    def result(self) -> Optional[TraversalResult]:
        if not self.completed:
            return None
        return TraversalResult(
            algorithm_id=self.algorithm.id,
            path=list(self.path),
            inputs=dict(self.inputs),
            final_node=self.current_node,
        )

    def state(self) -> NavigatorState:
        return NavigatorState(
            algorithm_id=self.algorithm.id,
            current_node=self.current_node,
            path=list(self.path),
            inputs=dict(self.inputs),
            prefill=self.prefill(),
            can_go_back=len(self.path) > 1,
            completed=self.completed,
            result=self.result(),
        )
