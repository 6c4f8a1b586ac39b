"""Structural checks for algorithm graphs."""

from __future__ import annotations

from collections import deque

from api.algorithm_models import AlgorithmDefinition, NodeType, ValidationReport


def find_roots(algorithm: AlgorithmDefinition) -> list[str]:
    """Nodes that no branch points to, in definition order."""
    targets = {b.next_node_id for node in algorithm.nodes.values() for b in node.branches}
    return [node_id for node_id in algorithm.nodes if node_id not in targets]


def reachable_from(algorithm: AlgorithmDefinition, start: str) -> set[str]:
    seen = {start}
    queue = deque([start])
    while queue:
        node = algorithm.nodes.get(queue.popleft())
        if node is None:
            continue
        for branch in node.branches:
            if branch.next_node_id not in seen:
                seen.add(branch.next_node_id)
                queue.append(branch.next_node_id)
    return seen


def validate_algorithm(algorithm: AlgorithmDefinition) -> ValidationReport:
    """Check branch targets, the single root, result-node shape and reachability.

    Unknown parameter ids in the preparation lists are reported as warnings.
    """
    errors: list[str] = []
    warnings: list[str] = []

    if algorithm.start_node_id not in algorithm.nodes:
        errors.append(f"Start node '{algorithm.start_node_id}' does not exist")

    for node_id, node in algorithm.nodes.items():
        if node.id != node_id:
            errors.append(f"Node key '{node_id}' does not match node id '{node.id}'")
        for branch in node.branches:
            if branch.next_node_id not in algorithm.nodes:
                errors.append(
                    f"Branch '{branch.condition_id}' of '{node_id}' targets unknown node "
                    f"'{branch.next_node_id}'"
                )
        if node.type == NodeType.RESULT and node.branches:
            errors.append(f"Result node '{node_id}' has outgoing branches")
        if node.type != NodeType.RESULT and not node.branches:
            errors.append(f"Node '{node_id}' has no branches and is not a result node")
        condition_ids = [b.condition_id for b in node.branches]
        if len(condition_ids) != len(set(condition_ids)):
            errors.append(f"Node '{node_id}' has duplicate branch condition ids")

    roots = find_roots(algorithm)
    if len(roots) != 1:
        errors.append(f"Expected exactly one root node, found {len(roots)}: {', '.join(roots) or 'none'}")
    elif roots[0] != algorithm.start_node_id:
        errors.append(f"Root node '{roots[0]}' is not the start node '{algorithm.start_node_id}'")

    if algorithm.start_node_id in algorithm.nodes:
        unreachable = set(algorithm.nodes) - reachable_from(algorithm, algorithm.start_node_id)
        for node_id in sorted(unreachable):
            errors.append(f"Node '{node_id}' is unreachable from the start node")

    known = {p.id for node in algorithm.nodes.values() for p in node.parameters}
    prep = algorithm.preparation
    for param_id in prep.required_parameters + prep.potential_parameters:
        if param_id not in known:
            warnings.append(f"Preparation parameter '{param_id}' is not asked by any node")

    return ValidationReport(valid=not errors, errors=errors, warnings=warnings)
