"""Errors raised by the traversal engine and the algorithm registry."""

from __future__ import annotations

from calculators.errors import MissingParametersError


class TraversalError(Exception):
    """Base class for navigation failures the user can recover from."""


class NoMatchingBranchError(TraversalError):
    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__("Could not determine the next step. Please check your inputs.")

    def to_detail(self) -> dict:
        return {"message": str(self), "node_id": self.node_id, "missing": []}


class UnknownNodeError(TraversalError):
    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(f"Unknown node '{node_id}'")


class NavigationHistoryError(TraversalError):
    """Back was requested at the start node."""

    def __init__(self):
        super().__init__("Already at the first step.")


class AlgorithmDefinitionError(Exception):
    """An algorithm graph violates a structural invariant."""

    def __init__(self, algorithm_id: str, errors: list[str]):
        self.algorithm_id = algorithm_id
        self.errors = errors
        super().__init__(f"Invalid algorithm '{algorithm_id}': " + "; ".join(errors))


__all__ = [
    "TraversalError",
    "NoMatchingBranchError",
    "UnknownNodeError",
    "NavigationHistoryError",
    "AlgorithmDefinitionError",
    "MissingParametersError",
]
