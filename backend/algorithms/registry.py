from __future__ import annotations

import logging
from typing import Optional

from api.algorithm_models import AlgorithmDefinition
from .errors import AlgorithmDefinitionError
from .validation import validate_algorithm

logger = logging.getLogger(__name__)


class AlgorithmRegistry:
    """Registry for algorithm definitions. Invalid graphs are refused."""

    def __init__(self):
        self._algorithms: dict[str, AlgorithmDefinition] = {}

    def register(self, algorithm: AlgorithmDefinition) -> None:
        report = validate_algorithm(algorithm)
        if not report.valid:
            raise AlgorithmDefinitionError(algorithm.id, report.errors)
        for warning in report.warnings:
            logger.debug(f"{algorithm.id}: {warning}")
        if algorithm.id in self._algorithms:
            logger.warning(f"Overwriting existing algorithm '{algorithm.id}'")
        self._algorithms[algorithm.id] = algorithm
        logger.info(f"Registered algorithm: {algorithm.id} ({len(algorithm.nodes)} nodes)")

    def get(self, algorithm_id: str) -> Optional[AlgorithmDefinition]:
        return self._algorithms.get(algorithm_id)

    def __contains__(self, algorithm_id: str) -> bool:
        return algorithm_id in self._algorithms

    def __len__(self) -> int:
        return len(self._algorithms)

    def ids(self) -> list[str]:
        return list(self._algorithms)

    def list_algorithms(self, category: str | None = None) -> list[dict]:
        return [
            {
                "id": a.id,
                "name": a.name,
                "description": a.description,
                "category": a.category,
            }
            for a in self._algorithms.values()
            if category is None or a.category.lower() == category.lower()
        ]
