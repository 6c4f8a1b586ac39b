from __future__ import annotations

import logging
from typing import Optional

from api.calculator_models import InterpretationRange
from .base import BaseCalculator

logger = logging.getLogger(__name__)

# Adjacent ranges are contiguous when the next min is one display step
# above the previous max: 1 -> 2 for point scores, 1.29 -> 1.30 otherwise.
_POINT_STEP = 1.0
_DECIMAL_STEP = 0.01
_EPSILON = 1e-9


def _max_step(prev: InterpretationRange, cur: InterpretationRange) -> float:
    if float(prev.max).is_integer() and float(cur.min).is_integer():
        return _POINT_STEP + _EPSILON
    return _DECIMAL_STEP + _EPSILON


def check_interpretation_ranges(ranges: list[InterpretationRange]) -> list[str]:
    """Report gaps, overlaps and inverted bounds in interpretation ranges.

    Advisory only: the ranges are display metadata, the calculators carry
    their own banding logic.
    """
    warnings: list[str] = []
    ordered = sorted(ranges, key=lambda r: (r.min, r.max))
    for r in ordered:
        if r.min > r.max:
            warnings.append(f"Range '{r.interpretation}' has min {r.min:g} above max {r.max:g}")
    for prev, cur in zip(ordered, ordered[1:]):
        if cur.min <= prev.max:
            warnings.append(
                f"Ranges overlap: {prev.min:g}-{prev.max:g} and {cur.min:g}-{cur.max:g}"
            )
        elif cur.min - prev.max > _max_step(prev, cur):
            warnings.append(
                f"Gap between ranges: {prev.max:g} and {cur.min:g}"
            )
    return warnings


class CalculatorRegistry:
    """Registry for calculator definitions."""

    def __init__(self):
        self._calculators: dict[str, BaseCalculator] = {}

    def register(self, calculator: BaseCalculator) -> None:
        calc_id = calculator.calculator_id
        if calc_id in self._calculators:
            logger.warning(f"Overwriting existing calculator '{calc_id}'")
        for warning in check_interpretation_ranges(calculator.interpretation_ranges):
            logger.debug(f"{calc_id}: {warning}")
        self._calculators[calc_id] = calculator
        logger.info(f"Registered calculator: {calc_id}")

    def get(self, calculator_id: str) -> Optional[BaseCalculator]:
        return self._calculators.get(calculator_id)

    def __contains__(self, calculator_id: str) -> bool:
        return calculator_id in self._calculators

    def __len__(self) -> int:
        return len(self._calculators)

    def ids(self) -> list[str]:
        return list(self._calculators)

    def categories(self) -> list[str]:
        return sorted({c.category for c in self._calculators.values()})

    def list_calculators(self, category: str | None = None) -> list[dict]:
        return [
            calc.get_metadata()
            for calc in self._calculators.values()
            if category is None or calc.category.lower() == category.lower()
        ]
