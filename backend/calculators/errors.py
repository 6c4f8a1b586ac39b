"""Errors raised by the scoring engine.

Routes translate these into 404/422 responses; nothing here is fatal.
"""

from __future__ import annotations

from api.calculator_models import ParameterDefinition


class CalculatorError(Exception):
    """Base class for scoring-engine failures."""


class MissingParametersError(CalculatorError):
    """One or more required parameters have no value."""

    def __init__(self, missing: list[ParameterDefinition]):
        self.missing = missing
        names = ", ".join(p.name for p in missing)
        super().__init__(f"Please fill in all required fields: {names}")

    @property
    def missing_ids(self) -> list[str]:
        return [p.id for p in self.missing]

    def to_detail(self) -> dict:
        return {
            "message": str(self),
            "missing": [{"id": p.id, "name": p.name} for p in self.missing],
        }


class InputDomainError(CalculatorError):
    """A value lies outside the domain its formula is defined on."""

    def __init__(self, parameter: ParameterDefinition, value, reason: str | None = None):
        self.parameter = parameter
        self.value = value
        if reason is None:
            relation = "greater than" if parameter.exclusive_min else "at least"
            reason = f"must be {relation} {parameter.min_value:g}"
        super().__init__(f"{parameter.name} {reason} (got {value!r}).")


class InvalidOptionError(CalculatorError):
    """A select parameter holds a value that is not one of its options."""

    def __init__(self, parameter: ParameterDefinition, value):
        self.parameter = parameter
        self.value = value
        allowed = ", ".join(str(o.value) for o in parameter.options)
        super().__init__(f"{parameter.name} must be one of: {allowed} (got {value!r}).")
