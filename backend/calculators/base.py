from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping

from api.calculator_models import (
    CalculationResult,
    CalculatorDefinitionResponse,
    InterpretationRange,
    ParameterDefinition,
    ScreeningQuestion,
    ScreeningResponse,
)
from .validation import validate_inputs


def flag(inputs: Mapping[str, Any], key: str) -> bool:
    """Read a boolean criterion; absent values count as not present."""
    return inputs.get(key) is True


def number(inputs: Mapping[str, Any], key: str) -> float:
    """Read a numeric input; absent or blank values read as 0."""
    value = inputs.get(key)
    if value is None or value == "" or isinstance(value, bool):
        return 0.0
    return float(value)


class BaseCalculator(ABC):
    """Abstract base class for risk-score calculators."""

    @property
    @abstractmethod
    def calculator_id(self) -> str:
        """Unique identifier, e.g., 'has-bled'."""
        ...

    @property
    @abstractmethod
    def display_name(self) -> str:
        ...

    @property
    @abstractmethod
    def description(self) -> str:
        ...

    @property
    @abstractmethod
    def parameters(self) -> list[ParameterDefinition]:
        """Inputs the form must collect, in display order."""
        ...

    @abstractmethod
    def calculate(self, inputs: Mapping[str, Any]) -> CalculationResult:
        """Map already-validated inputs to a score and interpretation.

        Pure: no I/O and no state. Values that are absent read as False/0,
        so callers that skip validation get a score rather than an error.
        """
        ...

    @property
    def category(self) -> str:
        """Specialty used for grouping the catalog; defaults to 'Other'."""
        return "Other"

    @property
    def screening_questions(self) -> list[ScreeningQuestion]:
        return []

    @property
    def interpretation_ranges(self) -> list[InterpretationRange]:
        return []

    @property
    def interpretation_notes(self) -> str | None:
        return None

    @property
    def references(self) -> list[str]:
        return []

    def validate(self, inputs: Mapping[str, Any]) -> None:
        """Raise if a declared parameter is missing or outside its domain."""
        validate_inputs(self.parameters, inputs)

    def evaluate(self, inputs: Mapping[str, Any]) -> CalculationResult:
        """Validate, then calculate."""
        self.validate(inputs)
        return self.calculate(inputs)

    def screen(self, answers: Mapping[str, bool]) -> ScreeningResponse:
        """Check pre-screening answers. Never blocks calculation."""
        unanswered = [q.id for q in self.screening_questions if answers.get(q.id) is None]
        warnings = []
        eligible = True
        for q in self.screening_questions:
            if q.eliminates and answers.get(q.id) is False:
                eligible = False
                warnings.append(
                    q.elimination_message
                    or "This calculator may not be appropriate for this patient."
                )
        return ScreeningResponse(
            eligible=eligible,
            all_answered=not unanswered,
            unanswered=unanswered,
            warnings=warnings,
        )

    def parameter_labels(self) -> dict[str, str]:
        return {p.id: p.name for p in self.parameters}

    def get_metadata(self) -> dict:
        """Return metadata for listing in the catalog."""
        return {
            "id": self.calculator_id,
            "name": self.display_name,
            "description": self.description,
            "category": self.category,
        }

    def get_definition(self) -> CalculatorDefinitionResponse:
        """Everything a client needs to render and validate the form."""
        return CalculatorDefinitionResponse(
            **self.get_metadata(),
            parameters=self.parameters,
            screening_questions=self.screening_questions,
            interpretation_ranges=self.interpretation_ranges,
            interpretation_notes=self.interpretation_notes,
            references=self.references,
        )
