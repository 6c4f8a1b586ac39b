from __future__ import annotations

from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ParameterType(str, Enum):
    NUMBER = "number"
    BOOLEAN = "boolean"
    SELECT = "select"


class Severity(str, Enum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    VERY_HIGH = "very-high"


class SelectOption(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: Union[str, float]
    label: str


class ParameterDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    type: ParameterType
    unit: Optional[str] = None
    options: list[SelectOption] = Field(default_factory=list)
    tooltip: str = ""
    storable: bool = False
    # Domain constraints for parameters that feed sqrt/ln or a denominator
    min_value: Optional[float] = None
    exclusive_min: bool = False


class ScreeningQuestion(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    question: str
    type: str = "boolean"
    eliminates: bool = False
    elimination_message: Optional[str] = None


class InterpretationRange(BaseModel):
    model_config = ConfigDict(frozen=True)

    min: float
    max: float
    interpretation: str
    severity: Optional[Severity] = None


class CalculationResult(BaseModel):
    score: float
    interpretation: str
    severity: Optional[Severity] = None
    additional_data: dict[str, Any] = Field(default_factory=dict)


class CalculatorSummary(BaseModel):
    id: str
    name: str
    description: str
    category: str


class CalculatorDefinitionResponse(CalculatorSummary):
    parameters: list[ParameterDefinition]
    screening_questions: list[ScreeningQuestion] = Field(default_factory=list)
    interpretation_ranges: list[InterpretationRange] = Field(default_factory=list)
    interpretation_notes: Optional[str] = None
    references: list[str] = Field(default_factory=list)


class ScreeningRequest(BaseModel):
    answers: dict[str, bool] = Field(default_factory=dict)


class ScreeningResponse(BaseModel):
    eligible: bool
    all_answered: bool
    unanswered: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class CalculateRequest(BaseModel):
    inputs: dict[str, Any] = Field(default_factory=dict)
    use_stored: bool = True
    save: list[str] = Field(default_factory=list)  # parameter ids to store for reuse


class CalculateResponse(BaseModel):
    calculator_id: str
    calculator_name: str
    inputs: dict[str, Any]
    result: CalculationResult
    # Flat score/interpretation/severity view for simple clients
    summary: dict[str, Any] = Field(default_factory=dict)
    prefilled: list[str] = Field(default_factory=list)
    saved: list[str] = Field(default_factory=list)


class ExportFormat(str, Enum):
    CLINICAL = "clinical"
    PRINT = "print"


class CalculatorExportRequest(BaseModel):
    inputs: dict[str, Any] = Field(default_factory=dict)
    format: ExportFormat = ExportFormat.CLINICAL
    use_stored: bool = True


class RangeCheckRequest(BaseModel):
    interpretation_ranges: list[InterpretationRange] = Field(default_factory=list)
