from __future__ import annotations

import math
from typing import Any, Mapping

from api.calculator_models import (
    CalculationResult,
    InterpretationRange,
    ParameterDefinition,
    ParameterType,
    ScreeningQuestion,
    Severity,
)
from calculators.base import BaseCalculator, number

# (low_below, high_above) for patients younger than 65 and 65 or older
THRESHOLDS_UNDER_65 = (1.30, 2.67)
THRESHOLDS_65_AND_OVER = (2.0, 4.0)


def fib4_index(age: float, ast: float, alt: float, platelets: float) -> float:
    """Unrounded FIB-4 index."""
    return (age * ast) / (platelets * math.sqrt(alt))


def classify(index: float, age: float) -> tuple[str, Severity]:
    low, high = THRESHOLDS_65_AND_OVER if age >= 65 else THRESHOLDS_UNDER_65
    if index < low:
        return "Low probability of advanced fibrosis", Severity.LOW
    if index <= high:
        return "Intermediate probability of advanced fibrosis", Severity.MODERATE
    return "High probability of advanced fibrosis", Severity.HIGH


class Fib4Calculator(BaseCalculator):

    @property
    def calculator_id(self) -> str:
        return "fib-4"

    @property
    def display_name(self) -> str:
        return "FIB-4 Index"

    @property
    def description(self) -> str:
        return "Estimates liver fibrosis in patients with chronic liver disease"

    @property
    def category(self) -> str:
        return "Hepatology"

    @property
    def parameters(self) -> list[ParameterDefinition]:
        return [
            ParameterDefinition(
                id="age", name="Age", type=ParameterType.NUMBER, unit="years",
                tooltip="Patient's age in years", storable=True, min_value=0,
            ),
            ParameterDefinition(
                id="ast", name="AST", type=ParameterType.NUMBER, unit="U/L",
                tooltip="Aspartate aminotransferase", storable=True, min_value=0,
            ),
            ParameterDefinition(
                id="alt", name="ALT", type=ParameterType.NUMBER, unit="U/L",
                tooltip="Alanine aminotransferase", storable=True,
                min_value=0, exclusive_min=True,
            ),
            ParameterDefinition(
                id="platelets", name="Platelet Count", type=ParameterType.NUMBER,
                unit="10⁹/L", tooltip="Platelet count", storable=True,
                min_value=0, exclusive_min=True,
            ),
        ]

    @property
    def screening_questions(self) -> list[ScreeningQuestion]:
        return [
            ScreeningQuestion(
                id="hepatitisBC",
                question="Does the patient have hepatitis B or C?",
                elimination_message="This calculator was primarily validated in patients "
                                    "with hepatitis B or C.",
            ),
            ScreeningQuestion(
                id="liverDisease",
                question="Does the patient have known or suspected chronic liver disease?",
            ),
        ]

    @property
    def interpretation_ranges(self) -> list[InterpretationRange]:
        return [
            InterpretationRange(min=0, max=1.29, severity=Severity.LOW,
                                interpretation="Low probability of advanced fibrosis"),
            InterpretationRange(min=1.30, max=2.67, severity=Severity.MODERATE,
                                interpretation="Intermediate probability of advanced fibrosis"),
            InterpretationRange(min=2.68, max=100, severity=Severity.HIGH,
                                interpretation="High probability of advanced fibrosis"),
        ]

    @property
    def interpretation_notes(self) -> str:
        return (
            "For patients aged 65 or older, different thresholds apply: "
            "<2.0 low probability, 2.0-4.0 intermediate, >4.0 high probability "
            "of advanced fibrosis."
        )

    @property
    def references(self) -> list[str]:
        return [
            "Sterling RK, Lissen E, Clumeck N, et al. Development of a simple noninvasive index to "
            "predict significant fibrosis in patients with HIV/HCV coinfection. Hepatology. "
            "2006;43(6):1317-1325.",
            "Vallet-Pichard A, Mallet V, Nalpas B, et al. FIB-4: an inexpensive and accurate marker "
            "of fibrosis in HCV infection. Comparison with liver biopsy and fibrotest. Hepatology. "
            "2007;46(1):32-36.",
            "McPherson S, Hardy T, Dufour JF, et al. Age as a Confounding Factor for the Accurate "
            "Non-Invasive Diagnosis of Advanced NAFLD Fibrosis. Am J Gastroenterol. "
            "2017;112(5):740-751.",
        ]

    def calculate(self, inputs: Mapping[str, Any]) -> CalculationResult:
        age = number(inputs, "age")
        index = fib4_index(
            age,
            number(inputs, "ast"),
            number(inputs, "alt"),
            number(inputs, "platelets"),
        )
        # Classify on the unrounded index; round for display only
        interpretation, severity = classify(index, age)
        return CalculationResult(
            score=round(index, 2),
            interpretation=interpretation,
            severity=severity,
        )
