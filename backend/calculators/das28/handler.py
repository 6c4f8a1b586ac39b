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

# Upper bound (inclusive) of each disease-activity tier
REMISSION_MAX = 2.6
LOW_ACTIVITY_MAX = 3.2
MODERATE_ACTIVITY_MAX = 5.1


def das28_esr(tender: float, swollen: float, esr: float, patient_global: float) -> float:
    return (
        0.56 * math.sqrt(tender)
        + 0.28 * math.sqrt(swollen)
        + 0.70 * math.log(esr)
        + 0.014 * patient_global
    )


def classify(score: float) -> tuple[str, Severity]:
    if score <= REMISSION_MAX:
        return "Remission", Severity.LOW
    if score <= LOW_ACTIVITY_MAX:
        return "Low disease activity", Severity.LOW
    if score <= MODERATE_ACTIVITY_MAX:
        return "Moderate disease activity", Severity.MODERATE
    return "High disease activity", Severity.HIGH


class Das28Calculator(BaseCalculator):

    @property
    def calculator_id(self) -> str:
        return "das28"

    @property
    def display_name(self) -> str:
        return "DAS28-ESR"

    @property
    def description(self) -> str:
        return "Disease Activity Score for rheumatoid arthritis using 28 joints and ESR"

    @property
    def category(self) -> str:
        return "Rheumatology"

    @property
    def parameters(self) -> list[ParameterDefinition]:
        return [
            ParameterDefinition(
                id="tenderJoints", name="Tender Joint Count", type=ParameterType.NUMBER,
                tooltip="Number of tender joints (0-28)", min_value=0,
            ),
            ParameterDefinition(
                id="swollenJoints", name="Swollen Joint Count", type=ParameterType.NUMBER,
                tooltip="Number of swollen joints (0-28)", min_value=0,
            ),
            ParameterDefinition(
                id="esr", name="ESR", type=ParameterType.NUMBER, unit="mm/hr",
                tooltip="Erythrocyte sedimentation rate", storable=True,
                min_value=0, exclusive_min=True,
            ),
            ParameterDefinition(
                id="patientGlobal", name="Patient Global Health", type=ParameterType.NUMBER,
                tooltip="Patient's global assessment of health (0-100 mm visual analog scale)",
                min_value=0,
            ),
        ]

    @property
    def screening_questions(self) -> list[ScreeningQuestion]:
        return [
            ScreeningQuestion(
                id="rheumatoidArthritis",
                question="Does the patient have rheumatoid arthritis?",
                eliminates=True,
                elimination_message="This calculator is specifically designed for patients "
                                    "with rheumatoid arthritis.",
            ),
            ScreeningQuestion(
                id="esrAvailable",
                question="Is an ESR value available?",
                eliminates=True,
                elimination_message="ESR is required for DAS28-ESR calculation. Consider using "
                                    "DAS28-CRP if CRP is available instead.",
            ),
        ]

    @property
    def interpretation_ranges(self) -> list[InterpretationRange]:
        return [
            InterpretationRange(min=0, max=2.6, severity=Severity.LOW, interpretation="Remission"),
            InterpretationRange(min=2.61, max=3.2, severity=Severity.LOW,
                                interpretation="Low disease activity"),
            InterpretationRange(min=3.21, max=5.1, severity=Severity.MODERATE,
                                interpretation="Moderate disease activity"),
            InterpretationRange(min=5.11, max=10, severity=Severity.HIGH,
                                interpretation="High disease activity"),
        ]

    @property
    def references(self) -> list[str]:
        return [
            "Prevoo ML, van 't Hof MA, Kuper HH, et al. Modified disease activity scores that include "
            "twenty-eight-joint counts. Development and validation in a prospective longitudinal "
            "study of patients with rheumatoid arthritis. Arthritis Rheum. 1995;38(1):44-48.",
            "Fransen J, van Riel PL. The Disease Activity Score and the EULAR response criteria. "
            "Clin Exp Rheumatol. 2005;23(5 Suppl 39):S93-S99.",
        ]

    def calculate(self, inputs: Mapping[str, Any]) -> CalculationResult:
        raw = das28_esr(
            number(inputs, "tenderJoints"),
            number(inputs, "swollenJoints"),
            number(inputs, "esr"),
            number(inputs, "patientGlobal"),
        )
        interpretation, severity = classify(raw)
        return CalculationResult(
            score=round(raw, 2),
            interpretation=interpretation,
            severity=severity,
        )
