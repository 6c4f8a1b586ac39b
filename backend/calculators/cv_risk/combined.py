from __future__ import annotations

from typing import Any, Mapping

from api.calculator_models import (
    CalculationResult,
    InterpretationRange,
    ParameterDefinition,
    ParameterType,
    Severity,
)
from calculators.base import BaseCalculator, number
from calculators.framingham.handler import FRAMINGHAM_PARAMETERS, framingham_risk
from .criteria import (
    HIGH,
    LDL_TARGETS,
    RISK_FACTOR_PARAMETERS,
    SEVERITY_BY_CLASS,
    VERY_HIGH,
    risk_class,
    risk_tier,
    treatment_recommendation,
)
from .handler import ESC_EAS_REFERENCE

# Nominal 10-year risk reported when a criterion assigns the tier directly
VERY_HIGH_NOMINAL_RISK = 30.0
HIGH_NOMINAL_RISK = 15.0

CLASS_LABELS = {
    "low": "Low",
    "moderate": "Moderate",
    HIGH: "High",
    VERY_HIGH: "Very high",
}

CURRENT_LDL = ParameterDefinition(
    id="currentLDL", name="Current LDL-C", type=ParameterType.NUMBER, unit="mmol/L",
    tooltip="Current LDL cholesterol level", storable=True, min_value=0,
)


def _combined_parameters() -> list[ParameterDefinition]:
    seen = set()
    params = []
    for p in RISK_FACTOR_PARAMETERS + FRAMINGHAM_PARAMETERS + [CURRENT_LDL]:
        if p.id not in seen:
            seen.add(p.id)
            params.append(p)
    return params


class CombinedCvRiskCalculator(BaseCalculator):
    """ESC/EAS criteria with Framingham fall-through and LDL treatment matrix."""

    @property
    def calculator_id(self) -> str:
        return "combined-cv-risk"

    @property
    def display_name(self) -> str:
        return "Combined CV Risk Assessment"

    @property
    def description(self) -> str:
        return (
            "Combines CV risk assessment with Framingham risk scoring when needed, "
            "and recommends LDL targets and treatment"
        )

    @property
    def category(self) -> str:
        return "Cardiology"

    @property
    def parameters(self) -> list[ParameterDefinition]:
        return _combined_parameters()

    @property
    def interpretation_ranges(self) -> list[InterpretationRange]:
        return [
            InterpretationRange(min=0, max=2.99, severity=Severity.LOW,
                                interpretation="Low risk (LDL target <3.0 mmol/L)"),
            InterpretationRange(min=3, max=14.99, severity=Severity.MODERATE,
                                interpretation="Moderate risk (LDL target <2.6 mmol/L)"),
            InterpretationRange(min=15, max=29.99, severity=Severity.HIGH,
                                interpretation="High risk (LDL target <1.8 mmol/L)"),
            InterpretationRange(min=30, max=100, severity=Severity.VERY_HIGH,
                                interpretation="Very high risk (LDL target <1.4 mmol/L)"),
        ]

    @property
    def interpretation_notes(self) -> str:
        return (
            "Patients meeting very high or high risk criteria are assigned a nominal "
            "10-year risk of 30% or 15%; all others are scored with Framingham."
        )

    @property
    def references(self) -> list[str]:
        return [
            ESC_EAS_REFERENCE,
            "Wilson PW, D'Agostino RB, Levy D, et al. Prediction of coronary heart disease using "
            "risk factor categories. Circulation. 1998;97(18):1837-1847.",
        ]

    def calculate(self, inputs: Mapping[str, Any]) -> CalculationResult:
        tier = risk_tier(inputs)
        additional: dict[str, Any] = {}
        if tier == VERY_HIGH:
            risk = VERY_HIGH_NOMINAL_RISK
        elif tier == HIGH:
            risk = HIGH_NOMINAL_RISK
        else:
            risk, points = framingham_risk(inputs)
            additional["framingham_points"] = points

        cls = risk_class(risk)
        ldl = number(inputs, "currentLDL")
        additional.update({
            "risk_category": f"{CLASS_LABELS[cls]} risk",
            "ldl_target": LDL_TARGETS[cls],
            "current_ldl": ldl,
            "treatment_recommendation": treatment_recommendation(cls, ldl),
            "needs_framingham": tier is None,
            "is_high_risk": tier == HIGH,
            "is_very_high_risk": tier == VERY_HIGH,
        })
        return CalculationResult(
            score=risk,
            interpretation=f"{CLASS_LABELS[cls]} cardiovascular risk",
            severity=SEVERITY_BY_CLASS[cls],
            additional_data=additional,
        )
