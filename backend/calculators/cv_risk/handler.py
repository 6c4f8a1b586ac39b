from __future__ import annotations

from typing import Any, Mapping

from api.calculator_models import (
    CalculationResult,
    InterpretationRange,
    ParameterDefinition,
    Severity,
)
from calculators.base import BaseCalculator
from .criteria import (
    HIGH,
    LDL_TARGETS,
    RISK_FACTOR_PARAMETERS,
    VERY_HIGH,
    matching_risk_factors,
    risk_tier,
)

ESC_EAS_REFERENCE = (
    "Mach F, Baigent C, Catapano AL, et al. 2019 ESC/EAS Guidelines for the management of "
    "dyslipidaemias: lipid modification to reduce cardiovascular risk. Eur Heart J. "
    "2020;41(1):111-188."
)


class CvRiskCalculator(BaseCalculator):
    """Rule-based ESC/EAS risk category.

    Score encoding: 2 very high, 1 high, 0 when no automatic criterion applies
    and the Framingham score must be calculated.
    """

    @property
    def calculator_id(self) -> str:
        return "cv-risk"

    @property
    def display_name(self) -> str:
        return "CV Risk Assessment"

    @property
    def description(self) -> str:
        return "Identifies patients at automatically high or very high cardiovascular risk"

    @property
    def category(self) -> str:
        return "Cardiology"

    @property
    def parameters(self) -> list[ParameterDefinition]:
        return list(RISK_FACTOR_PARAMETERS)

    @property
    def interpretation_ranges(self) -> list[InterpretationRange]:
        return [
            InterpretationRange(min=0, max=0,
                                interpretation="No automatic high-risk criteria: calculate Framingham risk score"),
            InterpretationRange(min=1, max=1, severity=Severity.HIGH,
                                interpretation="High cardiovascular risk (LDL target <1.8 mmol/L)"),
            InterpretationRange(min=2, max=2, severity=Severity.VERY_HIGH,
                                interpretation="Very high cardiovascular risk (LDL target <1.4 mmol/L)"),
        ]

    @property
    def references(self) -> list[str]:
        return [ESC_EAS_REFERENCE]

    def calculate(self, inputs: Mapping[str, Any]) -> CalculationResult:
        tier = risk_tier(inputs)
        factors = matching_risk_factors(inputs)
        if tier == VERY_HIGH:
            return CalculationResult(
                score=2,
                interpretation="Very high cardiovascular risk",
                severity=Severity.VERY_HIGH,
                additional_data={"ldl_target": LDL_TARGETS[VERY_HIGH], "risk_factors": factors},
            )
        if tier == HIGH:
            return CalculationResult(
                score=1,
                interpretation="High cardiovascular risk",
                severity=Severity.HIGH,
                additional_data={"ldl_target": LDL_TARGETS[HIGH], "risk_factors": factors},
            )
        return CalculationResult(
            score=0,
            interpretation="Calculate Framingham risk score",
            additional_data={"ldl_target": "Determine with Framingham", "risk_factors": factors},
        )
