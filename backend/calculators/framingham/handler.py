from __future__ import annotations

from typing import Any, Mapping

from api.calculator_models import (
    CalculationResult,
    InterpretationRange,
    ParameterDefinition,
    ParameterType,
    SelectOption,
    Severity,
)
from calculators.base import BaseCalculator, flag, number
from . import tables

FRAMINGHAM_PARAMETERS = [
    ParameterDefinition(
        id="age", name="Age", type=ParameterType.NUMBER, unit="years",
        tooltip="Patient age in years", storable=True, min_value=0,
    ),
    ParameterDefinition(
        id="gender", name="Gender", type=ParameterType.SELECT,
        options=[
            SelectOption(value="male", label="Male"),
            SelectOption(value="female", label="Female"),
        ],
        tooltip="Patient gender", storable=True,
    ),
    ParameterDefinition(
        id="totalCholesterol", name="Total Cholesterol", type=ParameterType.NUMBER,
        unit="mmol/L", tooltip="Total cholesterol level", storable=True, min_value=0,
    ),
    ParameterDefinition(
        id="hdlCholesterol", name="HDL Cholesterol", type=ParameterType.NUMBER,
        unit="mmol/L", tooltip="HDL cholesterol level", storable=True, min_value=0,
    ),
    ParameterDefinition(
        id="systolicBP", name="Systolic BP", type=ParameterType.NUMBER,
        unit="mmHg", tooltip="Systolic blood pressure", storable=True, min_value=0,
    ),
    ParameterDefinition(
        id="onHypertensionTreatment", name="On Hypertension Treatment",
        type=ParameterType.BOOLEAN, tooltip="Currently on medication for hypertension",
        storable=True,
    ),
    ParameterDefinition(
        id="smoker", name="Current Smoker", type=ParameterType.BOOLEAN,
        tooltip="Currently smokes tobacco", storable=True,
    ),
]


def framingham_points(inputs: Mapping[str, Any]) -> int:
    """Sum the sex-specific ATP III points for the given inputs."""
    table = tables.WOMEN if inputs.get("gender") == "female" else tables.MEN
    age = number(inputs, "age")
    tc = number(inputs, "totalCholesterol") * tables.MMOL_TO_MG_DL
    hdl = number(inputs, "hdlCholesterol") * tables.MMOL_TO_MG_DL

    points = table.age[tables.age_band_index(age)]
    points += tables.total_cholesterol_points(table, tc, age)
    if flag(inputs, "smoker"):
        points += table.smoker[tables.decade_band_index(age)]
    points += tables.hdl_points(hdl)
    points += tables.sbp_points(table, number(inputs, "systolicBP"), flag(inputs, "onHypertensionTreatment"))
    return points


def framingham_risk(inputs: Mapping[str, Any]) -> tuple[float, int]:
    """Return (10-year risk %, point total)."""
    table = tables.WOMEN if inputs.get("gender") == "female" else tables.MEN
    points = framingham_points(inputs)
    return tables.risk_percent(table, points), points


def classify(risk: float) -> tuple[str, Severity]:
    if risk < 5:
        return "Low risk", Severity.LOW
    if risk < 10:
        return "Moderate risk", Severity.MODERATE
    if risk < 20:
        return "High risk", Severity.HIGH
    return "Very high risk", Severity.VERY_HIGH


class FraminghamCalculator(BaseCalculator):

    @property
    def calculator_id(self) -> str:
        return "framingham-risk"

    @property
    def display_name(self) -> str:
        return "Framingham Risk Score"

    @property
    def description(self) -> str:
        return "Estimates 10-year risk of coronary heart disease"

    @property
    def category(self) -> str:
        return "Cardiology"

    @property
    def parameters(self) -> list[ParameterDefinition]:
        return list(FRAMINGHAM_PARAMETERS)

    @property
    def interpretation_ranges(self) -> list[InterpretationRange]:
        return [
            InterpretationRange(min=0, max=4, severity=Severity.LOW,
                                interpretation="Low risk (<5% 10-year risk)"),
            InterpretationRange(min=5, max=9, severity=Severity.MODERATE,
                                interpretation="Moderate risk (5-10% 10-year risk)"),
            InterpretationRange(min=10, max=19, severity=Severity.HIGH,
                                interpretation="High risk (10-20% 10-year risk)"),
            InterpretationRange(min=20, max=30, severity=Severity.VERY_HIGH,
                                interpretation="Very high risk (≥20% 10-year risk)"),
        ]

    @property
    def interpretation_notes(self) -> str:
        return (
            "Score is the 10-year risk (%) of hard coronary heart disease. Cholesterol "
            "values are entered in mmol/L. Risks of 30% or more are reported as 30%."
        )

    @property
    def references(self) -> list[str]:
        return [
            "Expert Panel on Detection, Evaluation, and Treatment of High Blood Cholesterol in "
            "Adults. Executive Summary of the Third Report of the National Cholesterol Education "
            "Program (NCEP) Adult Treatment Panel III. JAMA. 2001;285(19):2486-2497.",
            "Wilson PW, D'Agostino RB, Levy D, et al. Prediction of coronary heart disease using "
            "risk factor categories. Circulation. 1998;97(18):1837-1847.",
        ]

    def calculate(self, inputs: Mapping[str, Any]) -> CalculationResult:
        risk, points = framingham_risk(inputs)
        interpretation, severity = classify(risk)
        return CalculationResult(
            score=risk,
            interpretation=f"{interpretation} of coronary heart disease within 10 years",
            severity=severity,
            additional_data={"points": points},
        )
