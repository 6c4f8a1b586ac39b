from __future__ import annotations

from typing import Any, Mapping

from api.calculator_models import (
    CalculationResult,
    InterpretationRange,
    ParameterDefinition,
    ParameterType,
    ScreeningQuestion,
    SelectOption,
    Severity,
)
from calculators.base import BaseCalculator, flag, number

SEX_OPTIONS = [
    SelectOption(value="male", label="Male"),
    SelectOption(value="female", label="Female"),
]


class Cha2ds2VascCalculator(BaseCalculator):

    @property
    def calculator_id(self) -> str:
        return "cha2ds2-vasc"

    @property
    def display_name(self) -> str:
        return "CHA₂DS₂-VASc Score"

    @property
    def description(self) -> str:
        return "Estimates stroke risk in patients with atrial fibrillation"

    @property
    def category(self) -> str:
        return "Cardiology"

    @property
    def parameters(self) -> list[ParameterDefinition]:
        return [
            ParameterDefinition(
                id="congestiveHeartFailure",
                name="Congestive Heart Failure",
                type=ParameterType.BOOLEAN,
                tooltip="Signs/symptoms of heart failure or objective evidence of reduced "
                        "left ventricular ejection fraction",
            ),
            ParameterDefinition(
                id="hypertension",
                name="Hypertension",
                type=ParameterType.BOOLEAN,
                tooltip="Resting blood pressure >140/90 mmHg on at least two occasions or "
                        "current antihypertensive treatment",
            ),
            ParameterDefinition(
                id="age",
                name="Age",
                type=ParameterType.NUMBER,
                unit="years",
                tooltip="Patient's age in years",
                storable=True,
                min_value=0,
            ),
            ParameterDefinition(
                id="diabetes",
                name="Diabetes Mellitus",
                type=ParameterType.BOOLEAN,
                tooltip="Fasting glucose >125 mg/dL (7 mmol/L) or treatment with oral "
                        "hypoglycemic agent and/or insulin",
            ),
            ParameterDefinition(
                id="stroke",
                name="Previous Stroke/TIA/Thromboembolism",
                type=ParameterType.BOOLEAN,
                tooltip="Previous stroke, transient ischemic attack, or thromboembolism",
            ),
            ParameterDefinition(
                id="vascularDisease",
                name="Vascular Disease",
                type=ParameterType.BOOLEAN,
                tooltip="Prior myocardial infarction, peripheral artery disease, or aortic plaque",
            ),
            ParameterDefinition(
                id="gender",
                name="Gender",
                type=ParameterType.SELECT,
                options=SEX_OPTIONS,
                tooltip="Patient's gender",
                storable=True,
            ),
        ]

    @property
    def screening_questions(self) -> list[ScreeningQuestion]:
        return [
            ScreeningQuestion(
                id="atrialFibrillation",
                question="Does the patient have atrial fibrillation?",
                eliminates=True,
                elimination_message="This calculator is specifically designed for patients "
                                    "with atrial fibrillation.",
            ),
        ]

    @property
    def interpretation_ranges(self) -> list[InterpretationRange]:
        return [
            InterpretationRange(min=0, max=0, severity=Severity.LOW,
                                interpretation="Low risk of stroke (0.2% annual risk)"),
            InterpretationRange(min=1, max=1, severity=Severity.LOW,
                                interpretation="Low-moderate risk of stroke (0.6% annual risk)"),
            InterpretationRange(min=2, max=9, severity=Severity.HIGH,
                                interpretation="Moderate-high risk of stroke (>2.2% annual risk)"),
        ]

    @property
    def interpretation_notes(self) -> str:
        return (
            "CHA₂DS₂-VASc score is used to determine whether anticoagulation is "
            "necessary in patients with atrial fibrillation."
        )

    @property
    def references(self) -> list[str]:
        return [
            "Lip GY, Nieuwlaat R, Pisters R, Lane DA, Crijns HJ. Refining clinical risk stratification "
            "for predicting stroke and thromboembolism in atrial fibrillation using a novel risk "
            "factor-based approach: the euro heart survey on atrial fibrillation. Chest. "
            "2010;137(2):263-272.",
            "January CT, Wann LS, Calkins H, et al. 2019 AHA/ACC/HRS Focused Update of the 2014 "
            "AHA/ACC/HRS Guideline for the Management of Patients With Atrial Fibrillation. "
            "Circulation. 2019;140(2):e125-e151.",
        ]

    def calculate(self, inputs: Mapping[str, Any]) -> CalculationResult:
        age = number(inputs, "age")
        score = 0
        if flag(inputs, "congestiveHeartFailure"):
            score += 1
        if flag(inputs, "hypertension"):
            score += 1
        if age >= 75:
            score += 2
        elif age >= 65:
            score += 1
        if flag(inputs, "diabetes"):
            score += 1
        if flag(inputs, "stroke"):
            score += 2
        if flag(inputs, "vascularDisease"):
            score += 1
        if inputs.get("gender") == "female":
            score += 1

        # Banding reproduces the calculator as deployed: 1 point is still "low"
        if score == 0:
            interpretation, severity = "Low risk of stroke", Severity.LOW
        elif score == 1:
            interpretation, severity = "Low-moderate risk of stroke", Severity.LOW
        else:
            interpretation, severity = "Moderate-high risk of stroke", Severity.HIGH

        return CalculationResult(score=score, interpretation=interpretation, severity=severity)
