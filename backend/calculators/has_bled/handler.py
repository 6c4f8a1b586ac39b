from __future__ import annotations

from typing import Any, Mapping

from api.calculator_models import (
    CalculationResult,
    InterpretationRange,
    ParameterDefinition,
    ParameterType,
    ScreeningQuestion,
    Severity,
)
from calculators.base import BaseCalculator, flag, number

# One point each; age is scored separately (> 65 years)
_CRITERIA = (
    "hypertension",
    "renalDisease",
    "liverDisease",
    "strokeHistory",
    "bleedingHistory",
    "medications",
    "alcohol",
    "labilePTINR",
)


def _boolean(param_id: str, name: str, tooltip: str) -> ParameterDefinition:
    return ParameterDefinition(id=param_id, name=name, type=ParameterType.BOOLEAN, tooltip=tooltip)


class HasBledCalculator(BaseCalculator):

    @property
    def calculator_id(self) -> str:
        return "has-bled"

    @property
    def display_name(self) -> str:
        return "HAS-BLED Score"

    @property
    def description(self) -> str:
        return "Assesses bleeding risk in patients with atrial fibrillation on anticoagulation therapy"

    @property
    def category(self) -> str:
        return "Cardiology"

    @property
    def parameters(self) -> list[ParameterDefinition]:
        return [
            _boolean("hypertension", "Hypertension",
                     "Uncontrolled hypertension with systolic blood pressure >160 mmHg"),
            _boolean("renalDisease", "Abnormal Renal Function",
                     "Presence of chronic dialysis, renal transplantation, or serum "
                     "creatinine ≥200 μmol/L (2.26 mg/dL)"),
            _boolean("liverDisease", "Abnormal Liver Function",
                     "Chronic hepatic disease (e.g., cirrhosis) or biochemical evidence of "
                     "significant hepatic derangement (e.g., bilirubin >2x upper limit of normal, "
                     "in association with AST/ALT/ALP >3x upper limit normal)"),
            _boolean("strokeHistory", "Stroke History", "Previous history of stroke"),
            _boolean("bleedingHistory", "Bleeding History or Predisposition",
                     "Previous bleeding history and/or predisposition to bleeding "
                     "(e.g., bleeding diathesis, anemia)"),
            ParameterDefinition(
                id="age",
                name="Age",
                type=ParameterType.NUMBER,
                unit="years",
                tooltip="Age > 65 years",
                storable=True,
                min_value=0,
            ),
            _boolean("medications", "Medications",
                     "Concomitant use of drugs such as antiplatelet agents, NSAIDs"),
            _boolean("alcohol", "Alcohol Use", "Alcohol consumption ≥8 drinks/week"),
            _boolean("labilePTINR", "Labile INR",
                     "Unstable/high INRs or poor time in therapeutic range (e.g., <60%)"),
        ]

    @property
    def screening_questions(self) -> list[ScreeningQuestion]:
        return [
            ScreeningQuestion(
                id="onAnticoagulation",
                question="Is the patient on anticoagulation therapy?",
            ),
            ScreeningQuestion(
                id="atrialFibrillation",
                question="Does the patient have atrial fibrillation?",
            ),
        ]

    @property
    def interpretation_ranges(self) -> list[InterpretationRange]:
        return [
            InterpretationRange(min=0, max=1, severity=Severity.LOW,
                                interpretation="Low risk of major bleeding (0.9-1.13% risk of bleeding per year)"),
            InterpretationRange(min=2, max=3, severity=Severity.MODERATE,
                                interpretation="Intermediate risk of major bleeding (1.88-3.74% risk of bleeding per year)"),
            InterpretationRange(min=4, max=9, severity=Severity.HIGH,
                                interpretation="High risk of major bleeding (>8.7% risk of bleeding per year)"),
        ]

    @property
    def interpretation_notes(self) -> str:
        return (
            "HAS-BLED score is used to assess bleeding risk in patients with atrial "
            "fibrillation on anticoagulation therapy."
        )

    @property
    def references(self) -> list[str]:
        return [
            "Pisters R, Lane DA, Nieuwlaat R, et al. A novel user-friendly score (HAS-BLED) to assess "
            "1-year risk of major bleeding in patients with atrial fibrillation: the Euro Heart Survey. "
            "Chest. 2010;138(5):1093-1100.",
            "Lip GY, Frison L, Halperin JL, Lane DA. Comparative validation of a novel risk score for "
            "predicting bleeding risk in anticoagulated patients with atrial fibrillation: the HAS-BLED "
            "score. J Am Coll Cardiol. 2011;57(2):173-180.",
        ]

    def calculate(self, inputs: Mapping[str, Any]) -> CalculationResult:
        score = sum(1 for key in _CRITERIA if flag(inputs, key))
        if number(inputs, "age") > 65:
            score += 1

        if score <= 1:
            interpretation, severity = "Low risk of major bleeding", Severity.LOW
        elif score <= 3:
            interpretation, severity = "Intermediate risk of major bleeding", Severity.MODERATE
        else:
            interpretation, severity = "High risk of major bleeding", Severity.HIGH

        return CalculationResult(score=score, interpretation=interpretation, severity=severity)
