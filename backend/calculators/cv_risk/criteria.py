"""
ESC/EAS cardiovascular risk criteria shared by the CV risk calculators.

The tiers are checked in a fixed order and the first match wins: very-high
criteria, then high criteria, otherwise the patient needs a Framingham
estimate. Reordering the checks changes categorization.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from api.calculator_models import ParameterDefinition, ParameterType, Severity
from calculators.base import flag, number

VERY_HIGH = "very-high"
HIGH = "high"

# LDL-C targets (mmol/L) per risk class
LDL_TARGETS = {
    "low": "<3.0 mmol/L",
    "moderate": "<2.6 mmol/L",
    HIGH: "<1.8 mmol/L",
    VERY_HIGH: "<1.4 mmol/L",
}

SEVERITY_BY_CLASS = {
    "low": Severity.LOW,
    "moderate": Severity.MODERATE,
    HIGH: Severity.HIGH,
    VERY_HIGH: Severity.VERY_HIGH,
}


def _boolean(param_id: str, name: str, tooltip: str) -> ParameterDefinition:
    return ParameterDefinition(
        id=param_id, name=name, type=ParameterType.BOOLEAN, tooltip=tooltip, storable=True,
    )


ESTABLISHED_CVD = [
    _boolean("cad", "Documented CAD",
             "Coronary artery disease (previous MI, ACS, coronary revascularization, "
             "other arterial revascularization procedures)"),
    _boolean("cerebroVD", "Cerebrovascular Disease", "Stroke or TIA"),
    _boolean("pad", "Peripheral Artery Disease", "Peripheral arterial disease"),
]

DIABETES = [
    _boolean("dm1", "Type 1 Diabetes", "Type 1 diabetes mellitus"),
    _boolean("dm2", "Type 2 Diabetes", "Type 2 diabetes mellitus"),
]

DIABETES_RISK_FACTORS = [
    _boolean("albuminuria", "Albuminuria", "Presence of albuminuria"),
    _boolean("smoking", "Current Smoker", "Currently smokes tobacco"),
    _boolean("knownHPT", "Hypertension",
             "Diagnosed hypertension or on antihypertensive medication"),
    _boolean("knownDLP", "Dyslipidemia",
             "Diagnosed dyslipidemia or on lipid-lowering medication"),
    ParameterDefinition(
        id="age", name="Age", type=ParameterType.NUMBER, unit="years",
        tooltip="Patient age in years", storable=True, min_value=0,
    ),
]

SEVERE_CONDITIONS = [
    _boolean("tcOver7_5", "TC > 7.5 mmol/L", "Total cholesterol > 7.5 mmol/L (290 mg/dL)"),
    _boolean("ldlOver5_0", "LDL-C > 5.0 mmol/L", "LDL cholesterol > 5.0 mmol/L (190 mg/dL)"),
    ParameterDefinition(
        id="egfr", name="eGFR", type=ParameterType.NUMBER, unit="mL/min/1.73m²",
        tooltip="Estimated glomerular filtration rate", storable=True, min_value=0,
    ),
]

SUBCLINICAL_ATHEROSCLEROSIS = [
    _boolean("coronaryAtheroma", "Coronary Atheroma", "Significant coronary atheroma on imaging"),
    _boolean("carotidAtheroma", "Carotid Atheroma", "Significant carotid atheroma on imaging"),
    _boolean("lowerLimbAtheroma", "Lower Limb Atheroma",
             "Significant lower limb atheroma on imaging"),
]

RISK_FACTOR_PARAMETERS = (
    ESTABLISHED_CVD + DIABETES + DIABETES_RISK_FACTORS + SEVERE_CONDITIONS
    + SUBCLINICAL_ATHEROSCLEROSIS
)


def _egfr(inputs: Mapping[str, Any]) -> Optional[float]:
    value = inputs.get("egfr")
    if value is None or value == "" or isinstance(value, bool):
        return None
    return float(value)


def _age_over_40(inputs: Mapping[str, Any]) -> bool:
    return number(inputs, "age") > 40


def risk_tier(inputs: Mapping[str, Any]) -> Optional[str]:
    """Return VERY_HIGH, HIGH, or None when Framingham scoring is needed."""
    egfr = _egfr(inputs)

    if flag(inputs, "cad") or flag(inputs, "cerebroVD") or flag(inputs, "pad"):
        return VERY_HIGH
    if flag(inputs, "dm1") and flag(inputs, "albuminuria"):
        return VERY_HIGH
    if egfr is not None and egfr < 30:
        return VERY_HIGH

    if flag(inputs, "dm2") and (
        flag(inputs, "smoking") or flag(inputs, "knownHPT") or flag(inputs, "knownDLP")
        or _age_over_40(inputs)
    ):
        return HIGH
    if flag(inputs, "tcOver7_5") or flag(inputs, "ldlOver5_0"):
        return HIGH
    if egfr is not None and 30 <= egfr < 60:
        return HIGH
    if any(flag(inputs, p.id) for p in SUBCLINICAL_ATHEROSCLEROSIS):
        return HIGH
    return None


def matching_risk_factors(inputs: Mapping[str, Any]) -> list[str]:
    """Names of the criteria the inputs meet, for result display."""
    egfr = _egfr(inputs)
    factors = []
    if flag(inputs, "cad"):
        factors.append("CAD")
    if flag(inputs, "cerebroVD"):
        factors.append("Cerebrovascular Disease")
    if flag(inputs, "pad"):
        factors.append("PAD")
    if flag(inputs, "dm2") and (
        flag(inputs, "smoking") or flag(inputs, "knownHPT") or flag(inputs, "knownDLP")
        or _age_over_40(inputs)
    ):
        factors.append("T2DM with risk factors")
    if flag(inputs, "dm1") and flag(inputs, "albuminuria"):
        factors.append("T1DM with albuminuria")
    if flag(inputs, "tcOver7_5") or flag(inputs, "ldlOver5_0"):
        factors.append("Genetic dyslipidemia")
    if egfr is not None and egfr < 30:
        factors.append("Severe CKD")
    elif egfr is not None and egfr < 60:
        factors.append("Moderate CKD")
    if any(flag(inputs, p.id) for p in SUBCLINICAL_ATHEROSCLEROSIS):
        factors.append("Asymptomatic atheroma")
    return factors


def risk_class(risk_percent: float) -> str:
    """Risk class used by the LDL treatment matrix."""
    if risk_percent < 3:
        return "low"
    if risk_percent < 15:
        return "moderate"
    if risk_percent < 30:
        return HIGH
    return VERY_HIGH


def treatment_recommendation(cls: str, ldl: float) -> str:
    """Cell text of the LDL treatment matrix for a risk class and untreated LDL-C."""
    if (
        (cls == "low" and ldl < 3.0)
        or (cls == "moderate" and ldl < 2.6)
        or (cls == HIGH and ldl < 1.8)
        or (cls == VERY_HIGH and ldl < 1.4)
    ):
        return "Lifestyle"
    if (cls == "low" and ldl < 4.9) or (cls == "moderate" and ldl < 3.0):
        return "Lifestyle ± statin"
    return "Lifestyle + statin"
