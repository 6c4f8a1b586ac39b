"""ESC/EAS risk categorization with a Framingham fall-through."""

from __future__ import annotations

from api.algorithm_models import (
    AlgorithmDefinition,
    AlgorithmNode,
    Branch,
    NodeType,
    Preparation,
)
from api.calculator_models import ParameterDefinition, ParameterType
from api.condition_models import all_of, always, any_of, ge, gt, is_true, lt, none_true
from calculators.cv_risk.combined import CURRENT_LDL
from calculators.cv_risk.criteria import (
    DIABETES,
    DIABETES_RISK_FACTORS,
    ESTABLISHED_CVD,
    SEVERE_CONDITIONS,
    SUBCLINICAL_ATHEROSCLEROSIS,
)
from calculators.framingham.handler import FRAMINGHAM_PARAMETERS

NODES = [
    AlgorithmNode(
        id="initial-assessment",
        type=NodeType.QUESTION,
        content="Does the patient have any of the following conditions?",
        description="Check for conditions that automatically classify as very high risk",
        parameters=ESTABLISHED_CVD,
        branches=[
            Branch(condition_id="has-cvd", label="Yes (Secondary Prevention)",
                   condition=any_of(is_true("cad"), is_true("cerebroVD"), is_true("pad")),
                   next_node_id="very-high-risk"),
            Branch(condition_id="no-cvd", label="No (Primary Prevention)",
                   condition=none_true("cad", "cerebroVD", "pad"),
                   next_node_id="check-diabetes"),
        ],
    ),
    AlgorithmNode(
        id="check-diabetes",
        type=NodeType.QUESTION,
        content="Does the patient have diabetes?",
        parameters=DIABETES,
        branches=[
            Branch(condition_id="has-diabetes", label="Yes",
                   condition=any_of(is_true("dm1"), is_true("dm2")),
                   next_node_id="diabetes-assessment"),
            Branch(condition_id="no-diabetes", label="No",
                   condition=none_true("dm1", "dm2"),
                   next_node_id="check-severe-conditions"),
        ],
    ),
    AlgorithmNode(
        id="diabetes-assessment",
        type=NodeType.QUESTION,
        content="Diabetes risk assessment",
        description="Check for diabetes-related risk factors",
        parameters=DIABETES_RISK_FACTORS,
        branches=[
            Branch(condition_id="dm1-with-albuminuria", label="T1DM with albuminuria",
                   condition=all_of(is_true("dm1"), is_true("albuminuria")),
                   next_node_id="very-high-risk"),
            Branch(condition_id="dm2-with-risk-factors", label="T2DM with risk factors",
                   condition=all_of(
                       is_true("dm2"),
                       any_of(is_true("smoking"), is_true("knownHPT"), is_true("knownDLP"),
                              gt("age", 40)),
                   ),
                   next_node_id="high-risk"),
            Branch(condition_id="other-diabetes", label="Other diabetes cases",
                   condition=always(), next_node_id="framingham-calculation"),
        ],
    ),
    AlgorithmNode(
        id="check-severe-conditions",
        type=NodeType.QUESTION,
        content="Does the patient have any of these severe conditions?",
        parameters=SEVERE_CONDITIONS,
        branches=[
            Branch(condition_id="severe-dyslipidemia", label="Severe dyslipidemia",
                   condition=any_of(is_true("tcOver7_5"), is_true("ldlOver5_0")),
                   next_node_id="high-risk"),
            Branch(condition_id="severe-ckd", label="Severe CKD (eGFR < 30)",
                   condition=lt("egfr", 30), next_node_id="very-high-risk"),
            Branch(condition_id="moderate-ckd", label="Moderate CKD (eGFR 30-59)",
                   condition=all_of(ge("egfr", 30), lt("egfr", 60)),
                   next_node_id="high-risk"),
            Branch(condition_id="no-severe-conditions", label="None of these conditions",
                   condition=always(), next_node_id="check-subclinical-atherosclerosis"),
        ],
    ),
    AlgorithmNode(
        id="check-subclinical-atherosclerosis",
        type=NodeType.QUESTION,
        content="Is there evidence of subclinical atherosclerosis?",
        parameters=SUBCLINICAL_ATHEROSCLEROSIS,
        branches=[
            Branch(condition_id="has-atherosclerosis", label="Evidence of atherosclerosis",
                   condition=any_of(*(is_true(p.id) for p in SUBCLINICAL_ATHEROSCLEROSIS)),
                   next_node_id="high-risk"),
            Branch(condition_id="no-atherosclerosis", label="No evidence of atherosclerosis",
                   condition=none_true(*(p.id for p in SUBCLINICAL_ATHEROSCLEROSIS)),
                   next_node_id="framingham-calculation"),
        ],
    ),
    AlgorithmNode(
        id="framingham-calculation",
        type=NodeType.QUESTION,
        content="Calculate Framingham Risk Score",
        description="Enter parameters to calculate 10-year cardiovascular risk",
        parameters=FRAMINGHAM_PARAMETERS,
        branches=[
            Branch(condition_id="calculate", label="Calculate Risk",
                   condition=always(), next_node_id="framingham-result"),
        ],
    ),
    AlgorithmNode(
        id="framingham-result",
        type=NodeType.QUESTION,
        content="Framingham Risk Score Result",
        description="Based on the calculated risk score, determine risk category",
        parameters=[
            ParameterDefinition(
                id="framinghamRisk",
                name="Framingham Risk",
                type=ParameterType.NUMBER,
                unit="%",
                tooltip="10-year risk of cardiovascular disease",
                storable=True,
                min_value=0,
            ),
            CURRENT_LDL,
        ],
        branches=[
            Branch(condition_id="low-risk", label="Low Risk (<5%)",
                   condition=lt("framinghamRisk", 5), next_node_id="low-risk-treatment"),
            Branch(condition_id="moderate-risk", label="Moderate Risk (5-15%)",
                   condition=all_of(ge("framinghamRisk", 5), lt("framinghamRisk", 15)),
                   next_node_id="moderate-risk-treatment"),
            Branch(condition_id="high-risk", label="High Risk (≥15%)",
                   condition=ge("framinghamRisk", 15), next_node_id="high-risk-treatment"),
        ],
    ),
    AlgorithmNode(
        id="very-high-risk",
        type=NodeType.RESULT,
        content="Very High Risk",
        description="Patient is at very high cardiovascular risk",
        recommendations=[
            "LDL-C target: <1.4 mmol/L (<55 mg/dL) and ≥50% reduction from baseline",
            "High-intensity statin therapy (e.g., atorvastatin 40-80 mg or rosuvastatin 20-40 mg)",
            "Consider combination therapy if target not achieved with maximum tolerated statin",
            "Aggressive management of all risk factors",
            "Consider antiplatelet therapy for secondary prevention",
        ],
    ),
    AlgorithmNode(
        id="high-risk",
        type=NodeType.RESULT,
        content="High Risk",
        description="Patient is at high cardiovascular risk",
        recommendations=[
            "LDL-C target: <1.8 mmol/L (<70 mg/dL) and ≥50% reduction from baseline",
            "High-intensity statin therapy (e.g., atorvastatin 20-40 mg or rosuvastatin 10-20 mg)",
            "Consider combination therapy if target not achieved with maximum tolerated statin",
            "Aggressive management of all risk factors",
        ],
    ),
    AlgorithmNode(
        id="low-risk-treatment",
        type=NodeType.RESULT,
        content="Low Risk Treatment Recommendations",
        description="Treatment recommendations for low-risk patients",
        recommendations=[
            "LDL-C target: <3.0 mmol/L (<116 mg/dL)",
            "Lifestyle modifications as primary intervention",
            "Consider statin therapy only if LDL-C remains >3.0 mmol/L despite lifestyle changes",
            "Reassess cardiovascular risk in 5 years",
        ],
    ),
    AlgorithmNode(
        id="moderate-risk-treatment",
        type=NodeType.RESULT,
        content="Moderate Risk Treatment Recommendations",
        description="Treatment recommendations for moderate-risk patients",
        recommendations=[
            "LDL-C target: <2.6 mmol/L (<100 mg/dL)",
            "Lifestyle modifications as primary intervention",
            "Consider moderate-intensity statin therapy if LDL-C remains >2.6 mmol/L despite "
            "lifestyle changes",
            "Reassess cardiovascular risk in 2 years",
        ],
    ),
    AlgorithmNode(
        id="high-risk-treatment",
        type=NodeType.RESULT,
        content="High Risk Treatment Recommendations (Framingham)",
        description="Treatment recommendations for high-risk patients based on Framingham score",
        recommendations=[
            "LDL-C target: <1.8 mmol/L (<70 mg/dL)",
            "Moderate to high-intensity statin therapy",
            "Aggressive lifestyle modifications",
            "Consider combination therapy if target not achieved with maximum tolerated statin",
            "Manage all modifiable risk factors",
            "Reassess cardiovascular risk annually",
        ],
    ),
]

COMBINED_CV_RISK_ALGORITHM = AlgorithmDefinition(
    id="combined-cv-risk",
    name="Combined CV Risk Assessment",
    description="Comprehensive cardiovascular risk assessment combining Framingham risk score "
                "with European guidelines",
    category="Cardiology",
    start_node_id="initial-assessment",
    nodes={node.id: node for node in NODES},
    preparation=Preparation(
        required_parameters=["age", "gender"],
        potential_parameters=[
            "totalCholesterol", "hdlCholesterol", "systolicBP", "onHypertensionTreatment",
            "smoker", "cad", "cerebroVD", "pad", "dm1", "dm2", "egfr", "currentLDL",
        ],
    ),
    references=[
        "2019 ESC/EAS Guidelines for the management of dyslipidaemias",
        "2019 ACC/AHA Guideline on the Primary Prevention of Cardiovascular Disease",
        "Framingham Heart Study Risk Score Calculator",
    ],
)
