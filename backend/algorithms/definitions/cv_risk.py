"""ACC/AHA primary/secondary prevention pathway with CAC refinement."""

from __future__ import annotations

from api.algorithm_models import (
    AlgorithmDefinition,
    AlgorithmNode,
    Branch,
    NodeType,
    Preparation,
)
from api.calculator_models import ParameterDefinition, ParameterType, SelectOption
from api.condition_models import all_of, eq, ge, lt


def _result(node_id: str, content: str, description: str, recommendations: list[str]) -> AlgorithmNode:
    return AlgorithmNode(
        id=node_id,
        type=NodeType.RESULT,
        content=content,
        description=description,
        recommendations=recommendations,
    )


NODES = [
    AlgorithmNode(
        id="initial-assessment",
        type=NodeType.QUESTION,
        content="Does the patient have established cardiovascular disease?",
        parameters=[
            ParameterDefinition(
                id="established-cvd",
                name="Established CVD",
                type=ParameterType.BOOLEAN,
                tooltip="Previous myocardial infarction, stroke, or peripheral artery disease",
                storable=True,
            ),
        ],
        branches=[
            Branch(condition_id="has-cvd", label="Yes",
                   condition=eq("established-cvd", True), next_node_id="secondary-prevention"),
            Branch(condition_id="no-cvd", label="No",
                   condition=eq("established-cvd", False), next_node_id="primary-prevention"),
        ],
    ),
    _result(
        "secondary-prevention",
        "Secondary Prevention",
        "Patient requires secondary prevention strategies",
        [
            "High-intensity statin therapy",
            "Blood pressure management to target <130/80 mmHg",
            "Antiplatelet therapy",
            "Lifestyle modifications",
        ],
    ),
    AlgorithmNode(
        id="primary-prevention",
        type=NodeType.QUESTION,
        content="Calculate 10-year ASCVD risk score",
        parameters=[
            ParameterDefinition(
                id="ascvd-risk",
                name="ASCVD Risk Score",
                type=ParameterType.NUMBER,
                unit="%",
                tooltip="10-year risk of atherosclerotic cardiovascular disease",
                storable=True,
                min_value=0,
            ),
        ],
        branches=[
            Branch(condition_id="low-risk", label="<5%",
                   condition=lt("ascvd-risk", 5), next_node_id="low-risk"),
            Branch(condition_id="borderline-risk", label="5-7.5%",
                   condition=all_of(ge("ascvd-risk", 5), lt("ascvd-risk", 7.5)),
                   next_node_id="borderline-risk"),
            Branch(condition_id="intermediate-risk", label="7.5-20%",
                   condition=all_of(ge("ascvd-risk", 7.5), lt("ascvd-risk", 20)),
                   next_node_id="intermediate-risk"),
            Branch(condition_id="high-risk", label="≥20%",
                   condition=ge("ascvd-risk", 20), next_node_id="high-risk"),
        ],
    ),
    _result(
        "low-risk",
        "Low Risk (<5%)",
        "Patient has low 10-year risk of ASCVD",
        [
            "Emphasize lifestyle modifications",
            "Consider statin only if family history of premature ASCVD or other risk-enhancing factors",
            "Reassess in 4-6 years",
        ],
    ),
    AlgorithmNode(
        id="borderline-risk",
        type=NodeType.QUESTION,
        content="Are risk-enhancing factors present?",
        description="Risk-enhancing factors include family history of premature ASCVD, "
                    "metabolic syndrome, chronic kidney disease, etc.",
        parameters=[
            ParameterDefinition(
                id="risk-enhancers",
                name="Risk Enhancers Present",
                type=ParameterType.BOOLEAN,
                tooltip="Presence of risk-enhancing factors such as family history of premature "
                        "ASCVD, metabolic syndrome, chronic kidney disease, etc.",
            ),
        ],
        branches=[
            Branch(condition_id="has-enhancers", label="Yes",
                   condition=eq("risk-enhancers", True), next_node_id="borderline-with-enhancers"),
            Branch(condition_id="no-enhancers", label="No",
                   condition=eq("risk-enhancers", False), next_node_id="borderline-without-enhancers"),
        ],
    ),
    _result(
        "borderline-with-enhancers",
        "Borderline Risk with Risk Enhancers",
        "Patient has borderline risk with additional risk-enhancing factors",
        [
            "Consider moderate-intensity statin therapy",
            "Emphasize lifestyle modifications",
            "Monitor lipid levels and reassess risk in 1-2 years",
        ],
    ),
    _result(
        "borderline-without-enhancers",
        "Borderline Risk without Risk Enhancers",
        "Patient has borderline risk without additional risk-enhancing factors",
        [
            "Emphasize lifestyle modifications",
            "Consider statin based on clinician-patient risk discussion",
            "Reassess in 2-4 years",
        ],
    ),
    AlgorithmNode(
        id="intermediate-risk",
        type=NodeType.QUESTION,
        content="Are risk-enhancing factors present or would coronary artery calcium (CAC) "
                "scoring help decision-making?",
        parameters=[
            ParameterDefinition(
                id="risk-decision",
                name="Risk Assessment Decision",
                type=ParameterType.SELECT,
                options=[
                    SelectOption(value="enhancers", label="Risk enhancers present"),
                    SelectOption(value="cac", label="Perform CAC scoring"),
                    SelectOption(value="neither", label="Neither"),
                ],
                tooltip="Decision on how to further refine risk assessment",
            ),
        ],
        branches=[
            Branch(condition_id="has-enhancers", label="Risk enhancers present",
                   condition=eq("risk-decision", "enhancers"),
                   next_node_id="intermediate-with-enhancers"),
            Branch(condition_id="perform-cac", label="Perform CAC scoring",
                   condition=eq("risk-decision", "cac"), next_node_id="cac-scoring"),
            Branch(condition_id="neither", label="Neither",
                   condition=eq("risk-decision", "neither"), next_node_id="intermediate-standard"),
        ],
    ),
    _result(
        "intermediate-with-enhancers",
        "Intermediate Risk with Risk Enhancers",
        "Patient has intermediate risk with additional risk-enhancing factors",
        [
            "Initiate moderate-intensity statin therapy",
            "Emphasize lifestyle modifications",
            "Target 30-49% LDL-C reduction",
            "Monitor lipid levels and reassess risk annually",
        ],
    ),
    _result(
        "intermediate-standard",
        "Intermediate Risk",
        "Patient has intermediate risk without additional assessment",
        [
            "Consider moderate-intensity statin therapy",
            "Emphasize lifestyle modifications",
            "Target 30-49% LDL-C reduction",
            "Monitor lipid levels and reassess risk in 1-2 years",
        ],
    ),
    AlgorithmNode(
        id="cac-scoring",
        type=NodeType.QUESTION,
        content="What is the coronary artery calcium (CAC) score?",
        parameters=[
            ParameterDefinition(
                id="cac-score",
                name="CAC Score",
                type=ParameterType.SELECT,
                options=[
                    SelectOption(value="zero", label="CAC = 0"),
                    SelectOption(value="low", label="CAC = 1-99"),
                    SelectOption(value="high", label="CAC ≥ 100"),
                ],
                tooltip="Coronary artery calcium score from CT scan",
                storable=True,
            ),
        ],
        branches=[
            Branch(condition_id="cac-zero", label="CAC = 0",
                   condition=eq("cac-score", "zero"), next_node_id="cac-zero"),
            Branch(condition_id="cac-low", label="CAC = 1-99",
                   condition=eq("cac-score", "low"), next_node_id="cac-low"),
            Branch(condition_id="cac-high", label="CAC ≥ 100",
                   condition=eq("cac-score", "high"), next_node_id="cac-high"),
        ],
    ),
    _result(
        "cac-zero",
        "CAC Score = 0",
        "Patient has intermediate risk but CAC score of zero",
        [
            "Consider withholding statin therapy",
            "Emphasize lifestyle modifications",
            "Reassess in 5-7 years",
        ],
    ),
    _result(
        "cac-low",
        "CAC Score = 1-99",
        "Patient has intermediate risk with low positive CAC score",
        [
            "Initiate moderate-intensity statin therapy",
            "Emphasize lifestyle modifications",
            "Target 30-49% LDL-C reduction",
            "Monitor lipid levels and reassess risk annually",
        ],
    ),
    _result(
        "cac-high",
        "CAC Score ≥ 100",
        "Patient has intermediate risk with high CAC score",
        [
            "Initiate moderate to high-intensity statin therapy",
            "Emphasize lifestyle modifications",
            "Target ≥50% LDL-C reduction",
            "Consider additional risk factors and comorbidities",
            "Monitor lipid levels and reassess risk every 6 months",
        ],
    ),
    _result(
        "high-risk",
        "High Risk (≥20%)",
        "Patient has high 10-year risk of ASCVD",
        [
            "Initiate high-intensity statin therapy",
            "Emphasize lifestyle modifications",
            "Target ≥50% LDL-C reduction",
            "Consider additional risk factors and comorbidities",
            "Monitor lipid levels and reassess risk every 6 months",
        ],
    ),
]

CV_RISK_ALGORITHM = AlgorithmDefinition(
    id="cv-risk",
    name="Cardiovascular Risk Assessment",
    description="Algorithm for assessing cardiovascular risk and determining treatment approach",
    category="Cardiology",
    start_node_id="initial-assessment",
    nodes={node.id: node for node in NODES},
    preparation=Preparation(
        required_parameters=["established-cvd"],
        potential_parameters=["ascvd-risk", "risk-enhancers", "risk-decision", "cac-score"],
    ),
    references=[
        "2019 ACC/AHA Guideline on the Primary Prevention of Cardiovascular Disease",
        "2018 AHA/ACC/AACVPR/AAPA/ABC/ACPM/ADA/AGS/APhA/ASPC/NLA/PCNA Guideline on the "
        "Management of Blood Cholesterol",
    ],
)
