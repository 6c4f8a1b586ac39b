"""
Plain-text exports of calculator results and algorithm outcomes.

Two variants for each: clinical text for pasting into a note, and a
printer-friendly version that adds the date, references and a footer.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Mapping, Optional

from api.algorithm_models import AlgorithmDefinition, AlgorithmNode
from api.calculator_models import CalculationResult

FOOTER = "This assessment was generated using the Clinical Calculator App."
NO_RECOMMENDATIONS = "No specific recommendations provided."
PATH_SEPARATOR = " → "


def format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _inputs_text(inputs: Mapping[str, Any], labels: Mapping[str, str]) -> str:
    return "\n".join(
        f"{labels.get(key, key)}: {format_value(value)}" for key, value in inputs.items()
    )


def _date_text(today: Optional[date]) -> str:
    return (today or date.today()).isoformat()


def format_web_result(result: CalculationResult) -> dict:
    return {
        "score": result.score,
        "interpretation": result.interpretation,
        "severity": result.severity.value if result.severity else None,
    }


def format_clinical_text(
    calculator_name: str,
    result: CalculationResult,
    inputs: Mapping[str, Any],
    parameter_labels: Mapping[str, str],
) -> str:
    return (
        f"{calculator_name} Assessment\n\n"
        f"Inputs:\n{_inputs_text(inputs, parameter_labels)}\n\n"
        f"Score: {format_value(result.score)}\n"
        f"Interpretation: {result.interpretation}"
    )


def format_printer_friendly(
    calculator_name: str,
    result: CalculationResult,
    inputs: Mapping[str, Any],
    parameter_labels: Mapping[str, str],
    today: Optional[date] = None,
) -> str:
    return (
        f"{calculator_name} Assessment\n\n"
        f"Date: {_date_text(today)}\n\n"
        f"Inputs:\n{_inputs_text(inputs, parameter_labels)}\n\n"
        f"Score: {format_value(result.score)}\n"
        f"Interpretation: {result.interpretation}\n\n"
        f"{FOOTER}"
    )


def _path_text(algorithm: AlgorithmDefinition, path: list[str]) -> str:
    return PATH_SEPARATOR.join(
        algorithm.nodes[node_id].content if node_id in algorithm.nodes else node_id
        for node_id in path
    )


def _recommendations_text(node: AlgorithmNode) -> str:
    if not node.recommendations:
        return NO_RECOMMENDATIONS
    return "\n".join(f"- {rec}" for rec in node.recommendations)


def _result_block(node: AlgorithmNode) -> str:
    description = f"{node.description}\n\n" if node.description else "\n"
    return f"Result: {node.content}\n{description}"


def algorithm_parameter_labels(algorithm: AlgorithmDefinition, path: list[str]) -> dict[str, str]:
    """Display names for inputs, taken from the first node on the path that asks them."""
    labels: dict[str, str] = {}
    for node_id in path:
        node = algorithm.nodes.get(node_id)
        if node is None:
            continue
        for param in node.parameters:
            labels.setdefault(param.id, param.name)
    return labels


def format_algorithm_clinical_text(
    algorithm: AlgorithmDefinition, final_node: AlgorithmNode, path: list[str],
) -> str:
    return (
        f"{algorithm.name} Assessment\n\n"
        f"{_result_block(final_node)}"
        f"Recommendations:\n{_recommendations_text(final_node)}\n\n"
        f"Decision Path:\n{_path_text(algorithm, path)}"
    )


def format_algorithm_printer_friendly(
    algorithm: AlgorithmDefinition,
    final_node: AlgorithmNode,
    path: list[str],
    inputs: Mapping[str, Any],
    today: Optional[date] = None,
) -> str:
    labels = algorithm_parameter_labels(algorithm, path)
    references = "\n".join(f"- {ref}" for ref in algorithm.references)
    return (
        f"{algorithm.name} Assessment\n\n"
        f"Date: {_date_text(today)}\n\n"
        f"{_result_block(final_node)}"
        f"Recommendations:\n{_recommendations_text(final_node)}\n\n"
        f"Decision Path:\n{_path_text(algorithm, path)}\n\n"
        f"Inputs:\n{_inputs_text(inputs, labels)}\n\n"
        f"References:\n{references}\n\n"
        f"{FOOTER}"
    )
