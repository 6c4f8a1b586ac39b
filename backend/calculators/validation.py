"""Presence and domain checks shared by calculators and algorithm nodes."""

from __future__ import annotations

import math
from typing import Any, Iterable, Mapping

from api.calculator_models import ParameterDefinition, ParameterType
from .errors import InputDomainError, InvalidOptionError, MissingParametersError


def is_blank(value: Any) -> bool:
    """True for None and empty strings; False and 0 count as answers."""
    if value is None:
        return True
    if isinstance(value, str) and value.strip() == "":
        return True
    return False


def find_missing(
    parameters: Iterable[ParameterDefinition], inputs: Mapping[str, Any],
) -> list[ParameterDefinition]:
    return [p for p in parameters if is_blank(inputs.get(p.id))]


def require_present(
    parameters: Iterable[ParameterDefinition], inputs: Mapping[str, Any],
) -> None:
    missing = find_missing(parameters, inputs)
    if missing:
        raise MissingParametersError(missing)


def as_number(parameter: ParameterDefinition, value: Any) -> float:
    if isinstance(value, bool):
        raise InputDomainError(parameter, value, reason="must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InputDomainError(parameter, value, reason="must be a number")
    if math.isnan(number) or math.isinf(number):
        raise InputDomainError(parameter, value, reason="must be a finite number")
    return number


def check_domain(parameter: ParameterDefinition, value: Any) -> None:
    """Reject values a formula is undefined on (ln of 0, division by 0, ...) and
    values of the wrong kind for booleans and selects.
    """
    if parameter.type == ParameterType.NUMBER:
        number = as_number(parameter, value)
        if parameter.min_value is None:
            return
        if parameter.exclusive_min and number <= parameter.min_value:
            raise InputDomainError(parameter, value)
        if not parameter.exclusive_min and number < parameter.min_value:
            raise InputDomainError(parameter, value)
    elif parameter.type == ParameterType.BOOLEAN:
        # "true" or 1 would otherwise read as not present
        if not isinstance(value, bool):
            raise InputDomainError(parameter, value, reason="must be true or false")
    elif parameter.type == ParameterType.SELECT and parameter.options:
        allowed = {o.value for o in parameter.options}
        if value not in allowed:
            raise InvalidOptionError(parameter, value)


def validate_inputs(
    parameters: Iterable[ParameterDefinition], inputs: Mapping[str, Any],
) -> None:
    """Presence first, then domain; the first failing category is reported."""
    parameters = list(parameters)
    require_present(parameters, inputs)
    for parameter in parameters:
        check_domain(parameter, inputs[parameter.id])
