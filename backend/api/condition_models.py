"""
Serializable branch conditions.

A condition is a small expression tree over named input fields, stored as
JSON and evaluated against the accumulated input map:

    {"op": "all", "conditions": [
        {"op": "eq", "field": "dm2", "value": true},
        {"op": "gt", "field": "age", "value": 40}
    ]}

Comparison semantics follow the clinical forms: equality is strict (True never
equals 1), and ordering comparisons against an absent or non-numeric value are
false rather than an error.
"""

from __future__ import annotations

import math
import operator
from typing import Annotated, Any, Literal, Mapping, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

Scalar = Union[bool, int, float, str, None]


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not math.isnan(value)


def _strict_equal(left: Any, right: Any) -> bool:
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left is right
    if _is_number(left) and _is_number(right):
        return left == right
    return type(left) is type(right) and left == right


_ORDERING = {
    "lt": operator.lt,
    "le": operator.le,
    "gt": operator.gt,
    "ge": operator.ge,
}


class _Node(BaseModel):
    model_config = ConfigDict(frozen=True)


class Compare(_Node):
    op: Literal["eq", "ne", "lt", "le", "gt", "ge"]
    field: str
    value: Scalar

    def evaluate(self, inputs: Mapping[str, Any]) -> bool:
        actual = inputs.get(self.field)
        if self.op == "eq":
            return _strict_equal(actual, self.value)
        if self.op == "ne":
            return not _strict_equal(actual, self.value)
        if not (_is_number(actual) and _is_number(self.value)):
            return False
        return _ORDERING[self.op](actual, self.value)

    def referenced_fields(self) -> set[str]:
        return {self.field}


class AllOf(_Node):
    op: Literal["all"] = "all"
    conditions: list["Condition"]

    def evaluate(self, inputs: Mapping[str, Any]) -> bool:
        return all(c.evaluate(inputs) for c in self.conditions)

    def referenced_fields(self) -> set[str]:
        return set().union(*(c.referenced_fields() for c in self.conditions))


class AnyOf(_Node):
    op: Literal["any"] = "any"
    conditions: list["Condition"]

    def evaluate(self, inputs: Mapping[str, Any]) -> bool:
        return any(c.evaluate(inputs) for c in self.conditions)

    def referenced_fields(self) -> set[str]:
        return set().union(*(c.referenced_fields() for c in self.conditions))


class Not(_Node):
    op: Literal["not"] = "not"
    condition: "Condition"

    def evaluate(self, inputs: Mapping[str, Any]) -> bool:
        return not self.condition.evaluate(inputs)

    def referenced_fields(self) -> set[str]:
        return self.condition.referenced_fields()


class Present(_Node):
    """True when the field holds a non-empty value."""

    op: Literal["present"] = "present"
    field: str

    def evaluate(self, inputs: Mapping[str, Any]) -> bool:
        value = inputs.get(self.field)
        return value is not None and value != ""

    def referenced_fields(self) -> set[str]:
        return {self.field}


class Always(_Node):
    """Default branch."""

    op: Literal["always"] = "always"

    def evaluate(self, inputs: Mapping[str, Any]) -> bool:
        return True

    def referenced_fields(self) -> set[str]:
        return set()


Condition = Annotated[
    Union[Compare, AllOf, AnyOf, Not, Present, Always],
    Field(discriminator="op"),
]

AllOf.model_rebuild()
AnyOf.model_rebuild()
Not.model_rebuild()

condition_adapter: TypeAdapter = TypeAdapter(Condition)


def parse_condition(data: Any):
    """Build a condition from its JSON form (dict or string)."""
    if isinstance(data, (str, bytes)):
        return condition_adapter.validate_json(data)
    return condition_adapter.validate_python(data)


# Builders used by the static algorithm definitions

def eq(field: str, value: Scalar) -> Compare:
    return Compare(op="eq", field=field, value=value)


def ne(field: str, value: Scalar) -> Compare:
    return Compare(op="ne", field=field, value=value)


def lt(field: str, value: float) -> Compare:
    return Compare(op="lt", field=field, value=value)


def le(field: str, value: float) -> Compare:
    return Compare(op="le", field=field, value=value)


def gt(field: str, value: float) -> Compare:
    return Compare(op="gt", field=field, value=value)


def ge(field: str, value: float) -> Compare:
    return Compare(op="ge", field=field, value=value)


def all_of(*conditions) -> AllOf:
    return AllOf(conditions=list(conditions))


def any_of(*conditions) -> AnyOf:
    return AnyOf(conditions=list(conditions))


def not_(condition) -> Not:
    return Not(condition=condition)


def present(field: str) -> Present:
    return Present(field=field)


def always() -> Always:
    return Always()


def is_true(field: str) -> Compare:
    return eq(field, True)


def none_true(*fields: str) -> AllOf:
    """Every field is anything but True (absent counts as not True)."""
    return all_of(*(ne(f, True) for f in fields))
