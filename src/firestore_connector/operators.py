"""Comparison operators accepted in ``where`` operator objects."""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING

from .exceptions import InvalidOperatorError

if TYPE_CHECKING:
    from collections.abc import Mapping


class FilterOperator(str, Enum):
    """Operator names as they appear in filter objects."""

    LT = "lt"
    LTE = "lte"
    GT = "gt"
    GTE = "gte"
    IN = "in"
    EQ = "eq"


OPERATORS: Mapping[str, str] = MappingProxyType(
    {
        FilterOperator.LT.value: "<",
        FilterOperator.LTE.value: "<=",
        FilterOperator.GT.value: ">",
        FilterOperator.GTE.value: ">=",
        FilterOperator.IN.value: "in",
        FilterOperator.EQ.value: "==",
    }
)

EQUALITY = OPERATORS[FilterOperator.EQ.value]


def resolve_operator(name: str, field: str | None = None) -> str:
    """Return the Firestore comparison symbol for an operator name."""
    try:
        return OPERATORS[name]
    except (KeyError, TypeError):
        raise InvalidOperatorError(str(name), field) from None
