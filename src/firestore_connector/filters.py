"""Filter objects: ``{where, order, limit, skip, fields}``."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, NamedTuple

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
)

from .exceptions import InvalidFilterError

_ASCENDING = "ASC"
_DESCENDING = "DESC"


class OrderClause(NamedTuple):
    """One ``"field direction"`` entry of a filter's ``order``."""

    field: str
    descending: bool


class Filter(BaseModel):
    """Caller-supplied filter.

    Keys the connector does not understand (``include``, ``scope`` ...) are
    ignored. ``offset`` is accepted as an alias of ``skip`` and ``fields`` may
    be given either as ``{name: bool}`` or as a list of names.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    where: dict[str, Any] | None = None
    order: str | list[str] | None = None
    limit: int | None = Field(default=None, ge=0)
    skip: int | None = Field(
        default=None, ge=0, validation_alias=AliasChoices("skip", "offset")
    )
    fields: dict[str, bool] | list[str] | None = None

    @classmethod
    def parse(cls, raw: Filter | Mapping[str, Any] | None) -> Filter | None:
        """Validate a raw filter mapping. ``None`` stays ``None``."""
        if raw is None or isinstance(raw, Filter):
            return raw
        if not isinstance(raw, Mapping):
            raise InvalidFilterError(
                f"Filter must be a mapping, got {type(raw).__name__}"
            )
        try:
            return cls.model_validate(dict(raw))
        except ValidationError as e:
            raise InvalidFilterError(str(e)) from e

    @property
    def has_filter(self) -> bool:
        """True when at least one constraining key is present."""
        return any(
            value is not None
            for value in (self.where, self.order, self.limit, self.fields, self.skip)
        )

    def order_clauses(self) -> list[OrderClause]:
        """Normalise ``order`` into clauses, primary sort key first."""
        if not self.order:
            return []
        entries = [self.order] if isinstance(self.order, str) else self.order
        return [_parse_order_entry(entry) for entry in entries]

    def projection(self) -> list[str]:
        """Field names selected by ``fields``; empty means the whole document."""
        if not self.fields:
            return []
        if isinstance(self.fields, list):
            return list(self.fields)
        return [name for name, included in self.fields.items() if included]

    def id_condition(self, id_field: str = "id") -> Any:
        """Return ``where[id_field]`` or ``None``."""
        if not self.where:
            return None
        return self.where.get(id_field)


def _parse_order_entry(entry: str) -> OrderClause:
    parts = entry.split(None, 1)
    if not parts:
        raise InvalidFilterError(f"Empty order entry: {entry!r}")
    field = parts[0]
    direction = parts[1].strip().upper() if len(parts) > 1 else _ASCENDING
    if direction not in (_ASCENDING, _DESCENDING):
        raise InvalidFilterError(
            f"Invalid sort direction {parts[1]!r} for field {field!r}"
        )
    return OrderClause(field, direction == _DESCENDING)
