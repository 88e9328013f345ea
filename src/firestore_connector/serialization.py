"""Record <-> Firestore document conversion."""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal
from typing import TYPE_CHECKING, Any
from uuid import UUID

from pydantic import BaseModel

from .exceptions import FirestorePersistenceError

if TYPE_CHECKING:
    from collections.abc import Iterable


def _serialize_value(value: Any) -> Any:
    """Convert Python types Firestore cannot store natively."""
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, Mapping):
        return {k: _serialize_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_serialize_value(v) for v in value]
    return value


def record_to_document(record: Mapping[str, Any] | BaseModel) -> dict[str, Any]:
    """Turn a record (mapping or pydantic model) into a document payload."""
    if isinstance(record, BaseModel):
        data: Any = record.model_dump()
    elif isinstance(record, Mapping):
        data = dict(record)
    else:
        raise FirestorePersistenceError(
            f"Record must be a mapping or a pydantic model, got {type(record).__name__}"
        )
    return _serialize_value(data)


def snapshot_to_record(snapshot: Any, *, id_field: str = "id") -> dict[str, Any]:
    """Merge a snapshot's payload with its id; the store id always wins."""
    record = dict(snapshot.to_dict() or {})
    record[id_field] = snapshot.id
    return record


def snapshots_to_records(
    snapshots: Iterable[Any], *, id_field: str = "id"
) -> list[dict[str, Any]]:
    """Complete every snapshot of a query result with its id."""
    return [snapshot_to_record(s, id_field=id_field) for s in snapshots]
