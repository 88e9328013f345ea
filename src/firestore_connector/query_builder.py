"""Firestore query builder from filter objects."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter
from google.cloud.firestore_v1.field_path import FieldPath

from .filters import Filter
from .operators import EQUALITY, resolve_operator


def compile_condition(field: str, condition: Any) -> list[tuple[str, Any]]:
    """Compile one ``where`` entry to ``(symbol, value)`` constraints.

    A mapping is an operator object and yields one constraint per key, in key
    order. Anything else (lists and ``None`` included) is an equality literal.
    """
    if isinstance(condition, Mapping):
        return [
            (resolve_operator(name, field), value)
            for name, value in condition.items()
        ]
    return [(EQUALITY, condition)]


class FirestoreQueryBuilder:
    """Compiles filter objects into unexecuted Firestore queries.

    Every builder call returns a new query object; the builder rebinds to
    the latest one. Nothing here touches the network.
    """

    def build(self, collection_ref: Any, raw_filter: Filter | Mapping[str, Any]) -> Any:
        """Apply where, order, limit, skip and fields to ``collection_ref``."""
        filter_ = Filter.parse(raw_filter)
        query = collection_ref
        if filter_ is None:
            return query
        if filter_.where:
            query = self.build_where(query, filter_.where)
        for clause in filter_.order_clauses():
            direction = (
                firestore.Query.DESCENDING
                if clause.descending
                else firestore.Query.ASCENDING
            )
            query = query.order_by(clause.field, direction=direction)
        # Offsets are billed as reads: skip costs O(skip) on the server.
        if filter_.limit:
            query = query.limit(filter_.limit)
        if filter_.skip:
            query = query.offset(filter_.skip)
        projection = filter_.projection()
        if projection:
            query = query.select(projection)
        return query

    def build_where(self, query: Any, where: Mapping[str, Any]) -> Any:
        """AND every condition of ``where`` onto ``query``."""
        for field, condition in where.items():
            for symbol, value in compile_condition(field, condition):
                query = query.where(filter=FieldFilter(field, symbol, value))
        return query

    def build_first_field(self, query: Any, where: Mapping[str, Any]) -> Any:
        """Equality on the first ``where`` entry only (legacy count behaviour)."""
        if not where:
            return query
        field, value = next(iter(where.items()))
        return query.where(filter=FieldFilter(field, EQUALITY, value))

    def build_document_ids(self, query: Any, symbol: str, references: Any) -> Any:
        """Constrain ``query`` by document reference (``==`` one, ``in`` many)."""
        return query.where(
            filter=FieldFilter(FieldPath.document_id(), symbol, references)
        )
