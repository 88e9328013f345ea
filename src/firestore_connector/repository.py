"""FirestoreRepository — record reads and writes over one Firestore client."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any

from .batch import BatchDeleter
from .config import MAX_BATCH_SIZE, FirestoreSettings
from .exceptions import (
    DocumentNotFoundError,
    FirestoreConnectionError,
    InvalidFilterError,
    translate_store_errors,
)
from .filters import Filter
from .operators import EQUALITY, FilterOperator, resolve_operator
from .query_builder import FirestoreQueryBuilder
from .serialization import record_to_document, snapshot_to_record, snapshots_to_records

if TYPE_CHECKING:
    from pydantic import BaseModel

    from .ports import DocumentStore

logger = logging.getLogger("firestore_connector.repository")

Record = dict[str, Any]


def _aggregate_count(results: Any) -> int:
    """Read the value out of a ``count()`` aggregation result."""
    for row in results:
        for result in row:
            return int(result.value)
    return 0


class FirestoreRepository:
    """Reads and writes records of any collection through an injected client.

    Mutations of a single document first probe for its existence and only
    then write. The probe and the write are separate round trips, not a
    transaction: a document deleted in between surfaces as
    :class:`DocumentNotFoundError` from the write itself.
    """

    def __init__(
        self,
        client: DocumentStore,
        *,
        settings: FirestoreSettings | None = None,
        query_builder: FirestoreQueryBuilder | None = None,
        batch_deleter: BatchDeleter | None = None,
    ) -> None:
        self._client = client
        self._settings = settings or FirestoreSettings()
        self._id_field = self._settings.id_field
        self._query_builder = query_builder or FirestoreQueryBuilder()
        self._batch_deleter = batch_deleter or BatchDeleter(
            client, batch_size=self._settings.delete_batch_size
        )

    @property
    def id_field(self) -> str:
        return self._id_field

    def _collection(self, collection: str) -> Any:
        return self._client.collection(collection)

    def _document(self, collection: str, document_id: Any) -> Any:
        if document_id is None or isinstance(document_id, Mapping):
            raise InvalidFilterError(
                f"A literal {self._id_field!r} is required, got {document_id!r}"
            )
        key = str(document_id)
        if not key or "/" in key:
            raise InvalidFilterError(f"Invalid document id {document_id!r}")
        with translate_store_errors(collection, document_id):
            return self._collection(collection).document(key)

    async def _existing_document(self, collection: str, document_id: Any) -> Any:
        if not await self.exists(collection, document_id):
            raise DocumentNotFoundError(collection, document_id)
        return self._document(collection, document_id)

    async def _existing_documents(self, collection: str, condition: Any) -> list[Any]:
        """Probe every id named by ``condition``; raises before any write."""
        _, ids = self._resolve_id_condition(condition)
        references: dict[str, Any] = {}
        for document_id in ids:
            ref = await self._existing_document(collection, document_id)
            references.setdefault(ref.id, ref)
        return list(references.values())

    def _resolve_id_condition(self, condition: Any) -> tuple[str, list[Any]]:
        """Resolve an id condition to ``(symbol, ids)``.

        A literal or ``{"eq": x}`` names one document, ``{"in": [...]}`` many.
        Other operators cannot be served by direct lookups.
        """
        if not isinstance(condition, Mapping):
            return EQUALITY, [condition]
        if len(condition) != 1:
            raise InvalidFilterError(
                f"{self._id_field!r} accepts a single operator, got {list(condition)}"
            )
        name, value = next(iter(condition.items()))
        symbol = resolve_operator(name, self._id_field)
        if name == FilterOperator.EQ:
            return symbol, [value]
        if name == FilterOperator.IN:
            if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
                raise InvalidFilterError(
                    f"{self._id_field!r} 'in' expects a list of ids, got {value!r}"
                )
            return symbol, list(value)
        raise InvalidFilterError(
            f"Operator {name!r} is not supported on {self._id_field!r}"
        )

    # -- reads ---------------------------------------------------------

    async def find_by_id(self, collection: str, document_id: Any) -> list[Record]:
        """Return ``[record]``, or ``[]`` when the document does not exist."""
        ref = self._document(collection, document_id)
        with translate_store_errors(collection, document_id):
            snapshot = await ref.get()
        if not snapshot.exists:
            return []
        return [snapshot_to_record(snapshot, id_field=self._id_field)]

    async def find_all(self, collection: str) -> list[Record]:
        """Return every document of ``collection``."""
        with translate_store_errors(collection):
            snapshots = await self._collection(collection).get()
        return snapshots_to_records(snapshots, id_field=self._id_field)

    async def find_filtered(
        self, collection: str, filter_: Filter | Mapping[str, Any]
    ) -> list[Record]:
        """Compile ``filter_`` into a query and run it."""
        query = self._query_builder.build(self._collection(collection), filter_)
        with translate_store_errors(collection):
            snapshots = await query.get()
        return snapshots_to_records(snapshots, id_field=self._id_field)

    async def find(
        self, collection: str, filter_: Filter | Mapping[str, Any] | None = None
    ) -> list[Record]:
        """Dispatch to an id lookup, a filtered query or a full scan.

        An id in ``where`` always wins: the document is fetched directly and
        the rest of the filter is not compiled.
        """
        parsed = Filter.parse(filter_)
        id_condition = parsed.id_condition(self._id_field) if parsed else None
        if id_condition is not None:
            logger.debug("find %s: id lookup", collection)
            return await self._find_by_id_condition(collection, id_condition)
        if parsed is not None and parsed.has_filter:
            logger.debug("find %s: filtered query", collection)
            return await self.find_filtered(collection, parsed)
        logger.debug("find %s: full collection", collection)
        return await self.find_all(collection)

    async def _find_by_id_condition(
        self, collection: str, condition: Any
    ) -> list[Record]:
        _, ids = self._resolve_id_condition(condition)
        records: list[Record] = []
        for document_id in ids:
            records.extend(await self.find_by_id(collection, document_id))
        return records

    async def exists(self, collection: str, document_id: Any) -> bool:
        """Probe for a single document."""
        ref = self._document(collection, document_id)
        with translate_store_errors(collection, document_id):
            snapshot = await ref.get()
        return bool(snapshot.exists)

    async def count(
        self, collection: str, where: Mapping[str, Any] | None = None
    ) -> int:
        """Count documents matching ``where``.

        Every entry of ``where`` is honoured unless the settings ask for the
        legacy first-entry-only behaviour.
        """
        where = where or {}
        query = self._collection(collection)
        if self._settings.count_first_field_only:
            query = self._query_builder.build_first_field(query, where)
        else:
            id_condition = where.get(self._id_field)
            others = {k: v for k, v in where.items() if k != self._id_field}
            query = self._query_builder.build_where(query, others)
            if id_condition is not None:
                symbol, ids = self._resolve_id_condition(id_condition)
                if not ids:
                    return 0
                references = [self._document(collection, i) for i in ids]
                query = self._query_builder.build_document_ids(
                    query,
                    symbol,
                    references[0] if symbol == EQUALITY else references,
                )
        with translate_store_errors(collection):
            results = await query.count(alias="total").get()
        return _aggregate_count(results)

    async def ping(self) -> bool:
        """Succeed when the client is bound to a project id."""
        if not getattr(self._client, "project", None):
            raise FirestoreConnectionError("Ping error: client has no project id")
        return True

    # -- writes --------------------------------------------------------

    async def create(
        self, collection: str, record: Mapping[str, Any] | BaseModel
    ) -> str:
        """Write ``record`` under its id field; Firestore picks an id if absent."""
        document = record_to_document(record)
        document_id = document.get(self._id_field)
        if document_id is not None:
            ref = self._document(collection, document_id)
        else:
            ref = self._collection(collection).document()
        with translate_store_errors(collection, ref.id):
            await ref.set(document)
        logger.debug("Created %s/%s", collection, ref.id)
        return str(ref.id)

    async def update(
        self,
        collection: str,
        where: Mapping[str, Any] | None,
        data: Mapping[str, Any] | BaseModel,
    ) -> int:
        """Merge ``data`` into the matched documents; returns how many."""
        return await self.update_all(collection, where, data)

    async def update_all(
        self,
        collection: str,
        where: Mapping[str, Any] | None,
        data: Mapping[str, Any] | BaseModel,
    ) -> int:
        """Merge ``data`` into the documents named by ``where``'s id.

        The id may be a literal, ``{"eq": x}`` or ``{"in": [...]}``; every
        named document is probed before the first write. Without an id,
        every document matching ``where`` is merged in batched writes.
        """
        where = where or {}
        payload = record_to_document(data)
        id_condition = where.get(self._id_field)
        if id_condition is None:
            return await self._update_matching(collection, where, payload)
        references = await self._existing_documents(collection, id_condition)
        for ref in references:
            with translate_store_errors(collection, ref.id):
                await ref.update(payload)
        return len(references)

    async def _update_matching(
        self, collection: str, where: Mapping[str, Any], payload: Record
    ) -> int:
        query = self._query_builder.build_where(self._collection(collection), where)
        with translate_store_errors(collection):
            snapshots = list(await query.get())
            for start in range(0, len(snapshots), MAX_BATCH_SIZE):
                batch = self._client.batch()
                for snapshot in snapshots[start : start + MAX_BATCH_SIZE]:
                    batch.update(snapshot.reference, payload)
                await batch.commit()
        logger.debug("Updated %d documents in %s", len(snapshots), collection)
        return len(snapshots)

    async def replace_by_id(
        self,
        collection: str,
        document_id: Any,
        data: Mapping[str, Any] | BaseModel,
    ) -> None:
        """Merge ``data`` into an existing document."""
        ref = await self._existing_document(collection, document_id)
        with translate_store_errors(collection, document_id):
            await ref.update(record_to_document(data))

    async def update_attributes(
        self,
        collection: str,
        document_id: Any,
        data: Mapping[str, Any] | BaseModel,
    ) -> None:
        """Overwrite an existing document: fields absent from ``data`` vanish."""
        ref = await self._existing_document(collection, document_id)
        with translate_store_errors(collection, document_id):
            await ref.set(record_to_document(data))

    async def destroy_by_id(self, collection: str, document_id: Any) -> None:
        """Delete an existing document."""
        ref = await self._existing_document(collection, document_id)
        with translate_store_errors(collection, document_id):
            await ref.delete()
        logger.debug("Deleted %s/%s", collection, document_id)

    async def destroy_all(
        self, collection: str, where: Mapping[str, Any] | None = None
    ) -> int:
        """Delete the documents named by id, or everything matching ``where``.

        An id condition (literal, ``eq`` or ``in``) deletes those documents
        once all of them are found. An empty ``where`` clears the whole
        collection. Batched deletion is not atomic; see :class:`BatchDeleter`.
        """
        where = where or {}
        id_condition = where.get(self._id_field)
        if id_condition is not None:
            references = await self._existing_documents(collection, id_condition)
            for ref in references:
                with translate_store_errors(collection, ref.id):
                    await ref.delete()
            logger.debug("Deleted %d documents from %s", len(references), collection)
            return len(references)
        query = None
        if where:
            query = self._query_builder.build_where(self._collection(collection), where)
        return await self._batch_deleter.delete(collection, query)
