"""BatchDeleter — empty a collection one bounded write batch at a time."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from google.cloud.firestore_v1.field_path import FieldPath

from .config import DEFAULT_DELETE_BATCH_SIZE, MAX_BATCH_SIZE
from .exceptions import translate_store_errors

if TYPE_CHECKING:
    from collections.abc import Callable

    from .ports import DocumentStore

logger = logging.getLogger("firestore_connector.batch")


class BatchDeleter:
    """Delete every document matched by a query, ``batch_size`` at a time.

    Each round runs the same query (ordered by document id, limited to the
    batch size), deletes what it returned in one atomic write batch and
    yields to the event loop before the next round. Removed documents no
    longer match, so the unchanged query returns the next page.

    A failing round aborts the loop and propagates. Earlier rounds are not
    rolled back: an interrupted delete leaves the collection partially
    emptied. Two concurrent deletes of the same collection may both see,
    and both delete, the same batch.
    """

    def __init__(
        self,
        client: DocumentStore,
        *,
        batch_size: int = DEFAULT_DELETE_BATCH_SIZE,
        on_batch: Callable[[int], None] | None = None,
    ) -> None:
        if not 1 <= batch_size <= MAX_BATCH_SIZE:
            raise ValueError(
                f"batch_size must be between 1 and {MAX_BATCH_SIZE}, got {batch_size}"
            )
        self._client = client
        self._batch_size = batch_size
        self._on_batch = on_batch

    @property
    def batch_size(self) -> int:
        return self._batch_size

    async def delete(self, collection: str, query: Any = None) -> int:
        """Delete all documents of ``collection`` (or of ``query``).

        Returns the number of documents deleted.
        """
        base = query if query is not None else self._client.collection(collection)
        page = base.order_by(FieldPath.document_id()).limit(self._batch_size)
        total = 0
        rounds = 0
        while True:
            with translate_store_errors(collection):
                snapshots = await page.get()
                if not snapshots:
                    break
                batch = self._client.batch()
                for snapshot in snapshots:
                    batch.delete(snapshot.reference)
                await batch.commit()
            rounds += 1
            total += len(snapshots)
            logger.debug(
                "Deleted batch %d of %d documents from %s",
                rounds,
                len(snapshots),
                collection,
            )
            if self._on_batch is not None:
                self._on_batch(len(snapshots))
            await asyncio.sleep(0)
        logger.debug(
            "Deleted %d documents from %s in %d batches", total, collection, rounds
        )
        return total
