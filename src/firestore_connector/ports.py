"""DocumentStore — the slice of the Firestore client the connector uses."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class DocumentStore(Protocol):
    """
    Outbound contract consumed by the repository and the batch deleter.

    ``google.cloud.firestore.AsyncClient`` satisfies it. Collection references
    expose ``document(id)`` returning a handle with awaitable
    ``get/set/update/delete``, and the query builder chain
    ``where/order_by/limit/offset/select`` ending in an awaitable ``get()``.
    Batches expose ``delete(ref)``, ``update(ref, data)`` and an awaitable
    ``commit()``.
    """

    @property
    def project(self) -> str | None:
        """Project the client is bound to."""
        ...

    def collection(self, *collection_path: str) -> Any:
        """Return a collection reference."""
        ...

    def batch(self) -> Any:
        """Return a new atomic write batch."""
        ...
