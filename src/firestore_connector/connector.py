"""FirestoreConnector — the generic data-access interface over Firestore.

Every operation takes the model name first and uses it as the collection
name. Operations are coroutines that return their result or raise; wrap one
in :func:`~firestore_connector.callbacks.run_with_callback` to receive
``callback(error, result)`` instead.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from .config import FirestoreSettings
from .connection import FirestoreConnectionManager
from .repository import FirestoreRepository

if TYPE_CHECKING:
    from collections.abc import Callable

    from pydantic import BaseModel

    from .filters import Filter
    from .ports import DocumentStore

logger = logging.getLogger("firestore_connector.connector")


class FirestoreConnector:
    """Connector exposing ``all``, ``create``, ``update`` ... for one Firestore project."""

    name = "firestore"

    def __init__(
        self,
        settings: FirestoreSettings | Mapping[str, Any] | None = None,
        *,
        client: DocumentStore | None = None,
        connection: FirestoreConnectionManager | None = None,
    ) -> None:
        if isinstance(settings, Mapping):
            settings = FirestoreSettings.from_mapping(settings)
        self._connection = connection or FirestoreConnectionManager(
            settings, client=client
        )
        self._repository: FirestoreRepository | None = None

    @property
    def settings(self) -> FirestoreSettings:
        return self._connection.settings

    @property
    def repository(self) -> FirestoreRepository:
        """Repository bound to the live client, connecting on first use."""
        if self._repository is None:
            client = self._connection.connect()
            self._repository = FirestoreRepository(client, settings=self.settings)
        return self._repository

    def connect(self) -> None:
        self._connection.connect()

    async def disconnect(self) -> None:
        await self._connection.close()
        self._repository = None

    async def all(
        self, model: str, filter: Filter | Mapping[str, Any] | None = None  # noqa: A002
    ) -> list[dict[str, Any]]:
        """Find records of ``model`` matching ``filter``."""
        return await self.repository.find(model, filter)

    async def exists(self, model: str, id: Any) -> bool:  # noqa: A002
        return await self.repository.exists(model, id)

    async def count(self, model: str, where: Mapping[str, Any] | None = None) -> int:
        return await self.repository.count(model, where)

    async def ping(self) -> bool:
        return await self.repository.ping()

    async def create(self, model: str, data: Mapping[str, Any] | BaseModel) -> str:
        """Insert a record; returns its id."""
        return await self.repository.create(model, data)

    async def update(
        self,
        model: str,
        where: Mapping[str, Any] | None,
        data: Mapping[str, Any] | BaseModel,
    ) -> int:
        return await self.repository.update(model, where, data)

    async def update_all(
        self,
        model: str,
        where: Mapping[str, Any] | None,
        data: Mapping[str, Any] | BaseModel,
    ) -> int:
        return await self.repository.update_all(model, where, data)

    async def replace_by_id(
        self, model: str, id: Any, data: Mapping[str, Any] | BaseModel  # noqa: A002
    ) -> None:
        await self.repository.replace_by_id(model, id, data)

    async def update_attributes(
        self, model: str, id: Any, data: Mapping[str, Any] | BaseModel  # noqa: A002
    ) -> None:
        await self.repository.update_attributes(model, id, data)

    async def destroy_by_id(self, model: str, id: Any) -> None:  # noqa: A002
        await self.repository.destroy_by_id(model, id)

    async def destroy_all(
        self, model: str, where: Mapping[str, Any] | None = None
    ) -> int:
        return await self.repository.destroy_all(model, where)


def initialize(
    data_source: Any, callback: Callable[[BaseException | None], None] | None = None
) -> FirestoreConnector:
    """Attach a connector built from ``data_source.settings`` to ``data_source``.

    ``callback(None)`` runs on the next loop iteration when a loop is
    running, immediately otherwise.
    """
    settings = getattr(data_source, "settings", None) or {}
    connector = FirestoreConnector(settings)
    data_source.connector = connector
    logger.debug("Firestore connector attached to data source")
    if callback is not None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            callback(None)
        else:
            loop.call_soon(callback, None)
    return connector
