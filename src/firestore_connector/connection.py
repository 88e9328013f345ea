"""FirestoreConnectionManager — AsyncClient lifecycle and health check."""

from __future__ import annotations

import inspect
import logging
from typing import TYPE_CHECKING, Any

from google.auth import exceptions as auth_exc
from google.cloud import firestore
from google.oauth2 import service_account

from .config import FirestoreSettings
from .exceptions import FirestoreConnectionError

if TYPE_CHECKING:
    from .ports import DocumentStore

logger = logging.getLogger("firestore_connector.connection")


class FirestoreConnectionManager:
    """Wrap a Firestore ``AsyncClient`` with lifecycle and health-check helpers.

    One manager owns one client for the lifetime of the process; build a
    second manager to get an isolated connection.
    """

    def __init__(
        self,
        settings: FirestoreSettings | None = None,
        *,
        client: DocumentStore | None = None,
        **client_kwargs: Any,
    ) -> None:
        self._settings = settings or FirestoreSettings()
        self._client_kwargs = client_kwargs
        self._client: DocumentStore | None = client

    @property
    def settings(self) -> FirestoreSettings:
        return self._settings

    def connect(self) -> DocumentStore:
        """Create and cache the client. Idempotent.

        Uses the configured service account when both ``client_email`` and
        ``private_key`` are set, application default credentials otherwise.
        """
        if self._client is not None:
            return self._client
        try:
            credentials = None
            if self._settings.has_service_account:
                credentials = service_account.Credentials.from_service_account_info(
                    self._settings.service_account_info()
                )
            self._client = firestore.AsyncClient(
                project=self._settings.project_id,
                credentials=credentials,
                **self._client_kwargs,
            )
        except (ValueError, auth_exc.GoogleAuthError) as e:
            raise FirestoreConnectionError(str(e)) from e
        logger.debug("Firestore client created for project %s", self._client.project)
        return self._client

    @property
    def client(self) -> DocumentStore:
        """Return the client; raises if not connected."""
        if self._client is None:
            raise FirestoreConnectionError("Not connected; call connect() first")
        return self._client

    async def close(self) -> None:
        """Close the client's channel and drop the reference. Idempotent.

        ``AsyncClient`` has no ``close()`` of its own; its gRPC channel lives
        on the lazily created GAPIC client, and is only closed if one exists.
        """
        if self._client is None:
            return
        client, self._client = self._client, None
        logger.debug("Closing Firestore client")
        closer = getattr(client, "close", None)
        if callable(closer):
            result = closer()
            if inspect.isawaitable(result):
                await result
            return
        api = getattr(client, "_firestore_api_internal", None)
        if api is not None:
            await api.transport.close()

    def health_check(self) -> bool:
        """True when a client is bound to a project id."""
        if self._client is None:
            return False
        return bool(getattr(self._client, "project", None))
