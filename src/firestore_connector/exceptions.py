"""Connector exceptions and translation of Firestore client errors."""

from __future__ import annotations

import contextlib
from typing import TYPE_CHECKING

from google.api_core import exceptions as gexc
from google.auth import exceptions as auth_exc

if TYPE_CHECKING:
    from collections.abc import Iterator


class FirestoreConnectorError(Exception):
    """Root exception for the Firestore connector."""


class FirestorePersistenceError(FirestoreConnectorError):
    """Base for failures reported by the document store."""


class FirestoreConnectionError(FirestorePersistenceError):
    """Raised when Firestore is unreachable or the connection is misconfigured."""


class FirestoreStoreError(FirestorePersistenceError):
    """Raised for any other failure returned by the Firestore client."""


class DocumentNotFoundError(FirestoreConnectorError):
    """Raised when a document expected to exist is absent."""

    def __init__(self, collection: str, document_id: object) -> None:
        self.collection = collection
        self.document_id = document_id
        super().__init__(f"Document not found: {collection}/{document_id!r}")


class InvalidFilterError(FirestoreConnectorError):
    """Raised when a filter object cannot be compiled into a query."""


class InvalidOperatorError(InvalidFilterError):
    """Raised when a condition uses an operator outside the operator table."""

    def __init__(self, operator: str, field: str | None = None) -> None:
        self.operator = operator
        self.field = field
        where = f" on field {field!r}" if field else ""
        super().__init__(f"Unsupported operator {operator!r}{where}")


_CONNECTIVITY_ERRORS: tuple[type[Exception], ...] = (
    gexc.ServiceUnavailable,
    gexc.DeadlineExceeded,
    gexc.Unauthenticated,
    gexc.RetryError,
    auth_exc.TransportError,
    auth_exc.DefaultCredentialsError,
    auth_exc.RefreshError,
)


@contextlib.contextmanager
def translate_store_errors(
    collection: str, document_id: object = None
) -> Iterator[None]:
    """Re-raise Firestore client errors as connector exceptions.

    ``NotFound`` becomes :class:`DocumentNotFoundError`, transport and
    credential failures become :class:`FirestoreConnectionError`, anything
    else coming from the Google client (including its local ``ValueError``
    payload checks) becomes :class:`FirestoreStoreError`.
    """
    try:
        yield
    except FirestoreConnectorError:
        raise
    except gexc.NotFound as e:
        raise DocumentNotFoundError(collection, document_id) from e
    except _CONNECTIVITY_ERRORS as e:
        raise FirestoreConnectionError(str(e)) from e
    except (gexc.GoogleAPIError, auth_exc.GoogleAuthError) as e:
        raise FirestoreStoreError(str(e)) from e
    except ValueError as e:
        # The client validates payloads and field paths locally.
        raise FirestoreStoreError(str(e)) from e
