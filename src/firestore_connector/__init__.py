"""Firestore connector for the generic data-access interface.

Translates JSON-shaped filters (``where``/``order``/``limit``/``skip``/
``fields``) into Firestore queries and exposes record CRUD, counting and
batched collection deletion over ``google.cloud.firestore.AsyncClient``.
"""

from __future__ import annotations

from .batch import BatchDeleter
from .callbacks import run_with_callback
from .config import FirestoreSettings
from .connection import FirestoreConnectionManager
from .connector import FirestoreConnector, initialize
from .exceptions import (
    DocumentNotFoundError,
    FirestoreConnectionError,
    FirestoreConnectorError,
    FirestorePersistenceError,
    FirestoreStoreError,
    InvalidFilterError,
    InvalidOperatorError,
)
from .filters import Filter, OrderClause
from .operators import OPERATORS, FilterOperator, resolve_operator
from .ports import DocumentStore
from .query_builder import FirestoreQueryBuilder
from .repository import FirestoreRepository

__all__ = [
    # Connector
    "FirestoreConnector",
    "initialize",
    "run_with_callback",
    # Core
    "FirestoreConnectionManager",
    "FirestoreRepository",
    "FirestoreQueryBuilder",
    "BatchDeleter",
    "DocumentStore",
    "FirestoreSettings",
    # Filters
    "Filter",
    "OrderClause",
    "FilterOperator",
    "OPERATORS",
    "resolve_operator",
    # Exceptions
    "FirestoreConnectorError",
    "FirestorePersistenceError",
    "FirestoreConnectionError",
    "FirestoreStoreError",
    "DocumentNotFoundError",
    "InvalidFilterError",
    "InvalidOperatorError",
]
