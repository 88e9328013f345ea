"""Connector configuration."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Mapping

DEFAULT_DELETE_BATCH_SIZE = 10
# Firestore rejects write batches with more than 500 operations.
MAX_BATCH_SIZE = 500
TOKEN_URI = "https://oauth2.googleapis.com/token"

_CAMEL_CASE_KEYS = {
    "projectId": "project_id",
    "clientEmail": "client_email",
    "privateKey": "private_key",
    "idField": "id_field",
    "deleteBatchSize": "delete_batch_size",
    "countFirstFieldOnly": "count_first_field_only",
}


@dataclass(frozen=True)
class FirestoreSettings:
    """Configuration for the Firestore connector.

    Attributes:
        project_id: Google Cloud project id.
        client_email: Service-account client e-mail.
        private_key: Service-account private key (PEM). Escaped ``\\n``
            sequences, as found in environment variables, are unescaped.
        id_field: Record field carrying the document id.
        delete_batch_size: Documents removed per round by ``destroy_all``.
        count_first_field_only: Make ``count`` honour only the first ``where``
            entry, as an equality, like the LoopBack connector did.
    """

    project_id: str | None = None
    client_email: str | None = None
    private_key: str | None = None

    id_field: str = "id"
    delete_batch_size: int = DEFAULT_DELETE_BATCH_SIZE
    count_first_field_only: bool = False

    def __post_init__(self) -> None:
        if not 1 <= self.delete_batch_size <= MAX_BATCH_SIZE:
            raise ValueError(
                f"delete_batch_size must be between 1 and {MAX_BATCH_SIZE}, "
                f"got {self.delete_batch_size}"
            )
        if not self.id_field:
            raise ValueError("id_field must not be empty")

    @classmethod
    def from_mapping(cls, settings: Mapping[str, Any]) -> FirestoreSettings:
        """Build settings from a data-source dict (camelCase or snake_case)."""
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in settings.items():
            name = _CAMEL_CASE_KEYS.get(key, key)
            if name in known:
                kwargs[name] = value
        return cls(**kwargs)

    @property
    def has_service_account(self) -> bool:
        return bool(self.client_email and self.private_key)

    def service_account_info(self) -> dict[str, str]:
        """Service-account info dict accepted by ``google.oauth2``."""
        if not self.has_service_account:
            raise ValueError("client_email and private_key are both required")
        return {
            "type": "service_account",
            "project_id": self.project_id or "",
            "client_email": self.client_email or "",
            "private_key": (self.private_key or "").replace("\\n", "\n"),
            "token_uri": TOKEN_URI,
        }
