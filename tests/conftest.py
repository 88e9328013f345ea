"""Test configuration for the Firestore connector."""

import pytest

from firestore_connector import FirestoreRepository, FirestoreSettings
from tests.fake_firestore import FakeFirestore


@pytest.fixture
def fake_client():
    """In-memory Firestore client."""
    return FakeFirestore()


@pytest.fixture
def settings():
    return FirestoreSettings(project_id="test-project")


@pytest.fixture
def repository(fake_client, settings):
    """FirestoreRepository over the in-memory client."""
    return FirestoreRepository(fake_client, settings=settings)


@pytest.fixture
def people(fake_client):
    """Seed a small ``people`` collection."""
    fake_client.seed(
        "people",
        {
            "ada": {"name": "Ada", "age": 36, "status": "active", "region": "EU"},
            "bob": {"name": "Bob", "age": 17, "status": "active", "region": "US"},
            "cyd": {"name": "Cyd", "age": 65, "status": "inactive", "region": "EU"},
            "dee": {"name": "Dee", "age": 42, "status": "active", "region": "US"},
        },
    )
    return fake_client
