"""
Shared fixtures: an in-memory MongoDB (mongomock) and a TestClient wired to it.
"""

from unittest.mock import MagicMock

import mongomock
import pytest
from fastapi.testclient import TestClient
from hypothesis import settings, HealthCheck
from pymongo.errors import ServerSelectionTimeoutError

from backend.core.counters import CounterStore
from backend.core.event_log import EventLog

settings.register_profile(
    "default",
    suppress_health_check=[HealthCheck.too_slow],
)
settings.load_profile("default")


@pytest.fixture
def mongo_client():
    return mongomock.MongoClient()


@pytest.fixture
def database(mongo_client):
    return mongo_client["hub-app-db"]


@pytest.fixture
def event_log(database):
    return EventLog(database["downloadInfo"])


@pytest.fixture
def counters(database):
    return CounterStore(database["totalDownload"])


@pytest.fixture
def failing_collection():
    """A collection whose every call fails as if the server were unreachable."""
    collection = MagicMock()
    error = ServerSelectionTimeoutError("No servers found")
    for name in (
        "insert_one",
        "count_documents",
        "distinct",
        "find",
        "find_one",
        "find_one_and_update",
        "update_one",
    ):
        getattr(collection, name).side_effect = error
    return collection


@pytest.fixture
def app_client(monkeypatch, mongo_client):
    """TestClient running the real lifespan against mongomock."""
    import backend.main as main_mod

    monkeypatch.setattr(main_mod, "create_client", lambda settings: mongo_client)
    with TestClient(main_mod.app) as client:
        yield client
    main_mod.app.dependency_overrides.clear()
