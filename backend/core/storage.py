"""
MongoDB connection handling and storage error translation.
"""

from contextlib import contextmanager
from typing import Iterator

from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError
from pymongo.server_api import ServerApi

from backend.core.settings import Settings


class StorageUnavailable(Exception):
    """The backing store could not complete an operation."""

    def __init__(self, operation: str):
        super().__init__(f"Storage unavailable during {operation}")
        self.operation = operation


@contextmanager
def storage_errors(operation: str) -> Iterator[None]:
    """Re-raise any driver error inside the block as StorageUnavailable."""
    try:
        yield
    except PyMongoError as exc:
        raise StorageUnavailable(operation) from exc


def create_client(settings: Settings) -> MongoClient:
    """Create a client pinned to Stable API v1."""
    return MongoClient(
        settings.mongo_db_uri,
        server_api=ServerApi("1", strict=True, deprecation_errors=True),
        serverSelectionTimeoutMS=settings.mongo_timeout_ms,
    )


def ping(database: Database) -> None:
    with storage_errors("ping"):
        database.command("ping")
