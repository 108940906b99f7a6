"""
Download counters.
One reserved document holds the global total; every other document is the
total for a single application id. All mutation is done server-side with
atomic upserts, so concurrent requests and replicas never lose an increment.
"""

from typing import Dict

from pymongo import ReturnDocument
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError

from backend.core.storage import storage_errors

GLOBAL_COUNTER_ID = "counter"


class CounterStore:
    """Keyed counters backed by a MongoDB collection of {_id, count} documents."""

    def __init__(self, collection: Collection):
        self.collection = collection

    def get_all(self) -> Dict[str, int]:
        """Get every application counter (the global counter is excluded)."""
        with storage_errors("counter read"):
            docs = list(self.collection.find({"_id": {"$ne": GLOBAL_COUNTER_ID}}))
        return {doc["_id"]: doc.get("count", 0) for doc in docs}

    def get(self, counter_id: str) -> int:
        """Get a counter value. Missing counters read as 0 and are not created."""
        with storage_errors("counter read"):
            doc = self.collection.find_one({"_id": counter_id})
        return doc.get("count", 0) if doc else 0

    def exists(self, counter_id: str) -> bool:
        with storage_errors("counter read"):
            return self.collection.find_one({"_id": counter_id}, {"_id": 1}) is not None

    def increment_and_get(self, counter_id: str) -> int:
        """
        Increment a counter and return the new value.

        Creates the counter at 1 if it does not exist yet.
        """
        with storage_errors("counter increment"):
            doc = self.collection.find_one_and_update(
                {"_id": counter_id},
                {"$inc": {"count": 1}},
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
        return doc["count"]

    def initialize_global_if_absent(self, seed: int) -> bool:
        """
        Create the global counter with `seed` unless it already exists.

        Returns True only if this call created it. An existing value is
        never overwritten.
        """
        with storage_errors("counter initialization"):
            try:
                result = self.collection.update_one(
                    {"_id": GLOBAL_COUNTER_ID},
                    {"$setOnInsert": {"count": seed}},
                    upsert=True,
                )
            except DuplicateKeyError:
                # Another instance inserted it between our match and insert
                return False
        return result.upserted_id is not None
