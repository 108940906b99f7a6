"""
Append-only log of download records.
"""

import logging
from typing import List, Optional

from pymongo.collection import Collection

from backend.core.storage import storage_errors
from backend.models import DownloadRecord, UNKNOWN_USER_AGENT

logger = logging.getLogger(__name__)


class EventLog:
    """Stores one document per tracked download. Records are never modified."""

    def __init__(self, collection: Collection):
        self.collection = collection

    def append(
        self,
        app_id: Optional[str] = None,
        user_agent: Optional[str] = None,
        client_address: Optional[str] = None,
    ) -> DownloadRecord:
        """
        Persist a new download record and return it.

        A missing or empty user agent is stored as "Unknown". No uniqueness
        is enforced; a retried request is recorded twice.
        """
        record = DownloadRecord(
            app_id=app_id,
            user_agent=user_agent or UNKNOWN_USER_AGENT,
            client_address=client_address,
        )
        with storage_errors("event log append"):
            self.collection.insert_one(record.to_document())
        logger.debug("Recorded download app_id=%s ip=%s", app_id, client_address)
        return record

    def count(self, app_id: Optional[str] = None) -> int:
        """Count stored records, optionally only those for one application."""
        query = {} if app_id is None else {"appId": app_id}
        with storage_errors("event log count"):
            return self.collection.count_documents(query)

    def app_ids(self) -> List[str]:
        """Distinct application ids present in the log."""
        with storage_errors("event log app ids"):
            values = self.collection.distinct("appId")
        return sorted(value for value in values if isinstance(value, str))
