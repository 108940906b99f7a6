"""
Track and read flows that combine the event log and the counter store.
"""

import logging
from typing import Dict, Optional

from backend.core.counters import CounterStore, GLOBAL_COUNTER_ID
from backend.core.event_log import EventLog

logger = logging.getLogger(__name__)


class ReservedCounterId(ValueError):
    """An application id collides with the global counter's id."""

    def __init__(self, app_id: str):
        super().__init__(f"'{app_id}' is reserved and cannot be used as an application id")
        self.app_id = app_id


def track_download(
    event_log: EventLog,
    counters: CounterStore,
    app_id: Optional[str] = None,
    user_agent: Optional[str] = None,
    client_address: Optional[str] = None,
) -> int:
    """
    Record a download and bump its counters.

    Order: append the record, increment the application counter (if any),
    then the global counter. Returns the application count when an app id
    is given, else the global count. A failure after the append leaves the
    record in place; counters and log may then disagree until reconciled.
    """
    if app_id == GLOBAL_COUNTER_ID:
        raise ReservedCounterId(app_id)

    event_log.append(app_id=app_id, user_agent=user_agent, client_address=client_address)

    app_count = None
    if app_id is not None:
        app_count = counters.increment_and_get(app_id)

    global_count = counters.increment_and_get(GLOBAL_COUNTER_ID)

    return app_count if app_count is not None else global_count


def read_all_counts(counters: CounterStore) -> Dict[str, int]:
    """Application id -> count, for every application ever tracked."""
    return counters.get_all()


def read_count(counters: CounterStore, app_id: str) -> int:
    return counters.get(app_id)


def initialize_counters(event_log: EventLog, counters: CounterStore) -> int:
    """
    Seed the global counter from the event log if it does not exist yet.

    Returns the global count after initialization. The log is only counted
    while the counter is missing; the conditional create still settles races.
    """
    if counters.exists(GLOBAL_COUNTER_ID):
        logger.info("Global download counter already present")
        return counters.get(GLOBAL_COUNTER_ID)

    seed = event_log.count()
    if counters.initialize_global_if_absent(seed):
        logger.info("Initialized global download counter with %d existing records", seed)
    else:
        logger.info("Global download counter already present")
    return counters.get(GLOBAL_COUNTER_ID)
