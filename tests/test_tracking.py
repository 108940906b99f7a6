"""
Tests for the track / read / initialize flows.
"""

from collections import Counter
from unittest.mock import MagicMock

import mongomock
import pytest
from hypothesis import given, strategies as st

from backend.core.counters import CounterStore, GLOBAL_COUNTER_ID
from backend.core.event_log import EventLog
from backend.core.storage import StorageUnavailable
from backend.core.tracking import (
    ReservedCounterId,
    initialize_counters,
    read_all_counts,
    read_count,
    track_download,
)


class TestTrackDownload:
    def test_app_download_returns_app_count(self, event_log, counters):
        counters.initialize_global_if_absent(100)

        assert track_download(event_log, counters, app_id="app-x") == 1
        assert track_download(event_log, counters, app_id="app-x") == 2
        assert counters.get(GLOBAL_COUNTER_ID) == 102

    def test_unscoped_download_returns_global_count(self, event_log, counters):
        counters.initialize_global_if_absent(3)

        assert track_download(event_log, counters) == 4
        assert counters.get_all() == {}

    def test_appends_record_with_metadata(self, event_log, counters):
        track_download(
            event_log, counters, app_id="app-x", user_agent="curl/8", client_address="1.2.3.4"
        )
        assert event_log.count("app-x") == 1

    def test_reserved_id_rejected_before_any_write(self, event_log, counters):
        with pytest.raises(ReservedCounterId):
            track_download(event_log, counters, app_id=GLOBAL_COUNTER_ID)

        assert event_log.count() == 0
        assert counters.get(GLOBAL_COUNTER_ID) == 0

    def test_step_order(self):
        calls = []
        event_log = MagicMock()
        event_log.append.side_effect = lambda **kw: calls.append(("append", kw["app_id"]))
        counters = MagicMock()

        def increment(counter_id):
            calls.append(("increment", counter_id))
            return 9

        counters.increment_and_get.side_effect = increment

        track_download(event_log, counters, app_id="app-x")

        assert calls == [
            ("append", "app-x"),
            ("increment", "app-x"),
            ("increment", GLOBAL_COUNTER_ID),
        ]

    def test_increment_failure_leaves_record_in_log(self, event_log, failing_collection):
        counters = CounterStore(failing_collection)

        with pytest.raises(StorageUnavailable):
            track_download(event_log, counters, app_id="app-x")

        assert event_log.count("app-x") == 1


@given(st.lists(st.one_of(st.none(), st.sampled_from(["app-a", "app-b", "app-c"])), max_size=30))
def test_counters_match_log_after_any_sequence(app_ids):
    database = mongomock.MongoClient()["hub-app-db"]
    event_log = EventLog(database["downloadInfo"])
    counters = CounterStore(database["totalDownload"])
    initialize_counters(event_log, counters)

    for app_id in app_ids:
        track_download(event_log, counters, app_id=app_id)

    expected = Counter(app_id for app_id in app_ids if app_id is not None)
    assert read_all_counts(counters) == dict(expected)
    assert counters.get(GLOBAL_COUNTER_ID) == len(app_ids) == event_log.count()
    for app_id, count in expected.items():
        assert read_count(counters, app_id) == count == event_log.count(app_id)


class TestInitializeCounters:
    def test_seeds_from_existing_records(self, event_log, counters):
        for _ in range(7):
            event_log.append(user_agent="legacy")

        assert initialize_counters(event_log, counters) == 7
        assert counters.get(GLOBAL_COUNTER_ID) == 7

    def test_rerun_does_not_change_value(self, event_log, counters):
        event_log.append()
        initialize_counters(event_log, counters)
        event_log.append()  # recorded without increment, e.g. a crashed request

        assert initialize_counters(event_log, counters) == 1

    def test_existing_counter_skips_log_count(self, counters):
        counters.initialize_global_if_absent(12)
        event_log = MagicMock()

        assert initialize_counters(event_log, counters) == 12
        event_log.count.assert_not_called()

    def test_empty_log_seeds_zero(self, event_log, counters, database):
        assert initialize_counters(event_log, counters) == 0
        assert database["totalDownload"].count_documents({"_id": GLOBAL_COUNTER_ID}) == 1


def test_read_count_unknown_app_is_zero(counters):
    assert read_count(counters, "unknown-app") == 0
