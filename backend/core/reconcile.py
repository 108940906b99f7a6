"""
Compare counters against the event log.

Counters are maintained incrementally, so a failure between the log append and
the counter increment leaves them behind the log. This module only reports
such drift; it never rewrites a counter.
"""

from backend.core.counters import CounterStore, GLOBAL_COUNTER_ID
from backend.core.event_log import EventLog
from backend.models import CounterDrift, ReconciliationReport


def reconcile(event_log: EventLog, counters: CounterStore) -> ReconciliationReport:
    checks = [
        CounterDrift(
            counter_id=GLOBAL_COUNTER_ID,
            counter_value=counters.get(GLOBAL_COUNTER_ID),
            log_count=event_log.count(),
        )
    ]

    app_counts = counters.get_all()
    for app_id in sorted(set(app_counts) | set(event_log.app_ids())):
        checks.append(
            CounterDrift(
                counter_id=app_id,
                counter_value=app_counts.get(app_id, 0),
                log_count=event_log.count(app_id),
            )
        )

    return ReconciliationReport(
        checked=len(checks),
        mismatches=[check for check in checks if check.drift != 0],
    )
