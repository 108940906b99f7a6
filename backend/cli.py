"""Operator CLI for the download tracker database."""

import argparse
import json
import logging
import sys

from backend.core.counters import CounterStore
from backend.core.event_log import EventLog
from backend.core.settings import Settings, get_settings
from backend.core.storage import StorageUnavailable, create_client
from backend.core.reconcile import reconcile
from backend.core.tracking import initialize_counters

logger = logging.getLogger(__name__)


def _open_stores(settings: Settings):
    client = create_client(settings)
    database = client[settings.mongo_db_name]
    return (
        client,
        EventLog(database[settings.download_info_collection]),
        CounterStore(database[settings.total_download_collection]),
    )


def cmd_reconcile(args: argparse.Namespace, event_log: EventLog, counters: CounterStore) -> int:
    """Print counter drift against the event log. Exit 1 when any counter drifts."""
    report = reconcile(event_log, counters)
    output = {
        "checked": report.checked,
        "consistent": report.consistent,
        "mismatches": [
            {**m.model_dump(), "drift": m.drift} for m in report.mismatches
        ],
    }
    print(json.dumps(output, indent=2))
    return 0 if report.consistent else 1


def cmd_init_counter(args: argparse.Namespace, event_log: EventLog, counters: CounterStore) -> int:
    total = initialize_counters(event_log, counters)
    print(json.dumps({"totalDownloadCount": total}))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="hub-downloads", description=__doc__)
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("reconcile", help="Compare counters with the event log")
    subparsers.add_parser("init-counter", help="Seed the global counter if it is missing")
    subparsers.add_parser("serve", help="Run the HTTP server")
    return parser


COMMANDS = {
    "reconcile": cmd_reconcile,
    "init-counter": cmd_init_counter,
}


def main(argv=None, settings: Settings = None) -> int:
    args = build_parser().parse_args(argv)
    settings = settings or get_settings()

    logging.basicConfig(
        level=(args.log_level or settings.log_level).upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    if args.command == "serve":
        from backend.main import run
        run()
        return 0

    client, event_log, counters = _open_stores(settings)
    try:
        return COMMANDS[args.command](args, event_log, counters)
    except StorageUnavailable as e:
        logger.error("%s: %s", e, e.__cause__)
        return 2
    finally:
        client.close()


if __name__ == "__main__":
    sys.exit(main())
