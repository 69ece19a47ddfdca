"""Command-line entry for simplecal.

Examples:
  python -m simplecal expand --store events.json --start 2024-01-01 --end 2024-01-31
  python -m simplecal expand --store events.json --month 2024-01-15 --json
  python -m simplecal describe "FREQ=WEEKLY;BYDAY=MO,WE" --start 2024-01-01T09:00 --preview 5
  python -m simplecal delete --store events.json --series s1 --date 2024-01-08T09:00 --scope this_only
  python -m simplecal delete-calendar --store events.json --calendar cal-1
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date, datetime
from typing import Optional

from dateutil.parser import isoparse

from .config_manager import ConfigManager, RecurrenceConfig
from .date_utils import chronological_key, format_instance_date, get_month_view_range
from .event_store import JsonEventStore
from .mutation_planner import MutationPlanner
from .occurrence_generator import first_occurrences
from .recur_exceptions import SimpleCalError
from .recur_models import EditScope, InstanceRef
from .rrule_codec import describe, parse
from .series_expander import SeriesExpander
from .simplecal_logging import configure_logging

logger = logging.getLogger(__name__)


def _parse_date(value: str) -> date:
    try:
        return isoparse(value).date()
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid date: {value!r}") from e


def _parse_datetime(value: str) -> datetime:
    try:
        return isoparse(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid datetime: {value!r}") from e


def _create_parser() -> argparse.ArgumentParser:
    """Create argument parser for the simplecal CLI.

    Returns:
        Configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog="simplecal",
        description="simplecal - recurring event expansion and editing",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__.split("Examples:", 1)[1] if __doc__ else None,
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    expand = subparsers.add_parser("expand", help="List instances visible in a window")
    expand.add_argument("--store", metavar="PATH", help="JSON event store (default: SIMPLECAL_STORE_PATH)")
    expand.add_argument("--start", type=_parse_date, help="Window start date")
    expand.add_argument("--end", type=_parse_date, help="Window end date (inclusive)")
    expand.add_argument("--month", type=_parse_date, help="Use the month view window around this date")
    expand.add_argument(
        "--calendar",
        action="append",
        metavar="ID",
        help="Only show series of this calendar (repeatable)",
    )
    expand.add_argument("--json", action="store_true", help="Print instances as JSON")

    desc = subparsers.add_parser("describe", help="Describe a recurrence rule")
    desc.add_argument("rule", help="Rule text, e.g. FREQ=WEEKLY;BYDAY=MO")
    desc.add_argument("--start", type=_parse_datetime, help="Anchor start for --preview")
    desc.add_argument("--preview", type=int, default=0, metavar="N", help="Show the first N occurrences")

    delete = subparsers.add_parser("delete", help="Delete an instance or series")
    delete.add_argument("--store", metavar="PATH", help="JSON event store (default: SIMPLECAL_STORE_PATH)")
    delete.add_argument("--series", required=True, help="Series id")
    delete.add_argument("--date", type=_parse_datetime, help="Original occurrence start")
    delete.add_argument(
        "--scope",
        choices=[s.value for s in EditScope],
        default=EditScope.ALL.value,
        help="Delete scope (default: all)",
    )

    drop = subparsers.add_parser("delete-calendar", help="Delete every series of a calendar")
    drop.add_argument("--store", metavar="PATH", help="JSON event store (default: SIMPLECAL_STORE_PATH)")
    drop.add_argument("--calendar", required=True, help="Calendar id")

    return parser


def _open_store(path: Optional[str], settings: dict) -> JsonEventStore:
    store_path = path or settings.get("store_path")
    if not store_path:
        raise SimpleCalError("No event store given (use --store or SIMPLECAL_STORE_PATH)")
    return JsonEventStore(store_path)


def _run_expand(args: argparse.Namespace, settings: dict) -> int:
    config = RecurrenceConfig.from_settings(settings)
    if args.month is not None:
        start, end = get_month_view_range(args.month, config.default_view_months)
    elif args.start is not None and args.end is not None:
        start, end = args.start, args.end
    else:
        raise SimpleCalError("expand needs --month or both --start and --end")

    store = _open_store(args.store, settings)
    instances = SeriesExpander(config).expand_events(
        store.series.list_all(),
        start,
        end,
        store.exceptions.list_all(),
        calendar_ids=args.calendar,
    )
    instances.sort(key=lambda inst: chronological_key(inst.event.start))

    if args.json:
        print(json.dumps([inst.model_dump(mode="json") for inst in instances], indent=2))
        return 0
    for inst in instances:
        print(f"{format_instance_date(inst.event.start)}  {inst.kind:<13}  {inst.event.title}  [{inst.series_id}]")
    return 0


def _run_describe(args: argparse.Namespace) -> int:
    print(describe(args.rule))
    if args.preview > 0:
        if args.start is None:
            raise SimpleCalError("--preview needs --start")
        rule = parse(args.rule)
        if rule is not None:
            for occurrence in first_occurrences(rule, args.start, args.preview):
                print(f"  {format_instance_date(occurrence)}")
    return 0


def _run_delete(args: argparse.Namespace, settings: dict) -> int:
    store = _open_store(args.store, settings)
    planner = MutationPlanner.for_store(store)
    plan = planner.delete_instance(
        InstanceRef(series_id=args.series, occurrence_start=args.date), args.scope
    )
    print(json.dumps(plan.model_dump(mode="json"), indent=2))
    return 0


def _run_delete_calendar(args: argparse.Namespace, settings: dict) -> int:
    store = _open_store(args.store, settings)
    plans = MutationPlanner.for_store(store).delete_calendar(args.calendar)
    print(f"Deleted {len(plans)} series from calendar {args.calendar}")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Run the simplecal CLI and return the process exit code."""
    parser = _create_parser()
    args = parser.parse_args(argv)

    settings = ConfigManager().load_full_config()
    configure_logging(debug_mode=args.debug)

    try:
        if args.command == "expand":
            return _run_expand(args, settings)
        if args.command == "describe":
            return _run_describe(args)
        if args.command == "delete-calendar":
            return _run_delete_calendar(args, settings)
        return _run_delete(args, settings)
    except SimpleCalError as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
