"""Command-line entry for schedule_lite.

Inspect rule strings and expansions from a shell; every command prints JSON
to stdout.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date, datetime
from typing import Any, Optional

from . import _init_logging
from .config_loader import Config, load_config
from .exceptions import ItemStoreError, RuleError
from .item_store import JsonItemStore
from .lite_logging import configure_lite_logging, debug_env_enabled
from .lite_models import AfterCount, NeverTermination, OnDate, RecurrenceRule, ScheduleItem
from .lite_rule_codec import decode_rule, encode_rule
from .schedule_builder import ScheduleBuilder, month_window, week_window

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_USAGE = 2
EXIT_RULE_ERROR = 3
EXIT_STORE_ERROR = 4


def _iso_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"not an ISO date: {value!r}") from exc


def _iso_datetime(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"not an ISO date-time: {value!r}") from exc


def _year_month(value: str) -> date:
    try:
        return datetime.strptime(value, "%Y-%m").date()
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM, got {value!r}") from exc


def _create_parser() -> argparse.ArgumentParser:
    """Create argument parser for the schedule_lite CLI.

    Returns:
        Configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog="schedule_lite",
        description="Schedule Lite - recurrence rules and schedule expansion",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m schedule_lite encode --freq WEEKLY --interval 2 --by-day MO,WE --count 6
  python -m schedule_lite decode "FREQ=MONTHLY;INTERVAL=1;UNTIL=20250315T235959Z"
  python -m schedule_lite expand "FREQ=WEEKLY;INTERVAL=2;COUNT=3" \\
      --anchor 2025-01-06T10:00 --end 2025-01-06T11:00 \\
      --window-start 2025-01-01 --window-end 2025-12-31
  python -m schedule_lite schedule --store items.json --month 2025-01
        """,
    )
    parser.add_argument("--config", metavar="PATH", help="YAML or JSON config file")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    enc = sub.add_parser("encode", help="Build a rule string from options")
    enc.add_argument("--freq", required=True, help="DAILY, WEEKLY, MONTHLY or YEARLY")
    enc.add_argument("--interval", type=int, default=1)
    enc.add_argument("--by-day", default="", help="Comma-separated weekday codes (WEEKLY only)")
    end = enc.add_mutually_exclusive_group()
    end.add_argument("--count", type=int, help="End after this many occurrences")
    end.add_argument("--until", type=_iso_date, help="End on this date (YYYY-MM-DD)")

    dec = sub.add_parser("decode", help="Parse a rule string")
    dec.add_argument("rule")
    dec.add_argument("--strict", action="store_true", help="Reject unknown frequencies")

    exp = sub.add_parser("expand", help="Expand a rule for a window")
    exp.add_argument("rule")
    exp.add_argument("--anchor", type=_iso_datetime, required=True, help="Series start")
    exp.add_argument("--end", type=_iso_datetime, help="End of the anchor occurrence")
    exp.add_argument("--all-day", action="store_true")
    exp.add_argument("--window-start", type=_iso_date, required=True)
    exp.add_argument("--window-end", type=_iso_date, required=True)

    sched = sub.add_parser("schedule", help="Build a schedule from a JSON item store")
    sched.add_argument("--store", metavar="PATH", help="JSON item store (default: config store_path)")
    window = sched.add_mutually_exclusive_group(required=True)
    window.add_argument("--month", type=_year_month, help="Month to show (YYYY-MM)")
    window.add_argument("--week", type=_iso_date, metavar="DAY", help="Week containing DAY")
    window.add_argument("--window", nargs=2, type=_iso_date, metavar=("START", "END"))
    sched.add_argument("--hide-completed", action="store_true")

    return parser


def _dump(payload: Any) -> None:
    print(json.dumps(payload, indent=2, default=str))


def _cmd_encode(args: argparse.Namespace) -> int:
    if args.count is not None:
        termination: Any = AfterCount(count=max(1, args.count))
    elif args.until is not None:
        termination = OnDate(until=args.until)
    else:
        termination = NeverTermination()
    rule = RecurrenceRule(
        frequency=args.freq,
        interval=args.interval,
        by_day=args.by_day,
        termination=termination,
    )
    print(encode_rule(rule))
    return EXIT_OK


def _cmd_decode(args: argparse.Namespace) -> int:
    rule = decode_rule(args.rule, strict=args.strict)
    payload = rule.model_dump(mode="json")
    payload["by_day"] = sorted(payload["by_day"])
    _dump(payload)
    return EXIT_OK


def _cmd_expand(args: argparse.Namespace, config: Config) -> int:
    base = ScheduleItem(
        id="cli",
        title="cli",
        anchor_start=args.anchor,
        anchor_end=args.end,
        is_all_day=args.all_day,
        recurrence_rule=args.rule,
    )
    builder = ScheduleBuilder(config, strict=True)
    entries = builder.expand_item(base, args.window_start, args.window_end)
    _dump([entry.model_dump(mode="json") for entry in entries])
    return EXIT_OK


def _cmd_schedule(args: argparse.Namespace, config: Config) -> int:
    store_path = args.store or config.store_path
    if not store_path:
        print("No item store given (use --store or set store_path in config)", file=sys.stderr)
        return EXIT_USAGE
    store = JsonItemStore(store_path)
    if args.month is not None:
        window_start, window_end = month_window(args.month)
    elif args.week is not None:
        window_start, window_end = week_window(args.week, config.week_start)
    else:
        window_start, window_end = args.window
    builder = ScheduleBuilder(config)
    entries = builder.build_from(
        store,
        window_start,
        window_end,
        include_completed=not args.hide_completed,
    )
    _dump([entry.model_dump(mode="json") for entry in entries])
    return EXIT_OK


def main(argv: Optional[list[str]] = None) -> int:
    """Run the schedule_lite CLI and return a process exit code."""
    parser = _create_parser()
    args = parser.parse_args(argv)

    config = load_config(args.config)
    debug = args.debug or debug_env_enabled()
    level_name = "DEBUG" if debug else config.log_level
    _init_logging(level_name)
    configure_lite_logging(debug_mode=debug)
    # configure_lite_logging resets the root level; the config value wins
    # unless debug was requested by flag or environment.
    logging.getLogger().setLevel(getattr(logging, level_name, logging.INFO))

    try:
        if args.command == "encode":
            return _cmd_encode(args)
        if args.command == "decode":
            return _cmd_decode(args)
        if args.command == "expand":
            return _cmd_expand(args, config)
        return _cmd_schedule(args, config)
    except RuleError as exc:
        logger.error("Invalid recurrence rule: %s", exc)
        return EXIT_RULE_ERROR
    except ItemStoreError as exc:
        logger.error("Item store error: %s", exc)
        return EXIT_STORE_ERROR


if __name__ == "__main__":
    sys.exit(main())
