"""Assemble a window's schedule from stored base items.

Recurring items are decoded, expanded and materialized; one-off items are
kept as they are. Either kind is included when its span touches the window.
Everything is merged and sorted by start. Nothing here caches between calls: every build re-derives from the
items it is given.
"""

from __future__ import annotations

import calendar
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Optional, Union

from .exceptions import RuleError
from .lite_materializer import LiteEventMaterializer
from .lite_models import ItemKind, ScheduleItem, Weekday
from .lite_occurrence_expander import LiteOccurrenceExpander
from .lite_rule_codec import LiteRuleCodec
from .protocols import ScheduleItemRepository

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime]


def _as_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def month_window(day: DateLike) -> tuple[date, date]:
    """First and last day of the month containing ``day``."""
    day = _as_date(day)
    last = calendar.monthrange(day.year, day.month)[1]
    return day.replace(day=1), day.replace(day=last)


def week_window(day: DateLike, week_start: Weekday = Weekday.MO) -> tuple[date, date]:
    """Seven-day window starting on the most recent ``week_start`` at or before ``day``."""
    day = _as_date(day)
    offset = (day.weekday() - week_start.position) % 7
    first = day - timedelta(days=offset)
    return first, first + timedelta(days=6)


def schedule_sort_key(item: ScheduleItem) -> tuple[datetime, str, str]:
    """Chronological order, ties broken by title then id."""
    return item.anchor_start, item.title, item.id


def _span_days(item: ScheduleItem) -> int:
    if item.anchor_end is None:
        return 0
    return (item.anchor_end.date() - item.anchor_start.date()).days


def _touches_window(item: ScheduleItem, first_day: date, last_day: date) -> bool:
    start_day = item.anchor_start.date()
    end_day = item.anchor_end.date() if item.anchor_end else start_day
    return start_day <= last_day and end_day >= first_day


class ScheduleBuilder:
    """Builds merged, sorted schedules for a window.

    Holds only configuration and stateless collaborators, so one builder can
    serve several views at once.
    """

    def __init__(self, settings: Any = None, strict: bool = False) -> None:
        """Initialize the builder.

        Args:
            settings: Config-like object (see config_loader.Config)
            strict: Re-raise RuleError for undecodable rules instead of
                treating the item as a one-off
        """
        self.expander = LiteOccurrenceExpander(settings)
        self.codec = LiteRuleCodec()
        self.strict = strict

    def expand_item(
        self, item: ScheduleItem, window_start: DateLike, window_end: DateLike
    ) -> list[ScheduleItem]:
        """Entries contributed by a single base item to the window.

        Raises:
            RuleError: Only when the builder is strict
        """
        first_day, last_day = _as_date(window_start), _as_date(window_end)

        if not item.is_recurring:
            return [item] if _touches_window(item, first_day, last_day) else []

        try:
            rule = self.codec.decode(item.recurrence_rule or "")
        except RuleError as exc:
            if self.strict:
                raise
            logger.warning(
                "Item %s has an undecodable rule %r (%s); showing it as a one-off",
                item.id,
                item.recurrence_rule,
                exc,
            )
            return [item] if _touches_window(item, first_day, last_day) else []

        # Occurrences starting up to the series' day span before the window
        # can still reach into it.
        lookback = timedelta(days=max(0, _span_days(item)))
        materializer = LiteEventMaterializer(item)
        occurrences = self.expander.expand_item(item, first_day - lookback, last_day, rule=rule)
        return [
            instance
            for instance in materializer.materialize_all(occurrences)
            if _touches_window(instance, first_day, last_day)
        ]

    def build(
        self,
        items: Iterable[ScheduleItem],
        window_start: DateLike,
        window_end: DateLike,
        include_completed: bool = True,
    ) -> list[ScheduleItem]:
        """Merged, chronologically sorted entries for ``[window_start, window_end]``.

        Args:
            items: Base items from the persistence layer
            window_start: First day of the window (inclusive)
            window_end: Last day of the window (inclusive)
            include_completed: Keep items whose ``completed`` flag is set

        Returns:
            One-off items touching the window plus materialized occurrences
        """
        entries: list[ScheduleItem] = []
        recurring = 0
        for item in items:
            if item.completed and not include_completed:
                continue
            if item.is_recurring:
                recurring += 1
            entries.extend(self.expand_item(item, window_start, window_end))

        entries.sort(key=schedule_sort_key)
        logger.debug(
            "Built schedule %s..%s: %d entries (%d recurring series)",
            _as_date(window_start),
            _as_date(window_end),
            len(entries),
            recurring,
        )
        return entries

    def build_from(
        self,
        repository: ScheduleItemRepository,
        window_start: DateLike,
        window_end: DateLike,
        include_completed: bool = True,
        kind: Optional[ItemKind] = None,
        user_id: Optional[str] = None,
    ) -> list[ScheduleItem]:
        """Build the window's schedule from the base items held by ``repository``.

        ``kind`` and ``user_id`` are passed through to ``list_items``.
        """
        items = repository.list_items(kind=kind, user_id=user_id)
        return self.build(items, window_start, window_end, include_completed=include_completed)


def build_schedule(
    items: Iterable[ScheduleItem],
    window_start: DateLike,
    window_end: DateLike,
    settings: Any = None,
    include_completed: bool = True,
    strict: bool = False,
) -> list[ScheduleItem]:
    """Build one window's schedule; see ScheduleBuilder.build()."""
    builder = ScheduleBuilder(settings, strict=strict)
    return builder.build(items, window_start, window_end, include_completed=include_completed)


@dataclass
class DayEntry:
    """An item shown on one day; ``continuation`` marks days after its first."""

    item: ScheduleItem
    continuation: bool = False


@dataclass
class DayGroup:
    """All entries shown on one calendar day."""

    day: date
    entries: list[DayEntry] = field(default_factory=list)


def group_by_day(
    items: Iterable[ScheduleItem],
    window_start: Optional[DateLike] = None,
    window_end: Optional[DateLike] = None,
) -> list[DayGroup]:
    """Group items under every day they span, days in ascending order.

    Multi-day items appear on each day from start to end; every day after the
    first is flagged as a continuation. Optional bounds clip the days produced.
    """
    first_bound = _as_date(window_start) if window_start is not None else None
    last_bound = _as_date(window_end) if window_end is not None else None

    groups: dict[date, DayGroup] = {}
    for item in items:
        start_day = item.anchor_start.date()
        end_day = item.anchor_end.date() if item.anchor_end else start_day
        if end_day < start_day:
            end_day = start_day

        day = start_day
        if first_bound is not None and day < first_bound:
            day = first_bound
        while day <= end_day:
            if last_bound is not None and day > last_bound:
                break
            group = groups.setdefault(day, DayGroup(day=day))
            group.entries.append(DayEntry(item=item, continuation=day != start_day))
            day += timedelta(days=1)

    ordered = sorted(groups.values(), key=lambda group: group.day)
    for group in ordered:
        group.entries.sort(key=lambda entry: (entry.continuation, schedule_sort_key(entry.item)))
    return ordered
