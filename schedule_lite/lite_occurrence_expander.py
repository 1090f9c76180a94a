"""Occurrence expansion for Schedule Lite recurrence rules.

Expansion is a pure function of ``(anchor, rule, window)``: generators below
hold no shared state, so one base item can be expanded for several windows at
once. Work is bounded by the rule's COUNT, its UNTIL date, the end of the
requested window, the safety cap for open-ended series or the last
representable date, whichever comes first.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Optional, Union

from dateutil.relativedelta import relativedelta

from .lite_models import (
    AfterCount,
    Frequency,
    NeverTermination,
    Occurrence,
    OnDate,
    RecurrenceRule,
    ScheduleItem,
    Weekday,
)
from .lite_rule_codec import decode_rule

logger = logging.getLogger(__name__)

DEFAULT_MAX_OCCURRENCES = 100

DateLike = Union[date, datetime]


@dataclass
class ExpanderConfig:
    """Configuration for occurrence expansion.

    ``max_occurrences`` caps series without COUNT or UNTIL, anchor included.
    """

    max_occurrences: int = DEFAULT_MAX_OCCURRENCES

    @classmethod
    def from_settings(cls, settings: Any) -> ExpanderConfig:
        """Extract expander configuration from a settings object.

        Args:
            settings: Object with an optional ``max_occurrences`` attribute

        Returns:
            ExpanderConfig with values from settings or defaults
        """
        if settings is None:
            return cls()
        return cls(
            max_occurrences=getattr(settings, "max_occurrences", DEFAULT_MAX_OCCURRENCES),
        )


def _as_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def _step(anchor: datetime, frequency: Frequency, units: int) -> datetime:
    """Return ``anchor`` advanced by ``units`` frequency units.

    Month and year steps are taken from the anchor, not chained, so Jan 31
    becomes Feb 28 (or 29) and then Mar 31 again.
    """
    if frequency == Frequency.DAILY:
        return anchor + timedelta(days=units)
    if frequency == Frequency.WEEKLY:
        return anchor + timedelta(weeks=units)
    if frequency == Frequency.MONTHLY:
        return anchor + relativedelta(months=units)
    return anchor + relativedelta(years=units)


def _stepped_candidates(anchor: datetime, rule: RecurrenceRule) -> Iterator[datetime]:
    frequency: Frequency = rule.frequency  # type: ignore[assignment]
    units = 0
    while True:
        units += rule.interval
        try:
            candidate = _step(anchor, frequency, units)
        except (OverflowError, ValueError):
            logger.debug("Series anchored at %s ends at the calendar limit", anchor.isoformat())
            return
        yield candidate


def _weekly_by_day_candidates(anchor: datetime, rule: RecurrenceRule) -> Iterator[datetime]:
    """Walk every ``interval``-th calendar week, keeping the days listed in BYDAY.

    Weeks run Monday to Sunday (WKST=MO), so the stepped weeks are the ones
    containing the anchor, then ``interval`` weeks later, and so on. Days up to
    and including the anchor are skipped; excluded days never count toward
    COUNT.
    """
    first_monday = anchor - timedelta(days=anchor.weekday())
    week = 0
    while True:
        for offset in range(7):
            try:
                candidate = first_monday + timedelta(weeks=week * rule.interval, days=offset)
            except OverflowError:
                logger.debug("Series anchored at %s ends at the calendar limit", anchor.isoformat())
                return
            if candidate > anchor and Weekday.from_date(candidate) in rule.by_day:
                yield candidate
        week += 1


def iter_candidates(
    anchor: datetime,
    rule: RecurrenceRule,
    max_occurrences: int = DEFAULT_MAX_OCCURRENCES,
) -> Iterator[tuple[int, datetime]]:
    """Generate the series' candidate dates before any window filtering.

    The anchor is always candidate #1. Termination is checked before each
    candidate is produced.

    Args:
        anchor: First occurrence of the series
        rule: Parsed recurrence rule
        max_occurrences: Safety cap applied when the rule never terminates

    Yields:
        ``(sequence, start)`` pairs, sequence 1-based, in non-decreasing order
    """
    yield 1, anchor

    if not rule.is_known_frequency:
        logger.warning(
            "Unknown frequency %r; series anchored at %s yields the anchor only",
            rule.frequency,
            anchor.isoformat(),
        )
        return

    termination = rule.termination
    limit: Optional[int] = None
    until: Optional[date] = None
    if isinstance(termination, AfterCount):
        limit = termination.count
    elif isinstance(termination, OnDate):
        until = termination.until
    elif isinstance(termination, NeverTermination):
        limit = max(1, max_occurrences)

    if rule.frequency == Frequency.WEEKLY and rule.by_day:
        candidates = _weekly_by_day_candidates(anchor, rule)
    else:
        candidates = _stepped_candidates(anchor, rule)

    sequence = 1
    for candidate in candidates:
        if limit is not None and sequence >= limit:
            if isinstance(termination, NeverTermination):
                logger.debug("Open-ended series capped at %d occurrences", limit)
            return
        if until is not None and candidate.date() > until:
            return
        sequence += 1
        yield sequence, candidate


def expand_occurrences(
    anchor: datetime,
    rule: RecurrenceRule,
    window_start: DateLike,
    window_end: DateLike,
    *,
    item: Optional[ScheduleItem] = None,
    max_occurrences: int = DEFAULT_MAX_OCCURRENCES,
) -> Iterator[Occurrence]:
    """Lazily yield the occurrences that fall within ``[window_start, window_end]``.

    Candidates before the window still advance COUNT/UNTIL bookkeeping, so a
    narrow window never truncates the series. Generation stops at the first
    candidate past the window end.

    Args:
        anchor: First occurrence of the series
        rule: Parsed recurrence rule
        window_start: First day of the window (inclusive)
        window_end: Last day of the window (inclusive)
        item: Base item to reference from each Occurrence
        max_occurrences: Safety cap for rules that never terminate

    Yields:
        Occurrence values numbered 1.. in emission order
    """
    first_day = _as_date(window_start)
    last_day = _as_date(window_end)
    if first_day > last_day:
        logger.debug("Empty window %s..%s; nothing to expand", first_day, last_day)
        return

    index = 0
    for sequence, start in iter_candidates(anchor, rule, max_occurrences):
        day = start.date()
        if day > last_day:
            return
        if day < first_day:
            continue
        index += 1
        yield Occurrence(date=start, index=index, sequence=sequence, item=item)


class LiteOccurrenceExpander:
    """Occurrence expander bound to a configuration.

    Instances only hold configuration, so one expander can serve concurrent
    callers.
    """

    def __init__(self, settings: Any = None) -> None:
        """Initialize the expander.

        Args:
            settings: Config-like object; see ExpanderConfig.from_settings()
        """
        config = ExpanderConfig.from_settings(settings)
        self.max_occurrences = config.max_occurrences
        logger.debug("LiteOccurrenceExpander initialized: max_occurrences=%d", self.max_occurrences)

    def candidates(self, anchor: datetime, rule: RecurrenceRule) -> Iterator[tuple[int, datetime]]:
        """All candidate dates of the series; see iter_candidates()."""
        return iter_candidates(anchor, rule, self.max_occurrences)

    def expand(
        self,
        anchor: datetime,
        rule: RecurrenceRule,
        window_start: DateLike,
        window_end: DateLike,
    ) -> Iterator[Occurrence]:
        """Occurrences of ``rule`` anchored at ``anchor`` within the window."""
        return expand_occurrences(
            anchor,
            rule,
            window_start,
            window_end,
            max_occurrences=self.max_occurrences,
        )

    def expand_item(
        self,
        item: ScheduleItem,
        window_start: DateLike,
        window_end: DateLike,
        rule: Optional[RecurrenceRule] = None,
    ) -> Iterator[Occurrence]:
        """Occurrences of a base item's series within the window.

        Args:
            item: Base item; its stored rule is decoded when ``rule`` is None
            window_start: First day of the window (inclusive)
            window_end: Last day of the window (inclusive)
            rule: Already-decoded rule for ``item``

        Raises:
            MissingFrequencyError: If the stored rule has no FREQ
        """
        if rule is None:
            if not item.recurrence_rule:
                raise ValueError(f"Item {item.id} has no recurrence rule")
            rule = decode_rule(item.recurrence_rule)
        return expand_occurrences(
            item.anchor_start,
            rule,
            window_start,
            window_end,
            item=item,
            max_occurrences=self.max_occurrences,
        )
