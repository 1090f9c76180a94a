"""Normalize UI drafts into schedule items at create/edit time.

The product stance is permissive: a reversed start/end pair is swapped rather
than rejected, and missing pieces are filled with defaults.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, time, timedelta
from typing import Any, Optional

from .lite_models import (
    END_OF_DAY,
    DraftItem,
    Frequency,
    ItemKind,
    RecurrenceRule,
    ScheduleItem,
    Weekday,
)
from .lite_rule_codec import encode_rule

logger = logging.getLogger(__name__)

DEFAULT_EVENT_DURATION_MINUTES = 60


def default_recurrence(anchor: datetime) -> RecurrenceRule:
    """Weekly rule repeating on the anchor's weekday."""
    return RecurrenceRule(
        frequency=Frequency.WEEKLY,
        interval=1,
        by_day=frozenset({Weekday.from_date(anchor)}),
    )


def resolve_recurrence(draft: DraftItem, anchor: datetime) -> Optional[RecurrenceRule]:
    """Rule to store for a draft, or None for a one-off item.

    A weekly rule without a weekday selection repeats on the anchor's weekday.
    """
    if not draft.wants_recurrence:
        return None
    rule = draft.recurrence
    if rule is None:
        return default_recurrence(anchor)
    if rule.frequency == Frequency.WEEKLY and not rule.by_day:
        return rule.model_copy(update={"by_day": frozenset({Weekday.from_date(anchor)})})
    return rule


class LiteScheduleNormalizer:
    """Validates and repairs a draft's start/end/all-day triple."""

    def __init__(self, settings: Any = None) -> None:
        self.default_duration = timedelta(
            minutes=getattr(settings, "default_event_duration_minutes", DEFAULT_EVENT_DURATION_MINUTES)
        )

    def compose_times(self, draft: DraftItem) -> tuple[datetime, Optional[datetime]]:
        """Combine the draft's separate date and time fields.

        Returns:
            ``(start, end)``; end is always None for tasks
        """
        if draft.kind == ItemKind.TASK:
            # Tasks have no end; an all-day task starts at midnight.
            start_time = time.min if draft.is_all_day else (draft.start_time or time.min)
            return datetime.combine(draft.start_date, start_time), None

        if draft.is_all_day:
            # Reversed all-day spans swap by day so both ends stay on day boundaries.
            first_day, last_day = sorted((draft.start_date, draft.end_date or draft.start_date))
            # User-supplied end time is ignored for all-day items.
            return datetime.combine(first_day, time.min), datetime.combine(last_day, END_OF_DAY)

        start_time = draft.start_time or time.min
        start = datetime.combine(draft.start_date, start_time)

        if draft.end_date is None and draft.end_time is None:
            return start, start + self.default_duration

        end_day = draft.end_date or draft.start_date
        end_time = draft.end_time or start_time
        return start, datetime.combine(end_day, end_time)

    def normalize(self, draft: DraftItem) -> ScheduleItem:
        """Turn a draft into a ScheduleItem ready for persistence.

        Args:
            draft: Form model from the UI

        Returns:
            ScheduleItem with composed times, swapped if reversed, and an encoded
            recurrence rule when one was requested
        """
        start, end = self.compose_times(draft)

        if end is not None and end < start:
            logger.debug("Draft %r ends before it starts; swapping start and end", draft.title)
            start, end = end, start

        rule = resolve_recurrence(draft, start)

        item = ScheduleItem(
            id=draft.id or uuid.uuid4().hex,
            title=draft.title,
            kind=draft.kind,
            anchor_start=start,
            anchor_end=end,
            is_all_day=draft.is_all_day and draft.kind != ItemKind.TASK,
            recurrence_rule=encode_rule(rule) if rule is not None else None,
            user_id=draft.user_id,
            description=draft.description,
            location=draft.location,
            invitees=list(draft.invitees),
            completed=draft.completed,
            extra=dict(draft.extra),
        )
        logger.debug(
            "Normalized draft %s: %s -> %s, rule=%s",
            item.id,
            item.anchor_start.isoformat(),
            item.anchor_end.isoformat() if item.anchor_end else None,
            item.recurrence_rule,
        )
        return item


def normalize_draft(draft: DraftItem, settings: Any = None) -> ScheduleItem:
    """Normalize one draft; see LiteScheduleNormalizer.normalize()."""
    return LiteScheduleNormalizer(settings).normalize(draft)
