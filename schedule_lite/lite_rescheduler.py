"""Drag-and-drop rescheduling for Schedule Lite items.

Moving an item keeps its time-of-day and its length. For a recurring
occurrence the caller chooses between moving the whole series
(reschedule_series) and splitting the occurrence off as an independent item
(detach_occurrence). Inputs are never mutated.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timedelta
from typing import Optional, TypeVar, Union

from .exceptions import RuleError
from .lite_models import Frequency, MaterializedInstance, Occurrence, ScheduleItem, Weekday
from .lite_rule_codec import decode_rule, encode_rule

logger = logging.getLogger(__name__)

ItemT = TypeVar("ItemT", bound=ScheduleItem)

DETACHED_FROM_KEY = "detached_from"


def _target_day(target: Union[date, datetime]) -> date:
    if isinstance(target, datetime):
        return target.date()
    return target


def reschedule(item: ItemT, target_date: Union[date, datetime]) -> ItemT:
    """Move ``item`` to ``target_date`` keeping its time-of-day.

    The end moves by the same number of days as the start, so multi-day spans
    keep their length.

    Args:
        item: Item being dragged
        target_date: Day it was dropped on (a datetime's time part is ignored)

    Returns:
        A copy of ``item`` with shifted anchor_start/anchor_end
    """
    new_start = datetime.combine(_target_day(target_date), item.anchor_start.time())
    delta = new_start - item.anchor_start
    update: dict[str, Optional[datetime]] = {"anchor_start": new_start}
    if item.anchor_end is not None:
        update["anchor_end"] = item.anchor_end + delta
    logger.debug("Rescheduling %s by %s to %s", item.id, delta, new_start.isoformat())
    return item.model_copy(update=update, deep=True)


def _shift_weekdays(rule_string: str, days: int) -> str:
    """Rotate a weekly rule's BYDAY set by ``days``; other rules are returned as-is."""
    try:
        rule = decode_rule(rule_string)
    except RuleError as exc:
        logger.warning("Keeping undecodable rule %r unchanged: %s", rule_string, exc)
        return rule_string
    if rule.frequency != Frequency.WEEKLY or not rule.by_day or days % 7 == 0:
        return rule_string
    week = list(Weekday)
    shifted = frozenset(week[(day.position + days) % 7] for day in rule.by_day)
    return encode_rule(rule.model_copy(update={"by_day": shifted}))


def reschedule_series(
    base: ScheduleItem,
    target_date: Union[date, datetime],
    occurrence: Union[MaterializedInstance, Occurrence, None] = None,
) -> ScheduleItem:
    """Move a whole series by dragging one of its occurrences.

    The series anchor moves by the same number of days the occurrence was
    dragged. A weekly BYDAY selection rotates with it so the series keeps its
    shape. Only the returned base item is meant to be persisted.

    Args:
        base: Stored series item
        target_date: Day the occurrence was dropped on
        occurrence: The dragged occurrence; None means the anchor itself

    Returns:
        Updated copy of ``base``
    """
    if occurrence is None:
        dragged_day = base.anchor_start.date()
    elif isinstance(occurrence, Occurrence):
        dragged_day = occurrence.date.date()
    else:
        dragged_day = occurrence.anchor_start.date()

    delta_days = (_target_day(target_date) - dragged_day).days
    moved = reschedule(base, base.anchor_start.date() + timedelta(days=delta_days))
    if base.recurrence_rule and delta_days:
        moved = moved.model_copy(
            update={"recurrence_rule": _shift_weekdays(base.recurrence_rule, delta_days)}
        )
    logger.debug("Series %s moved by %d day(s)", base.id, delta_days)
    return moved


def detach_occurrence(
    instance: MaterializedInstance,
    target_date: Union[date, datetime],
    new_id: Optional[str] = None,
) -> ScheduleItem:
    """Split one occurrence off its series as an independent item.

    The result has a fresh id, no recurrence rule, and records the series id
    under ``extra["detached_from"]``. The series itself is left untouched; the
    rule grammar has no exception dates, so the caller decides what to do with
    the original occurrence.

    Args:
        instance: Materialized occurrence that was dragged
        target_date: Day it was dropped on
        new_id: Id for the new item; a random one is generated when omitted

    Returns:
        Standalone ScheduleItem at the new date

    Raises:
        ValueError: If ``instance`` is not a materialized occurrence
    """
    if not isinstance(instance, MaterializedInstance):
        raise ValueError(f"Item {instance.id} is not a recurring occurrence")

    data = instance.model_dump(exclude={"series_id", "occurrence_index"})
    data.update(
        id=new_id or uuid.uuid4().hex,
        recurrence_rule=None,
        is_recurring_instance=False,
        extra={**instance.extra, DETACHED_FROM_KEY: instance.series_id},
    )
    standalone = reschedule(ScheduleItem(**data), target_date)
    logger.debug(
        "Detached occurrence %s of series %s as %s",
        instance.id,
        instance.series_id,
        standalone.id,
    )
    return standalone
