"""Build display instances from expanded occurrences - Schedule Lite version."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from datetime import datetime
from typing import Optional

from .lite_models import MaterializedInstance, Occurrence, ScheduleItem

logger = logging.getLogger(__name__)


def instance_id(series_id: str, index: int) -> str:
    """Synthetic id of the ``index``-th emitted occurrence of a series."""
    return f"{series_id}-recurrence-{index}"


class LiteEventMaterializer:
    """Turns occurrences of one base item into MaterializedInstance records.

    The base item's duration is computed once, at construction, and applied to
    every occurrence so all instances of a series have exactly the same length.
    """

    def __init__(self, base: ScheduleItem) -> None:
        self.base = base
        self.start_time = base.anchor_start.time()
        self.duration = base.duration
        # Copied fields exclude everything recomputed per occurrence.
        self._template = base.model_dump(
            exclude={"id", "anchor_start", "anchor_end", "is_recurring_instance"}
        )

    def start_for(self, occurrence: Occurrence) -> datetime:
        """Occurrence date combined with the base item's time-of-day."""
        return datetime.combine(occurrence.date.date(), self.start_time)

    def materialize(self, occurrence: Occurrence) -> MaterializedInstance:
        """Build the instance for one occurrence.

        Args:
            occurrence: Occurrence emitted by the expander for ``self.base``

        Returns:
            MaterializedInstance with recomputed start, end and id
        """
        start = self.start_for(occurrence)
        end: Optional[datetime] = None
        if self.duration is not None:
            end = start + self.duration

        return MaterializedInstance(
            **self._template,
            id=instance_id(self.base.id, occurrence.index),
            anchor_start=start,
            anchor_end=end,
            is_recurring_instance=True,
            series_id=self.base.id,
            occurrence_index=occurrence.index,
        )

    def materialize_all(self, occurrences: Iterable[Occurrence]) -> Iterator[MaterializedInstance]:
        """Lazily materialize a stream of occurrences."""
        for occurrence in occurrences:
            yield self.materialize(occurrence)


def materialize(base: ScheduleItem, occurrence: Occurrence) -> MaterializedInstance:
    """Materialize a single occurrence of ``base``.

    Prefer LiteEventMaterializer when handling a whole series.
    """
    return LiteEventMaterializer(base).materialize(occurrence)
