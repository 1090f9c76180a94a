"""Data models for recurrence rules and schedule items - Schedule Lite version.

All date-times are local-naive. Aware values handed to the models are stripped
of their tzinfo without conversion, so the wall-clock reading is what counts.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

logger = logging.getLogger(__name__)

END_OF_DAY = time(23, 59, 59)


class Frequency(str, Enum):
    """Supported recurrence frequencies."""

    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"


class Weekday(str, Enum):
    """Two-letter weekday codes as used in BYDAY."""

    MO = "MO"
    TU = "TU"
    WE = "WE"
    TH = "TH"
    FR = "FR"
    SA = "SA"
    SU = "SU"

    @property
    def position(self) -> int:
        """Position in the week, Monday == 0 (matches ``date.weekday()``)."""
        return _WEEKDAY_ORDER.index(self)

    @classmethod
    def from_date(cls, value: date) -> Weekday:
        """Return the weekday code of a date or datetime."""
        return _WEEKDAY_ORDER[value.weekday()]


_WEEKDAY_ORDER: tuple[Weekday, ...] = (
    Weekday.MO,
    Weekday.TU,
    Weekday.WE,
    Weekday.TH,
    Weekday.FR,
    Weekday.SA,
    Weekday.SU,
)


def ordered_weekdays(days: Iterable[Weekday]) -> list[Weekday]:
    """Sort weekday codes Monday first."""
    return sorted(days, key=lambda day: day.position)


class NeverTermination(BaseModel):
    """Series without an end; expansion stops at the configured safety cap."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["never"] = "never"


class AfterCount(BaseModel):
    """Series ending after ``count`` occurrences, anchor included."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["after"] = "after"
    count: int = Field(..., ge=1)


class OnDate(BaseModel):
    """Series ending on ``until`` (inclusive, compared by calendar date)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["on"] = "on"
    until: date

    @field_validator("until", mode="before")
    @classmethod
    def _date_only(cls, value: Any) -> Any:
        if isinstance(value, datetime):
            return value.date()
        return value


Termination = Annotated[
    Union[NeverTermination, AfterCount, OnDate], Field(discriminator="kind")
]


class RecurrenceRule(BaseModel):
    """Structured recurrence choice.

    ``frequency`` holds a ``Frequency`` for every supported value. An
    unrecognised FREQ read from storage is kept verbatim as a plain string so
    it survives a decode/encode cycle; the expander treats such a rule as
    anchor-only.
    """

    model_config = ConfigDict(frozen=True)

    frequency: Union[Frequency, str] = Field(..., union_mode="left_to_right")
    interval: int = 1
    by_day: frozenset[Weekday] = Field(default_factory=frozenset)
    termination: Termination = Field(default_factory=NeverTermination)

    @field_validator("frequency", mode="before")
    @classmethod
    def _normalize_frequency(cls, value: Any) -> Any:
        if isinstance(value, Frequency):
            return value
        if isinstance(value, str):
            raw = value.strip().upper()
            try:
                return Frequency(raw)
            except ValueError:
                return raw
        return value

    @field_validator("interval", mode="before")
    @classmethod
    def _clamp_interval(cls, value: Any) -> int:
        try:
            interval = int(value)
        except (TypeError, ValueError):
            logger.debug("Non-numeric interval %r; using 1", value)
            return 1
        if interval < 1:
            logger.debug("Interval %d below 1; clamping to 1", interval)
            return 1
        return interval

    @field_validator("by_day", mode="before")
    @classmethod
    def _normalize_by_day(cls, value: Any) -> frozenset[Weekday]:
        if value is None:
            return frozenset()
        if isinstance(value, str):
            value = value.split(",")
        days: set[Weekday] = set()
        for raw in value:
            if isinstance(raw, Weekday):
                days.add(raw)
                continue
            code = str(raw).strip().upper()
            if not code:
                continue
            try:
                days.add(Weekday(code))
            except ValueError:
                logger.debug("Ignoring unknown weekday code %r", raw)
        return frozenset(days)

    @property
    def is_known_frequency(self) -> bool:
        """True when the frequency is one the expander can step."""
        return isinstance(self.frequency, Frequency)

    @property
    def frequency_code(self) -> str:
        """FREQ value as it appears in a rule string."""
        if isinstance(self.frequency, Frequency):
            return self.frequency.value
        return self.frequency


class ItemKind(str, Enum):
    """Kinds of schedule items sharing the recurrence engine."""

    EVENT = "event"
    TASK = "task"


class ScheduleItem(BaseModel):
    """Base record for calendar events and tasks.

    Tasks carry no ``anchor_end``. When ``is_all_day`` is set the end is pinned
    to 23:59:59 of its date (or of the start date when no end was given).
    Description, location, invitees and ``extra`` are opaque to the engine and
    copied as-is.
    """

    id: str
    title: str = ""
    kind: ItemKind = ItemKind.EVENT
    anchor_start: datetime
    anchor_end: Optional[datetime] = None
    is_all_day: bool = False
    recurrence_rule: Optional[str] = None
    user_id: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    invitees: list[str] = Field(default_factory=list)
    completed: bool = False
    is_recurring_instance: bool = False
    extra: dict[str, Any] = Field(default_factory=dict)

    @field_validator("anchor_start", "anchor_end", mode="after")
    @classmethod
    def _local_naive(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is not None:
            return value.replace(tzinfo=None)
        return value

    @model_validator(mode="after")
    def _pin_all_day_end(self) -> ScheduleItem:
        if self.is_all_day:
            end_day = self.anchor_end.date() if self.anchor_end else self.anchor_start.date()
            self.anchor_end = datetime.combine(end_day, END_OF_DAY)
        return self

    @property
    def duration(self) -> Optional[timedelta]:
        """``anchor_end - anchor_start``, or None when the item has no end."""
        if self.anchor_end is None:
            return None
        return self.anchor_end - self.anchor_start

    @property
    def is_recurring(self) -> bool:
        """True for a series base item (a stored rule, not an expanded instance)."""
        return bool(self.recurrence_rule) and not self.is_recurring_instance


class MaterializedInstance(ScheduleItem):
    """Display-only record synthesized for one occurrence of a series.

    Never persisted. ``id`` is ``"{series_id}-recurrence-{n}"`` and is only
    unique within the expansion call that produced it.
    """

    is_recurring_instance: bool = True
    series_id: str
    occurrence_index: int = Field(..., ge=1)


@dataclass(frozen=True)
class Occurrence:
    """One date on which a series repeats.

    Attributes:
        date: Start of the occurrence (anchor time-of-day)
        index: 1-based position among the occurrences emitted for the window
        sequence: 1-based position in the whole series, anchor == 1
        item: Back-reference to the base item, when expanded from one
    """

    date: datetime
    index: int
    sequence: int
    item: Optional[ScheduleItem] = field(default=None, compare=False, repr=False)


class DraftItem(BaseModel):
    """Form model collected by the UI before normalization.

    Date and time-of-day arrive separately. ``recurrence`` carries an explicit
    rule choice; ``is_recurring`` without a rule asks for the default weekly
    rule.
    """

    id: Optional[str] = None
    title: str = ""
    kind: ItemKind = ItemKind.EVENT
    start_date: date
    start_time: Optional[time] = None
    end_date: Optional[date] = None
    end_time: Optional[time] = None
    is_all_day: bool = False
    is_recurring: bool = False
    recurrence: Optional[RecurrenceRule] = None
    user_id: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    invitees: list[str] = Field(default_factory=list)
    completed: bool = False
    extra: dict[str, Any] = Field(default_factory=dict)

    @property
    def wants_recurrence(self) -> bool:
        """True when the draft asks for a recurring item."""
        return self.is_recurring or self.recurrence is not None
