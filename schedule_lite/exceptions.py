"""Custom exception hierarchy for the schedule engine.

Only rule decoding and the item stores raise. Expansion, materialization and
rescheduling absorb irregular input (clamping it to safe defaults) and never
interrupt a caller that is building a schedule.
"""


class ScheduleError(Exception):
    """Base exception for all schedule engine errors."""


class RuleError(ScheduleError):
    """A recurrence rule string could not be decoded.

    Attributes:
        rule_string: The raw rule text that failed to decode
    """

    def __init__(self, message: str, rule_string: str = "") -> None:
        super().__init__(message)
        self.rule_string = rule_string


class MissingFrequencyError(RuleError):
    """The rule string has no usable FREQ field.

    Raised when:
    - The string is empty or whitespace
    - No FREQ=... segment is present
    - FREQ is present but empty

    Always fatal: callers should treat the item as non-recurring.
    """


class UnknownFrequencyError(RuleError):
    """FREQ names a frequency outside DAILY/WEEKLY/MONTHLY/YEARLY.

    Only raised by strict decoding. Lenient decoding keeps the raw value and the
    expander degrades the series to its anchor occurrence.
    """

    def __init__(self, message: str, rule_string: str = "", frequency: str = "") -> None:
        super().__init__(message, rule_string)
        self.frequency = frequency


class ItemNotFoundError(ScheduleError, KeyError):
    """No stored schedule item has the requested id."""

    def __init__(self, item_id: str) -> None:
        super().__init__(f"Schedule item not found: {item_id}")
        self.item_id = item_id

    def __str__(self) -> str:
        return f"Schedule item not found: {self.item_id}"


class ItemStoreError(ScheduleError):
    """The backing store could not be read or written."""
