"""Recurrence rule string codec for Schedule Lite.

Rules are stored as compact ``;``-delimited ``KEY=VALUE`` strings, a small
subset of the iCalendar RRULE grammar (FREQ, INTERVAL, BYDAY, COUNT, UNTIL)::

    FREQ=WEEKLY;INTERVAL=2;BYDAY=MO,WE;COUNT=10
    FREQ=MONTHLY;INTERVAL=1;UNTIL=20250315T235959Z

Encoding always writes the fields in that order. Decoding accepts any order,
ignores unknown keys and substitutes defaults for malformed numbers.
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime
from typing import Optional

from .exceptions import MissingFrequencyError, UnknownFrequencyError
from .lite_models import (
    AfterCount,
    Frequency,
    NeverTermination,
    OnDate,
    RecurrenceRule,
    ordered_weekdays,
)

logger = logging.getLogger(__name__)

UNTIL_SUFFIX = "T235959Z"

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def _lenient_int(value: str) -> Optional[int]:
    """Parse the leading integer of ``value``; None when there is none."""
    match = _LEADING_INT.match(value)
    if not match:
        return None
    return int(match.group(1))


def _parse_until(value: str) -> Optional[date]:
    """Read the YYYYMMDD prefix of an UNTIL value; the time part is ignored."""
    try:
        return datetime.strptime(value.strip()[:8], "%Y%m%d").date()
    except ValueError:
        return None


def encode_rule(rule: RecurrenceRule) -> str:
    """Serialize a rule to its compact string form.

    Args:
        rule: Structured recurrence choice

    Returns:
        Rule string with fields in FREQ, INTERVAL, BYDAY, COUNT|UNTIL order
    """
    parts = [f"FREQ={rule.frequency_code}", f"INTERVAL={rule.interval}"]

    if rule.by_day:
        if rule.frequency == Frequency.WEEKLY:
            parts.append("BYDAY=" + ",".join(day.value for day in ordered_weekdays(rule.by_day)))
        else:
            # No BYDAY slot outside WEEKLY.
            logger.debug("Dropping BYDAY from %s rule during encode", rule.frequency_code)

    termination = rule.termination
    if isinstance(termination, AfterCount):
        parts.append(f"COUNT={termination.count}")
    elif isinstance(termination, OnDate):
        parts.append(f"UNTIL={termination.until.strftime('%Y%m%d')}{UNTIL_SUFFIX}")

    return ";".join(parts)


def decode_rule(rule_string: str, strict: bool = False) -> RecurrenceRule:
    """Parse a rule string into a RecurrenceRule.

    Args:
        rule_string: Stored rule text; an optional leading ``RRULE:`` is accepted
        strict: Raise UnknownFrequencyError instead of keeping an unknown FREQ

    Returns:
        Parsed RecurrenceRule

    Raises:
        MissingFrequencyError: If the string has no non-empty FREQ field
        UnknownFrequencyError: If ``strict`` and FREQ is not a supported value
    """
    if not rule_string or not rule_string.strip():
        raise MissingFrequencyError("Empty recurrence rule", rule_string or "")

    text = rule_string.strip()
    if text.upper().startswith("RRULE:"):
        text = text[len("RRULE:"):]

    fields: dict[str, str] = {}
    for segment in text.split(";"):
        key, sep, value = segment.partition("=")
        if not sep:
            continue
        key = key.strip().upper()
        if key in fields:
            logger.debug("Duplicate %s in rule %r; keeping the first", key, rule_string)
            continue
        fields[key] = value.strip()

    freq = fields.pop("FREQ", "").upper()
    if not freq:
        raise MissingFrequencyError(f"Rule has no FREQ: {rule_string!r}", rule_string)

    if freq not in Frequency.__members__:
        if strict:
            raise UnknownFrequencyError(
                f"Unsupported FREQ {freq!r} in rule {rule_string!r}", rule_string, freq
            )
        logger.warning("Unsupported FREQ %r in rule %r; series will not repeat", freq, rule_string)

    interval = 1
    raw_interval = fields.pop("INTERVAL", None)
    if raw_interval is not None:
        parsed = _lenient_int(raw_interval)
        if parsed is None or parsed < 1:
            logger.debug("Malformed INTERVAL %r; using 1", raw_interval)
        else:
            interval = parsed

    by_day = fields.pop("BYDAY", "")

    count: Optional[int] = None
    raw_count = fields.pop("COUNT", None)
    if raw_count is not None:
        count = _lenient_int(raw_count)
        if count is None or count < 1:
            logger.debug("Malformed COUNT %r; treating as absent", raw_count)
            count = None

    until: Optional[date] = None
    raw_until = fields.pop("UNTIL", None)
    if raw_until is not None:
        until = _parse_until(raw_until)
        if until is None:
            logger.warning("Malformed UNTIL %r in rule %r; ignoring", raw_until, rule_string)

    if fields:
        logger.debug("Ignoring unsupported rule keys: %s", ", ".join(sorted(fields)))

    if count is not None:
        if until is not None:
            logger.debug("Rule %r has both COUNT and UNTIL; COUNT wins", rule_string)
        termination = AfterCount(count=count)
    elif until is not None:
        termination = OnDate(until=until)
    else:
        termination = NeverTermination()

    return RecurrenceRule(
        frequency=freq,
        interval=interval,
        by_day=by_day,
        termination=termination,
    )


class LiteRuleCodec:
    """Rule codec bound to a strictness setting.

    Lenient by default: unknown frequencies are kept and logged. Strict codecs
    reject them with UnknownFrequencyError.
    """

    def __init__(self, strict: bool = False) -> None:
        self.strict = strict

    def encode(self, rule: RecurrenceRule) -> str:
        """Serialize ``rule``; see encode_rule()."""
        return encode_rule(rule)

    def decode(self, rule_string: str) -> RecurrenceRule:
        """Parse ``rule_string``; see decode_rule()."""
        return decode_rule(rule_string, strict=self.strict)

    def try_decode(self, rule_string: Optional[str]) -> Optional[RecurrenceRule]:
        """Decode, returning None for an absent or undecodable rule.

        Failures are logged at WARNING; use decode() to see the error.
        """
        if not rule_string:
            return None
        try:
            return self.decode(rule_string)
        except (MissingFrequencyError, UnknownFrequencyError) as exc:
            logger.warning("Ignoring undecodable recurrence rule %r: %s", rule_string, exc)
            return None
