"""schedule_lite - recurrence and event-scheduling engine.

Encodes recurrence choices into compact rule strings, expands them into
occurrences for a date window, materializes display instances, normalizes
drafted items and resolves drag-and-drop reschedules. Events and tasks share
one implementation.
"""

__version__ = "0.1.0"

from typing import Optional

from .exceptions import (
    ItemNotFoundError,
    ItemStoreError,
    MissingFrequencyError,
    RuleError,
    ScheduleError,
    UnknownFrequencyError,
)
from .lite_materializer import LiteEventMaterializer, materialize
from .lite_models import (
    AfterCount,
    DraftItem,
    Frequency,
    ItemKind,
    MaterializedInstance,
    NeverTermination,
    Occurrence,
    OnDate,
    RecurrenceRule,
    ScheduleItem,
    Weekday,
)
from .lite_normalizer import LiteScheduleNormalizer, normalize_draft
from .lite_occurrence_expander import LiteOccurrenceExpander, expand_occurrences, iter_candidates
from .lite_rescheduler import detach_occurrence, reschedule, reschedule_series
from .lite_rule_codec import LiteRuleCodec, decode_rule, encode_rule
from .protocols import ScheduleItemRepository
from .schedule_builder import (
    ScheduleBuilder,
    build_schedule,
    group_by_day,
    month_window,
    week_window,
)

__all__ = [
    "AfterCount",
    "DraftItem",
    "Frequency",
    "ItemKind",
    "ItemNotFoundError",
    "ItemStoreError",
    "LiteEventMaterializer",
    "LiteOccurrenceExpander",
    "LiteRuleCodec",
    "LiteScheduleNormalizer",
    "MaterializedInstance",
    "MissingFrequencyError",
    "NeverTermination",
    "Occurrence",
    "OnDate",
    "RecurrenceRule",
    "RuleError",
    "ScheduleBuilder",
    "ScheduleError",
    "ScheduleItem",
    "ScheduleItemRepository",
    "UnknownFrequencyError",
    "Weekday",
    "build_schedule",
    "decode_rule",
    "detach_occurrence",
    "encode_rule",
    "expand_occurrences",
    "group_by_day",
    "iter_candidates",
    "materialize",
    "month_window",
    "normalize_draft",
    "reschedule",
    "reschedule_series",
    "week_window",
]


def _init_logging(level_name: Optional[str]) -> None:
    """Initialize root logging to stream to console.

    Installs a colorized stderr handler when the root logger has none, so CLI
    output and early warnings are visible. Honors the SCHEDULE_LITE_DEBUG
    environment variable (truthy values: "1", "true", "yes", "on"), which
    forces DEBUG verbosity.
    """
    import logging
    import sys

    from colorlog import ColoredFormatter

    from .lite_logging import debug_env_enabled

    if debug_env_enabled():
        level_name = "DEBUG"

    root = logging.getLogger()
    # Only configure a handler if none are present to avoid duplicate output.
    if not root.handlers:
        handler = logging.StreamHandler(stream=sys.stderr)
        # HH:MM:SS  LEVEL   logger.name: message  (only the level is colorized)
        fmt = "%(asctime)s %(log_color)s%(levelname)-7s%(reset)s %(name)s: %(message)s"
        log_colors = {
            "DEBUG": "cyan",
            "INFO": "green",
            "WARNING": "yellow",
            "ERROR": "red",
            "CRITICAL": "bold_red",
        }
        handler.setFormatter(ColoredFormatter(fmt, datefmt="%H:%M:%S", log_colors=log_colors))
        root.addHandler(handler)

    level = logging.INFO
    if isinstance(level_name, str):
        level = getattr(logging, level_name.upper(), logging.INFO)
        if not isinstance(level, int):
            level = logging.INFO
    root.setLevel(level)
    logging.getLogger(__name__).debug(
        "Logging initialized at level %s", logging.getLevelName(level)
    )
