"""schedule_lite.config_loader

Config loader for schedule_lite.

- Reads YAML (PyYAML ``safe_load``) or JSON, chosen by file suffix.
- Exposes a typed dataclass ``Config`` and a ``load_config()`` helper that
  accepts an optional path override.
- Environment variables override file values.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .lite_models import Weekday

logger = logging.getLogger(__name__)

MAX_OCCURRENCES_RANGE = (1, 10000)

ENV_MAX_OCCURRENCES = "SCHEDULE_LITE_MAX_OCCURRENCES"
ENV_LOG_LEVEL = "SCHEDULE_LITE_LOG_LEVEL"


@dataclass
class Config:
    """Typed configuration for schedule_lite.

    Fields:
        max_occurrences: safety cap for series without COUNT/UNTIL (1..10000)
        default_event_duration_minutes: length given to events drafted without an end
        week_start: first day of the week for calendar views
        store_path: optional JSON item store used by the CLI
        log_level: logging level name
    """

    max_occurrences: int = 100
    default_event_duration_minutes: int = 60
    week_start: Weekday = Weekday.MO
    store_path: str | None = None
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Config:
        """Create Config from a plain mapping, applying defaults and validation.

        Numeric-like values are coerced to int and bounded, unknown weekday
        codes fall back to MO; each coercion logs a warning.
        """
        if data is None:
            data = {}

        def _coerce_int(key: str, default: int) -> int:
            raw = data.get(key, default)
            try:
                return int(raw)
            except (TypeError, ValueError):
                logger.warning("Config %s=%r is not an int; using default %d", key, raw, default)
                return default

        max_occurrences = _coerce_int("max_occurrences", 100)
        low, high = MAX_OCCURRENCES_RANGE
        if max_occurrences < low:
            logger.warning("max_occurrences %d below minimum; coercing to %d", max_occurrences, low)
            max_occurrences = low
        elif max_occurrences > high:
            logger.warning("max_occurrences %d above maximum; coercing to %d", max_occurrences, high)
            max_occurrences = high

        duration = _coerce_int("default_event_duration_minutes", 60)
        if duration < 0:
            logger.warning("default_event_duration_minutes %d is negative; using 60", duration)
            duration = 60

        raw_week_start = str(data.get("week_start", "MO")).strip().upper()
        try:
            week_start = Weekday(raw_week_start)
        except ValueError:
            logger.warning("week_start %r is not a weekday code; using MO", raw_week_start)
            week_start = Weekday.MO

        store_path = data.get("store_path")
        if store_path is not None:
            store_path = str(store_path)

        log_level = data.get("log_level", "INFO")
        log_level = str(log_level).upper() if log_level is not None else "INFO"

        return cls(
            max_occurrences=max_occurrences,
            default_event_duration_minutes=duration,
            week_start=week_start,
            store_path=store_path,
            log_level=log_level,
        )


def _load_mapping(path: Path) -> Any:
    """Load a YAML or JSON document; ``.json`` files are read as JSON."""
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        return json.loads(text)
    loaded = yaml.safe_load(text)
    # safe_load returns None for empty files
    return {} if loaded is None else loaded


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    merged = dict(data)
    env_max = os.environ.get(ENV_MAX_OCCURRENCES)
    if env_max:
        merged["max_occurrences"] = env_max
    env_level = os.environ.get(ENV_LOG_LEVEL)
    if env_level:
        merged["log_level"] = env_level
    return merged


def load_config(path: str | None = None) -> Config:
    """Load configuration from a YAML/JSON file and return a Config instance.

    Args:
        path: Optional path to the config file. Defaults to
              ./schedule_lite.yaml in the current working directory.

    Returns:
        Config dataclass instance with values from file (or defaults).

    Behavior:
    - If file is missing: returns defaults (still honoring env overrides).
    - If file exists but top-level is not a mapping: raises ValueError.
    """
    p = Path(path) if path else Path.cwd() / "schedule_lite.yaml"
    logger.debug("Attempting to load config from %s", p)
    if not p.exists():
        logger.info("Config file %s not found; using defaults", p)
        return Config.from_dict(_apply_env_overrides({}))

    raw = _load_mapping(p)
    if not isinstance(raw, dict):
        logger.warning("Config file %s parsed but top-level is not a mapping: %r", p, raw)
        raise ValueError("Config file must contain a mapping at top level")  # noqa: TRY004
    cfg = Config.from_dict(_apply_env_overrides(raw))
    logger.info("Loaded configuration from %s", p)
    logger.debug("Configuration values: %s", cfg)
    return cfg
