"""
Central logging configuration for schedule_lite.

Keeps the engine's own loggers at INFO (or DEBUG on request) and quiets
third-party libraries that the CLI and tests pull in.
"""

import logging
import os
from typing import Optional

ENV_DEBUG = "SCHEDULE_LITE_DEBUG"
ENV_LOG_LEVEL = "SCHEDULE_LITE_LOG_LEVEL"

LITE_MODULES = [
    "schedule_lite",
    "schedule_lite.__main__",
    "schedule_lite.lite_models",
    "schedule_lite.lite_rule_codec",
    "schedule_lite.lite_occurrence_expander",
    "schedule_lite.lite_materializer",
    "schedule_lite.lite_normalizer",
    "schedule_lite.lite_rescheduler",
    "schedule_lite.schedule_builder",
    "schedule_lite.item_store",
    "schedule_lite.config_loader",
]

SUPPRESSED_LOGGERS = [
    "asyncio",
    "dateutil",
]

_TRUTHY = ("1", "true", "yes", "on")


def debug_env_enabled() -> bool:
    """True when SCHEDULE_LITE_DEBUG holds a truthy value ("1", "true", "yes", "on")."""
    return os.getenv(ENV_DEBUG, "").strip().lower() in _TRUTHY


def configure_lite_logging(debug_mode: bool = False, force_debug: Optional[bool] = None) -> None:
    """
    Configure logging levels for schedule_lite.

    Args:
        debug_mode: Whether to enable debug logging for schedule_lite modules
        force_debug: Override debug mode setting (None to use env var detection)

    Environment Variables:
        SCHEDULE_LITE_DEBUG: Set to '1', 'true', 'yes' or 'on' to force debug logging
        SCHEDULE_LITE_LOG_LEVEL: Override root log level (DEBUG, INFO, WARNING, ERROR)
    """
    env_debug = debug_env_enabled()
    env_log_level = os.getenv(ENV_LOG_LEVEL, "").upper()

    if force_debug is not None:
        final_debug = force_debug
    elif env_debug:
        final_debug = True
    else:
        final_debug = debug_mode

    root_level = logging.DEBUG if final_debug else logging.INFO
    if env_log_level in ("DEBUG", "INFO", "WARNING", "ERROR"):
        root_level = getattr(logging, env_log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(root_level)

    if not root_logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(root_level)
        handler.setFormatter(
            logging.Formatter("[%(asctime)s] %(levelname)s - %(name)s - %(message)s")
        )
        root_logger.addHandler(handler)

    logger_config: dict[str, int] = {name: logging.WARNING for name in SUPPRESSED_LOGGERS}

    lite_level = logging.DEBUG if final_debug else logging.INFO
    for module in LITE_MODULES:
        logger_config[module] = lite_level

    for logger_name, level in logger_config.items():
        logging.getLogger(logger_name).setLevel(level)

    if final_debug:
        root_logger.info("Debug logging enabled for schedule_lite modules.")
    else:
        root_logger.debug("Production logging configuration applied.")


def reset_logging_to_debug() -> None:
    """
    Reset all loggers to DEBUG level for troubleshooting.
    """
    logging.getLogger().setLevel(logging.DEBUG)
    for logger_name in SUPPRESSED_LOGGERS + LITE_MODULES:
        logging.getLogger(logger_name).setLevel(logging.DEBUG)

    logging.getLogger().info("All loggers reset to DEBUG level for troubleshooting")


def get_logging_status() -> dict[str, str]:
    """
    Get current logging configuration status.

    Returns:
        Dictionary mapping logger names to their current levels
    """
    status = {"root": logging.getLevelName(logging.getLogger().level)}
    for logger_name in ["schedule_lite", *SUPPRESSED_LOGGERS]:
        status[logger_name] = logging.getLevelName(logging.getLogger(logger_name).level)
    return status
