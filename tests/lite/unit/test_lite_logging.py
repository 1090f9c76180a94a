"""Tests for schedule_lite.lite_logging and the package-level _init_logging."""

import logging
import os
from unittest.mock import patch

import pytest

from schedule_lite import _init_logging
from schedule_lite.lite_logging import (
    configure_lite_logging,
    debug_env_enabled,
    get_logging_status,
    reset_logging_to_debug,
)

pytestmark = pytest.mark.unit


class TestConfigureLiteLogging:
    """Tests for configure_lite_logging function."""

    def test_configure_lite_logging_default_production_mode(self):
        configure_lite_logging()

        assert logging.getLogger().level == logging.INFO
        assert logging.getLogger("dateutil").level == logging.WARNING
        assert logging.getLogger("schedule_lite").level == logging.INFO

    def test_configure_lite_logging_debug_mode(self):
        configure_lite_logging(debug_mode=True)

        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("schedule_lite.lite_occurrence_expander").level == logging.DEBUG
        # Third-party loggers stay quiet in debug mode
        assert logging.getLogger("asyncio").level == logging.WARNING

    def test_configure_lite_logging_force_debug_override(self):
        configure_lite_logging(debug_mode=False, force_debug=True)
        assert logging.getLogger().level == logging.DEBUG

        configure_lite_logging(debug_mode=True, force_debug=False)
        assert logging.getLogger().level == logging.INFO

    @patch.dict(os.environ, {"SCHEDULE_LITE_DEBUG": "true"})
    def test_configure_lite_logging_env_debug(self):
        configure_lite_logging()
        assert logging.getLogger("schedule_lite").level == logging.DEBUG

    @patch.dict(os.environ, {"SCHEDULE_LITE_LOG_LEVEL": "ERROR"})
    def test_configure_lite_logging_env_log_level(self):
        configure_lite_logging()
        assert logging.getLogger().level == logging.ERROR

    @patch.dict(os.environ, {"SCHEDULE_LITE_LOG_LEVEL": "CHATTY"})
    def test_configure_lite_logging_ignores_invalid_env_level(self):
        configure_lite_logging()
        assert logging.getLogger().level == logging.INFO


def test_reset_logging_to_debug():
    configure_lite_logging()
    reset_logging_to_debug()
    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("dateutil").level == logging.DEBUG
    assert logging.getLogger("schedule_lite.schedule_builder").level == logging.DEBUG


def test_get_logging_status():
    configure_lite_logging()
    status = get_logging_status()
    assert status["root"] == "INFO"
    assert status["schedule_lite"] == "INFO"
    assert status["dateutil"] == "WARNING"



@pytest.mark.parametrize(
    ("value", "expected"),
    [("1", True), ("TRUE", True), (" yes ", True), ("on", True), ("0", False), ("", False)],
)
def test_debug_env_enabled(monkeypatch, value, expected):
    monkeypatch.setenv("SCHEDULE_LITE_DEBUG", value)
    assert debug_env_enabled() is expected


class TestInitLogging:
    """Tests for the package-level console handler setup."""

    @pytest.fixture(autouse=True)
    def fresh_root(self, monkeypatch):
        """Give _init_logging an isolated root logger with no handlers."""
        self.root = logging.RootLogger(logging.WARNING)
        monkeypatch.setattr(logging, "root", self.root)
        yield self.root
        for handler in list(self.root.handlers):
            self.root.removeHandler(handler)

    def test_installs_colored_handler_once(self):
        from colorlog import ColoredFormatter

        assert logging.getLogger() is self.root
        _init_logging("warning")
        _init_logging("warning")
        assert len(self.root.handlers) == 1
        assert isinstance(self.root.handlers[0].formatter, ColoredFormatter)
        assert self.root.level == logging.WARNING

    def test_existing_handler_is_kept(self):
        existing = logging.NullHandler()
        self.root.addHandler(existing)
        _init_logging("INFO")
        assert self.root.handlers == [existing]

    def test_unknown_level_name_falls_back_to_info(self):
        _init_logging("loud")
        assert self.root.level == logging.INFO

    @patch.dict(os.environ, {"SCHEDULE_LITE_DEBUG": "1"})
    def test_env_forces_debug(self):
        _init_logging("ERROR")
        assert self.root.level == logging.DEBUG
