from collections.abc import Callable, Generator
from datetime import datetime
from types import SimpleNamespace
from typing import Any, Optional

import pytest

from schedule_lite.lite_models import ItemKind, ScheduleItem


def pytest_configure(config: Any) -> None:
    config.addinivalue_line("markers", "unit: fast, isolated unit tests")


@pytest.fixture
def simple_settings() -> SimpleNamespace:
    """Lightweight settings object used across lite tests.

    Fields:
      - max_occurrences: safety cap for open-ended series
      - default_event_duration_minutes: length of events drafted without an end
    """
    return SimpleNamespace(
        max_occurrences=100,
        default_event_duration_minutes=60,
    )


@pytest.fixture
def make_item() -> Callable[..., ScheduleItem]:
    """Factory for base schedule items with sensible defaults."""

    def _make(
        start: datetime,
        end: Optional[datetime] = None,
        rule: Optional[str] = None,
        item_id: str = "item-1",
        title: str = "Standup",
        kind: ItemKind = ItemKind.EVENT,
        **kwargs: Any,
    ) -> ScheduleItem:
        return ScheduleItem(
            id=item_id,
            title=title,
            kind=kind,
            anchor_start=start,
            anchor_end=end,
            recurrence_rule=rule,
            **kwargs,
        )

    return _make


@pytest.fixture(autouse=True)
def clean_test_environment(monkeypatch: Any) -> Generator[None, Any, None]:
    """Clear schedule_lite environment overrides around every test."""
    for name in (
        "SCHEDULE_LITE_DEBUG",
        "SCHEDULE_LITE_LOG_LEVEL",
        "SCHEDULE_LITE_MAX_OCCURRENCES",
    ):
        monkeypatch.delenv(name, raising=False)
    yield
