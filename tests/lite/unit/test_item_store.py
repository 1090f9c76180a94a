"""Tests for schedule_lite.item_store.

Run with:
    pytest tests/lite/unit/test_item_store.py -q
"""

import json
from datetime import datetime

import pytest

from schedule_lite.exceptions import ItemNotFoundError, ItemStoreError
from schedule_lite.item_store import InMemoryItemStore, JsonItemStore
from schedule_lite.lite_materializer import materialize
from schedule_lite.lite_models import ItemKind, Occurrence
from schedule_lite.protocols import ScheduleItemRepository

pytestmark = pytest.mark.unit


class TestInMemoryItemStore:
    def setup_method(self):
        self.store = InMemoryItemStore()

    def test_implements_repository_protocol(self):
        assert isinstance(self.store, ScheduleItemRepository)

    def test_save_get_returns_copies(self, make_item):
        item = make_item(datetime(2025, 1, 6, 9, 0), invitees=["a"])
        self.store.save(item)
        fetched = self.store.get(item.id)
        fetched.invitees.append("b")
        assert self.store.get(item.id).invitees == ["a"]
        assert fetched is not item

    def test_get_missing_raises(self):
        with pytest.raises(ItemNotFoundError) as exc_info:
            self.store.get("nope")
        assert exc_info.value.item_id == "nope"
        assert isinstance(exc_info.value, KeyError)

    def test_delete(self, make_item):
        item = make_item(datetime(2025, 1, 6, 9, 0))
        self.store.save(item)
        self.store.delete(item.id)
        assert len(self.store) == 0
        with pytest.raises(ItemNotFoundError):
            self.store.delete(item.id)

    def test_list_items_sorted_and_filtered(self, make_item):
        self.store.save(make_item(datetime(2025, 1, 8, 9, 0), item_id="c", user_id="u1"))
        self.store.save(make_item(datetime(2025, 1, 6, 9, 0), item_id="a", user_id="u2"))
        self.store.save(
            make_item(datetime(2025, 1, 7, 9, 0), item_id="b", user_id="u1", kind=ItemKind.TASK)
        )
        assert [i.id for i in self.store.list_items()] == ["a", "b", "c"]
        assert [i.id for i in self.store.list_items(kind=ItemKind.TASK)] == ["b"]
        assert [i.id for i in self.store.list_items(user_id="u1")] == ["b", "c"]

    def test_refuses_materialized_instances(self, make_item):
        base = make_item(datetime(2025, 1, 6, 9, 0), rule="FREQ=DAILY")
        instance = materialize(base, Occurrence(date=datetime(2025, 1, 7, 9, 0), index=1, sequence=2))
        with pytest.raises(ValueError):
            self.store.save(instance)
        with pytest.raises(ValueError):
            InMemoryItemStore([instance])


class TestJsonItemStore:
    def test_missing_file_is_empty(self, tmp_path):
        store = JsonItemStore(tmp_path / "items.json")
        assert len(store) == 0
        assert not (tmp_path / "items.json").exists()

    def test_persist_and_reload(self, tmp_path, make_item):
        path = tmp_path / "nested" / "items.json"
        store = JsonItemStore(path)
        store.save(
            make_item(
                datetime(2025, 1, 6, 9, 0),
                datetime(2025, 1, 6, 10, 0),
                rule="FREQ=WEEKLY;INTERVAL=1;BYDAY=MO",
                extra={"color": "blue"},
            )
        )

        on_disk = json.loads(path.read_text(encoding="utf-8"))
        assert on_disk["items"][0]["id"] == "item-1"
        assert on_disk["items"][0]["anchor_start"] == "2025-01-06T09:00:00"

        reloaded = JsonItemStore(path)
        item = reloaded.get("item-1")
        assert item.recurrence_rule == "FREQ=WEEKLY;INTERVAL=1;BYDAY=MO"
        assert item.extra == {"color": "blue"}
        assert list(tmp_path.glob("nested/*.tmp")) == []

    def test_delete_persists(self, tmp_path, make_item):
        path = tmp_path / "items.json"
        store = JsonItemStore(path)
        store.save(make_item(datetime(2025, 1, 6, 9, 0)))
        store.delete("item-1")
        assert json.loads(path.read_text(encoding="utf-8")) == {"items": []}

    @pytest.mark.parametrize("content", ["{not json", "[]", '{"items": {}}', '{"items": [{"id": 1}]}'])
    def test_malformed_file_raises(self, tmp_path, content):
        path = tmp_path / "items.json"
        path.write_text(content, encoding="utf-8")
        with pytest.raises(ItemStoreError):
            JsonItemStore(path)

    def test_failed_write_rolls_back(self, tmp_path, make_item, monkeypatch):
        store = JsonItemStore(tmp_path / "items.json")

        def _fail() -> None:
            raise ItemStoreError("disk full")

        monkeypatch.setattr(store, "_persist", _fail)
        with pytest.raises(ItemStoreError):
            store.save(make_item(datetime(2025, 1, 6, 9, 0)))
        assert len(store) == 0
