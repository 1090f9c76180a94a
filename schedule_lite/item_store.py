"""In-memory and JSON-backed stores for base schedule items.

Both implement ScheduleItemRepository. Materialized occurrences are display
values and are refused on save.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from .exceptions import ItemNotFoundError, ItemStoreError
from .lite_models import ItemKind, MaterializedInstance, ScheduleItem

logger = logging.getLogger(__name__)


class InMemoryItemStore:
    """Thread-safe dict-backed item store."""

    def __init__(self, items: Optional[list[ScheduleItem]] = None) -> None:
        self._lock = threading.Lock()
        self._items: dict[str, ScheduleItem] = {}
        for item in items or []:
            self._check_storable(item)
            self._items[item.id] = item.model_copy(deep=True)

    @staticmethod
    def _check_storable(item: ScheduleItem) -> None:
        if isinstance(item, MaterializedInstance) or item.is_recurring_instance:
            raise ValueError(
                f"Refusing to store recurring occurrence {item.id}; "
                "persist the series or a detached copy instead"
            )

    def get(self, item_id: str) -> ScheduleItem:
        """Return a copy of the stored item.

        Raises:
            ItemNotFoundError: If no item has ``item_id``
        """
        with self._lock:
            item = self._items.get(item_id)
        if item is None:
            raise ItemNotFoundError(item_id)
        return item.model_copy(deep=True)

    def list_items(
        self, kind: Optional[ItemKind] = None, user_id: Optional[str] = None
    ) -> list[ScheduleItem]:
        """Return copies of stored items ordered by start, optionally filtered."""
        with self._lock:
            items = list(self._items.values())
        selected = [
            item.model_copy(deep=True)
            for item in items
            if (kind is None or item.kind == kind) and (user_id is None or item.user_id == user_id)
        ]
        selected.sort(key=lambda item: (item.anchor_start, item.id))
        return selected

    def save(self, item: ScheduleItem) -> ScheduleItem:
        """Create or replace ``item``.

        Raises:
            ValueError: If ``item`` is a materialized occurrence
        """
        self._check_storable(item)
        stored = item.model_copy(deep=True)
        with self._lock:
            previous = self._items.get(item.id)
            self._items[item.id] = stored
            try:
                self._after_change()
            except Exception:
                if previous is None:
                    del self._items[item.id]
                else:
                    self._items[item.id] = previous
                raise
        logger.debug("Saved schedule item %s", item.id)
        return stored.model_copy(deep=True)

    def delete(self, item_id: str) -> None:
        """Remove an item.

        Raises:
            ItemNotFoundError: If no item has ``item_id``
        """
        with self._lock:
            if item_id not in self._items:
                raise ItemNotFoundError(item_id)
            previous = self._items.pop(item_id)
            try:
                self._after_change()
            except Exception:
                self._items[item_id] = previous
                raise
        logger.debug("Deleted schedule item %s", item_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def _after_change(self) -> None:
        """Hook run under the lock after every mutation."""


class JsonItemStore(InMemoryItemStore):
    """Item store persisted to a JSON file with atomic writes.

    The on-disk format is ``{"items": [<ScheduleItem as JSON>, ...]}``.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        """Open (or create on first write) the store at ``path``.

        Raises:
            ItemStoreError: If an existing file cannot be read or parsed
        """
        super().__init__()
        self._path = Path(path)
        self.load()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> None:
        """Replace in-memory state with the file contents.

        A missing file means an empty store.

        Raises:
            ItemStoreError: If the file is unreadable or malformed
        """
        with self._lock:
            if not self._path.exists():
                logger.debug("Item store file not found; starting empty: %s", self._path)
                self._items = {}
                return
            try:
                with self._path.open("r", encoding="utf-8") as fh:
                    data = json.load(fh)
                if not isinstance(data, dict) or not isinstance(data.get("items"), list):
                    raise ItemStoreError(f"{self._path}: expected an object with an 'items' list")
                items = [ScheduleItem.model_validate(raw) for raw in data["items"]]
            except (OSError, json.JSONDecodeError, ValidationError) as exc:
                raise ItemStoreError(f"Failed to load item store {self._path}: {exc}") from exc
            self._items = {item.id: item for item in items}
        logger.debug("Loaded item store %s (%d items)", self._path, len(items))

    def _after_change(self) -> None:
        self._persist()

    def _persist(self) -> None:
        """Write all items to disk atomically.

        Writes to a temporary file in the same directory then replaces the
        target, so readers never see a partial file.

        Raises:
            ItemStoreError: If the file cannot be written
        """
        payload = {
            "items": [
                item.model_dump(mode="json")
                for item in sorted(self._items.values(), key=lambda item: item.id)
            ]
        }
        tmp_path: Optional[Path] = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w", dir=self._path.parent, delete=False, encoding="utf-8", suffix=".tmp"
            ) as tf:
                tmp_path = Path(tf.name)
                json.dump(payload, tf, ensure_ascii=False, indent=2)
                tf.flush()
                os.fsync(tf.fileno())
            tmp_path.replace(self._path)
        except OSError as exc:
            if tmp_path is not None:
                with contextlib.suppress(OSError):
                    tmp_path.unlink()
            raise ItemStoreError(f"Failed to persist item store {self._path}: {exc}") from exc
