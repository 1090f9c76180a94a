"""Protocol definitions for schedule engine collaborators.

The engine never talks to storage itself; callers pass in an object that
satisfies ScheduleItemRepository.
"""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from .lite_models import ItemKind, ScheduleItem


@runtime_checkable
class ScheduleItemRepository(Protocol):
    """Persistence port for base schedule items, keyed by stable id."""

    def get(self, item_id: str) -> ScheduleItem:
        """Return the stored item.

        Args:
            item_id: Stable item identifier

        Returns:
            Stored ScheduleItem

        Raises:
            ItemNotFoundError: If no item has ``item_id``
        """
        ...

    def list_items(
        self, kind: Optional[ItemKind] = None, user_id: Optional[str] = None
    ) -> list[ScheduleItem]:
        """Return stored items, optionally filtered by kind and owner."""
        ...

    def save(self, item: ScheduleItem) -> ScheduleItem:
        """Create or replace an item.

        Raises:
            ValueError: If ``item`` is a materialized occurrence
        """
        ...

    def delete(self, item_id: str) -> None:
        """Remove an item.

        Raises:
            ItemNotFoundError: If no item has ``item_id``
        """
        ...
