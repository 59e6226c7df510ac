"""Repository interface shared by the in-memory and SQL backends.

Inputs use snake_case keys matching the model attributes. Outputs are the
camelCase dictionaries sent to clients (see :mod:`.views`).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Iterable


class Storage(ABC):
    """Contract for menu, order and statistics persistence."""

    # Categories

    @abstractmethod
    async def list_categories(self) -> list[dict]:
        """Return all categories sorted by display order."""
        raise NotImplementedError

    @abstractmethod
    async def get_category(self, category_id: int) -> dict | None:
        """Return one category or ``None``."""
        raise NotImplementedError

    @abstractmethod
    async def create_category(self, data: dict) -> dict:
        """Insert a category and return it."""
        raise NotImplementedError

    @abstractmethod
    async def update_category(self, category_id: int, changes: dict) -> dict | None:
        """Apply ``changes`` and return the category, or ``None`` if absent."""
        raise NotImplementedError

    @abstractmethod
    async def delete_category(self, category_id: int) -> bool:
        """Delete a category; return ``False`` if it did not exist."""
        raise NotImplementedError

    # Menu items

    @abstractmethod
    async def list_menu_items(self, category_id: int | None = None) -> list[dict]:
        """Return menu items, optionally restricted to one category."""
        raise NotImplementedError

    @abstractmethod
    async def get_menu_item(self, item_id: int) -> dict | None:
        """Return one menu item or ``None``."""
        raise NotImplementedError

    @abstractmethod
    async def create_menu_item(self, data: dict) -> dict:
        """Insert a menu item and return it."""
        raise NotImplementedError

    @abstractmethod
    async def update_menu_item(self, item_id: int, changes: dict) -> dict | None:
        """Apply ``changes`` and return the item, or ``None`` if absent."""
        raise NotImplementedError

    @abstractmethod
    async def delete_menu_item(self, item_id: int) -> bool:
        """Delete a menu item; return ``False`` if it did not exist."""
        raise NotImplementedError

    # Orders

    @abstractmethod
    async def create_order(self, order: dict, items: Iterable[dict]) -> dict:
        """Persist an order together with its line items as one unit.

        ``order`` carries ``order_number``, ``status`` and ``total_amount``
        (and optionally ``created_at``). Returns the full order. Raises
        :class:`~pos.app.domain.OrderNumberConflict` when the order number is
        already taken; nothing is written in that case.
        """
        raise NotImplementedError

    @abstractmethod
    async def get_order(self, order_id: int) -> dict | None:
        """Return the order row without items, or ``None``."""
        raise NotImplementedError

    @abstractmethod
    async def update_order_status(self, order_id: int, status: str) -> dict | None:
        """Write ``status`` and return the order row, or ``None`` if absent."""
        raise NotImplementedError

    @abstractmethod
    async def get_full_order(self, order_id: int) -> dict | None:
        """Return the order joined with its items, or ``None``."""
        raise NotImplementedError

    @abstractmethod
    async def list_orders_by_status(self, statuses: Iterable[str]) -> list[dict]:
        """Return full orders in ``statuses``, newest first."""
        raise NotImplementedError

    @abstractmethod
    async def list_all_orders(self) -> list[dict]:
        """Return every full order, newest first."""
        raise NotImplementedError

    # Statistics and retention

    @abstractmethod
    async def popular_items(self, since: datetime, limit: int) -> list[dict]:
        """Rank items from served orders created at or after ``since``."""
        raise NotImplementedError

    @abstractmethod
    async def generate_daily_stats(self, day: date) -> int:
        """Record per-item totals of served orders created on ``day``.

        Existing rows for the same day and item are overwritten. Returns the
        number of items recorded.
        """
        raise NotImplementedError

    @abstractmethod
    async def list_daily_stats(self, day: date | None = None) -> list[dict]:
        """Return recorded daily statistics, optionally for one day."""
        raise NotImplementedError

    @abstractmethod
    async def delete_orders_before(self, cutoff: datetime) -> int:
        """Delete orders created before ``cutoff`` with their items.

        Returns the number of orders removed.
        """
        raise NotImplementedError
