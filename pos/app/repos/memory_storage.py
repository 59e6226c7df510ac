"""Dictionary-backed storage for development and tests.

Everything lives in process memory and is lost on restart. Methods never
await between reading and writing, so each call is atomic on the event loop.
"""

from __future__ import annotations

import itertools
from datetime import date, datetime
from typing import Iterable

from ..domain import OrderNumberConflict, OrderStatus
from ..models import utcnow
from .storage import Storage
from .views import (
    aggregate_daily,
    as_utc,
    category_view,
    daily_stats_view,
    full_order_view,
    menu_item_view,
    order_view,
    rank_popular,
)

_MENU_ITEM_DEFAULTS = {
    "description": None,
    "meal_price": None,
    "available": True,
    "image": None,
    "has_flavor_options": False,
    "has_meal_option": False,
    "is_spicy_option": False,
    "has_toppings_option": False,
}


class MemoryStorage(Storage):
    """In-process implementation of :class:`Storage`."""

    def __init__(self) -> None:
        self._categories: dict[int, dict] = {}
        self._menu_items: dict[int, dict] = {}
        self._orders: dict[int, dict] = {}
        self._order_items: dict[int, list[dict]] = {}
        self._daily_stats: dict[tuple[date, int], dict] = {}
        self._ids = {
            name: itertools.count(1)
            for name in ("category", "menu_item", "order", "order_item")
        }

    def _add_category(self, data: dict) -> dict:
        row = {
            "id": next(self._ids["category"]),
            "name": data["name"],
            "icon": data["icon"],
            "display_order": data.get("display_order", 0),
            "updated_at": utcnow(),
        }
        self._categories[row["id"]] = row
        return row

    def _add_menu_item(self, data: dict) -> dict:
        row = {**_MENU_ITEM_DEFAULTS, **data}
        row["id"] = next(self._ids["menu_item"])
        row["updated_at"] = utcnow()
        self._menu_items[row["id"]] = row
        return row

    def _full(self, order: dict) -> dict:
        return full_order_view(order, self._order_items.get(order["id"], []))

    def _newest_first(self, orders: Iterable[dict]) -> list[dict]:
        return sorted(
            orders, key=lambda o: (o["created_at"], o["id"]), reverse=True
        )

    # Categories

    async def list_categories(self) -> list[dict]:
        rows = sorted(
            self._categories.values(), key=lambda c: (c["display_order"], c["id"])
        )
        return [category_view(row) for row in rows]

    async def get_category(self, category_id: int) -> dict | None:
        row = self._categories.get(category_id)
        return category_view(row) if row else None

    async def create_category(self, data: dict) -> dict:
        return category_view(self._add_category(data))

    async def update_category(self, category_id: int, changes: dict) -> dict | None:
        row = self._categories.get(category_id)
        if row is None:
            return None
        row.update(changes)
        row["updated_at"] = utcnow()
        return category_view(row)

    async def delete_category(self, category_id: int) -> bool:
        return self._categories.pop(category_id, None) is not None

    # Menu items

    async def list_menu_items(self, category_id: int | None = None) -> list[dict]:
        rows = sorted(self._menu_items.values(), key=lambda i: i["id"])
        if category_id is not None:
            rows = [row for row in rows if row["category_id"] == category_id]
        return [menu_item_view(row) for row in rows]

    async def get_menu_item(self, item_id: int) -> dict | None:
        row = self._menu_items.get(item_id)
        return menu_item_view(row) if row else None

    async def create_menu_item(self, data: dict) -> dict:
        return menu_item_view(self._add_menu_item(data))

    async def update_menu_item(self, item_id: int, changes: dict) -> dict | None:
        row = self._menu_items.get(item_id)
        if row is None:
            return None
        row.update(changes)
        row["updated_at"] = utcnow()
        return menu_item_view(row)

    async def delete_menu_item(self, item_id: int) -> bool:
        return self._menu_items.pop(item_id, None) is not None

    # Orders

    async def create_order(self, order: dict, items: Iterable[dict]) -> dict:
        number = order["order_number"]
        if any(o["order_number"] == number for o in self._orders.values()):
            raise OrderNumberConflict(number)
        now = utcnow()
        row = {
            "id": next(self._ids["order"]),
            "order_number": number,
            "status": order.get("status", OrderStatus.NEW.value),
            "total_amount": order["total_amount"],
            "created_at": order.get("created_at") or now,
            "updated_at": order.get("created_at") or now,
        }
        lines = [
            {
                "id": next(self._ids["order_item"]),
                "order_id": row["id"],
                "menu_item_id": item["menu_item_id"],
                "name": item["name"],
                "price": item["price"],
                "quantity": item["quantity"],
                "notes": item.get("notes"),
                "customizations": item.get("customizations"),
            }
            for item in items
        ]
        self._orders[row["id"]] = row
        self._order_items[row["id"]] = lines
        return self._full(row)

    async def get_order(self, order_id: int) -> dict | None:
        row = self._orders.get(order_id)
        return order_view(row) if row else None

    async def update_order_status(self, order_id: int, status: str) -> dict | None:
        row = self._orders.get(order_id)
        if row is None:
            return None
        row["status"] = status
        row["updated_at"] = utcnow()
        return order_view(row)

    async def get_full_order(self, order_id: int) -> dict | None:
        row = self._orders.get(order_id)
        return self._full(row) if row else None

    async def list_orders_by_status(self, statuses: Iterable[str]) -> list[dict]:
        wanted = set(statuses)
        rows = [o for o in self._orders.values() if o["status"] in wanted]
        return [self._full(row) for row in self._newest_first(rows)]

    async def list_all_orders(self) -> list[dict]:
        return [self._full(row) for row in self._newest_first(self._orders.values())]

    # Statistics and retention

    def _served_lines(self, orders: Iterable[dict]):
        for order in orders:
            if order["status"] != OrderStatus.SERVED.value:
                continue
            yield from self._order_items.get(order["id"], [])

    async def popular_items(self, since: datetime, limit: int) -> list[dict]:
        since = as_utc(since)
        recent = [o for o in self._orders.values() if as_utc(o["created_at"]) >= since]
        return rank_popular(
            ((line["name"], line["quantity"], line["price"]) for line in self._served_lines(recent)),
            limit,
        )

    async def generate_daily_stats(self, day: date) -> int:
        on_day = [
            o for o in self._orders.values() if as_utc(o["created_at"]).date() == day
        ]
        totals = aggregate_daily(
            (line["menu_item_id"], line["name"], line["quantity"], line["price"])
            for line in self._served_lines(on_day)
        )
        now = utcnow()
        for menu_item_id, entry in totals.items():
            key = (day, menu_item_id)
            existing = self._daily_stats.get(key)
            if existing:
                existing.update(entry, updated_at=now)
            else:
                self._daily_stats[key] = {
                    "date": day,
                    "menu_item_id": menu_item_id,
                    "created_at": now,
                    "updated_at": now,
                    **entry,
                }
        return len(totals)

    async def list_daily_stats(self, day: date | None = None) -> list[dict]:
        rows = sorted(
            self._daily_stats.values(), key=lambda r: (r["date"], r["menu_item_id"])
        )
        if day is not None:
            rows = [row for row in rows if row["date"] == day]
        return [daily_stats_view(row) for row in rows]

    async def delete_orders_before(self, cutoff: datetime) -> int:
        cutoff = as_utc(cutoff)
        stale = [
            order_id
            for order_id, order in self._orders.items()
            if as_utc(order["created_at"]) < cutoff
        ]
        for order_id in stale:
            del self._orders[order_id]
            self._order_items.pop(order_id, None)
        return len(stale)
