"""Render storage rows as the camelCase dictionaries clients receive.

Rows may be ORM instances or plain dictionaries keyed by attribute name, so
both backends share the same output shapes.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from datetime import date, datetime, timezone
from typing import Any, Iterable


def _value(row: Any, name: str) -> Any:
    if isinstance(row, Mapping):
        return row.get(name)
    return getattr(row, name)


def iso(dt: datetime | date | None) -> str | None:
    """Return an ISO-8601 string, treating naive datetimes as UTC."""

    if dt is None:
        return None
    if isinstance(dt, datetime) and dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.isoformat()


def as_utc(dt: datetime) -> datetime:
    """Return ``dt`` as an aware UTC datetime."""

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def category_view(row: Any) -> dict:
    return {
        "id": _value(row, "id"),
        "name": _value(row, "name"),
        "icon": _value(row, "icon"),
        "displayOrder": _value(row, "display_order"),
    }


def menu_item_view(row: Any) -> dict:
    return {
        "id": _value(row, "id"),
        "categoryId": _value(row, "category_id"),
        "name": _value(row, "name"),
        "description": _value(row, "description"),
        "price": _value(row, "price"),
        "mealPrice": _value(row, "meal_price"),
        "available": bool(_value(row, "available")),
        "image": _value(row, "image"),
        "hasFlavorOptions": bool(_value(row, "has_flavor_options")),
        "hasMealOption": bool(_value(row, "has_meal_option")),
        "isSpicyOption": bool(_value(row, "is_spicy_option")),
        "hasToppingsOption": bool(_value(row, "has_toppings_option")),
    }


def order_view(row: Any) -> dict:
    return {
        "id": _value(row, "id"),
        "orderNumber": _value(row, "order_number"),
        "status": _value(row, "status"),
        "totalAmount": _value(row, "total_amount"),
        "createdAt": iso(_value(row, "created_at")),
        "updatedAt": iso(_value(row, "updated_at")),
    }


def order_item_view(row: Any) -> dict:
    return {
        "id": _value(row, "id"),
        "menuItemId": _value(row, "menu_item_id"),
        "name": _value(row, "name"),
        "price": _value(row, "price"),
        "quantity": _value(row, "quantity"),
        "notes": _value(row, "notes"),
        "customizations": _value(row, "customizations"),
    }


def full_order_view(order: Any, items: Iterable[Any]) -> dict:
    """Return the order joined with its line items."""

    data = order_view(order)
    data["items"] = [order_item_view(item) for item in items]
    return data


def daily_stats_view(row: Any) -> dict:
    return {
        "date": iso(_value(row, "date")),
        "menuItemId": _value(row, "menu_item_id"),
        "itemName": _value(row, "item_name"),
        "totalOrdered": _value(row, "total_ordered"),
        "totalRevenue": _value(row, "total_revenue"),
    }


def rank_popular(lines: Iterable[tuple[str, int, int]], limit: int) -> list[dict]:
    """Aggregate ``(name, quantity, price)`` lines into a popularity ranking.

    ``percentage`` is each item's share of all units sold, rounded half up.
    """

    totals: dict[str, dict[str, int]] = {}
    units = 0
    for name, quantity, price in lines:
        entry = totals.setdefault(name, {"totalOrdered": 0, "totalRevenue": 0})
        entry["totalOrdered"] += quantity
        entry["totalRevenue"] += quantity * price
        units += quantity

    ranked = [
        {
            "itemName": name,
            "totalOrdered": entry["totalOrdered"],
            "totalRevenue": entry["totalRevenue"],
            "percentage": (
                math.floor(entry["totalOrdered"] * 100 / units + 0.5) if units else 0
            ),
        }
        for name, entry in totals.items()
    ]
    ranked.sort(key=lambda row: row["totalOrdered"], reverse=True)
    return ranked[:limit]


def aggregate_daily(
    lines: Iterable[tuple[int, str, int, int]],
) -> dict[int, dict[str, Any]]:
    """Sum ``(menu_item_id, name, quantity, price)`` lines per menu item."""

    totals: dict[int, dict[str, Any]] = {}
    for menu_item_id, name, quantity, price in lines:
        entry = totals.setdefault(
            menu_item_id,
            {"item_name": name, "total_ordered": 0, "total_revenue": 0},
        )
        entry["total_ordered"] += quantity
        entry["total_revenue"] += quantity * price
    return totals
