"""SQLAlchemy-backed implementation of :class:`~pos.app.repos.Storage`.

Each public method opens its own ``AsyncSession`` from the sessionmaker and
commits before returning. Order creation writes the order and its items in a
single transaction so a failure leaves neither behind.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from ..domain import OrderNumberConflict, OrderStatus
from ..models import Category, DailyStats, MenuItem, Order, OrderItem, utcnow
from ..repos.storage import Storage
from ..repos.views import (
    aggregate_daily,
    as_utc,
    category_view,
    daily_stats_view,
    full_order_view,
    menu_item_view,
    order_view,
    rank_popular,
)


def _day_bounds(day: date) -> tuple[datetime, datetime]:
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=1)


class SQLStorage(Storage):
    """Persist menus, orders and statistics through SQLAlchemy."""

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession]) -> None:
        self._sessionmaker = sessionmaker

    # Categories

    async def list_categories(self) -> list[dict]:
        async with self._sessionmaker() as session:
            result = await session.execute(
                select(Category).order_by(Category.display_order, Category.id)
            )
            return [category_view(row) for row in result.scalars()]

    async def get_category(self, category_id: int) -> dict | None:
        async with self._sessionmaker() as session:
            row = await session.get(Category, category_id)
            return category_view(row) if row else None

    async def create_category(self, data: dict) -> dict:
        async with self._sessionmaker() as session:
            async with session.begin():
                row = Category(**data)
                session.add(row)
            return category_view(row)

    async def update_category(self, category_id: int, changes: dict) -> dict | None:
        async with self._sessionmaker() as session:
            async with session.begin():
                row = await session.get(Category, category_id)
                if row is None:
                    return None
                for key, value in changes.items():
                    setattr(row, key, value)
            return category_view(row)

    async def delete_category(self, category_id: int) -> bool:
        async with self._sessionmaker() as session:
            async with session.begin():
                row = await session.get(Category, category_id)
                if row is None:
                    return False
                await session.delete(row)
            return True

    # Menu items

    async def list_menu_items(self, category_id: int | None = None) -> list[dict]:
        stmt = select(MenuItem).order_by(MenuItem.id)
        if category_id is not None:
            stmt = stmt.where(MenuItem.category_id == category_id)
        async with self._sessionmaker() as session:
            result = await session.execute(stmt)
            return [menu_item_view(row) for row in result.scalars()]

    async def get_menu_item(self, item_id: int) -> dict | None:
        async with self._sessionmaker() as session:
            row = await session.get(MenuItem, item_id)
            return menu_item_view(row) if row else None

    async def create_menu_item(self, data: dict) -> dict:
        async with self._sessionmaker() as session:
            async with session.begin():
                row = MenuItem(**data)
                session.add(row)
            return menu_item_view(row)

    async def update_menu_item(self, item_id: int, changes: dict) -> dict | None:
        async with self._sessionmaker() as session:
            async with session.begin():
                row = await session.get(MenuItem, item_id)
                if row is None:
                    return None
                for key, value in changes.items():
                    setattr(row, key, value)
            return menu_item_view(row)

    async def delete_menu_item(self, item_id: int) -> bool:
        async with self._sessionmaker() as session:
            async with session.begin():
                row = await session.get(MenuItem, item_id)
                if row is None:
                    return False
                await session.delete(row)
            return True

    # Orders

    async def _number_taken(self, session: AsyncSession, number: str) -> bool:
        result = await session.execute(
            select(Order.id).where(Order.order_number == number)
        )
        return result.first() is not None

    async def create_order(self, order: dict, items: Iterable[dict]) -> dict:
        number = order["order_number"]
        created_at = order.get("created_at") or utcnow()
        async with self._sessionmaker() as session:
            try:
                async with session.begin():
                    if await self._number_taken(session, number):
                        raise OrderNumberConflict(number)
                    row = Order(
                        order_number=number,
                        status=order.get("status", OrderStatus.NEW.value),
                        total_amount=order["total_amount"],
                        created_at=created_at,
                        updated_at=created_at,
                    )
                    row.items = [
                        OrderItem(
                            menu_item_id=item["menu_item_id"],
                            name=item["name"],
                            price=item["price"],
                            quantity=item["quantity"],
                            notes=item.get("notes"),
                            customizations=item.get("customizations"),
                        )
                        for item in items
                    ]
                    session.add(row)
                    await session.flush()
            except IntegrityError:
                # a concurrent writer may claim the number between check and insert
                async with self._sessionmaker() as probe:
                    if await self._number_taken(probe, number):
                        raise OrderNumberConflict(number) from None
                raise
            return full_order_view(row, row.items)

    async def get_order(self, order_id: int) -> dict | None:
        async with self._sessionmaker() as session:
            row = await session.get(Order, order_id)
            return order_view(row) if row else None

    async def update_order_status(self, order_id: int, status: str) -> dict | None:
        async with self._sessionmaker() as session:
            async with session.begin():
                row = await session.get(Order, order_id)
                if row is None:
                    return None
                row.status = status
                row.updated_at = utcnow()
            return order_view(row)

    async def get_full_order(self, order_id: int) -> dict | None:
        async with self._sessionmaker() as session:
            row = await session.get(
                Order, order_id, options=[selectinload(Order.items)]
            )
            return full_order_view(row, row.items) if row else None

    async def _list_orders(self, *criteria) -> list[dict]:
        stmt = (
            select(Order)
            .options(selectinload(Order.items))
            .order_by(Order.created_at.desc(), Order.id.desc())
        )
        if criteria:
            stmt = stmt.where(*criteria)
        async with self._sessionmaker() as session:
            result = await session.execute(stmt)
            return [full_order_view(row, row.items) for row in result.scalars()]

    async def list_orders_by_status(self, statuses: Iterable[str]) -> list[dict]:
        return await self._list_orders(Order.status.in_(list(statuses)))

    async def list_all_orders(self) -> list[dict]:
        return await self._list_orders()

    # Statistics and retention

    async def popular_items(self, since: datetime, limit: int) -> list[dict]:
        stmt = (
            select(OrderItem.name, OrderItem.quantity, OrderItem.price)
            .join(Order, Order.id == OrderItem.order_id)
            .where(
                Order.status == OrderStatus.SERVED.value,
                Order.created_at >= as_utc(since),
            )
        )
        async with self._sessionmaker() as session:
            result = await session.execute(stmt)
            return rank_popular(result.tuples(), limit)

    async def generate_daily_stats(self, day: date) -> int:
        start, end = _day_bounds(day)
        lines = (
            select(
                OrderItem.menu_item_id,
                OrderItem.name,
                OrderItem.quantity,
                OrderItem.price,
            )
            .join(Order, Order.id == OrderItem.order_id)
            .where(
                Order.status == OrderStatus.SERVED.value,
                Order.created_at >= start,
                Order.created_at < end,
            )
            .order_by(OrderItem.id)
        )
        async with self._sessionmaker() as session:
            async with session.begin():
                totals = aggregate_daily((await session.execute(lines)).tuples())
                if not totals:
                    return 0
                result = await session.execute(
                    select(DailyStats).where(
                        DailyStats.date == day,
                        DailyStats.menu_item_id.in_(list(totals)),
                    )
                )
                existing = {row.menu_item_id: row for row in result.scalars()}
                for menu_item_id, entry in totals.items():
                    row = existing.get(menu_item_id)
                    if row is None:
                        session.add(
                            DailyStats(date=day, menu_item_id=menu_item_id, **entry)
                        )
                    else:
                        for key, value in entry.items():
                            setattr(row, key, value)
            return len(totals)

    async def list_daily_stats(self, day: date | None = None) -> list[dict]:
        stmt = select(DailyStats).order_by(DailyStats.date, DailyStats.menu_item_id)
        if day is not None:
            stmt = stmt.where(DailyStats.date == day)
        async with self._sessionmaker() as session:
            result = await session.execute(stmt)
            return [daily_stats_view(row) for row in result.scalars()]

    async def delete_orders_before(self, cutoff: datetime) -> int:
        cutoff = as_utc(cutoff)
        async with self._sessionmaker() as session:
            async with session.begin():
                stale = select(Order.id).where(Order.created_at < cutoff)
                count = (
                    await session.execute(
                        select(func.count()).select_from(stale.subquery())
                    )
                ).scalar_one()
                if not count:
                    return 0
                await session.execute(
                    delete(OrderItem)
                    .where(OrderItem.order_id.in_(stale))
                    .execution_options(synchronize_session=False)
                )
                await session.execute(
                    delete(Order)
                    .where(Order.created_at < cutoff)
                    .execution_options(synchronize_session=False)
                )
            return count
