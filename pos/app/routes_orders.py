"""Order submission, status changes and order history."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends

from config import Settings

from .deps import get_orders, get_settings, get_storage
from .repos import Storage
from .schemas import OrderCreate, StatusUpdate
from .services import OrderLifecycle
from .utils.responses import ok

router = APIRouter(prefix="/api")


@router.get("/orders/active")
async def active_orders(orders: OrderLifecycle = Depends(get_orders)) -> dict:
    """Orders in new, preparing or ready; newest first."""

    return ok(await orders.get_active_orders())


@router.get("/orders")
async def all_orders(orders: OrderLifecycle = Depends(get_orders)) -> dict:
    return ok(await orders.list_orders())


@router.get("/orders/{order_id}")
async def get_order(order_id: int, orders: OrderLifecycle = Depends(get_orders)) -> dict:
    return ok(await orders.get_full_order(order_id))


@router.post("/orders", status_code=201)
async def create_order(
    payload: OrderCreate, orders: OrderLifecycle = Depends(get_orders)
) -> dict:
    """Create an order and push it to kitchen displays."""

    return ok(await orders.submit_order(payload.items))


@router.patch("/orders/{order_id}/status")
async def update_order_status(
    order_id: int,
    payload: StatusUpdate,
    orders: OrderLifecycle = Depends(get_orders),
) -> dict:
    """Change an order's status and broadcast the result to every client."""

    return ok(await orders.update_status(order_id, payload.status))


@router.get("/popular-items")
async def popular_items(
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
) -> dict:
    """Rank items from served orders within the trailing window."""

    since = datetime.now(timezone.utc) - timedelta(
        days=settings.popular_items_window_days
    )
    return ok(await storage.popular_items(since, settings.popular_items_limit))
