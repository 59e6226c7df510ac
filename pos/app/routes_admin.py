"""Admin login and menu management.

``POST /api/admin/login`` exchanges the shared admin password for a bearer
token; every other route here requires that token.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from config import Settings

from .auth import admin_required, authenticate_admin, issue_admin_token
from .deps import get_settings, get_storage
from .repos import Storage
from .schemas import AdminLogin, CategoryIn, CategoryPatch, MenuItemIn, MenuItemPatch
from .utils.responses import ok

logger = logging.getLogger("api")

router = APIRouter(prefix="/api/admin")
guarded = APIRouter(prefix="/api/admin", dependencies=[Depends(admin_required)])


@router.post("/login")
async def login(payload: AdminLogin, settings: Settings = Depends(get_settings)) -> dict:
    if not authenticate_admin(settings, payload.password):
        logger.warning("admin login rejected")
        raise HTTPException(status_code=401, detail="Invalid password")
    return ok({"token": issue_admin_token(settings), "tokenType": "bearer"})


async def _require_category(storage: Storage, category_id: int) -> None:
    if await storage.get_category(category_id) is None:
        raise HTTPException(status_code=404, detail="Category not found")


# Categories


@guarded.post("/categories", status_code=201)
async def create_category(
    payload: CategoryIn, storage: Storage = Depends(get_storage)
) -> dict:
    return ok(await storage.create_category(payload.model_dump()))


@guarded.put("/categories/{category_id}")
async def update_category(
    category_id: int,
    payload: CategoryPatch,
    storage: Storage = Depends(get_storage),
) -> dict:
    category = await storage.update_category(
        category_id, payload.model_dump(exclude_unset=True)
    )
    if category is None:
        raise HTTPException(status_code=404, detail="Category not found")
    return ok(category)


@guarded.delete("/categories/{category_id}")
async def delete_category(
    category_id: int, storage: Storage = Depends(get_storage)
) -> dict:
    """Delete an empty category; categories with items are kept."""

    await _require_category(storage, category_id)
    if await storage.list_menu_items(category_id=category_id):
        raise HTTPException(status_code=409, detail="Category still has menu items")
    await storage.delete_category(category_id)
    return ok({"deleted": category_id})


# Menu items


@guarded.get("/menu-items")
async def list_menu_items(
    category_id: Optional[int] = Query(default=None, alias="categoryId"),
    storage: Storage = Depends(get_storage),
) -> dict:
    return ok(await storage.list_menu_items(category_id=category_id))


@guarded.post("/menu-items", status_code=201)
async def create_menu_item(
    payload: MenuItemIn, storage: Storage = Depends(get_storage)
) -> dict:
    await _require_category(storage, payload.category_id)
    return ok(await storage.create_menu_item(payload.model_dump()))


@guarded.put("/menu-items/{item_id}")
async def update_menu_item(
    item_id: int,
    payload: MenuItemPatch,
    storage: Storage = Depends(get_storage),
) -> dict:
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("category_id") is not None:
        await _require_category(storage, changes["category_id"])
    item = await storage.update_menu_item(item_id, changes)
    if item is None:
        raise HTTPException(status_code=404, detail="Menu item not found")
    return ok(item)


@guarded.delete("/menu-items/{item_id}")
async def delete_menu_item(item_id: int, storage: Storage = Depends(get_storage)) -> dict:
    if not await storage.delete_menu_item(item_id):
        raise HTTPException(status_code=404, detail="Menu item not found")
    return ok({"deleted": item_id})
