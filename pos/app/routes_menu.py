"""Public read-only menu routes used by the order-taking screen."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from .deps import get_storage
from .repos import Storage
from .utils.responses import ok

router = APIRouter(prefix="/api")


@router.get("/categories")
async def list_categories(storage: Storage = Depends(get_storage)) -> dict:
    """Return categories sorted by display order."""

    return ok(await storage.list_categories())


@router.get("/menu-items")
async def list_menu_items(storage: Storage = Depends(get_storage)) -> dict:
    return ok(await storage.list_menu_items())


@router.get("/categories/{category_id}/items")
async def list_category_items(
    category_id: int, storage: Storage = Depends(get_storage)
) -> dict:
    """Return the items of one category; unknown categories yield an empty list."""

    return ok(await storage.list_menu_items(category_id=category_id))
