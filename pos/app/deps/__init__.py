"""Request-scoped accessors for objects wired onto ``app.state``."""

from fastapi import Request

from config import Settings

from ..realtime import BroadcastHub
from ..repos import Storage
from ..services import OrderLifecycle


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_storage(request: Request) -> Storage:
    return request.app.state.storage


def get_orders(request: Request) -> OrderLifecycle:
    return request.app.state.orders


def get_hub(request: Request) -> BroadcastHub:
    return request.app.state.hub


__all__ = ["get_hub", "get_orders", "get_settings", "get_storage"]
