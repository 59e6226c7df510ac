"""FastAPI application wiring for the point-of-sale API.

:func:`create_app` builds the storage backend, broadcast hub, order lifecycle
and housekeeper from :class:`config.Settings` and exposes them on
``app.state``. Importing this module creates ``app`` from the merged
``config.json`` and environment settings.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import Settings, StorageBackend, get_settings

from .db import create_all, get_engine, get_sessionmaker
from .domain import InvalidTransition, OrderError, OrderNotFound, OrderValidationError
from .housekeeping import Housekeeper
from .middlewares import LoggingMiddleware, PrometheusMiddleware, RequestIdMiddleware
from .obs.logging import configure_logging
from .realtime import BroadcastHub
from .repos import MemoryStorage, seed_if_empty
from .repos_sqlalchemy import SQLStorage
from .routes_admin import guarded as admin_guarded_router
from .routes_admin import router as admin_router
from .routes_menu import router as menu_router
from .routes_metrics import router as metrics_router
from .routes_orders import router as orders_router
from .routes_realtime import router as realtime_router
from .services import OrderLifecycle
from .utils.responses import err_response, ok

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
configure_logging(LOG_LEVEL)
logger = logging.getLogger("api")


def _validation_details(exc: RequestValidationError) -> list[dict]:
    details = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        details.append({"field": ".".join(loc), "message": error.get("msg")})
    return details


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        details = _validation_details(exc)
        logger.warning(
            "validation_error",
            extra={"status": 400, "route": request.url.path},
        )
        return err_response(400, "Invalid request", details)

    @app.exception_handler(OrderError)
    async def order_error_handler(request: Request, exc: OrderError):
        if isinstance(exc, OrderValidationError):
            status_code, details = 400, {"field": exc.field} if exc.field else None
        elif isinstance(exc, InvalidTransition):
            status_code, details = 400, {"from": exc.src, "to": exc.dst}
        elif isinstance(exc, OrderNotFound):
            status_code, details = 404, None
        else:
            logger.error(
                "order_error: %s",
                exc,
                extra={"status": 500, "route": request.url.path},
            )
            return err_response(500, "Internal Server Error")
        logger.warning(str(exc), extra={"status": status_code, "route": request.url.path})
        return err_response(status_code, str(exc), details)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        logger.warning(
            exc.detail,
            extra={"status": exc.status_code, "route": request.url.path},
        )
        return err_response(
            exc.status_code, exc.detail, headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(Exception)
    async def general_error_handler(request: Request, exc: Exception):
        logger.exception(
            "unhandled_error",
            extra={"status": 500, "route": request.url.path},
        )
        return err_response(500, "Internal Server Error")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application for ``settings`` (defaults to :func:`get_settings`)."""

    settings = settings or get_settings()
    app = FastAPI(title="POS API")

    engine = None
    if settings.storage_backend == StorageBackend.MEMORY:
        storage = MemoryStorage()
    else:
        engine = get_engine(settings.database_url)
        storage = SQLStorage(get_sessionmaker(engine))

    hub = BroadcastHub()
    app.state.settings = settings
    app.state.engine = engine
    app.state.storage = storage
    app.state.hub = hub
    app.state.orders = OrderLifecycle(
        storage,
        hub,
        strict_transitions=settings.strict_transitions,
        number_retries=settings.order_number_retries,
    )
    app.state.housekeeper = Housekeeper(
        storage,
        retention_days=settings.retention_days,
        run_hour=settings.cleanup_hour,
    )

    app.add_middleware(PrometheusMiddleware)
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(LoggingMiddleware)

    _install_error_handlers(app)

    @app.on_event("startup")
    async def prepare_storage() -> None:
        if engine is not None and settings.create_tables:
            await create_all(engine)
        if settings.seed_menu:
            await seed_if_empty(storage)
        if settings.housekeeping_enabled:
            app.state.housekeeper.start()
        logger.info("started with %s storage", settings.storage_backend.value)

    @app.on_event("shutdown")
    async def release_resources() -> None:
        await app.state.housekeeper.stop()
        if engine is not None:
            await engine.dispose()

    @app.get("/health")
    async def health() -> dict:
        return ok({"status": "ok"})

    app.include_router(menu_router)
    app.include_router(orders_router)
    app.include_router(admin_router)
    app.include_router(admin_guarded_router)
    app.include_router(realtime_router)
    app.include_router(metrics_router)
    return app


app = create_app()
