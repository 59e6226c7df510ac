"""Order lifecycle: validation, numbering, persistence and notifications.

Orders move ``new -> preparing -> ready -> served`` with ``completed`` and
``cancelled`` as side states. By default any status may follow any other;
with ``strict_transitions`` the table in :mod:`..domain.order_status` is
enforced.
"""

from __future__ import annotations

import logging
import random
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any, Callable, Iterable, List

from pydantic import TypeAdapter, ValidationError

from ..domain import (
    ACTIVE_STATUSES,
    InvalidTransition,
    OrderNotFound,
    OrderNumberConflict,
    OrderStatus,
    OrderValidationError,
    can_transition,
)
from ..repos.storage import Storage
from ..repos.views import as_utc
from ..routes_metrics import (
    order_number_collisions_total,
    order_status_updates_total,
    orders_created_total,
)
from ..schemas import OrderLineIn

if TYPE_CHECKING:  # pragma: no cover
    from ..realtime import BroadcastHub

logger = logging.getLogger("pos.orders")

_lines_adapter = TypeAdapter(List[OrderLineIn])
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def generate_order_number(now: datetime, rng: random.Random) -> str:
    """Return the last five digits of the millisecond clock plus 0-999."""

    millis = (as_utc(now) - _EPOCH) // timedelta(milliseconds=1)
    return f"{str(millis)[-5:]}{rng.randint(0, 999)}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _validate_lines(items: Any) -> list[OrderLineIn]:
    if not isinstance(items, list):
        raise OrderValidationError("items must be a list", field="items")
    if not items:
        raise OrderValidationError("order must contain at least one item", field="items")
    try:
        return _lines_adapter.validate_python(items)
    except ValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in ("items", *first["loc"]))
        raise OrderValidationError(first["msg"], field=field) from exc


def _line_row(line: OrderLineIn) -> dict:
    customizations = None
    if line.customizations is not None:
        customizations = line.customizations.model_dump(by_alias=True, exclude_none=True)
    return {
        "menu_item_id": line.menu_item_id,
        "name": line.name,
        "price": line.price,
        "quantity": line.quantity,
        "notes": line.notes,
        "customizations": customizations,
    }


def _parse_status(status: Any) -> OrderStatus:
    try:
        return OrderStatus(status)
    except ValueError:
        raise OrderValidationError(
            f"invalid status {status!r}", field="status"
        ) from None


class OrderLifecycle:
    """Create orders, change their status and notify connected clients."""

    def __init__(
        self,
        storage: Storage,
        hub: "BroadcastHub | None" = None,
        *,
        strict_transitions: bool = False,
        number_retries: int = 3,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.storage = storage
        self.hub = hub
        self.strict_transitions = strict_transitions
        self.number_retries = max(1, number_retries)
        self._rng = rng or random.Random()
        self._clock = clock

    async def submit_order(self, items: Any) -> dict:
        """Validate ``items``, persist the order and alert the kitchen.

        Raises :class:`OrderValidationError` for malformed input. A repeated
        order number is retried with a fresh one; when every attempt
        collides the last :class:`OrderNumberConflict` propagates.
        """

        lines = _validate_lines(items)
        rows = [_line_row(line) for line in lines]
        total = sum(line.price * line.quantity for line in lines)

        attempt = 0
        while True:
            attempt += 1
            now = self._clock()
            number = generate_order_number(now, self._rng)
            try:
                order = await self.storage.create_order(
                    {
                        "order_number": number,
                        "status": OrderStatus.NEW.value,
                        "total_amount": total,
                        "created_at": now,
                    },
                    rows,
                )
                break
            except OrderNumberConflict:
                order_number_collisions_total.inc()
                logger.warning("order number %s taken (attempt %d)", number, attempt)
                if attempt >= self.number_retries:
                    raise

        orders_created_total.inc()
        logger.info(
            "order %s created: %d items, total %d",
            order["orderNumber"],
            len(rows),
            total,
        )
        if self.hub is not None:
            await self.hub.notify_kitchen(order)
        return order

    async def update_status(self, order_id: int, status: Any) -> dict:
        """Write ``status`` for ``order_id`` and broadcast the updated order."""

        new_status = _parse_status(status)
        current = await self.storage.get_order(order_id)
        if current is None:
            raise OrderNotFound(order_id)
        if self.strict_transitions and not can_transition(
            OrderStatus(current["status"]), new_status
        ):
            raise InvalidTransition(current["status"], new_status.value)

        if await self.storage.update_order_status(order_id, new_status.value) is None:
            raise OrderNotFound(order_id)
        order = await self.storage.get_full_order(order_id)
        if order is None:  # pragma: no cover - deleted concurrently
            raise OrderNotFound(order_id)

        order_status_updates_total.labels(status=new_status.value).inc()
        logger.info(
            "order %s: %s -> %s", order["orderNumber"], current["status"], new_status.value
        )
        if self.hub is not None:
            await self.hub.broadcast_order_update(order)
        return order

    async def get_active_orders(self) -> list[dict]:
        """Return orders in ``new``, ``preparing`` or ``ready``, newest first."""

        return await self.storage.list_orders_by_status(
            status.value for status in ACTIVE_STATUSES
        )

    async def get_full_order(self, order_id: int) -> dict:
        order = await self.storage.get_full_order(order_id)
        if order is None:
            raise OrderNotFound(order_id)
        return order

    async def list_orders(self, statuses: Iterable[str] | None = None) -> list[dict]:
        """Return all orders, or only those in ``statuses``."""

        if statuses is None:
            return await self.storage.list_all_orders()
        return await self.storage.list_orders_by_status(
            _parse_status(status).value for status in statuses
        )
