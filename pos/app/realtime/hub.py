"""Connection registry and best-effort event fan-out.

Clients connect untyped and are treated as order-taking until they send
``{"type": "register", "isKitchen": true}``. Outbound messages:

- ``new_order``: ``{"type", "order"}`` to kitchen clients only
- ``order_update``: ``{"type", "order"}`` to every client
- ``active_orders``: ``{"type", "orders"}`` to a kitchen client on register

Inbound ``update_status`` messages (``orderId``, ``status``) are delegated to
:class:`~pos.app.services.OrderLifecycle`; ``orderId`` may be an integer or a
string of digits. A message that fails, for any reason, is logged and the
connection stays open. Nothing is queued or replayed; a socket that is not
open is skipped and a failed send is logged and dropped.
The registry is only touched from the event loop thread.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Iterable

from starlette.websockets import WebSocket, WebSocketState

from ..domain import OrderError
from ..routes_metrics import ws_connections, ws_messages_total, ws_send_failures_total

if TYPE_CHECKING:  # pragma: no cover
    from ..services import OrderLifecycle

logger = logging.getLogger("pos.realtime")


def _role(is_kitchen: bool) -> str:
    return "kitchen" if is_kitchen else "order"


def _is_open(socket: WebSocket) -> bool:
    return (
        socket.application_state == WebSocketState.CONNECTED
        and socket.client_state == WebSocketState.CONNECTED
    )


def _order_id(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isdecimal():
        return int(value)
    return None


@dataclass(eq=False)
class Client:
    """A registered socket and its declared role."""

    socket: WebSocket
    is_kitchen: bool = False


class BroadcastHub:
    """Registry of live connections with per-role fan-out."""

    def __init__(self) -> None:
        self._clients: list[Client] = []

    @property
    def clients(self) -> tuple[Client, ...]:
        return tuple(self._clients)

    @property
    def kitchen_clients(self) -> tuple[Client, ...]:
        return tuple(c for c in self._clients if c.is_kitchen)

    # Registry

    def connect(self, socket: WebSocket) -> Client:
        client = Client(socket)
        self._clients.append(client)
        ws_connections.labels(role=_role(False)).inc()
        logger.info("client connected (%d open)", len(self._clients))
        return client

    def disconnect(self, client: Client) -> None:
        if client not in self._clients:
            return
        self._clients.remove(client)
        ws_connections.labels(role=_role(client.is_kitchen)).dec()
        logger.info("client disconnected (%d open)", len(self._clients))

    async def register(
        self, client: Client, is_kitchen: bool, orders: "OrderLifecycle"
    ) -> None:
        """Record the client's role; kitchens get the active-order snapshot."""

        if client in self._clients and client.is_kitchen != is_kitchen:
            ws_connections.labels(role=_role(client.is_kitchen)).dec()
            ws_connections.labels(role=_role(is_kitchen)).inc()
        client.is_kitchen = is_kitchen
        logger.info("client registered as %s", _role(is_kitchen))
        if is_kitchen:
            await self.send_snapshot(client, orders)

    # Fan-out

    async def send_snapshot(self, client: Client, orders: "OrderLifecycle") -> None:
        active = await orders.get_active_orders()
        await self._send(client, {"type": "active_orders", "orders": active})

    async def notify_kitchen(self, order: dict) -> None:
        await self._fanout(self.kitchen_clients, {"type": "new_order", "order": order})

    async def broadcast_order_update(self, order: dict) -> None:
        await self._fanout(self.clients, {"type": "order_update", "order": order})

    async def _fanout(self, targets: Iterable[Client], message: dict) -> None:
        await asyncio.gather(*(self._send(client, message) for client in targets))

    async def _send(self, client: Client, message: dict) -> bool:
        if not _is_open(client.socket):
            return False
        try:
            await client.socket.send_json(message)
        except Exception as exc:
            ws_send_failures_total.inc()
            logger.warning("dropping %s message: %s", message.get("type"), exc)
            return False
        ws_messages_total.labels(type=message["type"]).inc()
        return True

    # Inbound

    async def handle_message(
        self, client: Client, raw: Any, orders: "OrderLifecycle"
    ) -> None:
        """Dispatch one inbound message; bad input is logged and ignored."""

        data = raw
        if isinstance(raw, (str, bytes)):
            try:
                data = json.loads(raw)
            except ValueError:
                logger.warning("ignoring malformed message")
                return
        if not isinstance(data, dict):
            logger.warning("ignoring non-object message")
            return

        kind = data.get("type")
        try:
            await self._dispatch(client, kind, data, orders)
        except OrderError as exc:
            logger.warning("%s message rejected: %s", kind, exc)
        except Exception:
            logger.exception("failed to handle %r message", kind)

    async def _dispatch(
        self, client: Client, kind: Any, data: dict, orders: "OrderLifecycle"
    ) -> None:
        if kind == "register":
            await self.register(client, bool(data.get("isKitchen")), orders)
        elif kind == "update_status":
            order_id = _order_id(data.get("orderId"))
            if order_id is None:
                logger.warning("ignoring update_status without integer orderId")
                return
            await orders.update_status(order_id, data.get("status"))
        else:
            logger.warning("ignoring message of type %r", kind)
