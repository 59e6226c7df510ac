"""WebSocket endpoint bridging clients to the broadcast hub."""

from __future__ import annotations

import logging

from fastapi import APIRouter, WebSocket

router = APIRouter()
logger = logging.getLogger("pos.realtime")


@router.websocket("/ws")
async def order_ws(websocket: WebSocket) -> None:
    """Relay inbound frames to the hub until the client disconnects.

    Text and binary frames are both accepted; the hub decodes either.
    """

    hub = websocket.app.state.hub
    orders = websocket.app.state.orders
    client = hub.connect(websocket)
    try:
        await websocket.accept()
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes")
            await hub.handle_message(client, raw, orders)
    finally:
        hub.disconnect(client)
