import json
import logging

import pytest
from starlette.websockets import WebSocketState

from pos.app.realtime import BroadcastHub
from pos.app.repos import MemoryStorage
from pos.app.services import OrderLifecycle

pytestmark = pytest.mark.anyio

CHIPS = {"menuItemId": 1, "name": "Chips", "price": 250, "quantity": 2}


@pytest.fixture
def hub():
    return BroadcastHub()


@pytest.fixture
def orders(hub):
    return OrderLifecycle(MemoryStorage(), hub)


async def test_connections_start_as_order_taking(hub, fake_socket_factory):
    client = hub.connect(fake_socket_factory())
    assert client.is_kitchen is False
    assert hub.kitchen_clients == ()
    assert hub.clients == (client,)


async def test_kitchen_register_sends_one_snapshot(hub, orders, fake_socket_factory):
    served = await orders.submit_order([CHIPS])
    await orders.update_status(served["id"], "served")
    ready = await orders.submit_order([CHIPS])
    await orders.update_status(ready["id"], "ready")
    fresh = await orders.submit_order([CHIPS])

    socket = fake_socket_factory()
    client = hub.connect(socket)
    await hub.register(client, True, orders)

    snapshots = socket.of_type("active_orders")
    assert len(snapshots) == 1
    assert socket.sent == snapshots
    assert [o["id"] for o in snapshots[0]["orders"]] == [fresh["id"], ready["id"]]
    assert {o["status"] for o in snapshots[0]["orders"]} <= {"new", "preparing", "ready"}


async def test_order_taking_register_gets_no_snapshot(hub, orders, fake_socket_factory):
    socket = fake_socket_factory()
    await hub.register(hub.connect(socket), False, orders)
    assert socket.sent == []


async def test_new_order_only_to_kitchen(hub, orders, fake_socket_factory):
    kitchen_socket, till_socket = fake_socket_factory(), fake_socket_factory()
    await hub.register(hub.connect(kitchen_socket), True, orders)
    hub.connect(till_socket)

    await hub.notify_kitchen({"id": 1})

    assert kitchen_socket.of_type("new_order") == [{"type": "new_order", "order": {"id": 1}}]
    assert till_socket.sent == []


async def test_order_update_to_everyone(hub, orders, fake_socket_factory):
    sockets = [fake_socket_factory() for _ in range(3)]
    clients = [hub.connect(s) for s in sockets]
    await hub.register(clients[0], True, orders)

    await hub.broadcast_order_update({"id": 9, "status": "ready"})

    for socket in sockets:
        assert socket.of_type("order_update") == [
            {"type": "order_update", "order": {"id": 9, "status": "ready"}}
        ]


async def test_closed_sockets_are_skipped(hub, fake_socket_factory):
    open_socket = fake_socket_factory()
    closed = fake_socket_factory(state=WebSocketState.DISCONNECTED)
    hub.connect(open_socket)
    hub.connect(closed)

    await hub.broadcast_order_update({"id": 1})

    assert len(open_socket.sent) == 1
    assert closed.sent == []


async def test_send_failure_is_dropped(hub, fake_socket_factory, caplog):
    broken = fake_socket_factory(fail=True)
    healthy = fake_socket_factory()
    hub.connect(broken)
    hub.connect(healthy)

    with caplog.at_level(logging.WARNING, logger="pos.realtime"):
        await hub.broadcast_order_update({"id": 1})

    assert healthy.of_type("order_update")
    assert any("dropping order_update" in m for m in caplog.messages)


async def test_disconnect_removes_client(hub, fake_socket_factory):
    socket = fake_socket_factory()
    client = hub.connect(socket)
    hub.disconnect(client)
    hub.disconnect(client)
    await hub.broadcast_order_update({"id": 1})
    assert hub.clients == ()
    assert socket.sent == []


async def test_handle_register_message(hub, orders, fake_socket_factory):
    socket = fake_socket_factory()
    client = hub.connect(socket)
    await hub.handle_message(client, json.dumps({"type": "register", "isKitchen": True}), orders)
    assert client.is_kitchen
    assert len(socket.of_type("active_orders")) == 1


async def test_handle_update_status_message(hub, orders, fake_socket_factory):
    order = await orders.submit_order([CHIPS])
    socket = fake_socket_factory()
    client = hub.connect(socket)

    await hub.handle_message(
        client,
        {"type": "update_status", "orderId": order["id"], "status": "preparing"},
        orders,
    )

    updates = socket.of_type("order_update")
    assert updates[0]["order"]["status"] == "preparing"
    assert (await orders.get_full_order(order["id"]))["status"] == "preparing"


@pytest.mark.parametrize(
    "raw",
    [
        "not json",
        "[1, 2]",
        json.dumps({"type": "dance"}),
        json.dumps({"type": "update_status", "orderId": "seven", "status": "ready"}),
        json.dumps({"type": "update_status", "orderId": 999, "status": "ready"}),
        json.dumps({"type": "update_status", "orderId": 1, "status": "eaten"}),
    ],
)
async def test_bad_messages_are_ignored(hub, orders, fake_socket_factory, raw):
    order = await orders.submit_order([CHIPS])
    socket = fake_socket_factory()
    client = hub.connect(socket)

    await hub.handle_message(client, raw, orders)

    assert socket.sent == []
    assert (await orders.get_full_order(order["id"]))["status"] == "new"
    assert hub.clients == (client,)


async def test_update_status_accepts_digit_string_id(hub, orders, fake_socket_factory):
    order = await orders.submit_order([CHIPS])
    socket = fake_socket_factory()
    client = hub.connect(socket)

    await hub.handle_message(
        client,
        json.dumps({"type": "update_status", "orderId": str(order["id"]), "status": "ready"}),
        orders,
    )

    assert socket.of_type("order_update")[0]["order"]["status"] == "ready"


async def test_bytes_message_is_decoded(hub, orders, fake_socket_factory):
    socket = fake_socket_factory()
    client = hub.connect(socket)
    await hub.handle_message(client, b'{"type": "register", "isKitchen": true}', orders)
    assert len(socket.of_type("active_orders")) == 1


async def test_storage_failure_is_logged_not_raised(
    hub, orders, fake_socket_factory, monkeypatch, caplog
):
    async def db_down(*args, **kwargs):
        raise RuntimeError("db down")

    monkeypatch.setattr(orders.storage, "list_orders_by_status", db_down)
    monkeypatch.setattr(orders.storage, "get_order", db_down)
    socket = fake_socket_factory()
    client = hub.connect(socket)

    with caplog.at_level(logging.ERROR, logger="pos.realtime"):
        await hub.handle_message(client, {"type": "register", "isKitchen": True}, orders)
        await hub.handle_message(
            client, {"type": "update_status", "orderId": 1, "status": "ready"}, orders
        )

    assert socket.sent == []
    assert hub.clients == (client,)
    failures = [r for r in caplog.records if r.name == "pos.realtime" and r.exc_info]
    assert len(failures) == 2
