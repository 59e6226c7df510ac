import random
from datetime import datetime, timedelta, timezone

import pytest

from pos.app.domain import (
    InvalidTransition,
    OrderNotFound,
    OrderNumberConflict,
    OrderStatus,
    OrderValidationError,
)
from pos.app.realtime import BroadcastHub
from pos.app.services import OrderLifecycle, generate_order_number

pytestmark = pytest.mark.anyio

CHIPS = {"menuItemId": 1, "name": "Chips", "price": 250, "quantity": 2}


class ScriptedRandom(random.Random):
    """Returns the queued values from ``randint`` in order, repeating the last."""

    def __init__(self, *values):
        super().__init__(0)
        self.values = list(values)

    def randint(self, a, b):
        if len(self.values) > 1:
            return self.values.pop(0)
        return self.values[0]


def _fixed_clock():
    return datetime(2026, 3, 10, 12, 0, 0, 123000, tzinfo=timezone.utc)


async def test_submit_computes_total_and_starts_new(storage):
    orders = OrderLifecycle(storage)
    order = await orders.submit_order([CHIPS])
    assert order["totalAmount"] == 500
    assert order["status"] == "new"
    assert len(order["items"]) == 1
    assert order["items"][0]["quantity"] == 2
    assert order["items"][0]["name"] == "Chips"

    active = await orders.get_active_orders()
    assert [o["id"] for o in active] == [order["id"]]


async def test_total_is_sum_of_lines(storage):
    orders = OrderLifecycle(storage)
    lines = [
        {"menuItemId": 2, "name": "Zinger Burger", "price": 400, "quantity": 3},
        {"menuItemId": 3, "name": "Coke", "price": 0, "quantity": 1, "notes": "no ice"},
        CHIPS,
    ]
    order = await orders.submit_order(lines)
    assert order["totalAmount"] == 400 * 3 + 0 + 250 * 2
    assert len(order["items"]) == 3
    assert order["items"][1]["notes"] == "no ice"


async def test_empty_order_rejected(storage):
    orders = OrderLifecycle(storage)
    with pytest.raises(OrderValidationError) as exc:
        await orders.submit_order([])
    assert exc.value.field == "items"
    assert await orders.list_orders() == []


@pytest.mark.parametrize(
    "line, field",
    [
        ({**CHIPS, "quantity": 0}, "items.0.quantity"),
        ({**CHIPS, "price": -1}, "items.0.price"),
        ({**CHIPS, "price": "250"}, "items.0.price"),
        ({**CHIPS, "quantity": True}, "items.0.quantity"),
        ({**CHIPS, "name": ""}, "items.0.name"),
        ({k: v for k, v in CHIPS.items() if k != "menuItemId"}, "items.0.menuItemId"),
    ],
)
async def test_malformed_line_names_field(storage, line, field):
    orders = OrderLifecycle(storage)
    with pytest.raises(OrderValidationError) as exc:
        await orders.submit_order([line])
    assert exc.value.field == field
    assert await orders.list_orders() == []


async def test_customizations_stored_verbatim(storage):
    orders = OrderLifecycle(storage)
    line = {
        **CHIPS,
        "customizations": {"flavor": "Peri Peri", "isMeal": True, "toppings": ["cheese"]},
    }
    order = await orders.submit_order([line])
    assert order["items"][0]["customizations"] == {
        "flavor": "Peri Peri",
        "isMeal": True,
        "toppings": ["cheese"],
    }
    # the client-computed price is trusted as sent
    assert order["totalAmount"] == 500


async def test_served_orders_leave_active_list(storage):
    orders = OrderLifecycle(storage)
    first = await orders.submit_order([CHIPS])
    second = await orders.submit_order([CHIPS])

    await orders.update_status(first["id"], "served")
    await orders.update_status(second["id"], "preparing")

    active = await orders.get_active_orders()
    assert [o["id"] for o in active] == [second["id"]]
    assert active[0]["status"] == "preparing"
    assert (await orders.get_full_order(first["id"]))["status"] == "served"


async def test_update_unknown_order(storage):
    orders = OrderLifecycle(storage)
    order = await orders.submit_order([CHIPS])
    with pytest.raises(OrderNotFound):
        await orders.update_status(order["id"] + 100, "ready")
    assert (await orders.get_full_order(order["id"]))["status"] == "new"


async def test_update_rejects_unknown_status(storage):
    orders = OrderLifecycle(storage)
    order = await orders.submit_order([CHIPS])
    with pytest.raises(OrderValidationError) as exc:
        await orders.update_status(order["id"], "eaten")
    assert exc.value.field == "status"


async def test_permissive_transitions_by_default(storage):
    orders = OrderLifecycle(storage)
    order = await orders.submit_order([CHIPS])
    await orders.update_status(order["id"], "completed")
    updated = await orders.update_status(order["id"], "new")
    assert updated["status"] == "new"


async def test_strict_transitions(storage):
    orders = OrderLifecycle(storage, strict_transitions=True)
    order = await orders.submit_order([CHIPS])
    with pytest.raises(InvalidTransition):
        await orders.update_status(order["id"], OrderStatus.SERVED)
    assert (await orders.get_full_order(order["id"]))["status"] == "new"
    updated = await orders.update_status(order["id"], OrderStatus.PREPARING)
    assert updated["status"] == "preparing"


async def test_list_orders_newest_first(storage):
    orders = OrderLifecycle(storage)
    ids = [(await orders.submit_order([CHIPS]))["id"] for _ in range(3)]
    assert [o["id"] for o in await orders.list_orders()] == ids[::-1]
    await orders.update_status(ids[0], "cancelled")
    cancelled = await orders.list_orders(["cancelled"])
    assert [o["id"] for o in cancelled] == [ids[0]]


async def test_get_full_order_missing(storage):
    with pytest.raises(OrderNotFound):
        await OrderLifecycle(storage).get_full_order(12345)


def test_generate_order_number():
    now = datetime(1970, 1, 1, tzinfo=timezone.utc) + timedelta(
        milliseconds=1_700_000_012_345
    )
    number = generate_order_number(now, ScriptedRandom(42))
    assert number == "1234542"


async def test_collision_draws_new_number(storage):
    orders = OrderLifecycle(storage, rng=ScriptedRandom(5, 5, 6), clock=_fixed_clock)
    first = await orders.submit_order([CHIPS])
    second = await orders.submit_order([CHIPS])
    assert first["orderNumber"].endswith("5")
    assert second["orderNumber"].endswith("6")
    assert first["orderNumber"] != second["orderNumber"]


async def test_collision_retries_exhausted(storage):
    orders = OrderLifecycle(
        storage, number_retries=2, rng=ScriptedRandom(7), clock=_fixed_clock
    )
    await orders.submit_order([CHIPS])
    with pytest.raises(OrderNumberConflict):
        await orders.submit_order([CHIPS])
    assert len(await orders.list_orders()) == 1


async def test_events_reach_the_right_clients(storage, fake_socket_factory):
    hub = BroadcastHub()
    orders = OrderLifecycle(storage, hub)
    kitchen_socket = fake_socket_factory()
    till_socket = fake_socket_factory()
    kitchen = hub.connect(kitchen_socket)
    hub.connect(till_socket)
    await hub.register(kitchen, True, orders)

    order = await orders.submit_order([CHIPS])
    assert [m["order"]["id"] for m in kitchen_socket.of_type("new_order")] == [order["id"]]
    assert till_socket.of_type("new_order") == []

    await orders.update_status(order["id"], "ready")
    for socket in (kitchen_socket, till_socket):
        updates = socket.of_type("order_update")
        assert len(updates) == 1
        assert updates[0]["order"]["status"] == "ready"
        assert updates[0]["order"]["items"][0]["name"] == "Chips"
