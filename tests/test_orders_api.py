from fastapi.testclient import TestClient

from config import Settings
from pos.app.main import create_app

CHIPS = {"menuItemId": 1, "name": "Chips", "price": 250, "quantity": 2}


def _create(client, items=None):
    resp = client.post("/api/orders", json={"items": items or [CHIPS]})
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


def test_create_order(client):
    order = _create(client)
    assert order["totalAmount"] == 500
    assert order["status"] == "new"
    assert order["items"][0]["quantity"] == 2
    assert order["orderNumber"].isdigit()


def test_create_order_rejects_empty(client):
    resp = client.post("/api/orders", json={"items": []})
    assert resp.status_code == 400
    body = resp.json()
    assert body["ok"] is False
    assert body["error"]["code"] == 400
    assert client.get("/api/orders").json()["data"] == []


def test_create_order_names_bad_field(client):
    resp = client.post(
        "/api/orders", json={"items": [{**CHIPS, "quantity": "two"}]}
    )
    assert resp.status_code == 400
    fields = [d["field"] for d in resp.json()["error"]["details"]]
    assert "items.0.quantity" in fields


def test_create_order_rejects_non_json(client):
    resp = client.post(
        "/api/orders", content="nope", headers={"Content-Type": "application/json"}
    )
    assert resp.status_code == 400


def test_status_update_and_active_filter(client):
    served = _create(client)
    kept = _create(client)

    resp = client.patch(f"/api/orders/{served['id']}/status", json={"status": "served"})
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "served"
    assert resp.json()["data"]["items"]
    client.patch(f"/api/orders/{kept['id']}/status", json={"status": "preparing"})

    active = client.get("/api/orders/active").json()["data"]
    assert [o["id"] for o in active] == [kept["id"]]
    history = client.get("/api/orders").json()["data"]
    assert {o["id"] for o in history} == {served["id"], kept["id"]}
    assert client.get(f"/api/orders/{served['id']}").json()["data"]["status"] == "served"


def test_status_update_invalid_value(client):
    order = _create(client)
    resp = client.patch(f"/api/orders/{order['id']}/status", json={"status": "eaten"})
    assert resp.status_code == 400
    assert client.get(f"/api/orders/{order['id']}").json()["data"]["status"] == "new"


def test_status_update_unknown_order(client):
    resp = client.patch("/api/orders/9999/status", json={"status": "ready"})
    assert resp.status_code == 404
    assert resp.json()["ok"] is False


def test_get_unknown_order(client):
    assert client.get("/api/orders/9999").status_code == 404
    assert client.get("/api/orders/abc").status_code == 400


def test_popular_items(client):
    burger = {"menuItemId": 17, "name": "Zinger Burger", "price": 400, "quantity": 3}
    first = _create(client, [burger, {**CHIPS, "quantity": 1}])
    _create(client, [{**CHIPS, "quantity": 50}])
    client.patch(f"/api/orders/{first['id']}/status", json={"status": "served"})

    ranked = client.get("/api/popular-items").json()["data"]
    assert ranked == [
        {"itemName": "Zinger Burger", "totalOrdered": 3, "totalRevenue": 1200, "percentage": 75},
        {"itemName": "Chips", "totalOrdered": 1, "totalRevenue": 250, "percentage": 25},
    ]


def test_strict_transitions_map_to_400():
    app = create_app(
        Settings(
            storage_backend="memory",
            housekeeping_enabled=False,
            strict_transitions=True,
        )
    )
    with TestClient(app) as client:
        order = _create(client)
        resp = client.patch(f"/api/orders/{order['id']}/status", json={"status": "served"})
        assert resp.status_code == 400
        assert resp.json()["error"]["details"] == {"from": "new", "to": "served"}
