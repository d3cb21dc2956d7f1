import re
import uuid

from app.models import Notification


def _create(client, payload, **overrides):
    return client.post("/api/orders", json={**payload, **overrides})


def _error(response):
    body = response.json()
    assert body["success"] is False
    return body["error"]["code"]


def test_create_order(client, order_payload):
    response = _create(client, order_payload)

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    order = body["order"]
    assert re.fullmatch(r"ORD-\d+-[0-9a-z]{9}", order["orderNumber"])
    assert order["status"] == "pending"
    assert order["estimatedTime"] == "30-45 minutes"
    assert order["total"] == 50.0


def test_create_order_missing_fields(client):
    response = client.post("/api/orders", json={"customerName": "Huda"})

    assert response.status_code == 400
    assert _error(response) == "VALIDATION_ERROR"
    assert "customer phone" in response.json()["error"]["details"]["missing"]


def test_create_order_unknown_restaurant(client, order_payload):
    response = _create(client, order_payload, restaurantId=str(uuid.uuid4()))
    assert response.status_code == 400
    assert response.json()["message"] == "restaurant not found"


def test_create_order_notifies_restaurant_drivers_and_admin(client, db, order_payload, restaurant):
    order_id = _create(client, order_payload).json()["order"]["id"]

    notifications = db.query(Notification).filter(Notification.order_id == order_id).all()
    assert sorted((n.recipient_type.value, n.recipient_id) for n in notifications) == [
        ("admin", None),
        ("driver", None),
        ("restaurant", restaurant.id),
    ]


def test_get_order(client, order_payload):
    order_id = _create(client, order_payload).json()["order"]["id"]

    response = client.get(f"/api/orders/{order_id}")

    assert response.status_code == 200
    order = response.json()
    assert order["customerName"] == "Huda Saleh"
    assert order["customerPhone"] == "0501234567"
    assert order["items"][0]["name"] == "Shawarma plate"
    assert order["driverEarnings"] == 8.0
    assert order["driverId"] is None


def test_get_unknown_order(client):
    response = client.get(f"/api/orders/{uuid.uuid4()}")
    assert response.status_code == 404
    assert _error(response) == "NOT_FOUND"


def test_full_delivery_flow(client, db, order_payload, make_driver):
    driver_a = make_driver(name="Omar Haddad")
    driver_b = make_driver(name="Sami Khalil")
    order_id = _create(client, order_payload).json()["order"]["id"]

    response = client.put(f"/api/orders/{order_id}", json={"status": "confirmed", "updatedByType": "restaurant"})
    assert response.status_code == 200
    assert response.json()["order"]["status"] == "confirmed"

    available = client.get("/api/orders", params={"available": "true"}).json()
    assert [o["id"] for o in available] == [order_id]

    response = client.put(f"/api/orders/{order_id}/assign-driver", json={"driverId": driver_a.id})
    assert response.status_code == 200
    assert response.json()["order"]["driverId"] == driver_a.id
    assert response.json()["order"]["status"] == "preparing"

    response = client.put(f"/api/orders/{order_id}/assign-driver", json={"driverId": driver_b.id})
    assert response.status_code == 409
    assert _error(response) == "CONFLICT"

    assert client.get("/api/orders", params={"available": "true"}).json() == []
    assert [o["id"] for o in client.get("/api/orders", params={"driverId": driver_a.id}).json()] == [order_id]

    for status in ("ready", "picked_up", "on_way", "delivered"):
        response = client.put(
            f"/api/orders/{order_id}",
            json={"status": status, "updatedBy": driver_a.id, "updatedByType": "driver"}
        )
        assert response.status_code == 200

    tracking = client.get(f"/api/orders/{order_id}/tracking").json()
    assert [t["status"] for t in tracking] == [
        "pending", "confirmed", "preparing", "ready", "picked_up", "on_way", "delivered"
    ]
    assert tracking[2]["message"] == "order accepted by driver Omar Haddad"

    assert client.get(f"/api/drivers/{driver_a.id}").json()["data"]["isAvailable"] is True

    stats = client.get(f"/api/drivers/{driver_a.id}/stats").json()
    assert stats["completedOrders"] == 1
    assert stats["totalEarnings"] == 8.0

    taken = db.query(Notification).filter(
        Notification.order_id == order_id,
        Notification.type == "order_taken"
    ).all()
    assert [n.recipient_id for n in taken] == [driver_b.id]


def test_illegal_transition(client, order_payload):
    order_id = _create(client, order_payload).json()["order"]["id"]

    response = client.put(f"/api/orders/{order_id}", json={"status": "delivered"})

    assert response.status_code == 400
    assert _error(response) == "VALIDATION_ERROR"
    assert client.get(f"/api/orders/{order_id}").json()["status"] == "pending"


def test_status_update_requires_status(client, order_payload):
    order_id = _create(client, order_payload).json()["order"]["id"]
    response = client.put(f"/api/orders/{order_id}", json={})
    assert response.status_code == 400


def test_patch_status(client, order_payload):
    order_id = _create(client, order_payload).json()["order"]["id"]

    response = client.patch(f"/api/orders/{order_id}/status", json={"status": "confirmed"})

    assert response.status_code == 200
    assert response.json() == {"success": True, "status": "confirmed"}


def test_cancel_order(client, db, order_payload):
    order_id = _create(client, order_payload).json()["order"]["id"]

    response = client.patch(f"/api/orders/{order_id}/cancel", json={"reason": "customer changed mind"})

    assert response.status_code == 200
    assert response.json() == {"success": True, "status": "cancelled"}
    order = client.get(f"/api/orders/{order_id}").json()
    assert order["status"] == "cancelled"
    assert order["cancellationReason"] == "customer changed mind"

    tracking = client.get(f"/api/orders/{order_id}/tracking").json()
    assert tracking[-1]["message"] == "customer changed mind"

    cancelled = db.query(Notification).filter(
        Notification.order_id == order_id,
        Notification.type == "order_cancelled"
    ).count()
    assert cancelled == 1


def test_cancel_without_body(client, order_payload):
    order_id = _create(client, order_payload).json()["order"]["id"]
    response = client.patch(f"/api/orders/{order_id}/cancel")
    assert response.status_code == 200


def test_cancel_twice_writes_nothing_new(client, db, order_payload):
    order_id = _create(client, order_payload).json()["order"]["id"]
    client.patch(f"/api/orders/{order_id}/cancel", json={"reason": "first"})

    response = client.patch(f"/api/orders/{order_id}/cancel", json={"reason": "second"})

    assert response.status_code == 200
    assert len(client.get(f"/api/orders/{order_id}/tracking").json()) == 2
    cancelled = db.query(Notification).filter(
        Notification.order_id == order_id,
        Notification.type == "order_cancelled"
    ).count()
    assert cancelled == 1


def test_cancelled_order_rejects_updates(client, order_payload):
    order_id = _create(client, order_payload).json()["order"]["id"]
    client.patch(f"/api/orders/{order_id}/cancel", json={})

    response = client.put(f"/api/orders/{order_id}", json={"status": "confirmed"})
    assert response.status_code == 400


def test_assign_missing_driver_id(client, order_payload):
    order_id = _create(client, order_payload).json()["order"]["id"]
    response = client.put(f"/api/orders/{order_id}/assign-driver", json={})
    assert response.status_code == 400


def test_assign_unknown_driver(client, order_payload):
    order_id = _create(client, order_payload).json()["order"]["id"]
    response = client.put(f"/api/orders/{order_id}/assign-driver", json={"driverId": str(uuid.uuid4())})
    assert response.status_code == 404


def test_list_orders_by_status_and_restaurant(client, order_payload, restaurant):
    first = _create(client, order_payload).json()["order"]["id"]
    second = _create(client, order_payload).json()["order"]["id"]
    client.put(f"/api/orders/{second}", json={"status": "confirmed"})

    confirmed = client.get("/api/orders", params={"status": "confirmed"}).json()
    assert [o["id"] for o in confirmed] == [second]

    by_restaurant = client.get("/api/orders", params={"restaurantId": restaurant.id}).json()
    assert [o["id"] for o in by_restaurant] == [second, first]


def test_list_orders_invalid_status(client):
    response = client.get("/api/orders", params={"status": "teleported"})
    assert response.status_code == 400


def test_customer_orders(client, order_payload):
    order_id = _create(client, order_payload).json()["order"]["id"]
    _create(client, order_payload, customerPhone="0559999999")

    orders = client.get("/api/orders/customer/0501234567").json()
    assert [o["id"] for o in orders] == [order_id]


def test_tracking_unknown_order(client):
    response = client.get(f"/api/orders/{uuid.uuid4()}/tracking")
    assert response.status_code == 404
