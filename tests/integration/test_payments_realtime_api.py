"""Payment webhook, WebSocket pushes and support requests."""
import pytest
from starlette.websockets import WebSocketDisconnect


def _succeeded(payment_id):
    return {
        "type": "notification",
        "event": "payment.succeeded",
        "object": {"id": payment_id, "status": "succeeded", "paid": True},
    }


def test_webhook_confirms_payment_and_pushes_to_owner(client, container, place_order, customer_token):
    order = place_order("card")["order"]

    with client.websocket_connect(f"/ws?token={customer_token}") as ws:
        ws.send_json({"action": "ping"})
        assert ws.receive_json() == {"event": "pong"}

        container.gateway.mark_paid(order["paymentId"])
        response = client.post("/api/v1/payments/webhook", json=_succeeded(order["paymentId"]))
        assert response.status_code == 200
        assert response.json() == {"success": True}

        message = ws.receive_json()
        assert message["event"] == "order-updated"
        assert message["data"]["orderId"] == order["id"]
        assert message["data"]["status"] == "pending"
        assert message["data"]["paymentStatus"] is True


def test_webhook_is_acknowledged_even_for_unknown_payments(client):
    response = client.post("/api/v1/payments/webhook", json=_succeeded("unknown"))

    assert response.status_code == 200
    assert response.json() == {"success": True}


@pytest.mark.parametrize(
    "payload",
    [
        {"object": {}},
        {"event": "payment.succeeded", "object": None},
        ["payment.succeeded"],
    ],
    ids=["no-event", "null-object", "not-an-object"],
)
def test_malformed_webhook_is_still_acknowledged(client, container, payload):
    response = client.post("/api/v1/payments/webhook", json=payload)

    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert container.scheduler.pending == 0


def test_non_json_webhook_is_still_acknowledged(client):
    response = client.post(
        "/api/v1/payments/webhook", content=b"not json", headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 200
    assert response.json() == {"success": True}


def test_admin_sees_new_orders(client, place_order, admin_token):
    with client.websocket_connect(f"/ws?token={admin_token}") as ws:
        ws.send_json({"action": "ping"})
        ws.receive_json()

        order = place_order("cash")["order"]

        message = ws.receive_json()
        assert message["event"] == "order-update"
        assert message["data"]["orderId"] == order["id"]


def test_order_room_subscription(client, place_order, customer_token, other_headers, admin_headers):
    mine = place_order()["order"]
    theirs = place_order(headers=other_headers)["order"]

    with client.websocket_connect(f"/ws?token={customer_token}") as ws:
        ws.send_json({"action": "subscribe", "orderId": mine["id"]})
        assert ws.receive_json() == {"event": "subscribed", "room": f"order-{mine['id']}"}

        ws.send_json({"action": "subscribe", "orderId": theirs["id"]})
        assert ws.receive_json() == {"event": "error", "message": "access denied"}

        client.patch(
            f"/api/v1/orders/{mine['id']}/status", json={"status": "processing"}, headers=admin_headers,
        )
        events = {ws.receive_json()["event"] for _ in range(2)}
        assert events == {"order-updated", "order-details-updated"}


def test_websocket_commands(client, customer_token):
    with client.websocket_connect(f"/ws?token={customer_token}") as ws:
        ws.send_text("not json")
        assert ws.receive_json() == {"event": "error", "message": "invalid JSON"}

        ws.send_json(["subscribe"])
        assert ws.receive_json() == {"event": "error", "message": "expected an object"}

        ws.send_json({"action": "subscribe"})
        assert ws.receive_json() == {"event": "error", "message": "orderId is required"}


@pytest.mark.parametrize("query", ["", "?token=garbage"])
def test_websocket_rejects_bad_token(client, query):
    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect(f"/ws{query}"):
            pass
    assert exc_info.value.code == 1008


def test_payment_admin_endpoints(client, place_order, admin_headers, customer_headers):
    payment_id = place_order("card")["order"]["paymentId"]

    response = client.get(f"/api/v1/payments/{payment_id}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "pending"

    assert client.get(f"/api/v1/payments/{payment_id}", headers=customer_headers).status_code == 403

    cancelled = client.post(f"/api/v1/payments/{payment_id}/cancel", headers=admin_headers).json()
    assert cancelled["status"] == "canceled"

    response = client.get("/api/v1/payments/unknown", headers=admin_headers)
    assert response.status_code == 502
    assert response.json()["code"] == "GATEWAY_REJECTED"


def test_support_request_reaches_admins(client, admin_token):
    with client.websocket_connect(f"/ws?token={admin_token}") as ws:
        ws.send_json({"action": "ping"})
        ws.receive_json()

        response = client.post(
            "/api/v1/requests",
            json={"fullName": "Анна", "email": "anna@example.com", "question": "Когда доставка?"},
        )
        assert response.status_code == 201
        assert response.json() == {"success": True, "message": "Заявка принята"}

        message = ws.receive_json()
        assert message["event"] == "new-request"
        assert message["data"]["fullName"] == "Анна"


def test_support_request_validation(client):
    response = client.post(
        "/api/v1/requests", json={"fullName": "Анна", "email": "not-an-email", "question": "?"},
    )

    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "email"


def test_health(client):
    assert client.get("/health").json()["status"] == "healthy"

    ready = client.get("/health/ready").json()
    assert ready["checks"]["database"] == "memory"
    assert ready["checks"]["payments"] == "mock"
    assert ready["checks"]["reconciliation_queue"] == "log"
