"""Checkout and order management over HTTP."""
import asyncio
from decimal import Decimal

from core.domain.entities import ProductVariant
from core.domain.value_objects import Money


def test_cash_checkout(client, place_order, customer_headers):
    body = place_order("cash", quantity=2)

    order = body["order"]
    assert body["paymentUrl"] is None
    assert order["status"] == "pending"
    assert order["orderNumber"].startswith("ORD-")
    assert Decimal(order["netAmount"]) == Decimal("360.00")
    assert order["userId"] == "user-1"

    cart = client.get("/api/v1/cart", headers=customer_headers).json()
    assert cart["items"] == []

    mine = client.get("/api/v1/orders/my", headers=customer_headers).json()
    assert mine["total"] == 1
    assert mine["orders"][0]["id"] == order["id"]


def test_card_checkout_returns_payment_url(place_order):
    body = place_order("card")

    assert body["order"]["status"] == "waiting_for_payment"
    assert body["order"]["paymentId"]
    assert body["paymentUrl"] == f"https://pay.example.test/confirm/{body['order']['paymentId']}"


def test_checkout_requires_token(client, checkout_payload):
    response = client.post("/api/v1/orders", json=checkout_payload())

    assert response.status_code == 401
    assert response.json()["code"] == "UNAUTHORIZED"


def test_checkout_with_bad_token(client, checkout_payload):
    response = client.post(
        "/api/v1/orders", json=checkout_payload(), headers={"Authorization": "Bearer nope"},
    )

    assert response.status_code == 401


def test_checkout_empty_cart(client, customer_headers, checkout_payload):
    response = client.post("/api/v1/orders", json=checkout_payload(), headers=customer_headers)

    assert response.status_code == 400
    assert response.json()["code"] == "EMPTY_CART"


def test_checkout_payload_validation(client, customer_headers):
    response = client.post(
        "/api/v1/orders",
        json={"deliveryType": "teleport", "paymentMethod": "cash"},
        headers=customer_headers,
    )

    body = response.json()
    assert response.status_code == 400
    assert body["code"] == "VALIDATION_ERROR"
    assert {error["field"] for error in body["errors"]} >= {"deliveryType", "deliveryInfo"}


def test_courier_needs_address(client, customer_headers, checkout_payload):
    client.post("/api/v1/cart/items", json={"productId": "mug", "article": 101}, headers=customer_headers)

    response = client.post("/api/v1/orders", json=checkout_payload(address=""), headers=customer_headers)

    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_stock_sold_out_before_checkout(client, container, customer_headers, checkout_payload):
    client.post(
        "/api/v1/cart/items", json={"productId": "tshirt", "article": 201, "quantity": 2}, headers=customer_headers,
    )

    async def sell_out():
        product = await container.products.get("tshirt")
        product.variants[0] = ProductVariant(article=201, price=Money(Decimal("1000.00")), stock=1)
        await container.products.save(product)

    asyncio.run(sell_out())

    response = client.post("/api/v1/orders", json=checkout_payload(), headers=customer_headers)

    assert response.status_code == 409
    assert response.json()["code"] == "INSUFFICIENT_STOCK"
    assert client.get("/api/v1/orders/my", headers=customer_headers).json()["total"] == 0
    assert len(client.get("/api/v1/cart", headers=customer_headers).json()["items"]) == 1


def test_order_visibility(client, place_order, customer_headers, other_headers, admin_headers):
    order_id = place_order()["order"]["id"]

    assert client.get(f"/api/v1/orders/{order_id}", headers=customer_headers).status_code == 200
    assert client.get(f"/api/v1/orders/{order_id}", headers=admin_headers).status_code == 200

    response = client.get(f"/api/v1/orders/{order_id}", headers=other_headers)
    assert response.status_code == 403
    assert response.json()["code"] == "FORBIDDEN"

    response = client.get("/api/v1/orders/missing", headers=customer_headers)
    assert response.status_code == 404
    assert response.json()["code"] == "ORDER_NOT_FOUND"


def test_admin_endpoints_reject_customers(client, place_order, customer_headers):
    order_id = place_order()["order"]["id"]

    assert client.get("/api/v1/orders", headers=customer_headers).status_code == 403
    response = client.patch(
        f"/api/v1/orders/{order_id}/status", json={"status": "processing"}, headers=customer_headers,
    )
    assert response.status_code == 403


def test_admin_status_walk(client, place_order, admin_headers):
    order_id = place_order()["order"]["id"]
    url = f"/api/v1/orders/{order_id}/status"

    assert client.patch(url, json={"status": "processing"}, headers=admin_headers).json()["status"] == "processing"
    confirmed = client.patch(
        url, json={"status": "confirmed", "deliveryDate": "2026-11-01"}, headers=admin_headers,
    ).json()
    assert confirmed["estimatedDeliveryDate"] == "2026-11-01"

    shipped = client.patch(url, json={"status": "shipped"}, headers=admin_headers).json()
    assert shipped["trackingNumber"]

    response = client.patch(url, json={"status": "pending"}, headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["code"] == "INVALID_STATUS_TRANSITION"


def test_admin_cancel_with_reason(client, place_order, admin_headers):
    order_id = place_order()["order"]["id"]
    url = f"/api/v1/orders/{order_id}/status"

    cancelled = client.patch(
        url, json={"status": "cancelled", "cancellationReason": "Нет в наличии"}, headers=admin_headers,
    ).json()
    again = client.patch(url, json={"status": "cancelled"}, headers=admin_headers)

    assert cancelled["status"] == "cancelled"
    assert cancelled["cancelledAt"]
    assert again.status_code == 200
    assert again.json()["cancellationReason"] == "Нет в наличии"


def test_admin_listing_and_reconcile(client, place_order, admin_headers, other_headers):
    place_order()
    place_order(headers=other_headers)

    listing = client.get("/api/v1/orders", params={"limit": 1}, headers=admin_headers).json()
    assert len(listing["orders"]) == 1
    assert listing["total"] == 2
    assert listing["limit"] == 1

    report = client.post("/api/v1/orders/reconcile", headers=admin_headers).json()
    assert report == {"checked": 0, "repaired": [], "stillPending": []}


def test_checkout_accepts_camel_and_snake_case(client, customer_headers):
    client.post("/api/v1/cart/items", json={"productId": "mug", "article": 101, "quantity": 2}, headers=customer_headers)
    camel = client.post(
        "/api/v1/orders",
        json={
            "deliveryType": "courier",
            "paymentMethod": "cash",
            "deliveryInfo": {
                "phone": "+7 (900) 123-45-67",
                "city": "Москва",
                "address": "ул. Тверская, 1",
                "recipientName": "Иван Иванов",
            },
        },
        headers=customer_headers,
    )
    assert camel.status_code == 201, camel.text
    body = camel.json()
    assert body["order"]["deliveryInfo"]["recipientName"] == "Иван Иванов"
    assert body["order"]["totalProducts"] == 2

    client.post("/api/v1/cart/items", json={"product_id": "mug", "article": 101}, headers=customer_headers)
    snake = client.post(
        "/api/v1/orders",
        json={
            "delivery_type": "pickup",
            "payment_method": "payinshop",
            "delivery_info": {"phone": "+7 (900) 123-45-67"},
        },
        headers=customer_headers,
    )
    assert snake.status_code == 201, snake.text
    assert snake.json()["order"]["deliveryType"] == "pickup"
