"""Pytest configuration and fixtures for API integration tests."""
import pytest
from fastapi.testclient import TestClient

from api.dependencies import build_container
from api.main import create_app
from core.infrastructure.adapters.persistence.in_memory_repositories import InMemoryProductRepository
from core.settings.modules import (
    AppSettings,
    AuthSettings,
    CheckoutSettings,
    DatabaseSettings,
    EmailSettings,
    IntegrationsSettings,
    RedisSettings,
    TelegramSettings,
    YooKassaSettings,
)


TEST_TOKEN_SECRET = "integration-secret-0123456789abcdef"

COURIER_DELIVERY = {
    "phone": "+7 (900) 123-45-67",
    "city": "Москва",
    "address": "ул. Тверская, 1",
    "recipientName": "Иван Иванов",
}


@pytest.fixture
def app_settings() -> AppSettings:
    """Every adapter switched to its in-process variant."""
    return AppSettings(
        yookassa=YooKassaSettings(enabled=False, return_url="https://shop.example.test/orders"),
        auth=AuthSettings(access_token_secret=TEST_TOKEN_SECRET),
        database=DatabaseSettings(backend="memory"),
        redis=RedisSettings(enabled=False),
        checkout=CheckoutSettings(notification_delay_seconds=0),
        integrations=IntegrationsSettings(
            telegram=TelegramSettings(enabled=False),
            email=EmailSettings(enabled=False),
        ),
    )


@pytest.fixture
def container(app_settings, catalog):
    return build_container(app_settings, products=InMemoryProductRepository(catalog))


@pytest.fixture
def client(container):
    with TestClient(create_app(container)) as test_client:
        yield test_client


def _headers(container, identity):
    return {"Authorization": f"Bearer {container.identity_provider.issue_token(identity)}"}


@pytest.fixture
def customer_token(container, customer):
    return container.identity_provider.issue_token(customer)


@pytest.fixture
def customer_headers(customer_token):
    return {"Authorization": f"Bearer {customer_token}"}


@pytest.fixture
def other_headers(container, other_customer):
    return _headers(container, other_customer)


@pytest.fixture
def admin_token(container, admin):
    return container.identity_provider.issue_token(admin)


@pytest.fixture
def admin_headers(admin_token):
    return {"Authorization": f"Bearer {admin_token}"}


@pytest.fixture
def settle(client, container):
    """Wait until every background notification has been delivered."""

    def _settle():
        client.portal.call(container.scheduler.drain)

    return _settle


@pytest.fixture
def place_order(client, customer_headers, settle):
    """Fill the customer's cart and check out; returns the response JSON."""

    def _place(payment_method="cash", headers=None, product_id="mug", article=101, quantity=1):
        headers = headers or customer_headers
        response = client.post(
            "/api/v1/cart/items",
            json={"productId": product_id, "article": article, "quantity": quantity},
            headers=headers,
        )
        assert response.status_code == 200, response.text
        response = client.post(
            "/api/v1/orders",
            json={
                "deliveryType": "courier",
                "paymentMethod": payment_method,
                "deliveryInfo": COURIER_DELIVERY,
            },
            headers=headers,
        )
        assert response.status_code == 201, response.text
        settle()
        return response.json()

    return _place


@pytest.fixture
def checkout_payload():
    def _payload(payment_method="cash", delivery_type="courier", **delivery):
        return {
            "deliveryType": delivery_type,
            "paymentMethod": payment_method,
            "deliveryInfo": {**COURIER_DELIVERY, **delivery},
        }

    return _payload
