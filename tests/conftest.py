"""Shared fixtures: catalog, fakes and a fully wired order core."""
from decimal import Decimal
from typing import Any, Awaitable, Callable, Dict, List

import pytest

from core.application.dtos import CreateOrderRequest, DeliveryInfoDTO
from core.application.interfaces import IRealtimeHub, ITaskScheduler
from core.application.services import (
    CartService,
    InventoryService,
    NotificationFanout,
    OrderService,
    PaymentService,
    ReconciliationService,
)
from core.domain.entities import Product, ProductVariant
from core.domain.enums import DeliveryType, PaymentMethod, UserRole
from core.domain.value_objects import Money, UserIdentity
from core.infrastructure.adapters.notifications.mock_senders import MockEmailSender, MockMessenger
from core.infrastructure.adapters.payments.mock_gateway import MockPaymentGateway
from core.infrastructure.adapters.persistence.in_memory_repositories import (
    InMemoryCartRepository,
    InMemoryOrderRepository,
    InMemoryProductRepository,
)
from core.infrastructure.bus import LoggingReconciliationQueue


class RecordingScheduler(ITaskScheduler):
    """Captures detached tasks so tests decide when they run."""

    def __init__(self):
        self.scheduled: List[Dict[str, Any]] = []

    def schedule(self, task: Callable[[], Awaitable[None]], *, name: str, delay: float = 0.0) -> None:
        self.scheduled.append({"task": task, "name": name, "delay": delay})

    @property
    def names(self) -> List[str]:
        return [entry["name"] for entry in self.scheduled]

    async def run_all(self) -> None:
        pending, self.scheduled = self.scheduled, []
        for entry in pending:
            await entry["task"]()


class RecordingHub(IRealtimeHub):
    """Real-time hub that records every emit."""

    def __init__(self, online=()):
        self.online = set(online)
        self.user_events: List[tuple] = []
        self.room_events: List[tuple] = []

    async def emit_to_user(self, user_id: str, event: str, payload: Dict[str, Any]) -> bool:
        self.user_events.append((user_id, event, payload))
        return user_id in self.online

    async def emit_to_room(self, room: str, event: str, payload: Dict[str, Any]) -> int:
        self.room_events.append((room, event, payload))
        return 1

    def is_online(self, user_id: str) -> bool:
        return user_id in self.online

    def rooms(self) -> List[str]:
        return [room for room, _, _ in self.room_events]


def build_catalog() -> List[Product]:
    return [
        Product(
            id="mug",
            title="Кружка",
            variants=[
                ProductVariant(article=101, price=Money(Decimal("200.00")), discount_percent=Decimal("10"), stock=5),
                ProductVariant(article=102, price=Money(Decimal("250.00")), stock=0),
            ],
        ),
        Product(
            id="tshirt",
            title="Футболка",
            variants=[
                ProductVariant(article=201, price=Money(Decimal("1000.00")), stock=2),
            ],
        ),
    ]


def make_checkout_request(
    payment_method: PaymentMethod = PaymentMethod.CARD,
    delivery_type: DeliveryType = DeliveryType.COURIER,
    **delivery,
) -> CreateOrderRequest:
    info = {
        "phone": "+7 (900) 123-45-67",
        "city": "Москва",
        "address": "ул. Тверская, 1",
        "recipient_name": "Иван Иванов",
    }
    info.update(delivery)
    return CreateOrderRequest(
        delivery_type=delivery_type,
        payment_method=payment_method,
        delivery_info=DeliveryInfoDTO(**info),
    )


@pytest.fixture
def customer() -> UserIdentity:
    return UserIdentity(user_id="user-1", role=UserRole.USER, email="buyer@example.com", telegram_id=555)


@pytest.fixture
def other_customer() -> UserIdentity:
    return UserIdentity(user_id="user-2", role=UserRole.USER, email="other@example.com")


@pytest.fixture
def admin() -> UserIdentity:
    return UserIdentity(user_id="admin-1", role=UserRole.ADMIN, email="admin@example.com")


@pytest.fixture
def products() -> InMemoryProductRepository:
    return InMemoryProductRepository(build_catalog())


@pytest.fixture
def orders() -> InMemoryOrderRepository:
    return InMemoryOrderRepository()


@pytest.fixture
def carts() -> InMemoryCartRepository:
    return InMemoryCartRepository()


@pytest.fixture
def gateway() -> MockPaymentGateway:
    return MockPaymentGateway()


@pytest.fixture
def scheduler() -> RecordingScheduler:
    return RecordingScheduler()


@pytest.fixture
def hub() -> RecordingHub:
    return RecordingHub()


@pytest.fixture
def email_sender() -> MockEmailSender:
    return MockEmailSender()


@pytest.fixture
def messenger() -> MockMessenger:
    return MockMessenger()


@pytest.fixture
def reconciliation_queue() -> LoggingReconciliationQueue:
    return LoggingReconciliationQueue()


@pytest.fixture
def inventory(products) -> InventoryService:
    return InventoryService(products)


@pytest.fixture
def cart_service(carts, products) -> CartService:
    return CartService(carts, products)


@pytest.fixture
def payment_service(gateway) -> PaymentService:
    return PaymentService(gateway, return_url="https://shop.example.test/orders")


@pytest.fixture
def notifications(hub, email_sender, messenger) -> NotificationFanout:
    return NotificationFanout(hub, email_sender=email_sender, messenger=messenger)


@pytest.fixture
def order_service(
    orders, cart_service, inventory, payment_service, gateway,
    notifications, scheduler, reconciliation_queue,
) -> OrderService:
    return OrderService(
        orders=orders,
        cart_service=cart_service,
        inventory=inventory,
        payments=payment_service,
        gateway=gateway,
        notifications=notifications,
        scheduler=scheduler,
        reconciliation_queue=reconciliation_queue,
        notification_delay=1.0,
    )


@pytest.fixture
def reconciliation_service(orders, carts, inventory) -> ReconciliationService:
    return ReconciliationService(orders, carts, inventory)


@pytest.fixture
def catalog() -> List[Product]:
    return build_catalog()


@pytest.fixture
def checkout_request():
    """Factory for checkout payloads with a valid courier address."""
    return make_checkout_request
