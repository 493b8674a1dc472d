"""
FastAPI Dependencies.

Wires settings, adapters and services into one ServiceContainer per
application instance and exposes it to route handlers.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from fastapi import Request, WebSocket

# Load environment variables ONCE before any settings objects are created
_PROJECT_ROOT = Path(__file__).resolve().parents[1]
load_dotenv(dotenv_path=_PROJECT_ROOT / ".env")

from core.application.interfaces import (
    IEmailSender,
    IMessenger,
    IPaymentGateway,
    IReconciliationQueue,
    ITaskScheduler,
)
from core.application.services import (
    CartService,
    InventoryService,
    NotificationFanout,
    OrderService,
    PaymentService,
    ReconciliationService,
)
from core.domain.repositories import CartRepository, OrderRepository, ProductRepository
from core.infrastructure.adapters.notifications.mock_senders import MockEmailSender, MockMessenger
from core.infrastructure.adapters.payments.mock_gateway import MockPaymentGateway
from core.infrastructure.adapters.persistence.in_memory_repositories import (
    InMemoryCartRepository,
    InMemoryOrderRepository,
    InMemoryProductRepository,
)
from core.infrastructure.bus import LoggingReconciliationQueue
from core.infrastructure.realtime.connection_manager import ConnectionManager
from core.infrastructure.security import TokenIdentityProvider
from core.infrastructure.tasks.scheduler import BackgroundTaskScheduler
from core.settings import AppSettings, get_app_settings

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Every long-lived object of one application instance."""

    settings: AppSettings
    orders: OrderRepository
    carts: CartRepository
    products: ProductRepository
    gateway: IPaymentGateway
    scheduler: ITaskScheduler
    hub: ConnectionManager
    reconciliation_queue: IReconciliationQueue
    identity_provider: TokenIdentityProvider
    inventory: InventoryService
    cart_service: CartService
    payment_service: PaymentService
    notifications: NotificationFanout
    order_service: OrderService
    reconciliation_service: ReconciliationService
    engine: Optional[object] = None
    _closers: list = field(default_factory=list)
    _worker: Optional[asyncio.Task] = None

    async def startup(self) -> None:
        if self.engine is not None:
            from core.infrastructure.database.config import init_database
            await init_database(self.engine)

        if self.settings.redis.enabled:
            from core.infrastructure.bus import RedisStreamConsumer, start_reconciliation_worker

            consumer = RedisStreamConsumer(
                redis_url=self.settings.redis.url,
                stream_name=self.settings.redis.reconciliation_stream,
                consumer_group=self.settings.redis.reconciliation_group,
                consumer_name=self.settings.redis.consumer_name,
                retry_interval=self.settings.redis.retry_seconds,
            )
            self._worker = asyncio.create_task(
                start_reconciliation_worker(consumer, self.reconciliation_service),
                name="reconciliation-worker",
            )

    async def shutdown(self) -> None:
        if isinstance(self.scheduler, BackgroundTaskScheduler):
            await self.scheduler.drain()

        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None

        for close in self._closers:
            await close()

        if self.engine is not None:
            from core.infrastructure.database.config import close_database
            await close_database(self.engine)


def _build_repositories(settings: AppSettings):
    if settings.database.backend == "sql":
        from core.infrastructure.database.config import create_engine, create_session_factory
        from core.infrastructure.database.repositories.sqlalchemy_cart_repository import SQLAlchemyCartRepository
        from core.infrastructure.database.repositories.sqlalchemy_order_repository import SQLAlchemyOrderRepository
        from core.infrastructure.database.repositories.sqlalchemy_product_repository import (
            SQLAlchemyProductRepository,
        )

        engine = create_engine(settings.database)
        session_factory = create_session_factory(engine)
        logger.info("Using SQLAlchemy repositories")
        return (
            SQLAlchemyOrderRepository(session_factory),
            SQLAlchemyCartRepository(session_factory),
            SQLAlchemyProductRepository(session_factory),
            engine,
        )

    logger.info("Using in-memory repositories")
    return InMemoryOrderRepository(), InMemoryCartRepository(), InMemoryProductRepository(), None


def _build_gateway(settings: AppSettings) -> IPaymentGateway:
    if settings.yookassa.enabled:
        from core.infrastructure.adapters.payments.yookassa_gateway import YooKassaPaymentGateway
        logger.info("Created YooKassaPaymentGateway instance")
        return YooKassaPaymentGateway.from_settings(settings.yookassa)

    logger.info("Using MockPaymentGateway (YooKassa disabled)")
    return MockPaymentGateway()


def _build_email_sender(settings: AppSettings) -> IEmailSender:
    if settings.email.enabled:
        from core.infrastructure.adapters.notifications.smtp_email_sender import SMTPEmailSender
        logger.info("Created SMTPEmailSender instance")
        return SMTPEmailSender(settings.email)

    logger.info("Using MockEmailSender (email disabled)")
    return MockEmailSender()


def _build_messenger(settings: AppSettings) -> IMessenger:
    if settings.telegram.enabled:
        from core.infrastructure.adapters.notifications.telegram_notification_service import TelegramMessenger
        logger.info("Created TelegramMessenger instance")
        return TelegramMessenger(settings.telegram)

    logger.info("Using MockMessenger (notifications disabled)")
    return MockMessenger()


def _build_reconciliation_queue(settings: AppSettings) -> IReconciliationQueue:
    if settings.redis.enabled:
        from core.infrastructure.bus import RedisStreamPublisher
        logger.info("Created RedisStreamPublisher instance")
        return RedisStreamPublisher(redis_url=settings.redis.url, stream_name=settings.redis.reconciliation_stream)

    return LoggingReconciliationQueue()


def build_container(
    settings: Optional[AppSettings] = None,
    *,
    products: Optional[ProductRepository] = None,
    gateway: Optional[IPaymentGateway] = None,
    email_sender: Optional[IEmailSender] = None,
    messenger: Optional[IMessenger] = None,
    scheduler: Optional[ITaskScheduler] = None,
) -> ServiceContainer:
    """
    Build the service graph from settings.

    Keyword arguments replace the adapter that settings would select; tests
    use them to inject fakes.
    """
    settings = settings or get_app_settings()

    orders, carts, default_products, engine = _build_repositories(settings)
    products = products if products is not None else default_products
    gateway = gateway if gateway is not None else _build_gateway(settings)
    scheduler = scheduler if scheduler is not None else BackgroundTaskScheduler()
    hub = ConnectionManager()
    reconciliation_queue = _build_reconciliation_queue(settings)
    currency = settings.yookassa.currency

    inventory = InventoryService(products)
    cart_service = CartService(carts, products, currency=currency)
    payment_service = PaymentService(gateway, return_url=settings.yookassa.return_url)
    notifications = NotificationFanout(
        hub,
        email_sender=email_sender or _build_email_sender(settings),
        messenger=messenger or _build_messenger(settings),
    )
    order_service = OrderService(
        orders=orders,
        cart_service=cart_service,
        inventory=inventory,
        payments=payment_service,
        gateway=gateway,
        notifications=notifications,
        scheduler=scheduler,
        reconciliation_queue=reconciliation_queue,
        notification_delay=settings.checkout.notification_delay_seconds,
        verify_notifications=settings.yookassa.verify_notifications,
        currency=currency,
    )

    container = ServiceContainer(
        settings=settings,
        orders=orders,
        carts=carts,
        products=products,
        gateway=gateway,
        scheduler=scheduler,
        hub=hub,
        reconciliation_queue=reconciliation_queue,
        identity_provider=TokenIdentityProvider(settings.auth),
        inventory=inventory,
        cart_service=cart_service,
        payment_service=payment_service,
        notifications=notifications,
        order_service=order_service,
        reconciliation_service=ReconciliationService(orders, carts, inventory),
        engine=engine,
    )
    for resource in (gateway, reconciliation_queue):
        close = getattr(resource, "close", None) or getattr(resource, "disconnect", None)
        if close is not None:
            container._closers.append(close)
    return container


# =============================================================================
# DEPENDENCIES
# =============================================================================

def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


def get_websocket_container(websocket: WebSocket) -> ServiceContainer:
    return websocket.app.state.container


def get_order_service(request: Request) -> OrderService:
    return get_container(request).order_service


def get_cart_service(request: Request) -> CartService:
    return get_container(request).cart_service


def get_payment_service(request: Request) -> PaymentService:
    return get_container(request).payment_service


def get_reconciliation_service(request: Request) -> ReconciliationService:
    return get_container(request).reconciliation_service


def get_notifications(request: Request) -> NotificationFanout:
    return get_container(request).notifications


def get_scheduler(request: Request) -> ITaskScheduler:
    return get_container(request).scheduler
