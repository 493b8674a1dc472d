"""Application layer - services, interfaces, and DTOs."""

from .dtos import CheckoutResponse, CreateOrderRequest, OrderDTO, OrderListDTO
from .interfaces import (
    IEmailSender,
    IMessenger,
    IPaymentGateway,
    IRealtimeHub,
    IReconciliationQueue,
    ITaskScheduler,
)
from .services import (
    CartService,
    InventoryService,
    NotificationFanout,
    OrderService,
    PaymentService,
    ReconciliationService,
)

__all__ = [
    # DTOs
    "CheckoutResponse",
    "CreateOrderRequest",
    "OrderDTO",
    "OrderListDTO",
    # Services
    "CartService",
    "InventoryService",
    "NotificationFanout",
    "OrderService",
    "PaymentService",
    "ReconciliationService",
    # Interfaces
    "IEmailSender",
    "IMessenger",
    "IPaymentGateway",
    "IRealtimeHub",
    "IReconciliationQueue",
    "ITaskScheduler",
]
