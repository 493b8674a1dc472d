"""Application services."""
from .cart_service import CartService
from .inventory_service import InventoryService
from .notification_service import NotificationFanout
from .order_service import OrderService
from .payment_service import PaymentService
from .reconciliation_service import ReconciliationService

__all__ = [
    "CartService",
    "InventoryService",
    "NotificationFanout",
    "OrderService",
    "PaymentService",
    "ReconciliationService",
]
