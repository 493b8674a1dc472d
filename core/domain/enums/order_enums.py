"""
Order-related enums.

Values are the wire values used by the storefront clients and stored in
the database, so they must not change.
"""
from enum import Enum


class OrderStatus(str, Enum):
    """Order lifecycle status."""

    WAITING_FOR_PAYMENT = "waiting_for_payment"
    PENDING = "pending"
    PROCESSING = "processing"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class DeliveryType(str, Enum):
    """How the order reaches the customer."""

    PICKUP = "pickup"
    COURIER = "courier"
    POST = "post"
    EXPRESS = "express"


class PaymentMethod(str, Enum):
    """Customer-selected payment method."""

    CARD = "card"
    SBP = "sbp"
    CASH = "cash"
    INVOICE = "invoice"
    PAY_IN_SHOP = "payinshop"

    @property
    def requires_online_payment(self) -> bool:
        """True when the order must be paid through the gateway before fulfilment."""
        return self not in _OFFLINE_METHODS


_OFFLINE_METHODS = frozenset({
    PaymentMethod.CASH,
    PaymentMethod.INVOICE,
    PaymentMethod.PAY_IN_SHOP,
})


class UserRole(str, Enum):
    """Roles carried in access tokens."""

    USER = "User"
    ADMIN = "Admin"
    CREATOR = "Creator"
