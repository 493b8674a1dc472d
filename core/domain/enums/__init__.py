"""Domain enums."""

from .order_enums import DeliveryType, OrderStatus, PaymentMethod, UserRole

__all__ = ["DeliveryType", "OrderStatus", "PaymentMethod", "UserRole"]
