"""Domain layer - pure domain models and interfaces."""

from .entities import Cart, Order, OrderLine, OrderOwner, Product, ProductVariant
from .enums import DeliveryType, OrderStatus, PaymentMethod, UserRole
from .repositories import CartRepository, OrderRepository, ProductRepository
from .value_objects import DeliveryInfo, ExecutionID, Money, OrderNumber, UserIdentity

__all__ = [
    "Cart",
    "CartRepository",
    "DeliveryInfo",
    "DeliveryType",
    "ExecutionID",
    "Money",
    "Order",
    "OrderLine",
    "OrderNumber",
    "OrderOwner",
    "OrderRepository",
    "OrderStatus",
    "PaymentMethod",
    "Product",
    "ProductRepository",
    "ProductVariant",
    "UserIdentity",
    "UserRole",
]
