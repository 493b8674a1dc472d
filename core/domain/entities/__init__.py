"""Domain entities."""

from .cart import Cart, CartItem, CartTotals, PricedLine, price_cart
from .order import DEFAULT_CANCELLATION_REASON, LIFECYCLE_FIELDS, Order, OrderLine, OrderOwner
from .product import Product, ProductVariant

__all__ = [
    "Cart",
    "CartItem",
    "CartTotals",
    "DEFAULT_CANCELLATION_REASON",
    "LIFECYCLE_FIELDS",
    "Order",
    "OrderLine",
    "OrderOwner",
    "PricedLine",
    "Product",
    "ProductVariant",
    "price_cart",
]
