"""Application DTOs."""

from .cart_dto import AddCartItemRequest, CartDTO, CartLineDTO, SyncCartRequest, UpdateCartItemRequest
from .order_dto import (
    CheckoutResponse,
    CreateOrderRequest,
    DeliveryInfoDTO,
    OrderDTO,
    OrderLineDTO,
    OrderListDTO,
    ReconciliationReportDTO,
    UpdateOrderStatusRequest,
)
from .payment_dto import PaymentDTO, ProviderNotification
from .request_dto import SupportRequestDTO

__all__ = [
    "AddCartItemRequest",
    "CartDTO",
    "CartLineDTO",
    "CheckoutResponse",
    "CreateOrderRequest",
    "DeliveryInfoDTO",
    "OrderDTO",
    "OrderLineDTO",
    "OrderListDTO",
    "PaymentDTO",
    "ProviderNotification",
    "ReconciliationReportDTO",
    "SupportRequestDTO",
    "SyncCartRequest",
    "UpdateCartItemRequest",
]
