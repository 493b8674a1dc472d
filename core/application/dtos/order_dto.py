"""Application DTOs for Order operations."""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import Field

from core.application.dtos.base import ApiModel

from core.domain.entities import Order
from core.domain.enums import DeliveryType, OrderStatus, PaymentMethod
from core.domain.value_objects import DeliveryInfo


class DeliveryInfoDTO(ApiModel):
    """Delivery payload; per-type requirements are checked by the domain."""

    phone: str = Field(..., description="Recipient phone")
    city: str = Field(default="", description="City")
    address: str = Field(default="", description="Street address")
    recipient_name: str = Field(default="", description="Recipient full name")
    postal_code: Optional[str] = Field(None, description="Postal code")
    comment: Optional[str] = Field(None, max_length=1000, description="Courier comment")

    model_config = {"frozen": True}

    def to_domain(self) -> DeliveryInfo:
        return DeliveryInfo(
            phone=self.phone,
            city=self.city,
            address=self.address,
            recipient_name=self.recipient_name,
            postal_code=self.postal_code,
            comment=self.comment,
        )

    @classmethod
    def from_domain(cls, info: DeliveryInfo) -> "DeliveryInfoDTO":
        return cls(**info.to_dict())


class CreateOrderRequest(ApiModel):
    """Checkout request for the caller's current cart."""

    delivery_type: DeliveryType = Field(..., description="pickup, courier, post or express")
    payment_method: PaymentMethod = Field(..., description="card, sbp, cash, invoice or payinshop")
    delivery_info: DeliveryInfoDTO

    model_config = {"frozen": True}


class UpdateOrderStatusRequest(ApiModel):
    """Administrative status change."""

    status: OrderStatus
    cancellation_reason: Optional[str] = Field(None, max_length=500)
    delivery_date: Optional[date] = None
    tracking_number: Optional[str] = Field(None, max_length=64)

    model_config = {"frozen": True}


class OrderLineDTO(ApiModel):
    """DTO for order line."""

    product_id: str
    article: int
    title: str
    quantity: int = Field(..., gt=0)
    unit_price: Decimal = Field(..., ge=0)
    discount_percent: Decimal = Field(default=Decimal("0"), ge=0)
    total: Decimal = Field(..., ge=0)

    model_config = {"frozen": True}


class OrderDTO(ApiModel):
    """Response DTO for order details."""

    id: str
    order_number: str
    user_id: str
    status: OrderStatus
    items: List[OrderLineDTO] = Field(default_factory=list)
    total_products: int
    gross_amount: Decimal
    discount_amount: Decimal
    net_amount: Decimal
    currency: str = "RUB"
    delivery_type: DeliveryType
    delivery_info: DeliveryInfoDTO
    payment_method: PaymentMethod
    payment_status: bool
    payment_id: Optional[str] = None
    tracking_number: Optional[str] = None
    cancellation_reason: Optional[str] = None
    estimated_delivery_date: Optional[date] = None
    document_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    cancelled_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None

    model_config = {"frozen": True}

    @classmethod
    def from_entity(cls, order: Order) -> "OrderDTO":
        return cls(
            id=order.id,
            order_number=str(order.order_number),
            user_id=order.owner.user_id,
            status=order.status,
            items=[
                OrderLineDTO(
                    product_id=line.product_id,
                    article=line.article,
                    title=line.title,
                    quantity=line.quantity,
                    unit_price=line.unit_price.amount,
                    discount_percent=line.discount_percent,
                    total=line.total.amount,
                )
                for line in order.items
            ],
            total_products=order.total_products,
            gross_amount=order.gross_amount.amount,
            discount_amount=order.discount_amount.amount,
            net_amount=order.net_amount.amount,
            currency=order.currency,
            delivery_type=order.delivery_type,
            delivery_info=DeliveryInfoDTO.from_domain(order.delivery_info),
            payment_method=order.payment_method,
            payment_status=order.payment_status,
            payment_id=order.payment_id,
            tracking_number=order.tracking_number,
            cancellation_reason=order.cancellation_reason,
            estimated_delivery_date=order.estimated_delivery_date,
            document_url=order.document_url,
            created_at=order.created_at,
            updated_at=order.updated_at,
            cancelled_at=order.cancelled_at,
            delivered_at=order.delivered_at,
        )


class CheckoutResponse(ApiModel):
    """Created order plus the payment redirect, if the method needs one."""

    order: OrderDTO
    payment_url: Optional[str] = None

    model_config = {"frozen": True}


class OrderListDTO(ApiModel):
    """DTO for listing orders."""

    orders: List[OrderDTO] = Field(default_factory=list, description="List of orders")
    total: int = Field(..., ge=0, description="Number of orders matching the query, across all pages")
    limit: Optional[int] = Field(None, description="Page size, if paginated")
    offset: int = Field(default=0, ge=0, description="Orders skipped before this page")

    model_config = {"frozen": True}


class ReconciliationReportDTO(ApiModel):
    """Outcome of a reconciliation sweep."""

    checked: int = 0
    repaired: List[str] = Field(default_factory=list, description="Order numbers fully reconciled")
    still_pending: List[str] = Field(default_factory=list, description="Order numbers still inconsistent")

    model_config = {"frozen": True}
