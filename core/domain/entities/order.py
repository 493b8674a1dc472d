"""
Order aggregate root.

CRITICAL: This file must contain ZERO imports from:
- sqlalchemy
- pydantic
- fastapi
"""
import random
import string
import uuid
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import List, Optional, Dict, Any

from ..enums import DeliveryType, OrderStatus, PaymentMethod
from ..events.base import DomainEvent
from ..events.order_events import (
    OrderCreatedEvent,
    OrderPaymentConfirmedEvent,
    OrderStatusChangedEvent,
)
from ..state_machine import TransitionSource, check_transition
from ..value_objects import DeliveryInfo, ExecutionID, Money, OrderNumber
from .cart import PricedLine


DEFAULT_CANCELLATION_REASON = "Причина не указана"

# Written by status changes. Stock and cart flags are owned by reconciliation.
LIFECYCLE_FIELDS = (
    "status",
    "payment_status",
    "payment_id",
    "tracking_number",
    "cancellation_reason",
    "estimated_delivery_date",
    "document_url",
    "updated_at",
    "cancelled_at",
    "delivered_at",
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class OrderOwner:
    """Contact snapshot of the customer taken at checkout."""
    user_id: str
    email: str
    telegram_id: Optional[int] = None


@dataclass
class OrderLine:
    """
    Line item with pricing frozen at checkout.

    ``stock_deducted`` flips to True once the inventory ledger accepted the
    decrement for this line.
    """
    product_id: str
    article: int
    title: str
    quantity: int
    unit_price: Money
    discount_percent: Decimal = Decimal("0")
    stock_deducted: bool = False

    @classmethod
    def from_priced_line(cls, line: PricedLine) -> "OrderLine":
        return cls(
            product_id=line.product_id,
            article=line.article,
            title=line.title,
            quantity=line.quantity,
            unit_price=line.unit_price,
            discount_percent=line.discount_percent,
        )

    @property
    def total(self) -> Money:
        return self.unit_price.times(self.quantity).rounded()

    @property
    def discount(self) -> Money:
        return self.unit_price.times(self.quantity).percent(self.discount_percent)


@dataclass
class Order:
    """
    Order aggregate root.

    Status only changes through ``transition_to`` and
    ``confirm_payment``; both consult the transition table.
    """
    id: str
    order_number: OrderNumber
    owner: OrderOwner
    items: List[OrderLine]
    status: OrderStatus
    delivery_type: DeliveryType
    delivery_info: DeliveryInfo
    payment_method: PaymentMethod
    currency: str = "RUB"

    payment_status: bool = False
    payment_id: Optional[str] = None
    tracking_number: Optional[str] = None
    cancellation_reason: Optional[str] = None
    estimated_delivery_date: Optional[date] = None
    document_url: Optional[str] = None

    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)
    cancelled_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None

    # Reconciliation flags
    stock_reserved: bool = False
    cart_cleared: bool = False

    _domain_events: List[DomainEvent] = field(default_factory=list, init=False, repr=False)

    @classmethod
    def create(
        cls,
        owner: OrderOwner,
        lines: List[PricedLine],
        delivery_type: DeliveryType,
        delivery_info: DeliveryInfo,
        payment_method: PaymentMethod,
        currency: str = "RUB",
        execution_id: Optional[ExecutionID] = None,
    ) -> "Order":
        """
        Build a new, unsaved order from a priced cart snapshot.

        Initial status is WAITING_FOR_PAYMENT for online payment methods and
        PENDING for the rest.
        """
        if not lines:
            raise ValueError("Order must have at least one line")

        status = (
            OrderStatus.WAITING_FOR_PAYMENT
            if payment_method.requires_online_payment
            else OrderStatus.PENDING
        )
        order = cls(
            id=uuid.uuid4().hex,
            order_number=OrderNumber.generate(),
            owner=owner,
            items=[OrderLine.from_priced_line(line) for line in lines],
            status=status,
            delivery_type=delivery_type,
            delivery_info=delivery_info,
            payment_method=payment_method,
            currency=currency,
        )
        order._record_event(
            OrderCreatedEvent(
                aggregate_id=order.id,
                execution_id=str(execution_id) if execution_id else None,
                order_number=str(order.order_number),
                owner_id=owner.user_id,
                status=status.value,
                net_amount=order.net_amount.amount,
                payment_method=payment_method.value,
            )
        )
        return order

    # ------------------------------------------------------------------
    # Totals
    # ------------------------------------------------------------------

    @property
    def total_products(self) -> int:
        return sum(line.quantity for line in self.items)

    @property
    def gross_amount(self) -> Money:
        total = Money.zero(self.currency)
        for line in self.items:
            total = total + line.total
        return total.rounded()

    @property
    def discount_amount(self) -> Money:
        total = Money.zero(self.currency)
        for line in self.items:
            total = total + line.discount
        return total.rounded()

    @property
    def net_amount(self) -> Money:
        return (self.gross_amount - self.discount_amount).rounded()

    @property
    def requires_payment(self) -> bool:
        return self.payment_method.requires_online_payment

    @property
    def needs_reconciliation(self) -> bool:
        return not (self.stock_reserved and self.cart_cleared)

    # ------------------------------------------------------------------
    # Behaviour
    # ------------------------------------------------------------------

    def attach_payment(self, payment_id: str) -> None:
        self.payment_id = payment_id

    def mark_line_deducted(self, line: OrderLine) -> None:
        line.stock_deducted = True
        self.stock_reserved = all(item.stock_deducted for item in self.items)

    def mark_cart_cleared(self) -> None:
        self.cart_cleared = True

    def transition_to(
        self,
        new_status: OrderStatus,
        *,
        reason: Optional[str] = None,
        delivery_date: Optional[date] = None,
        tracking_number: Optional[str] = None,
        execution_id: Optional[ExecutionID] = None,
    ) -> bool:
        """
        Apply an administrative status change.

        Returns:
            False when the order is already in ``new_status`` (nothing is
            touched, a previously recorded cancellation reason survives)

        Raises:
            InvalidStatusTransition: for moves the table does not allow
        """
        if not check_transition(self.status, new_status, TransitionSource.ADMIN):
            return False

        previous = self.status
        now = _utcnow()
        self.status = new_status

        if tracking_number:
            self.tracking_number = tracking_number

        if new_status == OrderStatus.CONFIRMED and delivery_date is not None:
            self.estimated_delivery_date = delivery_date
        elif new_status == OrderStatus.SHIPPED and not self.tracking_number:
            self.tracking_number = self.generate_tracking_number()
        elif new_status == OrderStatus.DELIVERED:
            self.payment_status = True
            self.delivered_at = now
        elif new_status == OrderStatus.CANCELLED:
            self.cancelled_at = now
            if reason:
                self.cancellation_reason = reason
            elif not self.cancellation_reason:
                self.cancellation_reason = DEFAULT_CANCELLATION_REASON

        self.updated_at = now
        self._record_event(
            OrderStatusChangedEvent(
                aggregate_id=self.id,
                execution_id=str(execution_id) if execution_id else None,
                order_number=str(self.order_number),
                owner_id=self.owner.user_id,
                previous_status=previous.value,
                new_status=new_status.value,
                source=TransitionSource.ADMIN.value,
                reason=self.cancellation_reason if new_status == OrderStatus.CANCELLED else reason,
            )
        )
        return True

    def confirm_payment(self, execution_id: Optional[ExecutionID] = None) -> bool:
        """
        Advance WAITING_FOR_PAYMENT -> PENDING after the gateway reported success.

        Returns False (and changes nothing) when the order already left
        WAITING_FOR_PAYMENT, so duplicate notifications are harmless.
        """
        if self.status != OrderStatus.WAITING_FOR_PAYMENT:
            return False

        check_transition(self.status, OrderStatus.PENDING, TransitionSource.GATEWAY)
        previous = self.status
        self.status = OrderStatus.PENDING
        self.payment_status = True
        self.updated_at = _utcnow()

        exec_id = str(execution_id) if execution_id else None
        self._record_event(
            OrderPaymentConfirmedEvent(
                aggregate_id=self.id,
                execution_id=exec_id,
                order_number=str(self.order_number),
                payment_id=self.payment_id or "",
            )
        )
        self._record_event(
            OrderStatusChangedEvent(
                aggregate_id=self.id,
                execution_id=exec_id,
                order_number=str(self.order_number),
                owner_id=self.owner.user_id,
                previous_status=previous.value,
                new_status=OrderStatus.PENDING.value,
                source=TransitionSource.GATEWAY.value,
            )
        )
        return True

    def generate_tracking_number(self) -> str:
        """TRACK-<last 8 chars of the order number>-<6 random A-Z0-9>."""
        suffix = "".join(random.choices(string.ascii_uppercase + string.digits, k=6))
        return f"TRACK-{self.order_number.tail(8)}-{suffix}"

    def snapshot(self) -> "Order":
        """Independent copy, used by repositories to avoid sharing mutable state."""
        clone = replace(
            self,
            items=[replace(line) for line in self.items],
        )
        clone._domain_events = []
        return clone

    # ------------------------------------------------------------------
    # Domain events
    # ------------------------------------------------------------------

    def _record_event(self, event: DomainEvent) -> None:
        self._domain_events.append(event)

    def get_domain_events(self) -> List[DomainEvent]:
        """Return a copy of recorded events."""
        return list(self._domain_events)

    def clear_domain_events(self) -> None:
        self._domain_events.clear()

    def to_dict(self) -> Dict[str, Any]:
        """Plain representation used in notification payloads and logs."""
        return {
            "id": self.id,
            "order_number": str(self.order_number),
            "status": self.status.value,
            "net_amount": str(self.net_amount.amount),
            "currency": self.currency,
            "payment_status": self.payment_status,
            "tracking_number": self.tracking_number,
        }
