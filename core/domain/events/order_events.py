"""
Order Domain Events.

Events recorded by the Order aggregate during checkout and status changes.
The order orchestrator turns them into real-time pushes, emails and
messenger notifications.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from .base import DomainEvent


@dataclass
class OrderCreatedEvent(DomainEvent):
    """
    Order was created at checkout.

    Consumers: admin notification, customer confirmation
    """

    order_number: str = ""
    owner_id: str = ""
    status: str = ""
    net_amount: Decimal = Decimal("0")
    payment_method: str = ""


@dataclass
class OrderStatusChangedEvent(DomainEvent):
    """
    Order status changed.

    ``source`` is either ``admin`` or ``gateway``.
    """

    order_number: str = ""
    owner_id: str = ""
    previous_status: str = ""
    new_status: str = ""
    source: str = ""
    reason: Optional[str] = None


@dataclass
class OrderPaymentConfirmedEvent(DomainEvent):
    """The payment gateway confirmed the order's payment."""

    order_number: str = ""
    payment_id: str = ""
