"""Domain events."""

from .base import DomainEvent
from .order_events import (
    OrderCreatedEvent,
    OrderPaymentConfirmedEvent,
    OrderStatusChangedEvent,
)

__all__ = [
    "DomainEvent",
    "OrderCreatedEvent",
    "OrderPaymentConfirmedEvent",
    "OrderStatusChangedEvent",
]
