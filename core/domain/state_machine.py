"""
Order status transition table.

Both producers of status changes (administrators and the payment gateway
webhook) go through ``check_transition``; nothing else decides whether a
status change is legal.
"""
from enum import Enum
from typing import Dict, FrozenSet

from .enums import OrderStatus
from .exceptions import InvalidStatusTransition


class TransitionSource(str, Enum):
    """Who requested a status change."""

    ADMIN = "admin"
    GATEWAY = "gateway"


TERMINAL_STATUSES: FrozenSet[OrderStatus] = frozenset({
    OrderStatus.CANCELLED,
    OrderStatus.REFUNDED,
})

_REVERSALS = frozenset({OrderStatus.CANCELLED, OrderStatus.REFUNDED})

ADMIN_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.WAITING_FOR_PAYMENT: _REVERSALS,
    OrderStatus.PENDING: _REVERSALS | {OrderStatus.PROCESSING},
    OrderStatus.PROCESSING: _REVERSALS | {OrderStatus.CONFIRMED},
    OrderStatus.CONFIRMED: _REVERSALS | {OrderStatus.SHIPPED},
    OrderStatus.SHIPPED: _REVERSALS | {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: _REVERSALS,
    OrderStatus.CANCELLED: frozenset(),
    OrderStatus.REFUNDED: frozenset(),
}

GATEWAY_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.WAITING_FOR_PAYMENT: frozenset({OrderStatus.PENDING}),
}


def is_terminal(status: OrderStatus) -> bool:
    return status in TERMINAL_STATUSES


def allowed_targets(current: OrderStatus, source: TransitionSource) -> FrozenSet[OrderStatus]:
    table = ADMIN_TRANSITIONS if source == TransitionSource.ADMIN else GATEWAY_TRANSITIONS
    return table.get(current, frozenset())


def check_transition(
    current: OrderStatus,
    requested: OrderStatus,
    source: TransitionSource,
) -> bool:
    """
    Validate a requested status change.

    Returns:
        True if the status must change, False if the request is a no-op
        (the order is already in the requested status).

    Raises:
        InvalidStatusTransition: if the table does not list the move
    """
    if current == requested:
        return False

    if requested not in allowed_targets(current, source):
        raise InvalidStatusTransition(current.value, requested.value)

    return True
