"""Domain value objects."""

from .value_objects import ExecutionID, Money
from .order_number import OrderNumber
from .delivery import DeliveryInfo
from .identity import UserIdentity

__all__ = [
    "DeliveryInfo",
    "ExecutionID",
    "Money",
    "OrderNumber",
    "UserIdentity",
]
