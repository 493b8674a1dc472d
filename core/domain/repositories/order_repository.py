"""Repository interface for the Order aggregate."""

from abc import ABC, abstractmethod
from typing import List, Optional

from ..entities.order import Order
from ..enums import OrderStatus


class OrderRepository(ABC):
    """Abstract repository for Order aggregate persistence."""

    @abstractmethod
    async def add(self, order: Order) -> None:
        """Persist a new order.

        Raises:
            ValueError: if the order number is already taken
        """
        pass

    @abstractmethod
    async def update(self, order: Order, expected_status: Optional[OrderStatus] = None) -> bool:
        """Persist a status change of an existing order.

        Only the lifecycle fields (status, payment, tracking, dates) are
        written; stock and cart flags are left to ``update_flags``.

        Args:
            order: Order aggregate to persist
            expected_status: if given, the write only happens when the stored
                status still equals it (compare-and-set)

        Returns:
            True if the row was written, False if the compare-and-set lost
        """
        pass

    @abstractmethod
    async def update_flags(self, order: Order) -> None:
        """Persist the stock/cart reconciliation flags without touching status."""
        pass

    @abstractmethod
    async def get(self, order_id: str) -> Optional[Order]:
        pass

    @abstractmethod
    async def find_by_order_number(self, order_number: str) -> Optional[Order]:
        pass

    @abstractmethod
    async def find_by_payment_id(self, payment_id: str) -> Optional[Order]:
        pass

    @abstractmethod
    async def list_by_owner(self, owner_id: str) -> List[Order]:
        """Orders of one customer, newest first."""
        pass

    @abstractmethod
    async def list_all(self, limit: int = 50, offset: int = 0) -> List[Order]:
        """All orders, newest first, paginated."""
        pass

    @abstractmethod
    async def count_all(self) -> int:
        """Number of stored orders."""
        pass

    @abstractmethod
    async def list_needing_reconciliation(self) -> List[Order]:
        """Orders whose stock deduction or cart clearing did not complete."""
        pass
