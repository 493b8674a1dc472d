"""Repository interface for the catalog and its inventory records."""

from abc import ABC, abstractmethod
from typing import Dict, Iterable, Optional

from ..entities.product import Product


class ProductRepository(ABC):
    """Catalog access plus the atomic stock operations of the inventory ledger."""

    @abstractmethod
    async def get(self, product_id: str) -> Optional[Product]:
        pass

    @abstractmethod
    async def get_many(self, product_ids: Iterable[str]) -> Dict[str, Product]:
        """Products keyed by id; unknown ids are left out."""
        pass

    @abstractmethod
    async def decrement_stock_if_available(self, product_id: str, article: int, quantity: int) -> bool:
        """Conditionally decrement stock in a single atomic step.

        The decrement only happens when the current stock is at least
        ``quantity``.

        Returns:
            True if stock was decremented, False otherwise
        """
        pass

    @abstractmethod
    async def increment_purchase_count(self, product_id: str, article: int, quantity: int) -> None:
        pass

    @abstractmethod
    async def save(self, product: Product) -> None:
        pass
