"""
Inventory ledger.

Per-variant stock and purchase counters. Stock changes are persisted
immediately and there is no rollback primitive: callers sequence the
operations and deal with partial failure themselves.
"""
import logging

from core.domain.exceptions import InsufficientStock, ProductNotFound
from core.domain.repositories import ProductRepository


logger = logging.getLogger(__name__)


class InventoryService:
    """Atomic check / decrement / increment over the product repository."""

    def __init__(self, products: ProductRepository):
        self._products = products

    async def check_availability(self, product_id: str, article: int, quantity: int) -> bool:
        """True iff current stock >= quantity. Read-only."""
        product = await self._products.get(product_id)
        variant = product.variant(article) if product else None
        if variant is None:
            return False
        return variant.has_stock(quantity)

    async def available_stock(self, product_id: str, article: int) -> int:
        product = await self._products.get(product_id)
        variant = product.variant(article) if product else None
        if variant is None:
            raise ProductNotFound(f"Товар {product_id} (артикул {article}) не найден")
        return variant.stock

    async def decrement_stock(self, product_id: str, article: int, quantity: int) -> None:
        """
        Decrement stock with a single conditional update.

        The availability check done earlier in checkout is only a pre-flight;
        this call is what prevents overselling under concurrent checkouts.

        Raises:
            InsufficientStock: if stock is lower than ``quantity`` right now
        """
        if quantity < 1:
            raise ValueError("Quantity must be at least 1")

        if await self._products.decrement_stock_if_available(product_id, article, quantity):
            logger.debug(f"Stock decremented: {product_id}/{article} -{quantity}")
            return

        product = await self._products.get(product_id)
        variant = product.variant(article) if product else None
        available = variant.stock if variant else 0
        title = product.title if product else ""
        logger.warning(
            f"Conditional decrement rejected for article {article}: "
            f"available={available}, requested={quantity}"
        )
        raise InsufficientStock(article=article, available=available, requested=quantity, title=title)

    async def increment_purchase_count(self, product_id: str, article: int, quantity: int) -> None:
        await self._products.increment_purchase_count(product_id, article, quantity)
