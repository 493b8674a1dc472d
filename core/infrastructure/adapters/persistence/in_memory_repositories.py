"""
In-memory repository implementations.

Default backend for local runs and the test suite. Stored objects are
copies, so callers never share mutable state with the store. No method
awaits between reading and writing a record, which makes each operation
atomic with respect to other coroutines on the same event loop.
"""
from copy import deepcopy
from typing import Dict, Iterable, List, Optional
import logging

from core.domain.entities import LIFECYCLE_FIELDS, Cart, Order, Product
from core.domain.enums import OrderStatus
from core.domain.repositories import CartRepository, OrderRepository, ProductRepository
from core.domain.state_machine import is_terminal


logger = logging.getLogger(__name__)


class InMemoryOrderRepository(OrderRepository):
    """Orders keyed by id, with secondary lookups by number and payment id."""

    def __init__(self):
        self._storage: Dict[str, Order] = {}
        logger.info("InMemoryOrderRepository initialized (in-memory storage)")

    async def add(self, order: Order) -> None:
        if order.id in self._storage:
            raise ValueError(f"Order {order.id} already exists")
        if any(o.order_number == order.order_number for o in self._storage.values()):
            raise ValueError(f"Order number {order.order_number} already exists")
        self._storage[order.id] = order.snapshot()
        logger.debug(f"Order stored: {order.order_number} ({order.status.value})")

    async def update(self, order: Order, expected_status: Optional[OrderStatus] = None) -> bool:
        stored = self._storage.get(order.id)
        if stored is None:
            return False
        if expected_status is not None and stored.status != expected_status:
            logger.info(
                f"Compare-and-set lost for {order.order_number}: "
                f"expected {expected_status.value}, stored {stored.status.value}"
            )
            return False
        for name in LIFECYCLE_FIELDS:
            setattr(stored, name, getattr(order, name))
        return True

    async def update_flags(self, order: Order) -> None:
        stored = self._storage.get(order.id)
        if stored is None:
            return
        for stored_line, line in zip(stored.items, order.items):
            stored_line.stock_deducted = line.stock_deducted
        stored.stock_reserved = order.stock_reserved
        stored.cart_cleared = order.cart_cleared

    async def get(self, order_id: str) -> Optional[Order]:
        order = self._storage.get(order_id)
        return order.snapshot() if order else None

    async def find_by_order_number(self, order_number: str) -> Optional[Order]:
        for order in self._storage.values():
            if str(order.order_number) == order_number:
                return order.snapshot()
        return None

    async def find_by_payment_id(self, payment_id: str) -> Optional[Order]:
        for order in self._storage.values():
            if order.payment_id == payment_id:
                return order.snapshot()
        return None

    async def list_by_owner(self, owner_id: str) -> List[Order]:
        orders = [o for o in self._storage.values() if o.owner.user_id == owner_id]
        return [o.snapshot() for o in self._newest_first(orders)]

    async def list_all(self, limit: int = 50, offset: int = 0) -> List[Order]:
        orders = self._newest_first(self._storage.values())[offset:offset + limit]
        return [o.snapshot() for o in orders]

    async def count_all(self) -> int:
        return len(self._storage)

    async def list_needing_reconciliation(self) -> List[Order]:
        orders = [
            o for o in self._storage.values()
            if o.needs_reconciliation and not is_terminal(o.status)
        ]
        return [o.snapshot() for o in orders]

    @staticmethod
    def _newest_first(orders: Iterable[Order]) -> List[Order]:
        return sorted(orders, key=lambda o: o.created_at, reverse=True)


class InMemoryCartRepository(CartRepository):

    def __init__(self):
        self._storage: Dict[str, Cart] = {}

    async def get_by_owner(self, owner_id: str) -> Optional[Cart]:
        cart = self._storage.get(owner_id)
        return deepcopy(cart) if cart else None

    async def save(self, cart: Cart) -> None:
        self._storage[cart.owner_id] = deepcopy(cart)


class InMemoryProductRepository(ProductRepository):
    """Catalog plus inventory ledger storage."""

    def __init__(self, products: Optional[Iterable[Product]] = None):
        self._storage: Dict[str, Product] = {}
        for product in products or []:
            self._storage[product.id] = deepcopy(product)

    async def get(self, product_id: str) -> Optional[Product]:
        product = self._storage.get(product_id)
        return deepcopy(product) if product else None

    async def get_many(self, product_ids: Iterable[str]) -> Dict[str, Product]:
        return {
            pid: deepcopy(self._storage[pid])
            for pid in product_ids
            if pid in self._storage
        }

    async def decrement_stock_if_available(self, product_id: str, article: int, quantity: int) -> bool:
        product = self._storage.get(product_id)
        variant = product.variant(article) if product else None
        if variant is None or variant.stock < quantity:
            return False
        variant.stock -= quantity
        return True

    async def increment_purchase_count(self, product_id: str, article: int, quantity: int) -> None:
        product = self._storage.get(product_id)
        variant = product.variant(article) if product else None
        if variant is not None:
            variant.purchase_count += quantity

    async def save(self, product: Product) -> None:
        self._storage[product.id] = deepcopy(product)
