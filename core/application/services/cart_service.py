"""
Cart service.

Every read recomputes totals from live catalog prices; the cart itself only
stores references and quantities.
"""
import logging
from typing import Iterable, List, Tuple

from core.application.dtos.cart_dto import AddCartItemRequest, CartDTO
from core.domain.entities import Cart, CartTotals, PricedLine, price_cart
from core.domain.exceptions import (
    EmptyCart,
    InsufficientStock,
    ProductNotFound,
    ValidationFailed,
)
from core.domain.repositories import CartRepository, ProductRepository


logger = logging.getLogger(__name__)


class CartService:
    """Cart snapshot operations for one user at a time."""

    def __init__(self, carts: CartRepository, products: ProductRepository, currency: str = "RUB"):
        self._carts = carts
        self._products = products
        self._currency = currency

    async def get_cart(self, user_id: str) -> CartDTO:
        cart = await self._load_or_new(user_id)
        return await self._to_dto(cart)

    async def add_item(self, user_id: str, product_id: str, article: int, quantity: int) -> CartDTO:
        """Add ``quantity`` of a variant, merging with an existing line."""
        self._require_positive(quantity)
        cart = await self._load_or_new(user_id)

        existing = cart.find(product_id, article)
        wanted = quantity + (existing.quantity if existing else 0)
        await self._require_stock(product_id, article, wanted)

        cart.add_item(product_id, article, quantity)
        await self._carts.save(cart)
        logger.info(f"Cart {user_id}: +{quantity} x {product_id}/{article}")
        return await self._to_dto(cart)

    async def update_quantity(self, user_id: str, product_id: str, article: int, quantity: int) -> CartDTO:
        self._require_positive(quantity)
        cart = await self._load_or_new(user_id)
        await self._require_stock(product_id, article, quantity)

        cart.set_quantity(product_id, article, quantity)
        await self._carts.save(cart)
        return await self._to_dto(cart)

    async def remove_item(self, user_id: str, product_id: str, article: int) -> CartDTO:
        cart = await self._load_or_new(user_id)
        cart.remove_item(product_id, article)
        await self._carts.save(cart)
        return await self._to_dto(cart)

    async def clear(self, user_id: str) -> CartDTO:
        cart = await self._load_or_new(user_id)
        cart.clear()
        await self._carts.save(cart)
        return await self._to_dto(cart)

    async def sync(self, user_id: str, items: Iterable[AddCartItemRequest]) -> CartDTO:
        """
        Merge a client-side cart into the stored one.

        Lines that reference unknown products or exceed the available stock
        are skipped and logged instead of failing the whole sync.
        """
        cart = await self._load_or_new(user_id)
        items = list(items)
        catalog = await self._products.get_many({item.product_id for item in items})

        skipped = 0
        for item in items:
            product = catalog.get(item.product_id)
            variant = product.variant(item.article) if product else None
            if variant is None or item.quantity < 1:
                skipped += 1
                logger.warning(f"Cart sync {user_id}: skipping unknown line {item.product_id}/{item.article}")
                continue

            existing = cart.find(item.product_id, item.article)
            wanted = item.quantity + (existing.quantity if existing else 0)
            if not variant.has_stock(wanted):
                skipped += 1
                logger.warning(
                    f"Cart sync {user_id}: skipping {item.product_id}/{item.article}, "
                    f"available={variant.stock}, requested={wanted}"
                )
                continue

            cart.add_item(item.product_id, item.article, item.quantity)

        await self._carts.save(cart)
        logger.info(f"Cart {user_id} synced: {len(items) - skipped} applied, {skipped} skipped")
        return await self._to_dto(cart)

    async def load_for_checkout(self, user_id: str) -> Cart:
        """
        Raises:
            EmptyCart: if the user has no cart or it has no lines
        """
        cart = await self._carts.get_by_owner(user_id)
        if cart is None or cart.is_empty:
            raise EmptyCart()
        return cart

    async def materialize_for_checkout(self, cart: Cart) -> Tuple[List[PricedLine], CartTotals]:
        """Snapshot live prices for every line at this instant."""
        catalog = await self._products.get_many({item.product_id for item in cart.items})
        return price_cart(cart, catalog, self._currency)

    async def clear_after_checkout(self, cart: Cart) -> None:
        cart.clear()
        await self._carts.save(cart)

    # ------------------------------------------------------------------

    async def _load_or_new(self, user_id: str) -> Cart:
        cart = await self._carts.get_by_owner(user_id)
        return cart if cart is not None else Cart(owner_id=user_id)

    async def _to_dto(self, cart: Cart) -> CartDTO:
        catalog = await self._products.get_many({item.product_id for item in cart.items})
        lines, totals = price_cart(cart, catalog, self._currency)
        return CartDTO.from_priced(cart.owner_id, lines, totals)

    async def _require_stock(self, product_id: str, article: int, quantity: int) -> None:
        product = await self._products.get(product_id)
        variant = product.variant(article) if product else None
        if variant is None:
            raise ProductNotFound(f"Товар {product_id} (артикул {article}) не найден")
        if not variant.has_stock(quantity):
            raise InsufficientStock(
                article=article, available=variant.stock, requested=quantity, title=product.title,
            )

    @staticmethod
    def _require_positive(quantity: int) -> None:
        if quantity < 1:
            raise ValidationFailed(
                "Количество должно быть не меньше 1",
                errors=[{"field": "quantity", "message": "Количество должно быть не меньше 1"}],
            )
