"""
Cart snapshot.

The cart stores only references and quantities. Prices and totals are a
projection computed from the live catalog every time they are needed.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from ..exceptions import CartItemNotFound, ProductNotFound
from ..value_objects import Money
from .product import Product


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class CartItem:
    product_id: str
    article: int
    quantity: int
    added_at: datetime = field(default_factory=_utcnow)

    def matches(self, product_id: str, article: int) -> bool:
        return self.product_id == product_id and self.article == article


@dataclass(frozen=True)
class CartTotals:
    product_count: int
    gross: Money
    discount: Money
    net: Money

    @classmethod
    def empty(cls, currency: str = "RUB") -> "CartTotals":
        zero = Money.zero(currency)
        return cls(product_count=0, gross=zero, discount=zero, net=zero)


@dataclass(frozen=True)
class PricedLine:
    """A cart line priced against the catalog at one instant."""
    product_id: str
    article: int
    title: str
    quantity: int
    unit_price: Money
    discount_percent: Decimal
    total: Money
    discount: Money


@dataclass
class Cart:
    """
    The user's pending selection.

    Invariants:
    - every line has quantity >= 1
    - (product, article) pairs are unique
    """
    owner_id: str
    items: List[CartItem] = field(default_factory=list)
    last_activity: datetime = field(default_factory=_utcnow)

    @property
    def is_empty(self) -> bool:
        return not self.items

    def find(self, product_id: str, article: int) -> Optional[CartItem]:
        for item in self.items:
            if item.matches(product_id, article):
                return item
        return None

    def add_item(self, product_id: str, article: int, quantity: int) -> CartItem:
        """Add a line, merging into an existing (product, article) line."""
        if quantity < 1:
            raise ValueError("Quantity must be at least 1")

        existing = self.find(product_id, article)
        if existing:
            existing.quantity += quantity
            self._touch()
            return existing

        item = CartItem(product_id=product_id, article=article, quantity=quantity)
        self.items.append(item)
        self._touch()
        return item

    def set_quantity(self, product_id: str, article: int, quantity: int) -> CartItem:
        if quantity < 1:
            raise ValueError("Quantity must be at least 1")

        item = self.find(product_id, article)
        if item is None:
            raise CartItemNotFound()
        item.quantity = quantity
        self._touch()
        return item

    def remove_item(self, product_id: str, article: int) -> None:
        item = self.find(product_id, article)
        if item is None:
            raise CartItemNotFound()
        self.items.remove(item)
        self._touch()

    def clear(self) -> None:
        self.items = []
        self._touch()

    def _touch(self) -> None:
        self.last_activity = _utcnow()


def price_cart(
    cart: Cart,
    catalog: Dict[str, Product],
    currency: str = "RUB",
) -> Tuple[List[PricedLine], CartTotals]:
    """
    Price every cart line against the given catalog.

    Pure function of the cart lines and the catalog state passed in.

    Raises:
        ProductNotFound: if a line references a product or article that no
            longer exists
    """
    lines: List[PricedLine] = []
    count = 0
    gross = Money.zero(currency)
    discount = Money.zero(currency)

    for item in cart.items:
        product = catalog.get(item.product_id)
        variant = product.variant(item.article) if product else None
        if product is None or variant is None:
            raise ProductNotFound(
                f"Товар {item.product_id} (артикул {item.article}) не найден"
            )

        line_total = variant.price.times(item.quantity).rounded()
        line_discount = variant.price.times(item.quantity).percent(variant.discount_percent)
        lines.append(
            PricedLine(
                product_id=product.id,
                article=variant.article,
                title=product.title,
                quantity=item.quantity,
                unit_price=variant.price,
                discount_percent=variant.discount_percent,
                total=line_total,
                discount=line_discount,
            )
        )
        count += item.quantity
        gross = gross + line_total
        discount = discount + line_discount

    totals = CartTotals(
        product_count=count,
        gross=gross.rounded(),
        discount=discount.rounded(),
        net=(gross - discount).rounded(),
    )
    return lines, totals
