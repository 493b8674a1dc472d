"""
Catalog product with per-variant inventory records.

CRITICAL: This file must contain ZERO imports from:
- sqlalchemy
- pydantic
- fastapi
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional

from ..value_objects import Money


@dataclass
class ProductVariant:
    """
    Purchasable SKU of a product.

    ``stock`` never goes below zero; decrements go through the product
    repository's conditional decrement.
    """
    article: int
    price: Money
    discount_percent: Decimal = Decimal("0")
    stock: int = 0
    purchase_count: int = 0
    label: str = ""

    def __post_init__(self):
        if not isinstance(self.discount_percent, Decimal):
            self.discount_percent = Decimal(str(self.discount_percent))
        if self.stock < 0:
            raise ValueError(f"Stock cannot be negative for article {self.article}")

    def has_stock(self, quantity: int) -> bool:
        return self.stock >= quantity


@dataclass
class Product:
    """Catalog product; variants are the inventory records."""
    id: str
    title: str
    variants: List[ProductVariant] = field(default_factory=list)

    def variant(self, article: int) -> Optional[ProductVariant]:
        for variant in self.variants:
            if variant.article == article:
                return variant
        return None
