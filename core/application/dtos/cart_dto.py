"""Application DTOs for cart operations."""

from decimal import Decimal
from typing import List

from pydantic import Field

from core.application.dtos.base import ApiModel

from core.domain.entities import CartTotals, PricedLine


class AddCartItemRequest(ApiModel):
    product_id: str = Field(..., min_length=1)
    article: int
    quantity: int = Field(default=1, description="Quantity to add")

    model_config = {"frozen": True}


class UpdateCartItemRequest(ApiModel):
    quantity: int

    model_config = {"frozen": True}


class SyncCartRequest(ApiModel):
    """Client-side cart pushed after login."""

    items: List[AddCartItemRequest] = Field(default_factory=list)

    model_config = {"frozen": True}


class CartLineDTO(ApiModel):
    product_id: str
    article: int
    title: str
    quantity: int
    unit_price: Decimal
    discount_percent: Decimal
    total: Decimal
    discount: Decimal

    model_config = {"frozen": True}


class CartDTO(ApiModel):
    """Cart with totals projected from live catalog prices."""

    user_id: str
    items: List[CartLineDTO] = Field(default_factory=list)
    total_products: int = 0
    gross_amount: Decimal = Decimal("0.00")
    discount_amount: Decimal = Decimal("0.00")
    net_amount: Decimal = Decimal("0.00")

    model_config = {"frozen": True}

    @classmethod
    def from_priced(cls, user_id: str, lines: List[PricedLine], totals: CartTotals) -> "CartDTO":
        return cls(
            user_id=user_id,
            items=[
                CartLineDTO(
                    product_id=line.product_id,
                    article=line.article,
                    title=line.title,
                    quantity=line.quantity,
                    unit_price=line.unit_price.amount,
                    discount_percent=line.discount_percent,
                    total=line.total.amount,
                    discount=line.discount.amount,
                )
                for line in lines
            ],
            total_products=totals.product_count,
            gross_amount=totals.gross.amount,
            discount_amount=totals.discount.amount,
            net_amount=totals.net.amount,
        )
