"""
SQLAlchemy Product Repository Implementation.

Stock decrements are a single conditional UPDATE, so two concurrent
checkouts can never both take the last unit.
"""
from decimal import Decimal
from typing import Dict, Iterable, Optional
import logging

from sqlalchemy import and_, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from core.domain.entities import Product, ProductVariant
from core.domain.repositories import ProductRepository
from core.domain.value_objects import Money
from core.infrastructure.database.models import ProductModel, ProductVariantModel


logger = logging.getLogger(__name__)


class SQLAlchemyProductRepository(ProductRepository):

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def get(self, product_id: str) -> Optional[Product]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(ProductModel)
                .options(selectinload(ProductModel.variants))
                .where(ProductModel.id == product_id)
            )
            model = result.scalar_one_or_none()
            return self._to_domain_entity(model) if model else None

    async def get_many(self, product_ids: Iterable[str]) -> Dict[str, Product]:
        ids = list(product_ids)
        if not ids:
            return {}
        async with self._session_factory() as session:
            result = await session.execute(
                select(ProductModel)
                .options(selectinload(ProductModel.variants))
                .where(ProductModel.id.in_(ids))
            )
            return {model.id: self._to_domain_entity(model) for model in result.scalars().all()}

    async def decrement_stock_if_available(self, product_id: str, article: int, quantity: int) -> bool:
        async with self._session_factory() as session, session.begin():
            result = await session.execute(
                update(ProductVariantModel)
                .where(
                    and_(
                        ProductVariantModel.product_id == product_id,
                        ProductVariantModel.article == article,
                        ProductVariantModel.stock >= quantity,
                    )
                )
                .values(stock=ProductVariantModel.stock - quantity)
            )
            return result.rowcount == 1

    async def increment_purchase_count(self, product_id: str, article: int, quantity: int) -> None:
        async with self._session_factory() as session, session.begin():
            await session.execute(
                update(ProductVariantModel)
                .where(
                    and_(
                        ProductVariantModel.product_id == product_id,
                        ProductVariantModel.article == article,
                    )
                )
                .values(purchase_count=ProductVariantModel.purchase_count + quantity)
            )

    async def save(self, product: Product) -> None:
        async with self._session_factory() as session, session.begin():
            result = await session.execute(
                select(ProductModel)
                .options(selectinload(ProductModel.variants))
                .where(ProductModel.id == product.id)
            )
            model = result.scalar_one_or_none()
            if model is None:
                model = ProductModel(id=product.id, title=product.title, variants=[])
                session.add(model)
            model.title = product.title

            existing = {variant.article: variant for variant in model.variants}
            wanted = {variant.article for variant in product.variants}
            for variant_model in list(model.variants):
                if variant_model.article not in wanted:
                    model.variants.remove(variant_model)

            for variant in product.variants:
                variant_model = existing.get(variant.article)
                if variant_model is None:
                    variant_model = ProductVariantModel(article=variant.article)
                    model.variants.append(variant_model)
                variant_model.label = variant.label
                variant_model.price = variant.price.amount
                variant_model.currency = variant.price.currency
                variant_model.discount_percent = variant.discount_percent
                variant_model.stock = variant.stock
                variant_model.purchase_count = variant.purchase_count

        logger.info(f"✅ Saved product {product.id} ({len(product.variants)} variants)")

    @staticmethod
    def _to_domain_entity(model: ProductModel) -> Product:
        return Product(
            id=model.id,
            title=model.title,
            variants=[
                ProductVariant(
                    article=variant.article,
                    price=Money(amount=Decimal(variant.price), currency=variant.currency),
                    discount_percent=Decimal(variant.discount_percent),
                    stock=variant.stock,
                    purchase_count=variant.purchase_count,
                    label=variant.label,
                )
                for variant in model.variants
            ],
        )
