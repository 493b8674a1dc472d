"""SQLAlchemy Cart Repository Implementation."""
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from core.domain.entities import Cart, CartItem
from core.domain.repositories import CartRepository
from core.infrastructure.database.models import CartItemModel, CartModel
from core.infrastructure.database.repositories.sqlalchemy_order_repository import as_aware


class SQLAlchemyCartRepository(CartRepository):
    """One row per owner in ``carts``; lines are rewritten on every save."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def get_by_owner(self, owner_id: str) -> Optional[Cart]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(CartModel)
                .options(selectinload(CartModel.items))
                .where(CartModel.owner_id == owner_id)
            )
            model = result.scalar_one_or_none()
            if model is None:
                return None
            return Cart(
                owner_id=model.owner_id,
                items=[
                    CartItem(
                        product_id=item.product_id,
                        article=item.article,
                        quantity=item.quantity,
                        added_at=as_aware(item.added_at),
                    )
                    for item in model.items
                ],
                last_activity=as_aware(model.last_activity),
            )

    async def save(self, cart: Cart) -> None:
        async with self._session_factory() as session, session.begin():
            model = await session.get(CartModel, cart.owner_id)
            if model is None:
                session.add(CartModel(owner_id=cart.owner_id, last_activity=cart.last_activity))
            else:
                model.last_activity = cart.last_activity

            await session.execute(delete(CartItemModel).where(CartItemModel.owner_id == cart.owner_id))
            await session.flush()
            session.add_all(
                CartItemModel(
                    owner_id=cart.owner_id,
                    position=position,
                    product_id=item.product_id,
                    article=item.article,
                    quantity=item.quantity,
                    added_at=item.added_at,
                )
                for position, item in enumerate(cart.items)
            )
