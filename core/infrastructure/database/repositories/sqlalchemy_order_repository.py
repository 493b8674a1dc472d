"""
SQLAlchemy Order Repository Implementation.

Implements OrderRepository interface using SQLAlchemy (PostgreSQL in
production, SQLite in tests). Every call runs in its own short session and
transaction; status writes use a conditional UPDATE on the previous status.
"""
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from core.domain.entities import LIFECYCLE_FIELDS, Order, OrderLine, OrderOwner
from core.domain.enums import DeliveryType, OrderStatus, PaymentMethod
from core.domain.repositories import OrderRepository
from core.domain.state_machine import TERMINAL_STATUSES
from core.domain.value_objects import DeliveryInfo, Money, OrderNumber
from core.infrastructure.database.models import OrderLineModel, OrderModel


logger = logging.getLogger(__name__)


def as_aware(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite drops tzinfo; stored values are always UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SQLAlchemyOrderRepository(OrderRepository):
    """
    SQLAlchemy implementation of OrderRepository.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        """
        Initialize repository with a session factory.

        Args:
            session_factory: SQLAlchemy async session factory
        """
        self._session_factory = session_factory

    async def add(self, order: Order) -> None:
        try:
            async with self._session_factory() as session, session.begin():
                model = OrderModel(id=order.id, **self._order_columns(order))
                model.items = [
                    self._line_model(position, line)
                    for position, line in enumerate(order.items)
                ]
                session.add(model)
        except IntegrityError as e:
            raise ValueError(f"Order {order.order_number} already exists") from e

        logger.info(f"✅ Created order: {order.order_number}")

    async def update(self, order: Order, expected_status: Optional[OrderStatus] = None) -> bool:
        async with self._session_factory() as session, session.begin():
            stmt = update(OrderModel).where(OrderModel.id == order.id)
            if expected_status is not None:
                stmt = stmt.where(OrderModel.status == expected_status.value)
            result = await session.execute(stmt.values(**self._lifecycle_columns(order)))

            if result.rowcount != 1:
                logger.info(f"Conditional update of {order.order_number} matched no row")
                return False
        return True

    async def update_flags(self, order: Order) -> None:
        async with self._session_factory() as session, session.begin():
            await session.execute(
                update(OrderModel)
                .where(OrderModel.id == order.id)
                .values(stock_reserved=order.stock_reserved, cart_cleared=order.cart_cleared)
            )
            await self._write_line_flags(session, order)

    async def get(self, order_id: str) -> Optional[Order]:
        return await self._find_one(OrderModel.id == order_id)

    async def find_by_order_number(self, order_number: str) -> Optional[Order]:
        return await self._find_one(OrderModel.order_number == order_number)

    async def find_by_payment_id(self, payment_id: str) -> Optional[Order]:
        return await self._find_one(OrderModel.payment_id == payment_id)

    async def list_by_owner(self, owner_id: str) -> List[Order]:
        return await self._find_many(
            self._select().where(OrderModel.owner_id == owner_id).order_by(OrderModel.created_at.desc())
        )

    async def list_all(self, limit: int = 50, offset: int = 0) -> List[Order]:
        return await self._find_many(
            self._select().order_by(OrderModel.created_at.desc()).limit(limit).offset(offset)
        )

    async def count_all(self) -> int:
        async with self._session_factory() as session:
            result = await session.execute(select(func.count()).select_from(OrderModel))
            return result.scalar_one()

    async def list_needing_reconciliation(self) -> List[Order]:
        terminal = [status.value for status in TERMINAL_STATUSES]
        return await self._find_many(
            self._select().where(
                and_(
                    or_(OrderModel.stock_reserved.is_(False), OrderModel.cart_cleared.is_(False)),
                    OrderModel.status.notin_(terminal),
                )
            ).order_by(OrderModel.created_at)
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _select():
        return select(OrderModel).options(selectinload(OrderModel.items))

    async def _find_one(self, criterion) -> Optional[Order]:
        async with self._session_factory() as session:
            result = await session.execute(self._select().where(criterion))
            model = result.scalar_one_or_none()
            return self._to_domain_entity(model) if model else None

    async def _find_many(self, stmt) -> List[Order]:
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [self._to_domain_entity(model) for model in result.scalars().all()]

    @staticmethod
    async def _write_line_flags(session: AsyncSession, order: Order) -> None:
        for position, line in enumerate(order.items):
            await session.execute(
                update(OrderLineModel)
                .where(
                    and_(
                        OrderLineModel.order_id == order.id,
                        OrderLineModel.position == position,
                    )
                )
                .values(stock_deducted=line.stock_deducted)
            )

    @staticmethod
    def _order_columns(order: Order) -> Dict[str, Any]:
        info = order.delivery_info
        return {
            "order_number": str(order.order_number),
            "owner_id": order.owner.user_id,
            "owner_email": order.owner.email,
            "owner_telegram_id": order.owner.telegram_id,
            "status": order.status.value,
            "currency": order.currency,
            "delivery_type": order.delivery_type.value,
            "delivery_phone": info.phone,
            "delivery_city": info.city,
            "delivery_address": info.address,
            "delivery_recipient_name": info.recipient_name,
            "delivery_postal_code": info.postal_code,
            "delivery_comment": info.comment,
            "payment_method": order.payment_method.value,
            "payment_status": order.payment_status,
            "payment_id": order.payment_id,
            "tracking_number": order.tracking_number,
            "cancellation_reason": order.cancellation_reason,
            "estimated_delivery_date": order.estimated_delivery_date,
            "document_url": order.document_url,
            "stock_reserved": order.stock_reserved,
            "cart_cleared": order.cart_cleared,
            "created_at": order.created_at,
            "updated_at": order.updated_at,
            "cancelled_at": order.cancelled_at,
            "delivered_at": order.delivered_at,
        }

    @staticmethod
    def _lifecycle_columns(order: Order) -> Dict[str, Any]:
        columns = {name: getattr(order, name) for name in LIFECYCLE_FIELDS}
        columns["status"] = order.status.value
        return columns

    @staticmethod
    def _line_model(position: int, line: OrderLine) -> OrderLineModel:
        return OrderLineModel(
            position=position,
            product_id=line.product_id,
            article=line.article,
            title=line.title,
            quantity=line.quantity,
            unit_price=line.unit_price.amount,
            discount_percent=line.discount_percent,
            stock_deducted=line.stock_deducted,
        )

    def _to_domain_entity(self, model: OrderModel) -> Order:
        """
        Convert SQLAlchemy model to domain entity.

        Args:
            model: OrderModel from database

        Returns:
            Order domain entity
        """
        items = [
            OrderLine(
                product_id=line.product_id,
                article=line.article,
                title=line.title,
                quantity=line.quantity,
                unit_price=Money(amount=Decimal(line.unit_price), currency=model.currency),
                discount_percent=Decimal(line.discount_percent),
                stock_deducted=line.stock_deducted,
            )
            for line in model.items
        ]

        return Order(
            id=model.id,
            order_number=OrderNumber(model.order_number),
            owner=OrderOwner(
                user_id=model.owner_id,
                email=model.owner_email,
                telegram_id=model.owner_telegram_id,
            ),
            items=items,
            status=OrderStatus(model.status),
            delivery_type=DeliveryType(model.delivery_type),
            delivery_info=DeliveryInfo(
                phone=model.delivery_phone,
                city=model.delivery_city,
                address=model.delivery_address,
                recipient_name=model.delivery_recipient_name,
                postal_code=model.delivery_postal_code,
                comment=model.delivery_comment,
            ),
            payment_method=PaymentMethod(model.payment_method),
            currency=model.currency,
            payment_status=model.payment_status,
            payment_id=model.payment_id,
            tracking_number=model.tracking_number,
            cancellation_reason=model.cancellation_reason,
            estimated_delivery_date=model.estimated_delivery_date,
            document_url=model.document_url,
            created_at=as_aware(model.created_at),
            updated_at=as_aware(model.updated_at),
            cancelled_at=as_aware(model.cancelled_at),
            delivered_at=as_aware(model.delivered_at),
            stock_reserved=model.stock_reserved,
            cart_cleared=model.cart_cleared,
        )
