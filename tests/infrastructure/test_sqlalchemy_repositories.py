"""
SQLAlchemy repositories against an in-memory SQLite database.
"""
from decimal import Decimal

import pytest
import pytest_asyncio

from core.application.services import CartService
from core.domain.entities import Cart, Order, OrderOwner, price_cart
from core.domain.enums import DeliveryType, OrderStatus, PaymentMethod
from core.domain.value_objects import DeliveryInfo
from core.infrastructure.database.config import (
    close_database,
    create_engine,
    create_session_factory,
    init_database,
)
from core.infrastructure.database.repositories.sqlalchemy_cart_repository import SQLAlchemyCartRepository
from core.infrastructure.database.repositories.sqlalchemy_order_repository import SQLAlchemyOrderRepository
from core.infrastructure.database.repositories.sqlalchemy_product_repository import SQLAlchemyProductRepository
from core.settings.modules import DatabaseSettings


@pytest_asyncio.fixture
async def session_factory():
    engine = create_engine(DatabaseSettings(backend="sql", database_url="sqlite+aiosqlite:///:memory:"))
    await init_database(engine)
    yield create_session_factory(engine)
    await close_database(engine)


@pytest_asyncio.fixture
async def sql_products(session_factory, catalog):
    repository = SQLAlchemyProductRepository(session_factory)
    for product in catalog:
        await repository.save(product)
    return repository


@pytest.fixture
def sql_orders(session_factory):
    return SQLAlchemyOrderRepository(session_factory)


@pytest.fixture
def sql_carts(session_factory):
    return SQLAlchemyCartRepository(session_factory)


def _order(catalog, payment_method=PaymentMethod.CARD, owner_id="user-1") -> Order:
    cart = Cart(owner_id=owner_id)
    cart.add_item("mug", 101, 2)
    cart.add_item("tshirt", 201, 1)
    lines, _ = price_cart(cart, {p.id: p for p in catalog})
    return Order.create(
        owner=OrderOwner(user_id=owner_id, email="buyer@example.com", telegram_id=555),
        lines=lines,
        delivery_type=DeliveryType.COURIER,
        delivery_info=DeliveryInfo(
            phone="+79001234567", city="Москва", address="ул. Тверская, 1", recipient_name="Иван",
        ),
        payment_method=payment_method,
    )


@pytest.mark.asyncio
async def test_product_round_trip(sql_products):
    mug = await sql_products.get("mug")

    assert mug.title == "Кружка"
    assert [v.article for v in mug.variants] == [101, 102]
    assert mug.variant(101).price.amount == Decimal("200.00")
    assert mug.variant(101).discount_percent == Decimal("10")
    assert await sql_products.get("ghost") is None
    assert set(await sql_products.get_many(["mug", "tshirt", "ghost"])) == {"mug", "tshirt"}


@pytest.mark.asyncio
async def test_conditional_decrement(sql_products):
    assert await sql_products.decrement_stock_if_available("tshirt", 201, 2) is True
    assert await sql_products.decrement_stock_if_available("tshirt", 201, 1) is False
    await sql_products.increment_purchase_count("tshirt", 201, 2)

    variant = (await sql_products.get("tshirt")).variant(201)
    assert variant.stock == 0
    assert variant.purchase_count == 2


@pytest.mark.asyncio
async def test_cart_round_trip(sql_carts, sql_products):
    service = CartService(sql_carts, sql_products)
    await service.add_item("user-1", "mug", 101, 2)
    await service.add_item("user-1", "tshirt", 201, 1)
    await service.update_quantity("user-1", "mug", 101, 3)

    cart = await sql_carts.get_by_owner("user-1")
    assert [(i.product_id, i.article, i.quantity) for i in cart.items] == [
        ("mug", 101, 3),
        ("tshirt", 201, 1),
    ]
    assert cart.last_activity.tzinfo is not None

    await service.clear("user-1")
    assert (await sql_carts.get_by_owner("user-1")).is_empty
    assert await sql_carts.get_by_owner("nobody") is None


@pytest.mark.asyncio
async def test_order_round_trip(sql_orders, catalog):
    order = _order(catalog)
    order.attach_payment("pay-1")
    await sql_orders.add(order)

    loaded = await sql_orders.get(order.id)
    assert loaded.order_number == order.order_number
    assert loaded.status == OrderStatus.WAITING_FOR_PAYMENT
    assert loaded.owner == order.owner
    assert loaded.delivery_info.city == "Москва"
    assert [(line.article, line.quantity) for line in loaded.items] == [(101, 2), (201, 1)]
    assert loaded.net_amount == order.net_amount
    assert loaded.created_at.tzinfo is not None

    assert (await sql_orders.find_by_payment_id("pay-1")).id == order.id
    assert (await sql_orders.find_by_order_number(str(order.order_number))).id == order.id


@pytest.mark.asyncio
async def test_duplicate_order_rejected(sql_orders, catalog):
    order = _order(catalog)
    await sql_orders.add(order)

    with pytest.raises(ValueError):
        await sql_orders.add(order)


@pytest.mark.asyncio
async def test_status_compare_and_set(sql_orders, catalog):
    order = _order(catalog, PaymentMethod.CASH)
    await sql_orders.add(order)

    order.transition_to(OrderStatus.PROCESSING)
    assert await sql_orders.update(order, expected_status=OrderStatus.PENDING) is True

    stale = _order(catalog, PaymentMethod.CASH)
    stale.id = order.id
    stale.order_number = order.order_number
    stale.transition_to(OrderStatus.CANCELLED)
    assert await sql_orders.update(stale, expected_status=OrderStatus.PENDING) is False

    assert (await sql_orders.get(order.id)).status == OrderStatus.PROCESSING


@pytest.mark.asyncio
async def test_flags_and_reconciliation_listing(sql_orders, catalog):
    healthy = _order(catalog, PaymentMethod.CASH)
    for line in healthy.items:
        healthy.mark_line_deducted(line)
    healthy.mark_cart_cleared()
    broken = _order(catalog, PaymentMethod.CASH, owner_id="user-2")
    broken.mark_line_deducted(broken.items[0])
    broken.mark_cart_cleared()
    for order in (healthy, broken):
        await sql_orders.add(order)

    pending = await sql_orders.list_needing_reconciliation()
    assert [o.id for o in pending] == [broken.id]
    assert [line.stock_deducted for line in pending[0].items] == [True, False]

    broken.mark_line_deducted(broken.items[1])
    await sql_orders.update_flags(broken)
    assert await sql_orders.list_needing_reconciliation() == []


@pytest.mark.asyncio
async def test_owner_and_admin_listings(sql_orders, catalog):
    mine = _order(catalog, owner_id="user-1")
    theirs = _order(catalog, owner_id="user-2")
    await sql_orders.add(mine)
    await sql_orders.add(theirs)

    assert [o.id for o in await sql_orders.list_by_owner("user-1")] == [mine.id]
    assert len(await sql_orders.list_all()) == 2
    assert len(await sql_orders.list_all(limit=1)) == 1
    assert await sql_orders.count_all() == 2


@pytest.mark.asyncio
async def test_status_write_keeps_reconciliation_flags(sql_orders, catalog):
    order = _order(catalog, PaymentMethod.CASH)
    order.mark_cart_cleared()
    await sql_orders.add(order)

    # Admin copy loaded before reconciliation finishes the stock deduction
    stale = await sql_orders.get(order.id)
    for line in order.items:
        order.mark_line_deducted(line)
    await sql_orders.update_flags(order)

    stale.transition_to(OrderStatus.PROCESSING)
    assert await sql_orders.update(stale, expected_status=OrderStatus.PENDING) is True

    stored = await sql_orders.get(order.id)
    assert stored.status == OrderStatus.PROCESSING
    assert stored.stock_reserved is True
    assert [line.stock_deducted for line in stored.items] == [True, True]
    assert await sql_orders.list_needing_reconciliation() == []
