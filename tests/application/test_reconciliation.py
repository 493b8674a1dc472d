"""Partial checkout failures and their later repair."""
from unittest.mock import AsyncMock

import pytest

from core.application.dtos import UpdateOrderStatusRequest
from core.domain.enums import OrderStatus, PaymentMethod
from core.domain.exceptions import OrderNotFound


async def _variant(products, product_id, article):
    return (await products.get(product_id)).variant(article)


@pytest.mark.asyncio
async def test_stock_race_after_persist_still_returns_order(
    order_service, cart_service, products, orders, carts, reconciliation_queue, customer, checkout_request,
):
    await cart_service.add_item(customer.user_id, "mug", 101, 1)
    await cart_service.add_item(customer.user_id, "tshirt", 201, 2)

    # Another checkout takes the t-shirts between the pre-flight and the decrement
    original = products.decrement_stock_if_available

    async def racing_decrement(product_id, article, quantity):
        if product_id == "tshirt":
            await original(product_id, article, 2)
        return await original(product_id, article, quantity)

    products.decrement_stock_if_available = racing_decrement

    response = await order_service.create_order(customer, checkout_request(PaymentMethod.CASH))

    stored = await orders.get(response.order.id)
    assert stored is not None
    assert stored.items[0].stock_deducted is True
    assert stored.items[1].stock_deducted is False
    assert stored.stock_reserved is False
    assert stored.cart_cleared is True
    assert (await carts.get_by_owner(customer.user_id)).is_empty

    assert len(reconciliation_queue.published) == 1
    assert reconciliation_queue.published[0]["order_id"] == response.order.id
    assert "article=201" in reconciliation_queue.published[0]["reason"]


@pytest.mark.asyncio
async def test_cart_failure_is_queued(
    order_service, cart_service, carts, orders, reconciliation_queue, customer, checkout_request,
):
    await cart_service.add_item(customer.user_id, "mug", 101, 1)
    carts.save = AsyncMock(side_effect=RuntimeError("write conflict"))

    response = await order_service.create_order(customer, checkout_request(PaymentMethod.CASH))

    stored = await orders.get(response.order.id)
    assert stored.stock_reserved is True
    assert stored.cart_cleared is False
    assert reconciliation_queue.published[0]["reason"].startswith("cart:")


@pytest.mark.asyncio
async def test_reconcile_deducts_missing_stock_and_trims_cart(
    order_service, cart_service, products, orders, carts, reconciliation_service, customer, checkout_request,
):
    await cart_service.add_item(customer.user_id, "mug", 101, 2)
    real_save = carts.save
    carts.save = AsyncMock(side_effect=RuntimeError("write conflict"))
    response = await order_service.create_order(customer, checkout_request(PaymentMethod.CASH))
    carts.save = real_save

    # The customer keeps shopping before reconciliation runs
    await cart_service.add_item(customer.user_id, "tshirt", 201, 1)

    assert await reconciliation_service.reconcile_order(response.order.id) is True

    stored = await orders.get(response.order.id)
    assert not stored.needs_reconciliation
    cart = await carts.get_by_owner(customer.user_id)
    assert [(i.product_id, i.quantity) for i in cart.items] == [("tshirt", 1)]
    assert (await _variant(products, "mug", 101)).stock == 3


@pytest.mark.asyncio
async def test_sweep_reports_repaired_and_pending(
    order_service, cart_service, products, orders, reconciliation_service, customer, checkout_request,
):
    await cart_service.add_item(customer.user_id, "tshirt", 201, 2)
    original = products.decrement_stock_if_available
    products.decrement_stock_if_available = AsyncMock(return_value=False)
    response = await order_service.create_order(customer, checkout_request(PaymentMethod.CASH))

    # Still no stock: stays pending
    report = await reconciliation_service.sweep()
    assert report.checked == 1
    assert report.still_pending == [response.order.order_number]

    products.decrement_stock_if_available = original
    report = await reconciliation_service.sweep()
    assert report.repaired == [response.order.order_number]
    assert (await _variant(products, "tshirt", 201)).stock == 0
    assert (await _variant(products, "tshirt", 201)).purchase_count == 2

    assert (await reconciliation_service.sweep()).checked == 0


@pytest.mark.asyncio
async def test_cancelled_orders_are_not_reconciled(
    order_service, cart_service, products, orders, reconciliation_service, customer, checkout_request,
):
    await cart_service.add_item(customer.user_id, "tshirt", 201, 1)
    products.decrement_stock_if_available = AsyncMock(return_value=False)
    response = await order_service.create_order(customer, checkout_request(PaymentMethod.CASH))
    await order_service.update_status(response.order.id, UpdateOrderStatusRequest(status=OrderStatus.CANCELLED))

    assert await reconciliation_service.reconcile_order(response.order.id) is False
    assert (await reconciliation_service.sweep()).checked == 0


@pytest.mark.asyncio
async def test_reconcile_unknown_order(reconciliation_service):
    with pytest.raises(OrderNotFound):
        await reconciliation_service.reconcile_order("missing")


@pytest.mark.asyncio
async def test_status_change_does_not_undo_reconciliation(
    order_service, cart_service, products, orders, reconciliation_service, customer, checkout_request,
):
    await cart_service.add_item(customer.user_id, "mug", 101, 2)
    original = products.decrement_stock_if_available
    products.decrement_stock_if_available = AsyncMock(return_value=False)
    response = await order_service.create_order(customer, checkout_request(PaymentMethod.CASH))
    products.decrement_stock_if_available = original

    # An admin status change that loaded the order before reconciliation ran
    stale = await orders.get(response.order.id)
    assert await reconciliation_service.reconcile_order(response.order.id) is True
    assert (await _variant(products, "mug", 101)).stock == 3

    stale.transition_to(OrderStatus.PROCESSING)
    assert await orders.update(stale, expected_status=OrderStatus.PENDING) is True

    stored = await orders.get(response.order.id)
    assert stored.status == OrderStatus.PROCESSING
    assert stored.stock_reserved is True
    assert not stored.needs_reconciliation

    report = await reconciliation_service.sweep()
    assert report.checked == 0
    assert (await _variant(products, "mug", 101)).stock == 3
