import asyncio

import pytest

from core.domain.exceptions import InsufficientStock, ProductNotFound


@pytest.mark.asyncio
async def test_check_availability(inventory):
    assert await inventory.check_availability("mug", 101, 5) is True
    assert await inventory.check_availability("mug", 101, 6) is False
    assert await inventory.check_availability("mug", 102, 1) is False
    assert await inventory.check_availability("ghost", 1, 1) is False


@pytest.mark.asyncio
async def test_decrement_and_purchase_count(inventory, products):
    await inventory.decrement_stock("mug", 101, 2)
    await inventory.increment_purchase_count("mug", 101, 2)

    variant = (await products.get("mug")).variant(101)
    assert variant.stock == 3
    assert variant.purchase_count == 2


@pytest.mark.asyncio
async def test_decrement_never_goes_negative(inventory, products):
    with pytest.raises(InsufficientStock) as exc_info:
        await inventory.decrement_stock("tshirt", 201, 3)

    assert exc_info.value.available == 2
    assert (await products.get("tshirt")).variant(201).stock == 2


@pytest.mark.asyncio
async def test_concurrent_decrements_do_not_oversell(inventory, products):
    results = await asyncio.gather(
        *(inventory.decrement_stock("tshirt", 201, 1) for _ in range(5)),
        return_exceptions=True,
    )

    failures = [r for r in results if isinstance(r, InsufficientStock)]
    assert len(failures) == 3
    assert (await products.get("tshirt")).variant(201).stock == 0


@pytest.mark.asyncio
async def test_available_stock_unknown_product(inventory):
    with pytest.raises(ProductNotFound):
        await inventory.available_stock("ghost", 1)
