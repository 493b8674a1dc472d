"""
Cart endpoints.

Totals are recomputed from live catalog prices on every response.
"""
from fastapi import APIRouter, Depends

from api.auth import get_current_user
from api.dependencies import get_cart_service
from core.application.dtos import AddCartItemRequest, CartDTO, SyncCartRequest, UpdateCartItemRequest
from core.application.services import CartService
from core.domain.value_objects import UserIdentity


router = APIRouter()


@router.get("", response_model=CartDTO, summary="Get cart")
async def get_cart(
    user: UserIdentity = Depends(get_current_user),
    service: CartService = Depends(get_cart_service),
) -> CartDTO:
    return await service.get_cart(user.user_id)


@router.post("/items", response_model=CartDTO, summary="Add item to cart")
async def add_item(
    request: AddCartItemRequest,
    user: UserIdentity = Depends(get_current_user),
    service: CartService = Depends(get_cart_service),
) -> CartDTO:
    return await service.add_item(user.user_id, request.product_id, request.article, request.quantity)


@router.patch("/items/{product_id}/{article}", response_model=CartDTO, summary="Set item quantity")
async def update_item(
    product_id: str,
    article: int,
    request: UpdateCartItemRequest,
    user: UserIdentity = Depends(get_current_user),
    service: CartService = Depends(get_cart_service),
) -> CartDTO:
    return await service.update_quantity(user.user_id, product_id, article, request.quantity)


@router.delete("/items/{product_id}/{article}", response_model=CartDTO, summary="Remove item")
async def remove_item(
    product_id: str,
    article: int,
    user: UserIdentity = Depends(get_current_user),
    service: CartService = Depends(get_cart_service),
) -> CartDTO:
    return await service.remove_item(user.user_id, product_id, article)


@router.delete("", response_model=CartDTO, summary="Clear cart")
async def clear_cart(
    user: UserIdentity = Depends(get_current_user),
    service: CartService = Depends(get_cart_service),
) -> CartDTO:
    return await service.clear(user.user_id)


@router.post("/sync", response_model=CartDTO, summary="Merge a client-side cart")
async def sync_cart(
    request: SyncCartRequest,
    user: UserIdentity = Depends(get_current_user),
    service: CartService = Depends(get_cart_service),
) -> CartDTO:
    return await service.sync(user.user_id, request.items)
