"""
Order endpoints.

Checkout, order queries and administrative status management.
"""
from fastapi import APIRouter, Depends, Query, status
import logging

from api.auth import get_current_user, require_admin
from api.dependencies import get_order_service, get_reconciliation_service
from core.application.dtos import (
    CheckoutResponse,
    CreateOrderRequest,
    OrderDTO,
    OrderListDTO,
    ReconciliationReportDTO,
    UpdateOrderStatusRequest,
)
from core.application.services import OrderService, ReconciliationService
from core.domain.value_objects import UserIdentity


logger = logging.getLogger(__name__)
router = APIRouter()


# =============================================================================
# CHECKOUT
# =============================================================================

@router.post(
    "",
    response_model=CheckoutResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create order from cart",
    description="Turn the caller's cart into an order; online methods return a payment URL",
)
async def create_order(
    request: CreateOrderRequest,
    user: UserIdentity = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
) -> CheckoutResponse:
    return await service.create_order(user, request)


# =============================================================================
# QUERIES
# =============================================================================

@router.get("/my", response_model=OrderListDTO, summary="List own orders")
async def list_my_orders(
    user: UserIdentity = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
) -> OrderListDTO:
    return await service.list_my_orders(user)


@router.get("", response_model=OrderListDTO, summary="List all orders (admin)")
async def list_orders(
    limit: int = Query(default=50, ge=1, le=500, description="Maximum number of orders to return"),
    offset: int = Query(default=0, ge=0, description="Number of orders to skip"),
    _: UserIdentity = Depends(require_admin),
    service: OrderService = Depends(get_order_service),
) -> OrderListDTO:
    return await service.list_orders(limit=limit, offset=offset)


@router.post(
    "/reconcile",
    response_model=ReconciliationReportDTO,
    summary="Repair orders left inconsistent by a partial checkout failure (admin)",
)
async def reconcile_orders(
    admin: UserIdentity = Depends(require_admin),
    service: ReconciliationService = Depends(get_reconciliation_service),
) -> ReconciliationReportDTO:
    logger.info(f"Reconciliation sweep requested by {admin.user_id}")
    return await service.sweep()


@router.get("/{order_id}", response_model=OrderDTO, summary="Get order (owner or admin)")
async def get_order(
    order_id: str,
    user: UserIdentity = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
) -> OrderDTO:
    return await service.get_order(order_id, user)


# =============================================================================
# STATUS MANAGEMENT
# =============================================================================

@router.patch("/{order_id}/status", response_model=OrderDTO, summary="Change order status (admin)")
async def update_order_status(
    order_id: str,
    request: UpdateOrderStatusRequest,
    admin: UserIdentity = Depends(require_admin),
    service: OrderService = Depends(get_order_service),
) -> OrderDTO:
    logger.info(f"Status change {order_id} -> {request.status.value} by {admin.user_id}")
    return await service.update_status(order_id, request)
