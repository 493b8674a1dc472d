"""
Payment endpoints.

The provider webhook is acknowledged immediately; processing runs in the
background so a slow or failing handler never makes the provider retry.
"""
from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError
import logging

from api.auth import require_admin
from api.dependencies import get_order_service, get_payment_service, get_scheduler
from core.application.dtos import PaymentDTO, ProviderNotification
from core.application.interfaces import ITaskScheduler
from core.application.services import OrderService, PaymentService
from core.domain.value_objects import UserIdentity


logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/webhook", summary="Payment provider notification")
async def payment_webhook(
    request: Request,
    service: OrderService = Depends(get_order_service),
    scheduler: ITaskScheduler = Depends(get_scheduler),
):
    """Always answers 200; a payload that cannot be parsed is logged and dropped."""
    body = await request.body()
    try:
        notification = ProviderNotification.model_validate_json(body)
    except ValidationError as e:
        logger.warning(f"Webhook payload rejected ({len(body)} bytes): {e.errors()[:3]}")
        return {"success": True}

    logger.info(f"Webhook received: {notification.event} payment={notification.payment_id}")
    scheduler.schedule(
        lambda: service.handle_provider_notification(notification),
        name=f"webhook-{notification.event}-{notification.payment_id}",
    )
    return {"success": True}


@router.get("/{payment_id}", response_model=PaymentDTO, summary="Get payment (admin)")
async def get_payment(
    payment_id: str,
    _: UserIdentity = Depends(require_admin),
    service: PaymentService = Depends(get_payment_service),
) -> PaymentDTO:
    return await service.get_payment(payment_id)


@router.post("/{payment_id}/capture", response_model=PaymentDTO, summary="Capture payment (admin)")
async def capture_payment(
    payment_id: str,
    _: UserIdentity = Depends(require_admin),
    service: PaymentService = Depends(get_payment_service),
) -> PaymentDTO:
    return await service.capture_payment(payment_id)


@router.post("/{payment_id}/cancel", response_model=PaymentDTO, summary="Cancel payment (admin)")
async def cancel_payment(
    payment_id: str,
    _: UserIdentity = Depends(require_admin),
    service: PaymentService = Depends(get_payment_service),
) -> PaymentDTO:
    return await service.cancel_payment(payment_id)
