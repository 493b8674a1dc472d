"""
Support request intake.
"""
from fastapi import APIRouter, Depends, status

from api.dependencies import get_notifications, get_scheduler
from core.application.dtos import SupportRequestDTO
from core.application.interfaces import ITaskScheduler
from core.application.services import NotificationFanout


router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED, summary="Submit a support request")
async def create_request(
    request: SupportRequestDTO,
    notifications: NotificationFanout = Depends(get_notifications),
    scheduler: ITaskScheduler = Depends(get_scheduler),
):
    scheduler.schedule(lambda: notifications.notify_new_request(request), name="notify-new-request")
    return {"success": True, "message": "Заявка принята"}
