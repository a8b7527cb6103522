"""
Notification diagnostics.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from app.errors import InvalidRequestError
from app.routers.dependencies import get_notifier
from app.services.notifications import NotificationDispatcher

router = APIRouter()


class TestEmailRequest(BaseModel):
    to: Optional[str] = None


@router.post("/test-email")
async def send_test_email(
    payload: TestEmailRequest,
    notifier: NotificationDispatcher = Depends(get_notifier),
):
    if not payload.to:
        raise InvalidRequestError("Recipient is required", details="to is required")
    result = await notifier.test_email(payload.to)
    return {"success": result.success, **result.to_dict()}


@router.get("/health")
async def notification_health(notifier: NotificationDispatcher = Depends(get_notifier)):
    """Checks SMTP reachability without sending mail."""
    status = await notifier.health()
    return {"success": True, **status}
