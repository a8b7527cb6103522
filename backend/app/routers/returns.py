"""
Returns API Router.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from app.auth_middleware import get_current_user
from app.routers.dependencies import get_return_service
from app.services.returns import NewReturn, ReturnService

router = APIRouter()


class CreateReturnRequest(BaseModel):
    order_id: Optional[str] = Field(None, alias="orderId")
    reason: Optional[str] = None
    customer_name: Optional[str] = Field(None, alias="customerName")
    customer_email: Optional[str] = Field(None, alias="customerEmail")
    customer_phone: Optional[str] = Field(None, alias="customerPhone")
    customer_address: Optional[str] = Field(None, alias="customerAddress")
    items: Optional[str] = None
    photo_urls: List[str] = Field(default_factory=list, alias="photoUrls")
    # Accepted for compatibility with older clients; the server decides the refund
    refund_percentage: Optional[int] = Field(None, alias="refundPercentage")

    class Config:
        populate_by_name = True


@router.post("/create")
async def create_return(
    payload: CreateReturnRequest,
    user_id: str = Depends(get_current_user),
    service: ReturnService = Depends(get_return_service),
):
    created = await service.create_return(
        user_id,
        NewReturn(
            order_id=payload.order_id,
            reason=payload.reason,
            customer_name=payload.customer_name,
            customer_email=payload.customer_email,
            customer_phone=payload.customer_phone,
            customer_address=payload.customer_address,
            items=payload.items,
            photo_urls=payload.photo_urls,
        ),
    )
    return {
        "success": True,
        "message": "Return request submitted successfully",
        "returnId": created.return_id,
        "refundAmount": float(created.refund_amount),
        "refundPercentage": created.refund_percentage,
        "priority": created.priority,
        "emailResult": created.notifications,
    }
