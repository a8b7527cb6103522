"""
Payment verification callback.

The checkout widget posts Razorpay's signed result here once the customer
has paid.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from app.routers.dependencies import get_orchestrator
from app.services.orders import OrderOrchestrator

router = APIRouter()


class VerifyPaymentRequest(BaseModel):
    razorpay_order_id: Optional[str] = None
    razorpay_payment_id: Optional[str] = None
    razorpay_signature: Optional[str] = None
    order_id: Optional[str] = None


@router.post("/verify-payment")
async def verify_payment(
    payload: VerifyPaymentRequest,
    orchestrator: OrderOrchestrator = Depends(get_orchestrator),
):
    result = await orchestrator.verify_payment(
        order_id=payload.order_id,
        gateway_order_id=payload.razorpay_order_id,
        gateway_payment_id=payload.razorpay_payment_id,
        signature=payload.razorpay_signature,
    )
    return {
        "success": True,
        "message": "Payment already verified" if result.already_verified else "Payment verified successfully",
        "order": result.summary(),
        "alreadyVerified": result.already_verified,
        "emailResult": result.notifications,
    }
