"""
Razorpay pass-through API.

Direct access to gateway orders, payments and refunds for the storefront's
back office, plus the publishable checkout configuration.
"""

from decimal import Decimal
from typing import Dict, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from app.auth_middleware import get_current_user
from app.config import Settings, get_settings
from app.integrations.razorpay import RazorpayClient
from app.routers.dependencies import get_razorpay_client
from app.services.orders import to_minor_units

router = APIRouter()


class GatewayOrderRequest(BaseModel):
    amount: Decimal  # rupees
    currency: Optional[str] = None
    receipt: str
    notes: Optional[Dict[str, str]] = None


class RefundRequest(BaseModel):
    payment_id: str
    amount: Optional[Decimal] = None  # rupees, full refund when omitted
    notes: Optional[Dict[str, str]] = None


@router.get("/orders")
async def list_orders(
    count: int = Query(10),
    skip: int = Query(0),
    client: RazorpayClient = Depends(get_razorpay_client),
):
    return {"success": True, "data": await client.list_orders(count=count, skip=skip)}


@router.post("/orders")
async def create_order(
    payload: GatewayOrderRequest,
    client: RazorpayClient = Depends(get_razorpay_client),
    settings: Settings = Depends(get_settings),
):
    order = await client.create_order(
        amount=to_minor_units(payload.amount),
        currency=payload.currency or settings.CURRENCY,
        receipt=payload.receipt,
        notes=payload.notes,
    )
    return {"success": True, "data": order.to_dict()}


@router.get("/orders/{order_id}")
async def fetch_order(order_id: str, client: RazorpayClient = Depends(get_razorpay_client)):
    return {"success": True, "data": await client.fetch_order(order_id)}


@router.get("/payments")
async def list_payments(
    count: int = Query(10),
    skip: int = Query(0),
    client: RazorpayClient = Depends(get_razorpay_client),
):
    return {"success": True, "data": await client.list_payments(count=count, skip=skip)}


@router.get("/payments/{payment_id}")
async def fetch_payment(payment_id: str, client: RazorpayClient = Depends(get_razorpay_client)):
    return {"success": True, "data": await client.fetch_payment(payment_id)}


@router.post("/refunds", dependencies=[Depends(get_current_user)])
async def create_refund(payload: RefundRequest, client: RazorpayClient = Depends(get_razorpay_client)):
    amount = to_minor_units(payload.amount) if payload.amount is not None else None
    refund = await client.create_refund(payload.payment_id, amount=amount, notes=payload.notes)
    return {"success": True, "data": refund}


@router.get("/config")
async def get_config(client: RazorpayClient = Depends(get_razorpay_client)):
    """Key id for the checkout widget. The secret never leaves the server."""
    return {"success": True, **client.public_config()}
