"""
Orders API Router.

Checkout, order lookup, fulfillment status updates and invoices.
"""

import json
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, Field

from app.config import Settings, get_settings
from app.routers.dependencies import get_branding, get_orchestrator, get_order_store
from app.services.invoice import invoice_number, publish_invoice, render_invoice
from app.services.notifications import Branding
from app.services.order_store import OrderStore
from app.services.orders import NewOrder, OrderLine, OrderOrchestrator, serialize_order

logger = logging.getLogger(__name__)

router = APIRouter()


class OrderItemIn(BaseModel):
    product_id: str
    quantity: int


class CreateOrderRequest(BaseModel):
    """Checkout payload. Addresses may be free text or structured objects."""
    user_id: str
    items: List[OrderItemIn]
    total_amount: Decimal
    shipping_address: Union[str, Dict[str, Any]]
    billing_address: Union[str, Dict[str, Any]]
    payment_method: str = "razorpay"
    shipping_charges: Decimal = Decimal("0")
    tax_amount: Decimal = Decimal("0")
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None


class UpdateStatusRequest(BaseModel):
    order_id: Optional[str] = Field(None, alias="orderId")
    status: Optional[str] = None
    tracking_number: Optional[str] = Field(None, alias="trackingNumber")

    class Config:
        populate_by_name = True


def _address(value: Union[str, Dict[str, Any]]) -> str:
    if isinstance(value, dict):
        return json.dumps(value) if value else ""
    return value


@router.post("/orders/create")
async def create_order(
    payload: CreateOrderRequest,
    orchestrator: OrderOrchestrator = Depends(get_orchestrator),
):
    """Validate the cart, open a Razorpay order and persist a pending order."""
    created = await orchestrator.create_order(
        NewOrder(
            user_id=payload.user_id,
            items=[OrderLine(item.product_id, item.quantity) for item in payload.items],
            total_amount=payload.total_amount,
            shipping_address=_address(payload.shipping_address),
            billing_address=_address(payload.billing_address),
            payment_method=payload.payment_method,
            shipping_charges=payload.shipping_charges,
            tax_amount=payload.tax_amount,
            customer_name=payload.customer_name,
            customer_email=payload.customer_email,
            customer_phone=payload.customer_phone,
        )
    )
    return {
        "success": True,
        "order": {
            "id": created.order_id,
            "razorpay_order_id": created.gateway_order_id,
            "amount": float(created.amount),
            "currency": created.currency,
            "receipt_id": created.receipt_id,
        },
        "razorpayOrder": {
            "id": created.gateway_order_id,
            "amount": created.amount_minor,
            "currency": created.currency,
            "receipt": created.receipt_id,
        },
        "orderId": created.order_id,
        "stockWarnings": created.stock_warnings,
        "message": "Order created successfully",
    }


@router.get("/orders/{order_id}")
async def get_order(
    order_id: str,
    orchestrator: OrderOrchestrator = Depends(get_orchestrator),
):
    order = await orchestrator.get_order(order_id)
    return {"success": True, "data": serialize_order(order)}


@router.post("/rs-orders/update-status")
async def update_order_status(
    payload: UpdateStatusRequest,
    orchestrator: OrderOrchestrator = Depends(get_orchestrator),
):
    """Move a confirmed, paid order to shipped, delivered or cancelled."""
    change = await orchestrator.update_status(
        payload.order_id, payload.status, tracking_number=payload.tracking_number
    )
    return {
        "success": True,
        "message": f"Order status updated to {change.new_status} successfully",
        "emailResult": change.notification,
    }


@router.get("/orders/{order_id}/invoice", response_class=HTMLResponse)
async def get_invoice(
    order_id: str,
    orchestrator: OrderOrchestrator = Depends(get_orchestrator),
    branding: Branding = Depends(get_branding),
):
    order = await orchestrator.get_order(order_id)
    html = render_invoice(order, branding)
    return HTMLResponse(
        content=html,
        headers={
            "Content-Disposition": f'inline; filename="{invoice_number(order)}.html"',
            "Cache-Control": "private, max-age=3600",
        },
    )


@router.post("/orders/{order_id}/generate-invoice")
async def generate_invoice(
    order_id: str,
    orchestrator: OrderOrchestrator = Depends(get_orchestrator),
    store: OrderStore = Depends(get_order_store),
    settings: Settings = Depends(get_settings),
):
    order = await orchestrator.get_order(order_id)
    invoice_url = await publish_invoice(store, order, settings.HOST)
    return {"success": True, "invoiceUrl": invoice_url, "message": "Invoice generated successfully"}
