"""
Order Orchestrator - the order lifecycle.

- create_order: validate cart -> gateway order -> pending order -> items
  (compensating delete on failure) -> best-effort stock decrement
- verify_payment: HMAC check -> conditional confirm -> notifications on the
  first confirmation only
- update_status: confirmed + paid -> shipped / delivered / cancelled

Money is Decimal rupees throughout; paise exist only at the gateway call.
"""

import logging
import secrets
import time
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional

from app.errors import (
    AmountMismatchError,
    GatewayError,
    InsufficientStockError,
    InvalidRequestError,
    InvalidSignatureError,
    InvalidUserError,
    NetworkError,
    NotEligibleForUpdateError,
    OrderItemsCreationError,
    OrderNotFoundError,
    PaymentGatewayError,
    PersistenceError,
    ProductNotFoundError,
)
from app.integrations.razorpay import RazorpayClient, validate_receipt
from app.integrations.signature import SignatureVerifier
from app.models import Order, OrderStatus, PaymentStatus, FULFILLMENT_STATUSES
from app.services.invoice import publish_invoice
from app.services.notifications import NotificationDispatcher
from app.services.order_store import OrderStore

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal("0.01")


def to_rupees(amount: Decimal) -> Decimal:
    """Round to whole paise, half up, matching ``to_minor_units``."""
    return Decimal(amount).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def to_minor_units(amount: Decimal) -> int:
    """Rupees to paise, rounding half up."""
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def generate_receipt_id() -> str:
    """``order_<last 8 digits of epoch ms>_<8 hex>``, well under the gateway's 40-char cap."""
    timestamp = str(int(time.time() * 1000))[-8:]
    return validate_receipt(f"order_{timestamp}_{secrets.token_hex(4)}")


@dataclass
class OrderLine:
    product_id: str
    quantity: int


@dataclass
class NewOrder:
    """Checkout input. Contact fields fall back to the customer's profile."""
    user_id: str
    items: List[OrderLine]
    total_amount: Decimal
    shipping_address: str
    billing_address: str
    payment_method: str = "razorpay"
    shipping_charges: Decimal = Decimal("0")
    tax_amount: Decimal = Decimal("0")
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None


@dataclass
class CreatedOrder:
    order_id: str
    gateway_order_id: str
    amount: Decimal
    amount_minor: int
    currency: str
    receipt_id: str
    stock_warnings: List[str] = field(default_factory=list)


@dataclass
class VerifiedPayment:
    id: str
    status: str
    payment_status: str
    total_amount: Decimal
    already_verified: bool = False
    notifications: Dict[str, Any] = field(default_factory=dict)

    def summary(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "status": self.status,
            "payment_status": self.payment_status,
            "total_amount": float(self.total_amount),
        }


@dataclass
class StatusChange:
    order_id: str
    old_status: str
    new_status: str
    notification: Optional[Any] = None


def _validate_new_order(request: NewOrder) -> None:
    if not request.user_id:
        raise InvalidRequestError("Missing required fields: user_id, items", details="user_id is required")
    if not request.items:
        raise InvalidRequestError("Missing required fields: user_id, items", details="items must not be empty")
    for line in request.items:
        if not line.product_id:
            raise InvalidRequestError("Invalid item", details="product_id is required for every item")
        if isinstance(line.quantity, bool) or not isinstance(line.quantity, int) or line.quantity <= 0:
            raise InvalidRequestError("Invalid item", details=f"quantity for {line.product_id} must be a positive integer")
    if request.total_amount is None or Decimal(request.total_amount) <= 0:
        raise InvalidRequestError("Invalid total amount", details="total_amount must be positive")
    if not request.shipping_address or not request.billing_address:
        raise InvalidRequestError("Shipping and billing addresses are required")
    if Decimal(request.shipping_charges) < 0 or Decimal(request.tax_amount) < 0:
        raise InvalidRequestError("Invalid charges", details="shipping_charges and tax_amount must not be negative")


class OrderOrchestrator:
    """
    Coordinates the payment gateway, the order store and notifications.

    All collaborators are passed in; nothing is read from globals, so tests
    build one with fakes.
    """

    def __init__(
        self,
        store: OrderStore,
        gateway: RazorpayClient,
        verifier: SignatureVerifier,
        notifier: NotificationDispatcher,
        currency: str = "INR",
        amount_tolerance: Decimal = TWO_PLACES,
        invoice_base_url: Optional[str] = None,
    ):
        self.store = store
        self.gateway = gateway
        self.verifier = verifier
        self.notifier = notifier
        self.currency = currency
        self.amount_tolerance = amount_tolerance
        self.invoice_base_url = invoice_base_url

    # ------------------------------------------------------------------
    # Create order
    # ------------------------------------------------------------------

    async def create_order(self, request: NewOrder) -> CreatedOrder:
        _validate_new_order(request)
        total = Decimal(request.total_amount)

        profile = await self.store.get_profile(request.user_id)
        if profile is None:
            raise InvalidUserError("Invalid user", details=f"User {request.user_id} not found")

        # Quantities per product, so repeated lines are checked against stock together
        requested: Dict[str, int] = {}
        for line in request.items:
            requested[line.product_id] = requested.get(line.product_id, 0) + line.quantity

        products = await self.store.get_products(requested.keys())
        for product_id, quantity in requested.items():
            product = products.get(product_id)
            if product is None:
                raise ProductNotFoundError(product_id)
            if product.stock_quantity < quantity:
                raise InsufficientStockError(product.name, product.stock_quantity, quantity)

        calculated = sum(
            (products[line.product_id].price * line.quantity for line in request.items),
            Decimal("0"),
        )
        calculated += Decimal(request.shipping_charges) + Decimal(request.tax_amount)
        if abs(calculated - total) > self.amount_tolerance:
            raise AmountMismatchError(
                "Total amount mismatch",
                details=f"Expected {calculated.quantize(TWO_PLACES)}, got {total}",
            )

        # The stored total and the gateway amount must describe the same paise
        total = to_rupees(total)
        receipt_id = generate_receipt_id()
        amount_minor = to_minor_units(total)
        try:
            gateway_order = await self.gateway.create_order(
                amount=amount_minor,
                currency=self.currency,
                receipt=receipt_id,
                notes={
                    "user_id": request.user_id,
                    "user_email": profile.email,
                    "order_type": "ecommerce",
                },
            )
        except (GatewayError, NetworkError) as e:
            logger.error(f"Razorpay order creation failed for receipt {receipt_id}: {e.details}")
            raise PaymentGatewayError("Payment gateway error", details=e.details) from e

        order = await self.store.create_order(
            user_id=request.user_id,
            customer_name=request.customer_name or profile.full_name or profile.email,
            customer_email=request.customer_email or profile.email,
            customer_phone=request.customer_phone or profile.phone,
            shipping_address=request.shipping_address,
            billing_address=request.billing_address,
            total_amount=total,
            shipping_charges=to_rupees(request.shipping_charges),
            tax_amount=to_rupees(request.tax_amount),
            status=OrderStatus.PENDING.value,
            payment_status=PaymentStatus.PENDING.value,
            payment_method=request.payment_method or "razorpay",
            razorpay_order_id=gateway_order.id,
            receipt_id=receipt_id,
        )

        try:
            await self.store.add_items(
                order.id,
                [
                    {
                        "product_id": line.product_id,
                        "product_name": products[line.product_id].name,
                        "product_price": products[line.product_id].price,
                        "quantity": line.quantity,
                    }
                    for line in request.items
                ],
            )
        except PersistenceError as e:
            logger.error(f"Order items creation failed for order {order.id}, rolling back order")
            await self.store.delete_order(order.id)
            raise OrderItemsCreationError("Failed to create order items", details=e.details) from e

        stock_warnings = await self.store.decrement_stock(requested)

        logger.info(f"Order {order.id} created with Razorpay order {gateway_order.id} ({amount_minor} paise)")
        return CreatedOrder(
            order_id=order.id,
            gateway_order_id=gateway_order.id,
            amount=total,
            amount_minor=amount_minor,
            currency=gateway_order.currency or self.currency,
            receipt_id=receipt_id,
            stock_warnings=stock_warnings,
        )

    # ------------------------------------------------------------------
    # Verify payment
    # ------------------------------------------------------------------

    async def verify_payment(
        self,
        order_id: str,
        gateway_order_id: str,
        gateway_payment_id: str,
        signature: str,
    ) -> VerifiedPayment:
        """
        Confirm a payment from the checkout callback.

        Replaying a callback for an already confirmed order is harmless: it
        writes nothing and sends nothing, and reports ``already_verified``.
        """
        missing = [
            name for name, value in (
                ("razorpay_order_id", gateway_order_id),
                ("razorpay_payment_id", gateway_payment_id),
                ("razorpay_signature", signature),
                ("order_id", order_id),
            ) if not value
        ]
        if missing:
            raise InvalidRequestError("Missing payment verification data", details=f"Missing: {', '.join(missing)}")

        if not self.verifier.verify(gateway_order_id, gateway_payment_id, signature):
            raise InvalidSignatureError("Invalid payment signature")

        order = await self.store.get_order(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        if order.razorpay_order_id and order.razorpay_order_id != gateway_order_id:
            logger.warning(f"Callback for order {order_id} carries a foreign Razorpay order id")
            raise InvalidSignatureError(
                "Invalid payment signature",
                details="Payment does not belong to this order",
            )

        confirmed = await self.store.mark_paid(order_id, gateway_payment_id, signature)
        order = await self.store.get_order(order_id)

        if not confirmed:
            logger.info(f"Payment for order {order_id} already verified, skipping notifications")
            return VerifiedPayment(
                id=order.id,
                status=order.status,
                payment_status=order.payment_status,
                total_amount=order.total_amount,
                already_verified=True,
            )

        logger.info(f"Payment verified for order {order_id} (payment {gateway_payment_id})")
        if self.invoice_base_url:
            try:
                await publish_invoice(self.store, order, self.invoice_base_url)
                order = await self.store.get_order(order_id)
            except PersistenceError as e:
                logger.warning(f"Invoice link for order {order_id} not saved: {e.details}")

        deliveries = await self.notifier.order_confirmation(order)
        return VerifiedPayment(
            id=order.id,
            status=order.status,
            payment_status=order.payment_status,
            total_amount=order.total_amount,
            notifications={name: result.to_dict() for name, result in deliveries.items()},
        )

    # ------------------------------------------------------------------
    # Status transition
    # ------------------------------------------------------------------

    async def update_status(
        self,
        order_id: str,
        new_status: str,
        tracking_number: Optional[str] = None,
    ) -> StatusChange:
        if not order_id or not new_status:
            raise InvalidRequestError("Missing required fields", details="orderId and status are required")
        if new_status not in FULFILLMENT_STATUSES:
            raise InvalidRequestError(
                "Invalid status",
                details=f"status must be one of {', '.join(FULFILLMENT_STATUSES)}",
            )

        if not await self.store.transition_status(order_id, new_status, tracking_number=tracking_number):
            raise NotEligibleForUpdateError(order_id)

        order = await self.store.get_order(order_id)
        old_status = OrderStatus.CONFIRMED.value
        logger.info(f"Order {order_id} status {old_status} -> {new_status}")

        notification = await self.notifier.status_update(
            order, old_status, new_status, tracking_number=tracking_number
        )
        return StatusChange(
            order_id=order_id,
            old_status=old_status,
            new_status=new_status,
            notification=notification.to_dict(),
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_order(self, order_id: str) -> Order:
        order = await self.store.get_order(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order


def serialize_order(order: Order) -> Dict[str, Any]:
    """JSON view of an order and its items."""
    return {
        "id": order.id,
        "user_id": order.user_id,
        "customer_name": order.customer_name,
        "customer_email": order.customer_email,
        "customer_phone": order.customer_phone,
        "shipping_address": order.shipping_address,
        "billing_address": order.billing_address,
        "total_amount": float(order.total_amount),
        "shipping_charges": float(order.shipping_charges or 0),
        "tax_amount": float(order.tax_amount or 0),
        "status": order.status,
        "payment_status": order.payment_status,
        "payment_method": order.payment_method,
        "razorpay_order_id": order.razorpay_order_id,
        "razorpay_payment_id": order.razorpay_payment_id,
        "receipt_id": order.receipt_id,
        "shiprocket_order_id": order.shiprocket_order_id,
        "tracking_number": order.tracking_number,
        "invoice_url": order.invoice_url,
        "created_at": order.created_at.isoformat() if order.created_at else None,
        "updated_at": order.updated_at.isoformat() if order.updated_at else None,
        "items": [
            {
                "id": item.id,
                "product_id": item.product_id,
                "product_name": item.product_name,
                "product_price": float(item.product_price),
                "quantity": item.quantity,
                "subtotal": float(item.subtotal),
            }
            for item in order.items
        ],
    }
