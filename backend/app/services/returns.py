"""
Return requests.

The refund percentage, the photo requirement and the admin priority flag are
decided by ``REFUND_POLICY`` alone. Clients may send their own percentage;
it is ignored.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Callable, Dict, List, Optional

from app.errors import (
    InvalidRequestError,
    OrderNotFoundError,
    PaymentIncompleteError,
    PhotosRequiredError,
    ReturnWindowExpiredError,
    UnauthorizedError,
)
from app.models import PaymentStatus, ReturnReason
from app.services.notifications import NotificationDispatcher
from app.services.order_store import OrderStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RefundRule:
    refund_percentage: int
    photos_required: bool
    priority: bool


REFUND_POLICY: Dict[str, RefundRule] = {
    ReturnReason.DAMAGED_SHIPPING.value: RefundRule(100, photos_required=True, priority=True),
    ReturnReason.DEFECTIVE_PRODUCT.value: RefundRule(100, photos_required=True, priority=True),
    ReturnReason.WRONG_ITEM.value: RefundRule(100, photos_required=True, priority=False),
    ReturnReason.CHANGE_OF_MIND.value: RefundRule(60, photos_required=False, priority=False),
    ReturnReason.WRONG_ORDER.value: RefundRule(60, photos_required=False, priority=False),
}

PRIORITY_NOTE = "PRIORITY: {reason} reported. Review photos and process the refund first."


def refund_amount(total: Decimal, percentage: int) -> Decimal:
    return (Decimal(total) * percentage / 100).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


@dataclass
class NewReturn:
    order_id: str
    reason: str
    customer_name: str
    customer_email: str
    customer_phone: str
    customer_address: Optional[str] = None
    items: Optional[str] = None
    photo_urls: List[str] = field(default_factory=list)


@dataclass
class CreatedReturn:
    return_id: str
    refund_amount: Decimal
    refund_percentage: int
    priority: bool
    notifications: Dict[str, Any] = field(default_factory=dict)


class ReturnService:

    def __init__(
        self,
        store: OrderStore,
        notifier: NotificationDispatcher,
        window_hours: int = 48,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.store = store
        self.notifier = notifier
        self.window = timedelta(hours=window_hours)
        self.clock = clock

    async def create_return(self, user_id: str, request: NewReturn) -> CreatedReturn:
        """
        File a return for an order the caller owns.

        Raises:
            InvalidRequestError: missing fields or unknown reason.
            OrderNotFoundError: no such order.
            UnauthorizedError: the order belongs to someone else.
            PaymentIncompleteError: the order was never paid for.
            ReturnWindowExpiredError: more than ``window_hours`` since the order was placed.
            PhotosRequiredError: the reason needs photo evidence and none was sent.
        """
        missing = [
            name for name in ("order_id", "reason", "customer_name", "customer_email", "customer_phone")
            if not getattr(request, name)
        ]
        if missing:
            raise InvalidRequestError("Missing required fields", details=f"Missing: {', '.join(missing)}")

        rule = REFUND_POLICY.get(request.reason)
        if rule is None:
            raise InvalidRequestError(
                "Invalid return reason",
                details=f"reason must be one of {', '.join(REFUND_POLICY)}",
            )

        order = await self.store.get_order(request.order_id)
        if order is None:
            raise OrderNotFoundError(request.order_id)
        if order.user_id != user_id:
            logger.warning(f"User {user_id} attempted a return on order {order.id} they do not own")
            raise UnauthorizedError("You can only return your own orders")
        if order.payment_status != PaymentStatus.COMPLETED.value:
            raise PaymentIncompleteError(
                "Order has not been paid",
                details=f"Order {order.id} has payment status {order.payment_status}",
            )

        if self.clock() - order.created_at > self.window:
            raise ReturnWindowExpiredError(
                "Return window has expired",
                details=f"Returns must be requested within {int(self.window.total_seconds() // 3600)} hours of ordering",
            )

        photos = [url for url in (request.photo_urls or []) if url]
        if rule.photos_required and not photos:
            raise PhotosRequiredError(
                "Photos are required for this return reason",
                details=f"Upload at least one photo for {request.reason}",
            )

        amount = refund_amount(order.total_amount, rule.refund_percentage)
        return_request = await self.store.create_return(
            order_id=order.id,
            user_id=user_id,
            customer_name=request.customer_name,
            customer_email=request.customer_email,
            customer_phone=request.customer_phone,
            customer_address=request.customer_address,
            reason=request.reason,
            items=request.items,
            photo_urls=photos,
            refund_percentage=rule.refund_percentage,
            refund_amount=amount,
            status="pending",
            admin_notes=PRIORITY_NOTE.format(reason=request.reason) if rule.priority else None,
        )

        deliveries = await self.notifier.return_request(return_request, priority=rule.priority)
        return CreatedReturn(
            return_id=return_request.id,
            refund_amount=amount,
            refund_percentage=rule.refund_percentage,
            priority=rule.priority,
            notifications={name: result.to_dict() for name, result in deliveries.items()},
        )
