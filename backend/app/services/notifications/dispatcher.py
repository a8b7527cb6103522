"""
Notification Dispatcher.

Composes templates and fans them out to the customer (SMTP) and the admin
(form relay). Every method is best-effort: failures are logged and returned
as ``DeliveryResult`` values, never raised, so they cannot undo a state
change that has already been committed.
"""

import logging
from typing import Dict, Optional

from app.services.notifications import templates
from app.services.notifications.admin import AdminRelay
from app.services.notifications.mailer import DeliveryResult, EmailSender
from app.services.notifications.templates import Branding

logger = logging.getLogger(__name__)


class NotificationDispatcher:

    def __init__(self, email: EmailSender, admin: AdminRelay, branding: Optional[Branding] = None):
        self.email = email
        self.admin = admin
        self.branding = branding or Branding()

    async def order_confirmation(self, order) -> Dict[str, DeliveryResult]:
        """Customer confirmation and admin new-order alert for a paid order."""
        subject, html = templates.order_confirmation(order, self.branding)
        customer = await self.email.send_email_safe(order.customer_email, subject, html)

        admin_subject, content = templates.admin_new_order(order)
        admin = await self.admin.send(
            "new_order",
            admin_subject,
            content,
            metadata={
                "order_id": order.id,
                "customer_email": order.customer_email,
                "total_amount": order.total_amount,
                "payment_id": order.razorpay_payment_id,
            },
        )

        if not customer.success or not admin.success:
            logger.warning(
                f"Order {order.id} confirmation partially delivered: "
                f"customer={customer.success} admin={admin.success}"
            )
        return {"customer": customer, "admin": admin}

    async def status_update(
        self,
        order,
        old_status: str,
        new_status: str,
        tracking_number: Optional[str] = None,
    ) -> DeliveryResult:
        subject, html = templates.status_update(
            order, old_status, new_status, self.branding, tracking_number=tracking_number
        )
        result = await self.email.send_email_safe(order.customer_email, subject, html)
        if not result.success:
            logger.warning(f"Status email for order {order.id} failed: {result.error}")
        return result

    async def return_request(self, return_request, priority: bool = False) -> Dict[str, DeliveryResult]:
        subject, html = templates.return_request(return_request, self.branding)
        customer = await self.email.send_email_safe(return_request.customer_email, subject, html)

        admin_subject, content = templates.admin_return_request(return_request, priority)
        admin = await self.admin.send(
            "return_request",
            admin_subject,
            content,
            metadata={
                "order_id": return_request.order_id,
                "return_id": return_request.id,
                "reason": return_request.reason,
                "refund_amount": return_request.refund_amount,
                "priority": priority,
            },
        )
        return {"customer": customer, "admin": admin}

    async def test_email(self, to: str) -> DeliveryResult:
        subject, html = templates.smoke_test_message(self.branding)
        return await self.email.send_email_safe(to, subject, html)

    async def health(self) -> Dict[str, bool]:
        return {
            "email_configured": self.email.configured,
            "smtp_reachable": await self.email.verify_connection(),
            "admin_relay_configured": bool(self.admin.endpoint),
        }
