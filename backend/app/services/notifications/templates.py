"""
Notification templates.

Customer messages are small self-contained HTML documents; admin messages
are plain text for the relay inbox. Every interpolated value is escaped.
"""

from dataclasses import dataclass
from decimal import Decimal
from html import escape
from typing import Iterable, Optional


@dataclass(frozen=True)
class Branding:
    name: str = "SPARSH Natural Hair Care"
    support_email: str = "rs.sparshnaturals@gmail.com"
    support_phone: str = "+91 9409073136"


STATUS_HEADLINES = {
    "confirmed": "Your order is confirmed",
    "shipped": "Your order is on its way",
    "delivered": "Your order has been delivered",
    "cancelled": "Your order has been cancelled",
}

STATUS_SUBJECTS = {
    "confirmed": "Order Confirmed",
    "shipped": "Order Shipped",
    "delivered": "Order Delivered",
    "cancelled": "Order Cancelled",
}


def format_inr(amount) -> str:
    """Format rupees with thousands separators, e.g. ``₹1,234.50``."""
    value = Decimal(str(amount or 0)).quantize(Decimal("0.01"))
    return f"₹{value:,.2f}"


def short_id(order_id: str) -> str:
    return (order_id or "")[:8]


def _layout(brand: Branding, title: str, body: str) -> str:
    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{escape(title)} - {escape(brand.name)}</title>
</head>
<body style="font-family: 'Segoe UI', Tahoma, sans-serif; color: #333; background: #f0fdf4; padding: 20px;">
  <div style="max-width: 600px; margin: 0 auto; background: #fff; border-radius: 16px; overflow: hidden;">
    <div style="background: #10b981; color: #fff; padding: 30px; text-align: center;">
      <h1 style="margin: 0;">{escape(brand.name)}</h1>
      <p style="margin: 8px 0 0 0;">{escape(title)}</p>
    </div>
    <div style="padding: 30px;">
{body}
    </div>
    <div style="background: #f9fafb; padding: 20px; text-align: center; font-size: 12px; color: #6b7280;">
      Questions? Write to {escape(brand.support_email)} or call {escape(brand.support_phone)}.
    </div>
  </div>
</body>
</html>"""


def _items_table(items: Iterable) -> str:
    rows = "\n".join(
        f"        <tr><td>{escape(item.product_name)}</td>"
        f"<td style=\"text-align: center;\">{item.quantity}</td>"
        f"<td style=\"text-align: right;\">{format_inr(item.product_price * item.quantity)}</td></tr>"
        for item in items
    )
    return (
        "      <table style=\"width: 100%; border-collapse: collapse;\">\n"
        "        <tr><th style=\"text-align: left;\">Item</th><th>Qty</th>"
        "<th style=\"text-align: right;\">Subtotal</th></tr>\n"
        f"{rows}\n"
        "      </table>"
    )


def order_confirmation(order, brand: Branding) -> tuple:
    """Customer email for a freshly paid order. Returns ``(subject, html)``."""
    if order.invoice_url:
        invoice = (
            f"      <p><a href=\"{escape(order.invoice_url)}\">Download your invoice</a></p>"
        )
    else:
        invoice = "      <p>Your invoice will be available in your order history once processed.</p>"

    body = f"""      <p>Hi {escape(order.customer_name)},</p>
      <p>Thank you for your order! We have received your payment and are preparing your package.</p>
      <p><strong>Order:</strong> #{escape(short_id(order.id))}<br>
         <strong>Payment ID:</strong> {escape(order.razorpay_payment_id or "-")}</p>
{_items_table(order.items)}
      <p style="text-align: right;"><strong>Total: {format_inr(order.total_amount)}</strong></p>
      <p><strong>Shipping to:</strong><br>{escape(order.shipping_address)}</p>
{invoice}"""
    subject = f"Order Confirmation #{short_id(order.id)} - {brand.name}"
    return subject, _layout(brand, "Order Confirmation", body)


def admin_new_order(order) -> tuple:
    """Relay message for a new paid order. Returns ``(subject, content)``."""
    lines = "\n".join(
        f"- {item.product_name} (Qty: {item.quantity}) - {format_inr(item.product_price * item.quantity)}"
        for item in order.items
    )
    content = f"""NEW ORDER RECEIVED

Order Details:
- Order ID: {order.id}
- Customer: {order.customer_name}
- Email: {order.customer_email}
- Phone: {order.customer_phone or "-"}
- Total Amount: {format_inr(order.total_amount)}
- Payment Method: {order.payment_method or "razorpay"}
- Payment ID: {order.razorpay_payment_id}

Items Ordered:
{lines}

Shipping Address:
{order.shipping_address}

ACTION REQUIRED: Process this order for shipment."""
    subject = f"New Order #{short_id(order.id)} - {format_inr(order.total_amount)}"
    return subject, content


def status_update(order, old_status: str, new_status: str, brand: Branding,
                  tracking_number: Optional[str] = None) -> tuple:
    """Customer email for a fulfillment status change. Returns ``(subject, html)``."""
    headline = STATUS_HEADLINES.get(new_status, f"Your order is now {new_status}")
    tracking = ""
    if tracking_number:
        tracking = f"      <p><strong>Tracking number:</strong> {escape(tracking_number)}</p>\n"

    body = f"""      <p>Hi {escape(order.customer_name)},</p>
      <p>{escape(headline)}.</p>
      <p><strong>Order:</strong> #{escape(short_id(order.id))}<br>
         <strong>Status:</strong> {escape(old_status)} &rarr; {escape(new_status)}</p>
{tracking}{_items_table(order.items)}
      <p style="text-align: right;"><strong>Total: {format_inr(order.total_amount)}</strong></p>"""
    label = STATUS_SUBJECTS.get(new_status, "Order Update")
    subject = f"{label} #{short_id(order.id)} - {brand.name}"
    return subject, _layout(brand, label, body)


def return_request(ret, brand: Branding) -> tuple:
    """Customer acknowledgement of a return. Returns ``(subject, html)``."""
    body = f"""      <p>Hi {escape(ret.customer_name)},</p>
      <p>We have received your return request for order #{escape(short_id(ret.order_id))}.</p>
      <p><strong>Reason:</strong> {escape(ret.reason.replace("_", " "))}<br>
         <strong>Eligible refund:</strong> {format_inr(ret.refund_amount)} ({ret.refund_percentage}%)</p>
      <p>Our team will review it and contact you within 24 hours.</p>"""
    subject = f"Return Request Received #{short_id(ret.order_id)} - {brand.name}"
    return subject, _layout(brand, "Return Request Received", body)


def admin_return_request(ret, priority: bool) -> tuple:
    """Relay message for a new return. Returns ``(subject, content)``."""
    flag = "PRIORITY " if priority else ""
    content = f"""{flag}RETURN REQUEST

- Order ID: {ret.order_id}
- Return ID: {ret.id}
- Customer: {ret.customer_name}
- Email: {ret.customer_email}
- Phone: {ret.customer_phone}
- Address: {ret.customer_address or "-"}
- Reason: {ret.reason}
- Items: {ret.items or "-"}
- Photos: {len(ret.photo_urls or [])}
- Refund: {format_inr(ret.refund_amount)} ({ret.refund_percentage}%)

{ret.admin_notes or ""}""".rstrip()
    subject = f"{flag}Return Request #{short_id(ret.order_id)}"
    return subject, content


def smoke_test_message(brand: Branding) -> tuple:
    body = "      <p>This is a test email. If you can read it, outgoing email is working.</p>"
    return f"Test Email - {brand.name}", _layout(brand, "Test Email", body)
