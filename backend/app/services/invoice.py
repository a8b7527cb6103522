"""
Invoice rendering for paid orders.

Invoices are rendered on demand as printable HTML. ``publish_invoice``
records the URL the document is served from on the order, so emails and
the order history can link to it.
"""

import logging
from html import escape

from app.errors import PaymentIncompleteError
from app.models import Order, PaymentStatus
from app.services.notifications.templates import Branding, format_inr, short_id
from app.services.order_store import OrderStore

logger = logging.getLogger(__name__)


def invoice_number(order: Order) -> str:
    return f"INV-{short_id(order.id).upper()}"


def ensure_invoiceable(order: Order) -> None:
    if order.payment_status != PaymentStatus.COMPLETED.value:
        raise PaymentIncompleteError(
            "Invoice not available for this order",
            details="Invoices are issued only after payment is completed",
        )


def render_invoice(order: Order, brand: Branding) -> str:
    """Render the invoice document for a paid order."""
    ensure_invoiceable(order)

    rows = "\n".join(
        f"      <tr><td>{escape(item.product_name)}</td><td>{item.quantity}</td>"
        f"<td>{format_inr(item.product_price)}</td><td>{format_inr(item.subtotal)}</td></tr>"
        for item in order.items
    )
    issued = (order.updated_at or order.created_at).strftime("%d %b %Y")

    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>Invoice {invoice_number(order)} - {escape(brand.name)}</title>
  <style>
    body {{ font-family: Helvetica, Arial, sans-serif; color: #222; margin: 40px; }}
    table {{ width: 100%; border-collapse: collapse; margin-top: 20px; }}
    th, td {{ border-bottom: 1px solid #ddd; padding: 8px; text-align: left; }}
    .totals td {{ border: none; text-align: right; }}
  </style>
</head>
<body>
  <h1>{escape(brand.name)}</h1>
  <p>{escape(brand.support_email)} | {escape(brand.support_phone)}</p>
  <h2>INVOICE</h2>
  <p>
    <strong>Invoice #:</strong> {invoice_number(order)}<br>
    <strong>Order ID:</strong> {escape(order.id)}<br>
    <strong>Receipt:</strong> {escape(order.receipt_id)}<br>
    <strong>Date:</strong> {issued}<br>
    <strong>Payment ID:</strong> {escape(order.razorpay_payment_id or "-")}
  </p>
  <h3>Bill To</h3>
  <p>{escape(order.customer_name)}<br>{escape(order.customer_email)}<br>{escape(order.billing_address or order.shipping_address)}</p>
  <h3>Ship To</h3>
  <p>{escape(order.shipping_address)}</p>
  <table>
    <tr><th>Item</th><th>Qty</th><th>Price</th><th>Amount</th></tr>
{rows}
  </table>
  <table class="totals">
    <tr><td>Shipping: {format_inr(order.shipping_charges)}</td></tr>
    <tr><td>Tax: {format_inr(order.tax_amount)}</td></tr>
    <tr><td><strong>Total: {format_inr(order.total_amount)}</strong></td></tr>
  </table>
  <p>Thank you for shopping with {escape(brand.name)}.</p>
</body>
</html>"""


async def publish_invoice(store: OrderStore, order: Order, base_url: str) -> str:
    """Record where the invoice for ``order`` is served and return that URL."""
    ensure_invoiceable(order)
    url = f"{base_url.rstrip('/')}/api/orders/{order.id}/invoice"
    await store.set_invoice_url(order.id, url)
    logger.info(f"Invoice {invoice_number(order)} published for order {order.id}")
    return url
