"""
Order models - the order aggregate and its line items.

Amounts are stored in rupees (Numeric(10, 2)); conversion to paise happens
only at the payment gateway boundary.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, List

from sqlalchemy import String, Text, DateTime, Numeric, ForeignKey, Index, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, UUIDMixin, TimestampMixin


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"


# Statuses the fulfillment flow may set on a confirmed, paid order.
FULFILLMENT_STATUSES = (
    OrderStatus.SHIPPED.value,
    OrderStatus.DELIVERED.value,
    OrderStatus.CANCELLED.value,
)


class Order(Base, UUIDMixin, TimestampMixin):
    """A customer order, created pending at checkout and confirmed by a verified payment."""
    __tablename__ = "orders"

    user_id: Mapped[str] = mapped_column(ForeignKey("profiles.id"), nullable=False)

    # Customer contact snapshot
    customer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    customer_email: Mapped[str] = mapped_column(String(255), nullable=False)
    customer_phone: Mapped[Optional[str]] = mapped_column(String(50))
    shipping_address: Mapped[str] = mapped_column(Text, nullable=False)
    billing_address: Mapped[Optional[str]] = mapped_column(Text)

    # Money
    total_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    shipping_charges: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0.00"))
    tax_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0.00"))

    # Lifecycle
    status: Mapped[str] = mapped_column(String(20), default=OrderStatus.PENDING.value, nullable=False)
    payment_status: Mapped[str] = mapped_column(String(20), default=PaymentStatus.PENDING.value, nullable=False)
    payment_method: Mapped[Optional[str]] = mapped_column(String(50), default="razorpay")

    # Payment gateway references
    razorpay_order_id: Mapped[Optional[str]] = mapped_column(String(64), unique=True)
    razorpay_payment_id: Mapped[Optional[str]] = mapped_column(String(64))
    razorpay_signature: Mapped[Optional[str]] = mapped_column(String(128))
    receipt_id: Mapped[str] = mapped_column(String(40), unique=True, nullable=False)

    # Fulfillment
    shiprocket_order_id: Mapped[Optional[str]] = mapped_column(String(64))
    tracking_number: Mapped[Optional[str]] = mapped_column(String(64))
    invoice_url: Mapped[Optional[str]] = mapped_column(Text)

    # Relationships
    items: Mapped[List["OrderItem"]] = relationship(
        "OrderItem", back_populates="order", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("idx_order_user_date", "user_id", "created_at"),
        Index("idx_order_status", "status", "payment_status"),
    )


class OrderItem(Base, UUIDMixin):
    """A line item. Name and price are captured at order time, not read from the catalog."""
    __tablename__ = "order_items"

    order_id: Mapped[str] = mapped_column(ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)
    product_id: Mapped[Optional[str]] = mapped_column(ForeignKey("products.id", ondelete="SET NULL"))

    product_name: Mapped[str] = mapped_column(String(255), nullable=False)
    product_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    # Relationships
    order: Mapped["Order"] = relationship("Order", back_populates="items")

    __table_args__ = (
        Index("idx_orderitem_order", "order_id"),
    )

    @property
    def subtotal(self) -> Decimal:
        return self.product_price * self.quantity
