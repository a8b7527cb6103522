"""
Return request model.
"""

from decimal import Decimal
from enum import Enum
from typing import Optional, List

from sqlalchemy import String, Text, Numeric, ForeignKey, Index, Integer, JSON
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, UUIDMixin, TimestampMixin


class ReturnReason(str, Enum):
    DAMAGED_SHIPPING = "damaged_shipping"
    DEFECTIVE_PRODUCT = "defective_product"
    WRONG_ITEM = "wrong_item"
    CHANGE_OF_MIND = "change_of_mind"
    WRONG_ORDER = "wrong_order"


class ReturnRequest(Base, UUIDMixin, TimestampMixin):
    """A customer's request to return (part of) an order."""
    __tablename__ = "returns"

    order_id: Mapped[str] = mapped_column(ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)
    user_id: Mapped[str] = mapped_column(ForeignKey("profiles.id"), nullable=False)

    customer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    customer_email: Mapped[str] = mapped_column(String(255), nullable=False)
    customer_phone: Mapped[str] = mapped_column(String(50), nullable=False)
    customer_address: Mapped[Optional[str]] = mapped_column(Text)

    reason: Mapped[str] = mapped_column(String(32), nullable=False)
    items: Mapped[Optional[str]] = mapped_column(Text)
    photo_urls: Mapped[List[str]] = mapped_column(JSON, default=list)

    # Derived server-side from the reason code
    refund_percentage: Mapped[int] = mapped_column(Integer, nullable=False)
    refund_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    status: Mapped[str] = mapped_column(String(20), default="pending", nullable=False)
    admin_notes: Mapped[Optional[str]] = mapped_column(Text)

    __table_args__ = (
        Index("idx_return_order", "order_id"),
        Index("idx_return_user", "user_id"),
    )
