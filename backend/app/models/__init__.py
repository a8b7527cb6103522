"""
SQLAlchemy Models for the Storefront Order Service.

This package is organized by domain:
- base.py: Base class and mixins
- profile.py: Customer profiles
- product.py: Catalog products
- order.py: Orders and line items
- returns.py: Return requests
"""

# Base
from app.models.base import Base, UUIDMixin, TimestampMixin

# Core domain models
from app.models.profile import Profile
from app.models.product import Product
from app.models.order import Order, OrderItem, OrderStatus, PaymentStatus, FULFILLMENT_STATUSES
from app.models.returns import ReturnRequest, ReturnReason


__all__ = [
    # Base
    "Base",
    "UUIDMixin",
    "TimestampMixin",

    # Core domain
    "Profile",
    "Product",
    "Order",
    "OrderItem",
    "OrderStatus",
    "PaymentStatus",
    "FULFILLMENT_STATUSES",

    # Returns
    "ReturnRequest",
    "ReturnReason",
]
