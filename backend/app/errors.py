"""
Error taxonomy for the order service.

Every error carries a stable ``error`` code, a human readable message and an
optional ``details`` string. ``app.main`` turns them into
``{"success": false, "error": message, "code": ..., "details": ...}`` responses
using the class-level ``status_code``.

Hierarchy:
- StorefrontError (base)
  - validation (400): InvalidRequestError, InvalidUserError, ProductNotFoundError,
    InsufficientStockError, AmountMismatchError, InvalidSignatureError,
    ReturnWindowExpiredError, PhotosRequiredError, PaymentIncompleteError
  - authorization (403): UnauthorizedError
  - not found (404): OrderNotFoundError, NotEligibleForUpdateError
  - upstream (500): UpstreamError -> NetworkError, GatewayError;
    PaymentGatewayError, OrderItemsCreationError, PersistenceError,
    ConfigurationError
"""

from typing import Optional


class StorefrontError(Exception):
    """Base class for all errors surfaced to API clients."""

    status_code = 500
    error = "internal_error"

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details if details is not None else message

    def to_dict(self) -> dict:
        return {"success": False, "error": self.message, "code": self.error, "details": self.details}


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

class InvalidRequestError(StorefrontError):
    """Malformed, missing or out-of-range input. The message names the field."""

    status_code = 400
    error = "invalid_request"


class InvalidUserError(StorefrontError):
    status_code = 400
    error = "invalid_user"


class ProductNotFoundError(StorefrontError):
    status_code = 400
    error = "product_not_found"

    def __init__(self, product_id: str):
        super().__init__(f"Product {product_id} not found")
        self.product_id = product_id


class InsufficientStockError(StorefrontError):
    status_code = 400
    error = "insufficient_stock"

    def __init__(self, product_name: str, available: int, requested: int):
        super().__init__(
            f"Insufficient stock for {product_name}",
            details=f"Insufficient stock for {product_name}: {available} available, {requested} requested",
        )
        self.product_name = product_name
        self.available = available
        self.requested = requested


class AmountMismatchError(StorefrontError):
    status_code = 400
    error = "amount_mismatch"


class InvalidSignatureError(StorefrontError):
    """Payment callback failed HMAC verification."""

    status_code = 400
    error = "invalid_signature"


class ReturnWindowExpiredError(StorefrontError):
    status_code = 400
    error = "return_window_expired"


class PhotosRequiredError(StorefrontError):
    status_code = 400
    error = "photos_required"


class PaymentIncompleteError(StorefrontError):
    status_code = 400
    error = "payment_incomplete"


# ---------------------------------------------------------------------------
# Authorization / lookup
# ---------------------------------------------------------------------------

class UnauthorizedError(StorefrontError):
    """Requester does not own the resource."""

    status_code = 403
    error = "unauthorized"


class OrderNotFoundError(StorefrontError):
    status_code = 404
    error = "order_not_found"

    def __init__(self, order_id: str):
        super().__init__(f"Order {order_id} not found")
        self.order_id = order_id


class NotEligibleForUpdateError(StorefrontError):
    status_code = 404
    error = "not_eligible_for_update"

    def __init__(self, order_id: str):
        super().__init__(
            "Order not found or not eligible for status update",
            details=f"Order {order_id} must be confirmed with a completed payment",
        )
        self.order_id = order_id


# ---------------------------------------------------------------------------
# Upstream dependencies
# ---------------------------------------------------------------------------

class UpstreamError(StorefrontError):
    """Failure talking to an external service (gateway, shipping, database)."""

    status_code = 500
    error = "upstream_error"

    def __init__(self, service: str, message: str, details: Optional[str] = None):
        super().__init__(message, details)
        self.service = service


class NetworkError(UpstreamError):
    """The request never got an HTTP answer (DNS, connect, timeout)."""

    error = "network_error"


class GatewayError(UpstreamError):
    """The upstream answered with an error status. ``details`` is its body, verbatim."""

    error = "gateway_error"

    def __init__(self, service: str, upstream_status: int, message: str, details: Optional[str] = None):
        super().__init__(service, message, details)
        self.upstream_status = upstream_status


class PaymentGatewayError(StorefrontError):
    status_code = 500
    error = "payment_gateway_error"


class OrderItemsCreationError(StorefrontError):
    status_code = 500
    error = "order_items_creation_failed"


class PersistenceError(StorefrontError):
    status_code = 500
    error = "database_error"


class ConfigurationError(StorefrontError):
    """A required server setting is missing."""

    status_code = 500
    error = "configuration_error"
