"""
Razorpay REST client.

Thin async wrapper over the Orders, Payments and Refunds endpoints using HTTP
Basic auth (key id / key secret). Inputs are validated before any network
call. Nothing here retries: creating a gateway order twice creates two
orders, so the retry decision belongs to the caller.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import httpx

from app.errors import ConfigurationError, GatewayError, InvalidRequestError
from app.integrations.base import BaseConnector

logger = logging.getLogger(__name__)

# Razorpay rejects receipts longer than this
MAX_RECEIPT_LENGTH = 40
MAX_PAGE_SIZE = 100


@dataclass
class GatewayOrder:
    """Razorpay's view of an order. ``amount`` is in paise."""
    id: str
    amount: int
    currency: str
    receipt: str
    status: str = "created"
    notes: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "GatewayOrder":
        if not payload or not payload.get("id"):
            raise GatewayError("razorpay", 200, "Invalid order response from Razorpay", details=str(payload))
        return cls(
            id=payload["id"],
            amount=int(payload.get("amount", 0)),
            currency=payload.get("currency", ""),
            receipt=payload.get("receipt") or "",
            status=payload.get("status", "created"),
            notes=payload.get("notes") or {},
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "amount": self.amount,
            "currency": self.currency,
            "receipt": self.receipt,
            "status": self.status,
            "notes": self.notes,
        }


def validate_receipt(receipt: str) -> str:
    if not receipt or not isinstance(receipt, str):
        raise InvalidRequestError("Receipt is required", details="receipt must be a non-empty string")
    if len(receipt) > MAX_RECEIPT_LENGTH:
        raise InvalidRequestError(
            "Invalid receipt",
            details=f"receipt must be at most {MAX_RECEIPT_LENGTH} characters (got {len(receipt)})",
        )
    return receipt


def _validate_amount(amount: Any, field_name: str = "amount") -> int:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise InvalidRequestError(
            "Invalid amount",
            details=f"{field_name} must be a positive integer in minor currency units",
        )
    return amount


def _validate_id(value: str, field_name: str) -> str:
    if not value or not isinstance(value, str):
        raise InvalidRequestError(f"{field_name} is required")
    return value


def _validate_page(count: int, skip: int) -> None:
    if count < 1 or count > MAX_PAGE_SIZE:
        raise InvalidRequestError("Invalid count", details=f"count must be between 1 and {MAX_PAGE_SIZE}")
    if skip < 0:
        raise InvalidRequestError("Invalid skip", details="skip must be zero or positive")


class RazorpayClient(BaseConnector):
    """
    Razorpay adapter using raw HTTP requests.

    Raises:
        InvalidRequestError: input rejected before the call.
        NetworkError: Razorpay could not be reached.
        GatewayError: Razorpay answered with an error; ``details`` is its body.
    """

    service_name = "razorpay"

    def __init__(
        self,
        key_id: str,
        key_secret: str,
        base_url: str = "https://api.razorpay.com/v1",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(base_url, timeout=timeout, transport=transport)
        self.key_id = key_id
        self._auth = httpx.BasicAuth(key_id or "", key_secret or "")

    async def _call(self, method: str, path: str, **kwargs) -> Any:
        return await self._request(method, path, auth=self._auth, **kwargs)

    # --- Orders ---

    async def create_order(
        self,
        amount: int,
        currency: str,
        receipt: str,
        notes: Optional[Dict[str, str]] = None,
    ) -> GatewayOrder:
        """Create a gateway order for ``amount`` paise with automatic capture."""
        _validate_amount(amount)
        if not currency or not isinstance(currency, str):
            raise InvalidRequestError("Currency is required")
        validate_receipt(receipt)

        logger.info(f"Creating Razorpay order: amount={amount} currency={currency} receipt={receipt}")
        payload = await self._call(
            "POST",
            "/orders",
            json={
                "amount": amount,
                "currency": currency,
                "receipt": receipt,
                "notes": notes or {},
                "payment_capture": 1,
            },
        )
        order = GatewayOrder.from_payload(payload)
        logger.info(f"Razorpay order created successfully: {order.id}")
        return order

    async def fetch_order(self, order_id: str) -> Dict[str, Any]:
        _validate_id(order_id, "Order ID")
        return await self._call("GET", f"/orders/{order_id}")

    async def list_orders(self, count: int = 10, skip: int = 0) -> Dict[str, Any]:
        _validate_page(count, skip)
        return await self._call("GET", "/orders", params={"count": count, "skip": skip})

    # --- Payments ---

    async def fetch_payment(self, payment_id: str) -> Dict[str, Any]:
        _validate_id(payment_id, "Payment ID")
        return await self._call("GET", f"/payments/{payment_id}")

    async def list_payments(self, count: int = 10, skip: int = 0) -> Dict[str, Any]:
        _validate_page(count, skip)
        return await self._call("GET", "/payments", params={"count": count, "skip": skip})

    # --- Refunds ---

    async def create_refund(
        self,
        payment_id: str,
        amount: Optional[int] = None,
        notes: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """Refund a captured payment. Without ``amount`` the full payment is refunded."""
        _validate_id(payment_id, "Payment ID")
        body: Dict[str, Any] = {}
        if amount is not None:
            body["amount"] = _validate_amount(amount)
        if notes:
            body["notes"] = notes

        logger.info(f"Creating Razorpay refund for payment {payment_id} (amount={amount or 'full'})")
        return await self._call("POST", f"/payments/{payment_id}/refund", json=body)

    def public_config(self) -> Dict[str, str]:
        """Publishable settings the checkout widget needs. Never includes the secret."""
        if not self.key_id:
            raise ConfigurationError("Razorpay configuration not found", details="RAZORPAY_KEY_ID is missing")
        return {
            "keyId": self.key_id,
            "mode": "live" if self.key_id.startswith("rzp_live_") else "test",
        }
