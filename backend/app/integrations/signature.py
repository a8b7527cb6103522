"""
Payment callback signature verification.

Razorpay signs the checkout callback as
``hex(HMAC-SHA256(key_secret, f"{order_id}|{payment_id}"))``. This is the
only authenticity gate on the payment completion path, so every comparison
goes through ``hmac.compare_digest``.
"""

import hashlib
import hmac
import logging

logger = logging.getLogger(__name__)


class SignatureVerifier:
    """Verifies gateway callback signatures with a shared secret."""

    def __init__(self, secret: str):
        if not secret:
            raise ValueError("Signature secret must be configured")
        self._secret = secret.encode("utf-8")

    def expected_signature(self, gateway_order_id: str, gateway_payment_id: str) -> str:
        message = f"{gateway_order_id}|{gateway_payment_id}".encode("utf-8")
        return hmac.new(self._secret, message, hashlib.sha256).hexdigest()

    def verify(self, gateway_order_id: str, gateway_payment_id: str, signature: str) -> bool:
        """Return True only when every part is present and the signature matches."""
        if not gateway_order_id or not gateway_payment_id or not signature:
            logger.warning("Signature verification called with missing parameters")
            return False

        expected = self.expected_signature(gateway_order_id, gateway_payment_id)
        is_valid = hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8"))
        if not is_valid:
            logger.warning(f"Signature mismatch for gateway order {gateway_order_id}")
        return is_valid
