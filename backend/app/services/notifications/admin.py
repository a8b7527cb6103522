"""
Admin notifications through a form-relay webhook (Formspree).
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx

from app.services.notifications.mailer import DeliveryResult

logger = logging.getLogger(__name__)


def _plain(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


class AdminRelay:
    """Posts JSON notifications to the store admin's inbox relay."""

    method = "admin_relay"

    def __init__(
        self,
        endpoint: str,
        subject_prefix: str = "SPARSH",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.endpoint = endpoint
        self.subject_prefix = subject_prefix
        self.timeout = timeout
        self._transport = transport

    async def send(
        self,
        type: str,
        subject: str,
        content: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> DeliveryResult:
        """Relay one admin message. Never raises."""
        if not self.endpoint:
            return DeliveryResult(success=False, method=self.method, error="Admin relay endpoint not configured")

        form_data = {
            "_subject": f"[{self.subject_prefix}] {subject}",
            "type": type,
            "content": content,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            **{key: _plain(value) for key, value in (metadata or {}).items()},
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    self.endpoint,
                    json=form_data,
                    headers={"Accept": "application/json"},
                )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning(f"Admin relay ({type}) unreachable: {e}")
            return DeliveryResult(success=False, method=self.method, error=str(e))

        if response.status_code >= 400:
            logger.warning(f"Admin relay ({type}) rejected: {response.status_code} {response.text}")
            return DeliveryResult(
                success=False,
                method=self.method,
                error=f"Relay error: {response.status_code} - {response.text}",
            )

        logger.info(f"Admin notification sent ({type})")
        return DeliveryResult(success=True, method=self.method)
