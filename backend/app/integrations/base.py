"""
Shared plumbing for outbound REST integrations (payment gateway, shipping).

Connectors open one ``httpx.AsyncClient`` per call and translate every
failure into the error taxonomy:
- no HTTP answer (DNS, connect, timeout)  -> NetworkError
- HTTP status >= 400                      -> GatewayError, body kept verbatim
"""

import logging
from abc import ABC
from typing import Any, Dict, Optional

import httpx

from app.errors import GatewayError, NetworkError

logger = logging.getLogger(__name__)


class BaseConnector(ABC):
    """
    Abstract Base Class for all External Integrations.
    """

    service_name = "external"

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        # Tests inject httpx.MockTransport here
        self._transport = transport

    def _client(self, **kwargs) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
            **kwargs,
        )

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        auth: Optional[httpx.Auth] = None,
    ) -> Any:
        """Perform one request and return the decoded JSON body."""
        try:
            async with self._client(auth=auth) as client:
                response = await client.request(method, path, json=json, params=params, headers=headers)
        except httpx.TransportError as e:
            logger.error(f"{self.service_name} network error on {method} {path}: {e}")
            raise NetworkError(
                self.service_name,
                f"Network error: Unable to connect to {self.service_name}",
                details=str(e),
            ) from e

        if response.status_code >= 400:
            logger.error(f"{self.service_name} API error ({response.status_code}) on {method} {path}: {response.text}")
            raise GatewayError(
                self.service_name,
                response.status_code,
                f"{self.service_name} API error ({response.status_code})",
                details=response.text,
            )

        if not response.content:
            return {}
        return response.json()
