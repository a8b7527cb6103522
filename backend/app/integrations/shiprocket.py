"""
Shiprocket REST client.

An authenticated pass-through to the logistics provider. The API token is
acquired lazily on first use and kept on the instance only, so every logical
session (one request) re-authenticates. Required fields are checked before
calling out; provider errors are surfaced as ``details`` untouched.

Idempotent reads retry transport failures; mutations never retry.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type, before_sleep_log

from app.errors import GatewayError, InvalidRequestError, NetworkError
from app.integrations.base import BaseConnector

logger = logging.getLogger(__name__)


def _require(payload: Dict[str, Any], fields: Sequence[str]) -> None:
    missing = [name for name in fields if not payload.get(name)]
    if missing:
        raise InvalidRequestError(
            "Missing required fields",
            details=f"{', '.join(missing)} {'is' if len(missing) == 1 else 'are'} required",
        )


def _require_ids(ids: Any, field_name: str) -> List[Any]:
    if not ids or not isinstance(ids, (list, tuple)):
        raise InvalidRequestError(f"Invalid {field_name}", details=f"{field_name} must be a non-empty array")
    return list(ids)


class ShiprocketClient(BaseConnector):
    """
    Shiprocket adapter. One instance per request.
    """

    service_name = "shiprocket"

    def __init__(
        self,
        email: str,
        password: str,
        base_url: str = "https://apiv2.shiprocket.in/v1/external",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(base_url, timeout=timeout, transport=transport)
        self.email = email
        self._password = password
        self._token: Optional[str] = None

    # --- Authentication ---

    async def authenticate(self) -> str:
        """Log in and cache the bearer token on this instance."""
        if not self.email or not self._password:
            raise InvalidRequestError(
                "Shiprocket credentials not configured",
                details="SHIPROCKET_EMAIL and SHIPROCKET_PASSWORD are required",
            )

        data = await self._request("POST", "/auth/login", json={"email": self.email, "password": self._password})
        token = data.get("token")
        if not token:
            raise GatewayError(self.service_name, 200, "Shiprocket login returned no token", details=str(data))

        self._token = token
        logger.info("Shiprocket authentication successful")
        return token

    async def _headers(self) -> Dict[str, str]:
        if not self._token:
            await self.authenticate()
        return {"Authorization": f"Bearer {self._token}"}

    async def _post(self, path: str, body: Dict[str, Any]) -> Any:
        return await self._request("POST", path, json=body, headers=await self._headers())

    @retry(
        retry=retry_if_exception_type(NetworkError),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        stop=stop_after_attempt(3),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True
    )
    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self._request("GET", path, params=params, headers=await self._headers())

    # --- Orders ---

    async def create_order(self, order: Dict[str, Any]) -> Dict[str, Any]:
        """Create an adhoc shipment order."""
        _require(order, ("order_id", "billing_customer_name", "billing_email"))
        logger.info(f"Creating Shiprocket order for {order['order_id']}")
        return await self._post("/orders/create/adhoc", order)

    async def list_orders(self, page: int = 1, per_page: int = 10) -> Dict[str, Any]:
        if page < 1 or per_page < 1:
            raise InvalidRequestError("Invalid pagination", details="page and per_page must be positive")
        return await self._get("/orders", params={"page": page, "per_page": per_page})

    async def get_order_details(self, order_id: str) -> Dict[str, Any]:
        if not order_id:
            raise InvalidRequestError("Missing order ID", details="order_id is required")
        return await self._get(f"/orders/show/{order_id}")

    async def cancel_order(self, order_ids: List[Any]) -> Dict[str, Any]:
        ids = _require_ids(order_ids, "orderIds")
        logger.info(f"Cancelling Shiprocket orders: {ids}")
        return await self._post("/orders/cancel", {"ids": ids})

    async def cancel_rto(self, order_ids: List[Any]) -> Dict[str, Any]:
        """Cancel return-to-origin for shipments that are heading back."""
        ids = _require_ids(order_ids, "orderIds")
        logger.info(f"Cancelling Shiprocket RTO for orders: {ids}")
        return await self._post("/orders/rto/cancel", {"ids": ids})

    async def create_return(self, return_order: Dict[str, Any]) -> Dict[str, Any]:
        _require(return_order, ("order_id", "pickup_customer_name", "shipping_customer_name"))
        logger.info(f"Creating Shiprocket return for {return_order['order_id']}")
        return await self._post("/orders/create/return", return_order)

    # --- Courier ---

    async def assign_awb(self, shipment_id: Any, courier_id: Any) -> Dict[str, Any]:
        """Assign a carrier waybill (AWB) to a shipment."""
        _require({"shipment_id": shipment_id, "courier_id": courier_id}, ("shipment_id", "courier_id"))
        return await self._post("/courier/assign/awb", {"shipment_id": shipment_id, "courier_id": courier_id})

    async def generate_label(self, shipment_ids: List[Any]) -> Dict[str, Any]:
        ids = _require_ids(shipment_ids, "shipment_id")
        return await self._post("/courier/generate/label", {"shipment_id": ids})

    async def get_manifest(self, shipment_id: Any) -> Dict[str, Any]:
        if not shipment_id:
            raise InvalidRequestError("Missing shipment ID", details="shipment_id is required")
        return await self._post("/manifests/generate", {"shipment_id": [shipment_id]})

    async def track_order(self, order_id: str) -> Dict[str, Any]:
        if not order_id:
            raise InvalidRequestError("Missing order ID", details="order_id parameter is required")
        return await self._get("/courier/track", params={"order_id": order_id})

    async def check_serviceability(
        self,
        pickup_postcode: str,
        delivery_postcode: str,
        weight: float = 0.5,
        cod: bool = False,
    ) -> Dict[str, Any]:
        _require(
            {"pickup_postcode": pickup_postcode, "delivery_postcode": delivery_postcode},
            ("pickup_postcode", "delivery_postcode"),
        )
        return await self._get(
            "/courier/serviceability/",
            params={
                "pickup_postcode": pickup_postcode,
                "delivery_postcode": delivery_postcode,
                "weight": weight,
                "cod": 1 if cod else 0,
            },
        )

    # --- Account ---

    async def get_pickup_locations(self) -> Dict[str, Any]:
        return await self._get("/settings/company/pickup")

    async def get_channels(self) -> Dict[str, Any]:
        return await self._get("/channels")

    async def get_account_details(self) -> Dict[str, Any]:
        return await self._get("/account/details/wallet-balance")
