"""
Shiprocket pass-through API.

Every route uses a fresh client, so each request logs in once and reuses
the token for its own calls only. Requires an authenticated user.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from app.integrations.shiprocket import ShiprocketClient
from app.routers.dependencies import get_shiprocket_client

router = APIRouter()


class OrderIdsRequest(BaseModel):
    order_ids: List[Any] = Field(default_factory=list, alias="orderIds")

    class Config:
        populate_by_name = True


class AwbRequest(BaseModel):
    shipment_id: Optional[Any] = None
    courier_id: Optional[Any] = None


class LabelRequest(BaseModel):
    shipment_id: List[Any] = Field(default_factory=list)


@router.post("/auth")
async def authenticate(client: ShiprocketClient = Depends(get_shiprocket_client)):
    await client.authenticate()
    return {"success": True, "message": "Shiprocket authentication successful"}


@router.get("/orders")
async def list_orders(
    page: int = Query(1),
    per_page: int = Query(10),
    client: ShiprocketClient = Depends(get_shiprocket_client),
):
    return {"success": True, "data": await client.list_orders(page=page, per_page=per_page)}


@router.post("/orders/create")
async def create_order(payload: Dict[str, Any], client: ShiprocketClient = Depends(get_shiprocket_client)):
    return {"success": True, "data": await client.create_order(payload)}


@router.post("/orders/cancel")
async def cancel_orders(payload: OrderIdsRequest, client: ShiprocketClient = Depends(get_shiprocket_client)):
    return {"success": True, "data": await client.cancel_order(payload.order_ids)}


@router.get("/orders/{order_id}")
async def get_order(order_id: str, client: ShiprocketClient = Depends(get_shiprocket_client)):
    return {"success": True, "data": await client.get_order_details(order_id)}


@router.post("/awb")
async def assign_awb(payload: AwbRequest, client: ShiprocketClient = Depends(get_shiprocket_client)):
    return {"success": True, "data": await client.assign_awb(payload.shipment_id, payload.courier_id)}


@router.post("/label")
async def generate_label(payload: LabelRequest, client: ShiprocketClient = Depends(get_shiprocket_client)):
    return {"success": True, "data": await client.generate_label(payload.shipment_id)}


@router.get("/manifest/{shipment_id}")
async def get_manifest(shipment_id: str, client: ShiprocketClient = Depends(get_shiprocket_client)):
    return {"success": True, "data": await client.get_manifest(shipment_id)}


@router.get("/track")
async def track_order(
    order_id: Optional[str] = Query(None),
    client: ShiprocketClient = Depends(get_shiprocket_client),
):
    return {"success": True, "data": await client.track_order(order_id)}


@router.post("/rto/cancel")
async def cancel_rto(payload: OrderIdsRequest, client: ShiprocketClient = Depends(get_shiprocket_client)):
    return {"success": True, "data": await client.cancel_rto(payload.order_ids)}


@router.get("/pickup-locations")
async def pickup_locations(client: ShiprocketClient = Depends(get_shiprocket_client)):
    return {"success": True, "data": await client.get_pickup_locations()}


@router.get("/serviceability")
async def serviceability(
    pickup_postcode: Optional[str] = Query(None),
    delivery_postcode: Optional[str] = Query(None),
    weight: float = Query(0.5),
    cod: bool = Query(False),
    client: ShiprocketClient = Depends(get_shiprocket_client),
):
    data = await client.check_serviceability(pickup_postcode, delivery_postcode, weight=weight, cod=cod)
    return {"success": True, "data": data}


@router.get("/channels")
async def channels(client: ShiprocketClient = Depends(get_shiprocket_client)):
    return {"success": True, "data": await client.get_channels()}


@router.get("/account")
async def account(client: ShiprocketClient = Depends(get_shiprocket_client)):
    return {"success": True, "data": await client.get_account_details()}


@router.post("/returns")
async def create_return(payload: Dict[str, Any], client: ShiprocketClient = Depends(get_shiprocket_client)):
    return {"success": True, "data": await client.create_return(payload)}
