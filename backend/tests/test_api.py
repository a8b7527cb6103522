"""
HTTP-level tests: routing, error envelopes, auth, and the full
checkout -> payment -> shipping -> return journey.
"""

import json

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport

from app.auth_middleware import create_access_token
from app.config import Settings, get_settings
from app.database import get_db
from app.integrations.razorpay import RazorpayClient
from app.main import app
from app.routers.dependencies import get_notifier, get_razorpay_client


def razorpay_handler(request: httpx.Request) -> httpx.Response:
    if request.method == "POST" and request.url.path == "/v1/orders":
        body = json.loads(request.content)
        return httpx.Response(200, json={
            "id": "order_API0000000001",
            "amount": body["amount"],
            "currency": body["currency"],
            "receipt": body["receipt"],
            "status": "created",
        })
    if request.url.path == "/v1/payments/pay_missing":
        return httpx.Response(400, text='{"error":{"description":"The id provided does not exist"}}')
    return httpx.Response(404, text="not mocked")


@pytest_asyncio.fixture
async def client(session_maker, notifier):
    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    def override_razorpay():
        return RazorpayClient(
            "rzp_test_key123",
            "test_razorpay_secret",
            base_url="https://api.razorpay.test/v1",
            transport=httpx.MockTransport(razorpay_handler),
        )

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_razorpay_client] = override_razorpay
    app.dependency_overrides[get_notifier] = lambda: notifier

    async with httpx.AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


CHECKOUT = {
    "user_id": "user-1",
    "items": [
        {"product_id": "prod-oil", "quantity": 2},
        {"product_id": "prod-shampoo", "quantity": 1},
    ],
    "total_amount": 420,
    "shipping_charges": 20,
    "shipping_address": {"line1": "12 MG Road", "city": "Ahmedabad", "pincode": "380001"},
    "billing_address": "12 MG Road, Ahmedabad 380001",
}


def auth_headers(user_id: str = "user-1") -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


async def place_and_pay(client, sign_payment) -> str:
    created = (await client.post("/api/orders/create", json=CHECKOUT)).json()
    gateway_order_id = created["razorpayOrder"]["id"]
    response = await client.post("/api/verify-payment", json={
        "order_id": created["orderId"],
        "razorpay_order_id": gateway_order_id,
        "razorpay_payment_id": "pay_001",
        "razorpay_signature": sign_payment(gateway_order_id, "pay_001"),
    })
    assert response.status_code == 200
    return created["orderId"]


@pytest.mark.asyncio
async def test_full_order_journey(client, catalog, notifier, sign_payment):
    response = await client.post("/api/orders/create", json=CHECKOUT)
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["razorpayOrder"]["amount"] == 42000
    assert body["order"]["amount"] == 420.0
    order_id = body["orderId"]

    # Payment callback, twice
    callback = {
        "order_id": order_id,
        "razorpay_order_id": "order_API0000000001",
        "razorpay_payment_id": "pay_001",
        "razorpay_signature": sign_payment("order_API0000000001", "pay_001"),
    }
    first = await client.post("/api/verify-payment", json=callback)
    second = await client.post("/api/verify-payment", json=callback)
    assert first.json()["order"] == {
        "id": order_id,
        "status": "confirmed",
        "payment_status": "completed",
        "total_amount": 420.0,
    }
    assert second.json()["alreadyVerified"] is True
    assert notifier.order_confirmation.await_count == 1

    # Ship it
    response = await client.post("/api/rs-orders/update-status", json={"orderId": order_id, "status": "shipped"})
    assert response.status_code == 200
    assert response.json()["message"] == "Order status updated to shipped successfully"

    # Wrong item delivered: full refund
    response = await client.post(
        "/api/returns/create",
        headers=auth_headers(),
        json={
            "orderId": order_id,
            "reason": "wrong_item",
            "customerName": "Asha Patel",
            "customerEmail": "asha@example.com",
            "customerPhone": "+919800000000",
            "items": "Herbal Shampoo x1",
            "photoUrls": ["https://img.test/wrong-item.jpg"],
            "refundPercentage": 10,
        },
    )
    assert response.status_code == 200
    assert response.json()["refundAmount"] == 420.0
    assert response.json()["refundPercentage"] == 100

    order = (await client.get(f"/api/orders/{order_id}")).json()["data"]
    assert order["status"] == "shipped"
    assert json.loads(order["shipping_address"])["city"] == "Ahmedabad"
    assert len(order["items"]) == 2


@pytest.mark.asyncio
async def test_amount_mismatch_envelope(client, catalog):
    response = await client.post("/api/orders/create", json={**CHECKOUT, "total_amount": 400})

    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "error": "Total amount mismatch",
        "code": "amount_mismatch",
        "details": "Expected 420.00, got 400",
    }


@pytest.mark.asyncio
async def test_schema_errors_are_400(client):
    response = await client.post("/api/orders/create", json={"items": []})

    assert response.status_code == 400
    assert response.json()["success"] is False
    assert "user_id" in response.json()["details"]


@pytest.mark.asyncio
async def test_bad_signature_is_400(client, catalog):
    created = (await client.post("/api/orders/create", json=CHECKOUT)).json()

    response = await client.post("/api/verify-payment", json={
        "order_id": created["orderId"],
        "razorpay_order_id": "order_API0000000001",
        "razorpay_payment_id": "pay_001",
        "razorpay_signature": "0" * 64,
    })

    assert response.status_code == 400
    assert response.json()["code"] == "invalid_signature"


@pytest.mark.asyncio
async def test_unknown_order_is_404(client):
    response = await client.get("/api/orders/does-not-exist")

    assert response.status_code == 404
    assert response.json()["code"] == "order_not_found"


@pytest.mark.asyncio
async def test_status_update_on_unpaid_order_is_404(client, catalog):
    created = (await client.post("/api/orders/create", json=CHECKOUT)).json()

    response = await client.post(
        "/api/rs-orders/update-status",
        json={"orderId": created["orderId"], "status": "shipped"},
    )

    assert response.status_code == 404
    assert response.json()["error"] == "Order not found or not eligible for status update"


@pytest.mark.asyncio
async def test_return_requires_authentication(client):
    response = await client.post("/api/returns/create", json={"orderId": "x", "reason": "wrong_order"})

    assert response.status_code == 401
    assert response.json()["success"] is False


@pytest.mark.asyncio
async def test_return_on_someone_elses_order_is_403(client, catalog, sign_payment):
    order_id = await place_and_pay(client, sign_payment)

    response = await client.post(
        "/api/returns/create",
        headers=auth_headers("user-2"),
        json={
            "orderId": order_id,
            "reason": "change_of_mind",
            "customerName": "Mallory",
            "customerEmail": "mallory@example.com",
            "customerPhone": "+919811111111",
        },
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_invoice_only_for_paid_orders(client, catalog, sign_payment):
    unpaid = (await client.post("/api/orders/create", json=CHECKOUT)).json()["orderId"]
    response = await client.get(f"/api/orders/{unpaid}/invoice")
    assert response.status_code == 400
    assert response.json()["code"] == "payment_incomplete"

    paid = await place_and_pay(client, sign_payment)
    response = await client.get(f"/api/orders/{paid}/invoice")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert "Herbal Shampoo" in response.text

    response = await client.post(f"/api/orders/{paid}/generate-invoice")
    assert response.json()["invoiceUrl"].endswith(f"/api/orders/{paid}/invoice")


@pytest.mark.asyncio
async def test_razorpay_error_body_passed_through(client):
    response = await client.get("/api/razorpay/payments/pay_missing")

    assert response.status_code == 500
    assert response.json()["code"] == "gateway_error"
    assert "does not exist" in response.json()["details"]


@pytest.mark.asyncio
async def test_client_percentage_cannot_raise_refund(client, catalog, sign_payment):
    order_id = await place_and_pay(client, sign_payment)

    response = await client.post(
        "/api/returns/create",
        headers=auth_headers(),
        json={
            "orderId": order_id,
            "reason": "change_of_mind",
            "customerName": "Asha Patel",
            "customerEmail": "asha@example.com",
            "customerPhone": "+919800000000",
            "refundPercentage": 100,
        },
    )

    assert response.status_code == 200
    assert response.json()["refundPercentage"] == 60
    assert response.json()["refundAmount"] == 252.0


@pytest.mark.asyncio
async def test_backoffice_amounts_are_rupees(client):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.url.path, json.loads(request.content)))
        if request.url.path == "/v1/orders":
            return httpx.Response(200, json={"id": "order_BO1", "amount": 42050, "currency": "INR", "receipt": "bo-1"})
        return httpx.Response(200, json={"id": "rfnd_1", "amount": 42050})

    app.dependency_overrides[get_razorpay_client] = lambda: RazorpayClient(
        "rzp_test_key123",
        "test_razorpay_secret",
        base_url="https://api.razorpay.test/v1",
        transport=httpx.MockTransport(handler),
    )

    refund = await client.post(
        "/api/razorpay/refunds",
        headers=auth_headers(),
        json={"payment_id": "pay_1", "amount": 420.5},
    )
    order = await client.post("/api/razorpay/orders", json={"amount": "420.50", "receipt": "bo-1"})
    full_refund = await client.post("/api/razorpay/refunds", headers=auth_headers(), json={"payment_id": "pay_2"})

    assert refund.status_code == 200
    assert order.status_code == 200
    assert full_refund.status_code == 200
    assert seen[0] == ("/v1/payments/pay_1/refund", {"amount": 42050})
    assert seen[1][1]["amount"] == 42050
    assert seen[2] == ("/v1/payments/pay_2/refund", {})


@pytest.mark.asyncio
async def test_missing_gateway_secret_is_a_server_error(client):
    app.dependency_overrides[get_settings] = lambda: Settings(RAZORPAY_KEY_SECRET="")

    response = await client.get("/api/orders/any-order")

    assert response.status_code == 500
    assert response.json()["code"] == "configuration_error"


@pytest.mark.asyncio
async def test_razorpay_config_exposes_key_id_only(client):
    response = await client.get("/api/razorpay/config")

    assert response.json() == {"success": True, "keyId": "rzp_test_key123", "mode": "test"}


@pytest.mark.asyncio
async def test_shiprocket_routes_require_authentication(client):
    response = await client.get("/api/shiprocket/channels")

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_security_headers(client):
    response = await client.get("/")

    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"
