"""
Tests for return requests: ownership, the 48 hour window and the refund table.
"""

from datetime import timedelta
from decimal import Decimal

import pytest
import pytest_asyncio

from app.errors import (
    InvalidRequestError,
    OrderNotFoundError,
    PaymentIncompleteError,
    PhotosRequiredError,
    ReturnWindowExpiredError,
    UnauthorizedError,
)
from app.services.orders import NewOrder, OrderLine
from app.services.returns import REFUND_POLICY, NewReturn, ReturnService, refund_amount


def return_for(order_id: str, reason: str = "change_of_mind", photos=None) -> NewReturn:
    return NewReturn(
        order_id=order_id,
        reason=reason,
        customer_name="Asha Patel",
        customer_email="asha@example.com",
        customer_phone="+919800000000",
        items="Amla Hair Oil x2",
        photo_urls=photos or [],
    )


@pytest_asyncio.fixture
async def paid_order(orchestrator, store, catalog, sign_payment):
    created = await orchestrator.create_order(NewOrder(
        user_id="user-1",
        items=[OrderLine("prod-oil", 2), OrderLine("prod-shampoo", 1)],
        total_amount=Decimal("420.00"),
        shipping_address="12 MG Road",
        billing_address="12 MG Road",
        shipping_charges=Decimal("20.00"),
    ))
    signature = sign_payment(created.gateway_order_id, "pay_001")
    await orchestrator.verify_payment(created.order_id, created.gateway_order_id, "pay_001", signature)
    return await store.get_order(created.order_id)


def service_at(store, notifier, order, elapsed: timedelta) -> ReturnService:
    return ReturnService(store, notifier, window_hours=48, clock=lambda: order.created_at + elapsed)


class TestRefundPolicy:

    def test_table(self):
        assert {reason: rule.refund_percentage for reason, rule in REFUND_POLICY.items()} == {
            "damaged_shipping": 100,
            "defective_product": 100,
            "wrong_item": 100,
            "change_of_mind": 60,
            "wrong_order": 60,
        }
        assert {reason for reason, rule in REFUND_POLICY.items() if rule.photos_required} == {
            "damaged_shipping", "defective_product", "wrong_item",
        }
        assert {reason for reason, rule in REFUND_POLICY.items() if rule.priority} == {
            "damaged_shipping", "defective_product",
        }

    def test_refund_amount_rounds_to_paise(self):
        assert refund_amount(Decimal("420.00"), 60) == Decimal("252.00")
        assert refund_amount(Decimal("99.99"), 60) == Decimal("59.99")


class TestCreateReturn:

    @pytest.mark.asyncio
    async def test_within_window_accepted(self, store, notifier, paid_order):
        service = service_at(store, notifier, paid_order, timedelta(hours=47, minutes=59))

        created = await service.create_return("user-1", return_for(paid_order.id))

        assert created.refund_percentage == 60
        assert created.refund_amount == Decimal("252.00")
        assert created.priority is False
        notifier.return_request.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_after_window_rejected(self, store, notifier, paid_order):
        service = service_at(store, notifier, paid_order, timedelta(hours=48, minutes=1))

        with pytest.raises(ReturnWindowExpiredError):
            await service.create_return("user-1", return_for(paid_order.id))

        assert await store.list_returns(paid_order.id) == []

    @pytest.mark.asyncio
    async def test_change_of_mind_always_sixty_percent(self, store, notifier, paid_order):
        service = service_at(store, notifier, paid_order, timedelta(hours=1))

        created = await service.create_return("user-1", return_for(paid_order.id, "change_of_mind"))
        saved = (await store.list_returns(paid_order.id))[0]

        assert created.refund_percentage == 60
        assert saved.refund_percentage == 60
        assert saved.refund_amount == Decimal("252.00")
        assert saved.status == "pending"

    @pytest.mark.asyncio
    async def test_photos_required_for_damage(self, store, notifier, paid_order):
        service = service_at(store, notifier, paid_order, timedelta(hours=1))

        with pytest.raises(PhotosRequiredError):
            await service.create_return("user-1", return_for(paid_order.id, "damaged_shipping"))

    @pytest.mark.asyncio
    async def test_priority_reason_gets_admin_note(self, store, notifier, paid_order):
        service = service_at(store, notifier, paid_order, timedelta(hours=1))

        created = await service.create_return(
            "user-1",
            return_for(paid_order.id, "defective_product", photos=["https://img.test/1.jpg"]),
        )
        saved = (await store.list_returns(paid_order.id))[0]

        assert created.priority is True
        assert saved.admin_notes.startswith("PRIORITY")
        assert saved.photo_urls == ["https://img.test/1.jpg"]
        assert notifier.return_request.await_args.kwargs["priority"] is True

    @pytest.mark.asyncio
    async def test_other_users_order_rejected(self, store, notifier, paid_order):
        service = service_at(store, notifier, paid_order, timedelta(hours=1))

        with pytest.raises(UnauthorizedError):
            await service.create_return("user-2", return_for(paid_order.id))

    @pytest.mark.asyncio
    async def test_unpaid_order_rejected(self, orchestrator, store, notifier, catalog):
        created = await orchestrator.create_order(NewOrder(
            user_id="user-1",
            items=[OrderLine("prod-oil", 1)],
            total_amount=Decimal("150.00"),
            shipping_address="12 MG Road",
            billing_address="12 MG Road",
        ))

        with pytest.raises(PaymentIncompleteError):
            await ReturnService(store, notifier).create_return("user-1", return_for(created.order_id))

        assert await store.list_returns(created.order_id) == []
        notifier.return_request.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_order(self, store, notifier, catalog):
        service = ReturnService(store, notifier)

        with pytest.raises(OrderNotFoundError):
            await service.create_return("user-1", return_for("missing"))

    @pytest.mark.asyncio
    async def test_unknown_reason(self, store, notifier, paid_order):
        service = service_at(store, notifier, paid_order, timedelta(hours=1))

        with pytest.raises(InvalidRequestError):
            await service.create_return("user-1", return_for(paid_order.id, "too_expensive"))

    @pytest.mark.asyncio
    async def test_missing_contact_fields(self, store, notifier, paid_order):
        request = return_for(paid_order.id)
        request.customer_phone = ""

        with pytest.raises(InvalidRequestError) as exc_info:
            await ReturnService(store, notifier).create_return("user-1", request)

        assert "customer_phone" in exc_info.value.details
