"""
Tests for the Order Store's conditional updates and stock handling.
"""

from decimal import Decimal

import pytest
from sqlalchemy import select

from app.models import Order, Product


async def make_order(store, **overrides) -> Order:
    fields = dict(
        user_id="user-1",
        customer_name="Asha Patel",
        customer_email="asha@example.com",
        shipping_address="12 MG Road",
        total_amount=Decimal("300.00"),
        razorpay_order_id="order_RZP1",
        receipt_id="order_12345678_abcdef01",
    )
    fields.update(overrides)
    order = await store.create_order(**fields)
    await store.add_items(order.id, [{
        "product_id": "prod-oil",
        "product_name": "Amla Hair Oil",
        "product_price": Decimal("150.00"),
        "quantity": 2,
    }])
    return order


class TestOrderStore:

    @pytest.mark.asyncio
    async def test_new_order_defaults_to_pending(self, store, catalog):
        order = await make_order(store)
        loaded = await store.get_order(order.id)

        assert loaded.status == "pending"
        assert loaded.payment_status == "pending"
        assert loaded.payment_method == "razorpay"
        assert [item.quantity for item in loaded.items] == [2]
        assert loaded.items[0].subtotal == Decimal("300.00")

    @pytest.mark.asyncio
    async def test_mark_paid_only_once(self, store, catalog):
        order = await make_order(store)

        assert await store.mark_paid(order.id, "pay_1", "sig_1") is True
        assert await store.mark_paid(order.id, "pay_2", "sig_2") is False

        loaded = await store.get_order(order.id)
        assert loaded.payment_status == "completed"
        assert loaded.status == "confirmed"
        assert loaded.razorpay_payment_id == "pay_1"

    @pytest.mark.asyncio
    async def test_transition_requires_confirmed_and_paid(self, store, catalog):
        order = await make_order(store)
        assert await store.transition_status(order.id, "shipped") is False

        await store.mark_paid(order.id, "pay_1", "sig_1")
        assert await store.transition_status(order.id, "shipped", tracking_number="AWB1") is True

        loaded = await store.get_order(order.id)
        assert loaded.status == "shipped"
        assert loaded.tracking_number == "AWB1"

    @pytest.mark.asyncio
    async def test_delete_order_removes_items(self, store, catalog):
        order = await make_order(store)
        await store.delete_order(order.id)

        assert await store.get_order(order.id) is None

    @pytest.mark.asyncio
    async def test_decrement_stock(self, store, session, catalog):
        warnings = await store.decrement_stock({"prod-oil": 3, "prod-shampoo": 1})

        assert warnings == []
        result = await session.execute(
            select(Product).order_by(Product.id).execution_options(populate_existing=True)
        )
        stock = {product.id: product.stock_quantity for product in result.scalars()}
        assert stock == {"prod-oil": 7, "prod-shampoo": 4}

    @pytest.mark.asyncio
    async def test_decrement_stock_never_goes_negative(self, store, session, catalog):
        warnings = await store.decrement_stock({"prod-shampoo": 6, "prod-oil": 1})

        assert len(warnings) == 1
        assert "prod-shampoo" in warnings[0]
        shampoo = await session.get(Product, "prod-shampoo", populate_existing=True)
        oil = await session.get(Product, "prod-oil", populate_existing=True)
        assert shampoo.stock_quantity == 5
        assert oil.stock_quantity == 9
