"""
Order Store - async data access for orders, items, returns, profiles and products.

Each mutating method commits on its own so the create-order saga can
compensate a half-written order with an explicit delete. Status changes are
conditional UPDATEs: the WHERE clause is the guard, and the returned bool
says whether this call won.
"""

import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from sqlalchemy import select, update, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.errors import PersistenceError
from app.models import Order, OrderItem, OrderStatus, PaymentStatus, Product, Profile, ReturnRequest

logger = logging.getLogger(__name__)


class OrderStore:

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _commit(self, action: str) -> None:
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Database error while {action}: {e}")
            raise PersistenceError(f"Failed while {action}", details=str(e)) from e

    # --- Reads ---

    async def get_profile(self, user_id: str) -> Optional[Profile]:
        result = await self.session.execute(select(Profile).where(Profile.id == user_id))
        return result.scalar_one_or_none()

    async def get_products(self, product_ids: Iterable[str]) -> Dict[str, Product]:
        """Batch-load products keyed by id. Missing ids are simply absent."""
        ids = list(set(product_ids))
        if not ids:
            return {}
        result = await self.session.execute(select(Product).where(Product.id.in_(ids)))
        return {product.id: product for product in result.scalars().all()}

    async def get_order(self, order_id: str) -> Optional[Order]:
        """Load an order with its items, always reflecting the latest committed row."""
        result = await self.session.execute(
            select(Order)
            .where(Order.id == order_id)
            .options(selectinload(Order.items))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_returns(self, order_id: str) -> List[ReturnRequest]:
        result = await self.session.execute(
            select(ReturnRequest)
            .where(ReturnRequest.order_id == order_id)
            .order_by(ReturnRequest.created_at)
        )
        return list(result.scalars().all())

    # --- Create-order saga steps ---

    async def create_order(self, **fields) -> Order:
        order = Order(**fields)
        self.session.add(order)
        await self._commit("creating order")
        logger.info(f"Order {order.id} persisted (receipt={order.receipt_id})")
        return order

    async def add_items(self, order_id: str, items: List[dict]) -> List[OrderItem]:
        rows = [OrderItem(order_id=order_id, **item) for item in items]
        self.session.add_all(rows)
        await self._commit(f"creating items for order {order_id}")
        return rows

    async def delete_order(self, order_id: str) -> None:
        """Compensating delete for a half-created order. Never used otherwise."""
        await self.session.execute(delete(OrderItem).where(OrderItem.order_id == order_id))
        await self.session.execute(delete(Order).where(Order.id == order_id))
        await self._commit(f"deleting order {order_id}")
        logger.warning(f"Order {order_id} deleted (compensation)")

    async def decrement_stock(self, quantities: Dict[str, int]) -> List[str]:
        """
        Best-effort stock decrement, one savepoint per product.

        Returns human readable warnings for products that could not be
        decremented; never raises for a single product's failure.
        """
        warnings = []
        for product_id, quantity in quantities.items():
            try:
                async with self.session.begin_nested():
                    result = await self.session.execute(
                        update(Product)
                        .where(Product.id == product_id, Product.stock_quantity >= quantity)
                        .values(stock_quantity=Product.stock_quantity - quantity)
                        .execution_options(synchronize_session=False)
                    )
                if result.rowcount != 1:
                    warnings.append(f"Stock for product {product_id} not decremented (insufficient stock)")
            except SQLAlchemyError as e:
                logger.warning(f"Stock decrement failed for product {product_id}: {e}")
                warnings.append(f"Stock for product {product_id} not decremented")

        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.warning(f"Stock decrement commit failed: {e}")
            warnings = [f"Stock for product {product_id} not decremented" for product_id in quantities]

        for warning in warnings:
            logger.warning(warning)
        return warnings

    # --- Lifecycle ---

    async def mark_paid(self, order_id: str, payment_id: str, signature: str) -> bool:
        """Confirm a pending order. False if it was already paid (or does not exist)."""
        result = await self.session.execute(
            update(Order)
            .where(Order.id == order_id, Order.payment_status == PaymentStatus.PENDING.value)
            .values(
                payment_status=PaymentStatus.COMPLETED.value,
                status=OrderStatus.CONFIRMED.value,
                razorpay_payment_id=payment_id,
                razorpay_signature=signature,
                updated_at=datetime.utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        await self._commit(f"confirming payment for order {order_id}")
        return result.rowcount == 1

    async def transition_status(
        self,
        order_id: str,
        new_status: str,
        tracking_number: Optional[str] = None,
    ) -> bool:
        """Move a confirmed, paid order to a fulfillment status. False if not eligible."""
        values = {"status": new_status, "updated_at": datetime.utcnow()}
        if tracking_number:
            values["tracking_number"] = tracking_number

        result = await self.session.execute(
            update(Order)
            .where(
                Order.id == order_id,
                Order.status == OrderStatus.CONFIRMED.value,
                Order.payment_status == PaymentStatus.COMPLETED.value,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        await self._commit(f"updating status of order {order_id}")
        return result.rowcount == 1

    async def set_invoice_url(self, order_id: str, invoice_url: str) -> None:
        await self.session.execute(
            update(Order)
            .where(Order.id == order_id)
            .values(invoice_url=invoice_url, updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        await self._commit(f"saving invoice url for order {order_id}")

    # --- Returns ---

    async def create_return(self, **fields) -> ReturnRequest:
        return_request = ReturnRequest(**fields)
        self.session.add(return_request)
        await self._commit("creating return request")
        logger.info(f"Return {return_request.id} created for order {return_request.order_id}")
        return return_request
