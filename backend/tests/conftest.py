"""
Shared fixtures.

Settings are read once at import time, so the environment is prepared here
before anything under ``app`` is imported.
"""

import hashlib
import hmac
import os

os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("RAZORPAY_KEY_ID", "rzp_test_key123")
os.environ.setdefault("RAZORPAY_KEY_SECRET", "test_razorpay_secret")
os.environ.setdefault("AUTH_JWT_SECRET", "test-jwt-secret-for-testing-only")
os.environ.setdefault("EMAIL_USER", "store@example.com")
os.environ.setdefault("EMAIL_PASS", "app-password")

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from app.integrations.razorpay import GatewayOrder
from app.integrations.signature import SignatureVerifier
from app.models import Base, Product, Profile
from app.services.notifications import DeliveryResult
from app.services.order_store import OrderStore
from app.services.orders import OrderOrchestrator

TEST_SECRET = "test_razorpay_secret"


def sign(gateway_order_id: str, payment_id: str, secret: str = TEST_SECRET) -> str:
    return hmac.new(secret.encode(), f"{gateway_order_id}|{payment_id}".encode(), hashlib.sha256).hexdigest()


@pytest.fixture
def sign_payment():
    """Signs a checkout callback the way Razorpay does."""
    return sign


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
def store(session):
    return OrderStore(session)


@pytest_asyncio.fixture
async def catalog(session):
    """A customer and two products: hair oil at 150 and shampoo at 100."""
    profile = Profile(id="user-1", email="asha@example.com", full_name="Asha Patel", phone="+919800000000")
    oil = Product(id="prod-oil", name="Amla Hair Oil", price=Decimal("150.00"), stock_quantity=10)
    shampoo = Product(id="prod-shampoo", name="Herbal Shampoo", price=Decimal("100.00"), stock_quantity=5)
    session.add_all([profile, oil, shampoo])
    await session.commit()
    return {"profile": profile, "oil": oil, "shampoo": shampoo}


@pytest.fixture
def gateway():
    """Razorpay stand-in that echoes the requested order back with a fixed id."""
    gateway = MagicMock()
    gateway.create_order = AsyncMock(
        side_effect=lambda **kwargs: GatewayOrder(
            id="order_RZP0000000001",
            amount=kwargs["amount"],
            currency=kwargs["currency"],
            receipt=kwargs["receipt"],
            notes=kwargs.get("notes") or {},
        )
    )
    return gateway


@pytest.fixture
def notifier():
    delivered = DeliveryResult(success=True, method="smtp_starttls")
    relayed = DeliveryResult(success=True, method="admin_relay")
    notifier = MagicMock()
    notifier.order_confirmation = AsyncMock(return_value={"customer": delivered, "admin": relayed})
    notifier.status_update = AsyncMock(return_value=delivered)
    notifier.return_request = AsyncMock(return_value={"customer": delivered, "admin": relayed})
    return notifier


@pytest.fixture
def orchestrator(store, gateway, notifier):
    return OrderOrchestrator(
        store=store,
        gateway=gateway,
        verifier=SignatureVerifier(TEST_SECRET),
        notifier=notifier,
    )
