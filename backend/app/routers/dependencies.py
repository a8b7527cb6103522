"""
Router Dependencies
====================

Builds the service objects each request needs. Routes depend on these
factories, and tests swap them out through ``app.dependency_overrides``.
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings, get_settings
from app.database import get_db
from app.errors import ConfigurationError
from app.integrations.razorpay import RazorpayClient
from app.integrations.shiprocket import ShiprocketClient
from app.integrations.signature import SignatureVerifier
from app.services.notifications import (
    AdminRelay,
    Branding,
    EmailSender,
    NotificationDispatcher,
    default_transports,
)
from app.services.order_store import OrderStore
from app.services.orders import OrderOrchestrator
from app.services.returns import ReturnService


def get_razorpay_client(settings: Settings = Depends(get_settings)) -> RazorpayClient:
    return RazorpayClient(
        key_id=settings.RAZORPAY_KEY_ID,
        key_secret=settings.RAZORPAY_KEY_SECRET,
        base_url=settings.RAZORPAY_BASE_URL,
        timeout=settings.HTTP_TIMEOUT_SECONDS,
    )


def get_shiprocket_client(settings: Settings = Depends(get_settings)) -> ShiprocketClient:
    """A fresh client (and so a fresh login) per request."""
    return ShiprocketClient(
        email=settings.SHIPROCKET_EMAIL,
        password=settings.SHIPROCKET_PASSWORD,
        base_url=settings.SHIPROCKET_BASE_URL,
        timeout=settings.HTTP_TIMEOUT_SECONDS,
    )


def get_signature_verifier(settings: Settings = Depends(get_settings)) -> SignatureVerifier:
    if not settings.RAZORPAY_KEY_SECRET:
        raise ConfigurationError("Razorpay configuration not found", details="RAZORPAY_KEY_SECRET is missing")
    return SignatureVerifier(settings.RAZORPAY_KEY_SECRET)


def get_branding(settings: Settings = Depends(get_settings)) -> Branding:
    return Branding(
        name=settings.BRAND_NAME,
        support_email=settings.SUPPORT_EMAIL,
        support_phone=settings.SUPPORT_PHONE,
    )


def get_notifier(
    settings: Settings = Depends(get_settings),
    branding: Branding = Depends(get_branding),
) -> NotificationDispatcher:
    email = EmailSender(
        host=settings.SMTP_HOST,
        username=settings.EMAIL_USER,
        password=settings.EMAIL_PASS,
        from_address=settings.EMAIL_FROM,
        transports=default_transports(settings.SMTP_STARTTLS_PORT, settings.SMTP_SSL_PORT),
        timeout=settings.SMTP_TIMEOUT_SECONDS,
    )
    admin = AdminRelay(
        settings.ADMIN_RELAY_URL,
        subject_prefix=settings.BRAND_NAME.split()[0],
        timeout=settings.HTTP_TIMEOUT_SECONDS,
    )
    return NotificationDispatcher(email, admin, branding)


def get_order_store(db: AsyncSession = Depends(get_db)) -> OrderStore:
    return OrderStore(db)


def get_orchestrator(
    store: OrderStore = Depends(get_order_store),
    gateway: RazorpayClient = Depends(get_razorpay_client),
    verifier: SignatureVerifier = Depends(get_signature_verifier),
    notifier: NotificationDispatcher = Depends(get_notifier),
    settings: Settings = Depends(get_settings),
) -> OrderOrchestrator:
    return OrderOrchestrator(
        store=store,
        gateway=gateway,
        verifier=verifier,
        notifier=notifier,
        currency=settings.CURRENCY,
        amount_tolerance=settings.AMOUNT_TOLERANCE,
        invoice_base_url=settings.HOST,
    )


def get_return_service(
    store: OrderStore = Depends(get_order_store),
    notifier: NotificationDispatcher = Depends(get_notifier),
    settings: Settings = Depends(get_settings),
) -> ReturnService:
    return ReturnService(store=store, notifier=notifier, window_hours=settings.RETURN_WINDOW_HOURS)
