"""
Configuration settings for the Storefront Order Service.
Loads from environment variables with validation.
"""

from decimal import Decimal
from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Sparsh Storefront Orders"
    DEBUG: bool = False
    HOST: str = "http://localhost:8000"
    FRONTEND_URL: str = "http://localhost:3000"

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./storefront.db"

    # Auth provider (HS256 access tokens, sub = user id)
    AUTH_JWT_SECRET: str | None = None
    AUTH_JWT_AUDIENCE: str | None = None

    # Razorpay
    RAZORPAY_KEY_ID: str | None = None
    RAZORPAY_KEY_SECRET: str | None = None
    RAZORPAY_BASE_URL: str = "https://api.razorpay.com/v1"
    CURRENCY: str = "INR"

    # Shiprocket
    SHIPROCKET_EMAIL: str | None = None
    SHIPROCKET_PASSWORD: str | None = None
    SHIPROCKET_BASE_URL: str = "https://apiv2.shiprocket.in/v1/external"

    # Customer email (SMTP)
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_STARTTLS_PORT: int = 587
    SMTP_SSL_PORT: int = 465
    EMAIL_USER: str | None = None
    EMAIL_PASS: str | None = None
    EMAIL_FROM: str | None = None

    # Admin notifications (form relay webhook)
    ADMIN_RELAY_URL: str = "https://formspree.io/f/xeogbjvv"

    # Branding used in notification templates and invoices
    BRAND_NAME: str = "SPARSH Natural Hair Care"
    SUPPORT_EMAIL: str = "rs.sparshnaturals@gmail.com"
    SUPPORT_PHONE: str = "+91 9409073136"

    # Order policy
    RETURN_WINDOW_HOURS: int = 48
    AMOUNT_TOLERANCE: Decimal = Decimal("0.01")

    # Outbound I/O
    HTTP_TIMEOUT_SECONDS: float = 30.0
    SMTP_TIMEOUT_SECONDS: float = 20.0

    def validate_production_settings(self):
        """Validate critical settings for production deployment."""
        missing = [
            name
            for name in ("RAZORPAY_KEY_ID", "RAZORPAY_KEY_SECRET", "AUTH_JWT_SECRET")
            if not getattr(self, name)
        ]
        if missing:
            raise ValueError(
                f"Missing required settings for production: {', '.join(missing)}"
            )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Cached settings loader with production validation."""
    settings = Settings()
    # Validate critical settings when not in debug mode
    if not settings.DEBUG:
        settings.validate_production_settings()
    return settings
