"""
JWT Authentication.

Customers authenticate with the auth provider, which issues HS256 access
tokens whose ``sub`` is the user id. This module only validates them.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from fastapi import Header, HTTPException, Request
from jose import JWTError, jwt

logger = logging.getLogger(__name__)

# JWT Configuration
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 60  # 1 hour, matches the auth provider's default


def _get_secret_key() -> str:
    """Lazy-load the secret key to support testing."""
    from app.config import get_settings
    return get_settings().AUTH_JWT_SECRET


def _get_audience() -> Optional[str]:
    from app.config import get_settings
    return get_settings().AUTH_JWT_AUDIENCE


def create_access_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed JWT for a user, shaped like the auth provider's tokens.

    Args:
        user_id: The user's id (``profiles.id``).
        expires_delta: Optional custom expiration time.

    Returns:
        A signed JWT string.
    """
    to_encode = {"sub": user_id}

    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode["exp"] = expire
    audience = _get_audience()
    if audience:
        to_encode["aud"] = audience

    return jwt.encode(to_encode, _get_secret_key(), algorithm=ALGORITHM)


async def get_current_user(
    request: Request,
    authorization: Optional[str] = Header(None, alias="Authorization")
) -> str:
    """
    FastAPI dependency that extracts and validates the user id from a JWT.
    Supports both 'Authorization: Bearer' header and 'auth_token' cookie.

    Returns:
        The validated user id.
    """
    credentials_exception = HTTPException(
        status_code=401,
        detail="Authentication required",
        headers={"WWW-Authenticate": "Bearer"},
    )

    token = None

    # 1. Try Authorization Header
    if authorization and authorization.startswith("Bearer "):
        token = authorization[7:]

    # 2. Try HttpOnly Cookie (Fallback)
    if not token:
        token = request.cookies.get("auth_token")

    if not token:
        raise credentials_exception

    audience = _get_audience()
    try:
        payload = jwt.decode(
            token,
            _get_secret_key(),
            algorithms=[ALGORITHM],
            audience=audience,
            options={"verify_aud": bool(audience)},
        )
    except JWTError:
        raise credentials_exception

    user_id: Optional[str] = payload.get("sub")
    if user_id is None:
        raise credentials_exception

    logger.info(f"Authenticated user: {user_id}")
    return user_id
