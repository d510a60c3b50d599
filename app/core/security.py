"""
JWT utilities.

Tokens are issued by the identity provider; this service only verifies them
and reads the user's role and role-gated assignments from the claims:

    {"sub": "<user id>", "name": "...", "email": "...", "role": "Admin",
     "polling_station_id": "ps-2", "election_id": null}
"""

from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt
from pydantic import ValidationError

from app.core.config import settings
from app.core.logging_config import get_logger
from app.services.models import User, user_adapter

logger = get_logger(__name__)


def create_access_token(
    data: dict, expires_delta: timedelta | None = None
) -> str:
    """
    Create a JWT access token.

    Args:
        data: Payload data to encode in the token
        expires_delta: Optional expiration time delta

    Returns:
        Encoded JWT token string
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(UTC) + expires_delta
    else:
        expire = datetime.now(UTC) + timedelta(
            minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
        )

    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict[str, Any] | None:
    """Decode and verify a JWT access token; ``None`` if invalid."""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None


def user_from_claims(payload: dict[str, Any]) -> User | None:
    """Build the typed user from token claims; ``None`` if they are incomplete."""
    claims = {k: v for k, v in payload.items() if v is not None}
    claims["id"] = payload.get("sub")
    try:
        return user_adapter.validate_python(claims)
    except ValidationError as e:
        logger.warning(f"Rejected token claims: {e.error_count()} errors")
        return None
