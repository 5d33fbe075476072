"""Security utilities for authentication."""
from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from .config import Settings, get_settings

DEFAULT_TOKEN_LIFETIME = timedelta(hours=24)


def create_access_token(
    subject: str,
    expires_delta: timedelta | None = None,
    settings: Settings | None = None,
) -> str:
    """Create a JWT access token.

    Tokens are normally minted by the identity provider; this is used by
    local tooling and tests.

    Args:
        subject: The subject of the token (the owner id)
        expires_delta: Optional custom expiration time
        settings: Settings to sign with (defaults to cached settings)

    Returns:
        Encoded JWT token string
    """
    settings = settings or get_settings()
    now = datetime.now(UTC)
    to_encode: dict[str, Any] = {
        "sub": str(subject),
        "exp": now + (expires_delta or DEFAULT_TOKEN_LIFETIME),
        "iat": now,
        "type": "access",
    }
    encoded: str = jwt.encode(
        to_encode,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )
    return encoded


def decode_access_token(token: str, settings: Settings | None = None) -> dict[str, Any] | None:
    """Decode and validate a JWT access token.

    Args:
        token: The JWT token string
        settings: Settings to verify with (defaults to cached settings)

    Returns:
        Decoded token payload or None if invalid
    """
    settings = settings or get_settings()
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
        return payload
    except JWTError:
        return None
