"""JWT verification for the owner identity.

Tokens are issued by the identity provider; this service only verifies
them and reads the ``sub`` claim as the opaque owner id.
``create_access_token`` exists for service-to-service calls and tests.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from src.meetcost.config import get_settings
from src.meetcost.core.errors import AuthenticationError

# ── JWT Token Creation ────────────────────────────────────────────────────────


def create_access_token(owner_id: str, expires_delta: timedelta | None = None) -> str:
    """Create a signed access token whose subject is ``owner_id``."""
    settings = get_settings()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {
        "sub": owner_id,
        "exp": expire,
        "iat": now,
        "type": "access",
    }
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


# ── JWT Token Verification ────────────────────────────────────────────────────


def verify_token(token: str) -> dict:
    """Decode and validate an access token.

    Returns:
        The decoded payload dict (``sub`` guaranteed non-empty).

    Raises:
        AuthenticationError: If the token is invalid, expired, or not an
            access token.
    """
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except JWTError as exc:
        raise AuthenticationError(context={"reason": "invalid_token"}) from exc
    if payload.get("type") != "access" or not payload.get("sub"):
        raise AuthenticationError(context={"reason": "invalid_claims"})
    return payload


def owner_id_from_header(auth_header: str | None) -> str:
    """Extract the owner id from an ``Authorization: Bearer`` header value.

    Raises:
        AuthenticationError: If the header is missing or the token is invalid.
    """
    if not auth_header or not auth_header.startswith("Bearer "):
        raise AuthenticationError(context={"reason": "missing_token"})
    return str(verify_token(auth_header[7:])["sub"])
