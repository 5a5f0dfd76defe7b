from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt

from app.core.config import get_settings


class TokenError(Exception):
    """Raised when token validation fails."""


def _signing_secret() -> str:
    settings = get_settings()
    if not settings.supabase_jwt_secret:
        raise TokenError("JWT secret is not configured")
    return settings.supabase_jwt_secret


def create_access_token(
    subject: str,
    expires_delta: timedelta | None = None,
    email: str | None = None,
) -> str:
    """Mint a token shaped like the identity provider's access tokens.

    Used by the test suite; production tokens come from the provider.
    """
    settings = get_settings()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(hours=1))
    to_encode: dict[str, Any] = {
        "sub": subject,
        "exp": expire,
        "aud": settings.jwt_audience,
        "role": "authenticated",
    }
    if email:
        to_encode["email"] = email
    return jwt.encode(
        to_encode,
        _signing_secret(),
        algorithm=settings.jwt_algorithm,
    )


def decode_access_token(token: str) -> dict[str, Any]:
    settings = get_settings()
    try:
        return jwt.decode(
            token,
            _signing_secret(),
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
        )
    except JWTError as exc:
        raise TokenError("Invalid token") from exc
