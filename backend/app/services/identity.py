import logging
from typing import Protocol

import httpx

from app.core.config import Settings, get_settings
from app.core.exceptions import ConfigurationError, UnauthorizedError, UnexpectedError
from app.core.security import TokenError, decode_access_token
from app.schemas import CallerIdentity

logger = logging.getLogger(__name__)


class AuthenticationError(Exception):
    """Raised when the identity provider rejects a bearer token."""


class IdentityProvider(Protocol):
    async def verify(self, token: str) -> CallerIdentity: ...


class SupabaseIdentityProvider:
    """Resolves bearer tokens through the Supabase Auth ``/user`` endpoint."""

    def __init__(
        self,
        base_url: str,
        anon_key: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._anon_key = anon_key
        self.timeout = timeout
        self._transport = transport

    async def verify(self, token: str) -> CallerIdentity:
        headers = {"apikey": self._anon_key, "Authorization": f"Bearer {token}"}
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                response = await client.get("/auth/v1/user", headers=headers)
        except httpx.HTTPError as exc:
            raise AuthenticationError(f"Identity provider unreachable: {exc}") from exc

        if response.status_code != httpx.codes.OK:
            raise AuthenticationError(f"Identity provider returned {response.status_code}")
        try:
            data = response.json()
            return CallerIdentity.model_validate(data)
        except ValueError as exc:
            raise AuthenticationError("Identity provider returned no user") from exc


class JWTIdentityProvider:
    """Verifies provider-issued access tokens locally with the shared JWT secret."""

    async def verify(self, token: str) -> CallerIdentity:
        try:
            payload = decode_access_token(token)
        except TokenError as exc:
            raise AuthenticationError(str(exc)) from exc

        user_id = payload.get("sub")
        if not user_id:
            raise AuthenticationError("Invalid token payload")
        return CallerIdentity(id=str(user_id), email=payload.get("email"))


_identity_provider: IdentityProvider | None = None


def _build_provider(settings: Settings) -> IdentityProvider:
    if settings.auth_backend == "jwt":
        if not settings.supabase_jwt_secret:
            logger.error("Missing identity configuration: SUPABASE_JWT_SECRET")
            raise ConfigurationError()
        return JWTIdentityProvider()

    missing = [
        name
        for name, value in (
            ("SUPABASE_URL", settings.supabase_url),
            ("SUPABASE_ANON_KEY", settings.supabase_anon_key),
        )
        if not value
    ]
    if missing:
        logger.error("Missing identity configuration: %s", ", ".join(missing))
        raise ConfigurationError()
    return SupabaseIdentityProvider(
        settings.supabase_url,
        settings.supabase_anon_key,
        timeout=settings.auth_timeout_seconds,
    )


def get_identity_provider() -> IdentityProvider:
    global _identity_provider
    if _identity_provider is None:
        _identity_provider = _build_provider(get_settings())
    return _identity_provider


def reset_identity_provider() -> None:
    global _identity_provider
    _identity_provider = None


async def authenticate(authorization: str | None) -> CallerIdentity:
    """Resolve the caller behind an ``Authorization`` header or raise 401."""
    if not authorization:
        raise UnauthorizedError("No authorization header")

    scheme, _, token = authorization.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise UnauthorizedError()

    provider = get_identity_provider()
    try:
        return await provider.verify(token)
    except AuthenticationError as exc:
        logger.warning("Auth error: %s", exc)
        raise UnauthorizedError() from exc
    except Exception as exc:
        logger.exception("Identity verification failed")
        raise UnexpectedError(str(exc)) from exc
