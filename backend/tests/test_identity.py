import httpx
import pytest

from app.core.config import get_settings
from app.core.exceptions import ConfigurationError, UnauthorizedError
from app.core.security import create_access_token
from app.services import identity as identity_service
from app.services.identity import (
    AuthenticationError,
    JWTIdentityProvider,
    SupabaseIdentityProvider,
)


def _supabase(handler) -> SupabaseIdentityProvider:
    return SupabaseIdentityProvider(
        "https://project.supabase.co/",
        "anon-key",
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_supabase_provider_returns_user():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["apikey"] = request.headers["apikey"]
        seen["authorization"] = request.headers["authorization"]
        return httpx.Response(200, json={"id": "user-42", "email": "a@example.com", "aud": "authenticated"})

    caller = await _supabase(handler).verify("token-abc")

    assert caller.id == "user-42"
    assert caller.email == "a@example.com"
    assert seen == {
        "url": "https://project.supabase.co/auth/v1/user",
        "apikey": "anon-key",
        "authorization": "Bearer token-abc",
    }


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(401, json={"msg": "invalid JWT"}),
        httpx.Response(200, json={"email": "no-id@example.com"}),
        httpx.Response(200, content=b"<html>"),
    ],
)
async def test_supabase_provider_rejects_bad_responses(response):
    provider = _supabase(lambda request: response)
    with pytest.raises(AuthenticationError):
        await provider.verify("token-abc")


@pytest.mark.asyncio
async def test_supabase_provider_treats_transport_errors_as_auth_failures():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(AuthenticationError):
        await _supabase(handler).verify("token-abc")


@pytest.mark.asyncio
async def test_jwt_provider_uses_subject_as_caller_id():
    token = create_access_token(subject="user-7", email="seven@example.com")
    caller = await JWTIdentityProvider().verify(token)
    assert caller.id == "user-7"
    assert caller.email == "seven@example.com"


@pytest.mark.asyncio
async def test_authenticate_requires_header():
    with pytest.raises(UnauthorizedError) as exc_info:
        await identity_service.authenticate(None)
    assert exc_info.value.message == "No authorization header"


def test_supabase_backend_requires_project_settings(monkeypatch):
    monkeypatch.setenv("AUTH_BACKEND", "supabase")
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.delenv("SUPABASE_ANON_KEY", raising=False)
    get_settings.cache_clear()

    with pytest.raises(ConfigurationError):
        identity_service.get_identity_provider()


def test_supabase_backend_is_selected_when_configured(monkeypatch):
    monkeypatch.setenv("AUTH_BACKEND", "supabase")
    monkeypatch.setenv("SUPABASE_URL", "https://project.supabase.co")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "anon-key")
    get_settings.cache_clear()

    provider = identity_service.get_identity_provider()
    assert isinstance(provider, SupabaseIdentityProvider)
    assert provider.base_url == "https://project.supabase.co"
