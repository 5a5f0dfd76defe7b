import importlib
import os
import sys
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Ensure project root is on sys.path
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.core.config import get_settings
from app.core.security import create_access_token
from app.services import identity as identity_service


@pytest.fixture(scope="session", autouse=True)
def configure_environment():
    os.environ["ENV"] = "test"
    os.environ["AUTH_BACKEND"] = "jwt"
    os.environ["SUPABASE_JWT_SECRET"] = "test-jwt-secret"
    os.environ["AWS_ACCESS_KEY_ID"] = "AKIDEXAMPLE"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "secret"
    os.environ["AWS_S3_BUCKET"] = "mybucket"
    os.environ["AWS_REGION"] = "us-east-1"
    get_settings.cache_clear()
    identity_service.reset_identity_provider()


@pytest.fixture(autouse=True)
def fresh_identity_provider():
    identity_service.reset_identity_provider()
    yield
    get_settings.cache_clear()
    identity_service.reset_identity_provider()


@pytest.fixture(scope="session")
def app_instance(configure_environment):
    from app import main as app_module

    importlib.reload(app_module)
    return app_module.app


@pytest_asyncio.fixture
async def client(app_instance):
    transport = ASGITransport(app=app_instance)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest.fixture
def auth_headers() -> dict[str, str]:
    token = create_access_token(subject="user-1", email="member@example.com")
    return {"Authorization": f"Bearer {token}"}
