import sys
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from fakeredis.aioredis import FakeRedis

# Ensure backend package is importable when tests run from repo root
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from unlinked.domain import container
from unlinked.domain.identity.store import IdentityStore
from unlinked.infra.auth import AuthenticatedUser
from unlinked.main import app
from unlinked.settings import settings


@pytest_asyncio.fixture(autouse=True)
async def fake_redis():
    from unlinked.infra.redis import redis_client, set_redis_client
    original = redis_client.client
    client = FakeRedis(decode_responses=True)
    await client.flushall()
    set_redis_client(client)
    try:
        yield client
    finally:
        set_redis_client(original)
        await client.flushall()


@pytest.fixture(autouse=True)
def force_test_settings():
    """Header auth (X-User-Id) is only accepted in dev mode; mail stays off."""
    original_env = settings.environment
    original_smtp = settings.smtp_host
    original_strict = settings.strict_pending_pairs
    settings.environment = "dev"
    settings.smtp_host = None
    settings.strict_pending_pairs = False
    container.reset_services()
    try:
        yield
    finally:
        settings.environment = original_env
        settings.smtp_host = original_smtp
        settings.strict_pending_pairs = original_strict
        container.reset_services()


@pytest_asyncio.fixture
async def api_client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest.fixture
def identity():
    return IdentityStore()


@pytest.fixture
def make_user(identity):
    async def _make(username: str, *, email: str | None = None) -> AuthenticatedUser:
        user = await identity.create_user(username=username, name=username.title(), email=email)
        return AuthenticatedUser(id=user.id, username=user.username, name=user.name)

    return _make


@pytest.fixture
def auth_headers():
    def _headers(user: AuthenticatedUser) -> dict:
        return {"X-User-Id": user.id}

    return _headers
