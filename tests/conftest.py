"""
Shared pytest fixtures for relay tests.

Provides fixtures for:
- In-memory storage and unit of work
- Relay services wired around the in-memory store
- API clients (httpx for REST, Starlette TestClient for the socket)
- Mock database session and Redis (fakeredis)
"""
import os
from typing import Dict
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from unittest.mock import AsyncMock, MagicMock

# Test environment configuration
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")

from fakes import InMemoryStore, InMemoryUnitOfWork  # noqa: E402

from clayx_relay.application.services import RelayServices, build_services  # noqa: E402
from clayx_relay.config import RelaySettings  # noqa: E402
from clayx_relay.infrastructure.security import JWTHandler  # noqa: E402


DEVICE_ID = "planter-001"


# ============================================================================
# Identity Fixtures
# ============================================================================

@pytest.fixture
def owner_id() -> UUID:
    return uuid4()


@pytest.fixture
def other_user_id() -> UUID:
    return uuid4()


# ============================================================================
# Storage Fixtures
# ============================================================================

@pytest.fixture
def store(owner_id):
    """In-memory store holding one registered device with a plant."""
    store = InMemoryStore()
    device = store.add_device(DEVICE_ID, owner_id=owner_id)
    store.add_plant(owner_id, device)
    return store


@pytest.fixture
def device(store):
    return store.device_by_ref(DEVICE_ID)


@pytest.fixture
def plant(store, device):
    return next(p for p in store.plants.values() if p.device_id == device.id)


@pytest.fixture
def uow_factory(store):
    return lambda: InMemoryUnitOfWork(store)


@pytest.fixture
def relay_settings() -> RelaySettings:
    return RelaySettings(outbound_queue_size=64)


@pytest.fixture
def services(uow_factory, relay_settings) -> RelayServices:
    """Relay services wired around the in-memory store."""
    return build_services(uow_factory, settings=relay_settings)


@pytest.fixture
def mock_session():
    """
    Mock database session for repository tests.

    Returns an AsyncMock that can be configured per test.
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()

    return session


@pytest_asyncio.fixture
async def mock_redis():
    """
    Mock Redis client using fakeredis.
    """
    import fakeredis.aioredis

    redis = fakeredis.aioredis.FakeRedis(decode_responses=True)
    yield redis
    await redis.flushall()
    await redis.aclose()


# ============================================================================
# API Fixtures
# ============================================================================

@pytest.fixture
def jwt_handler() -> JWTHandler:
    return JWTHandler("test-secret")


@pytest.fixture
def app(services, jwt_handler):
    """Application with injected services; startup skips database and Redis."""
    from clayx_relay.api.dependencies import get_jwt_handler
    from clayx_relay.main import create_app

    app = create_app(services=services)
    app.dependency_overrides[get_jwt_handler] = lambda: jwt_handler
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    """Synchronous client, required for socket tests."""
    from fastapi.testclient import TestClient

    with TestClient(app) as test_client:
        yield test_client


@pytest_asyncio.fixture
async def async_client(app):
    """HTTP client for REST tests."""
    from httpx import ASGITransport, AsyncClient

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def token(jwt_handler, owner_id) -> str:
    return jwt_handler.create_access_token(owner_id)


@pytest.fixture
def auth_headers(token) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def other_auth_headers(jwt_handler, other_user_id) -> Dict[str, str]:
    return {"Authorization": f"Bearer {jwt_handler.create_access_token(other_user_id)}"}
