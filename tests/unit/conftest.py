"""Shared pytest fixtures for unit tests."""

from __future__ import annotations

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio

from cache_storages_core.interfaces.storage import CacheStorage
from cache_storages_infra.storages.redis_flat import RedisFlatStorage
from cache_storages_infra.storages.redis_hash import RedisHashStorage
from tests.mocks.fake_redis import FakeRedisServer
from tests.mocks.mock_factories import make_flat_storage, make_hash_storage


@pytest.fixture
def fake_server() -> FakeRedisServer:
    """Return an empty in-memory Redis endpoint."""
    return FakeRedisServer()


@pytest_asyncio.fixture
async def flat_storage(fake_server: FakeRedisServer) -> AsyncGenerator[RedisFlatStorage, None]:
    """Flat-keyspace storage on the fake server, closed after the test."""
    storage = make_flat_storage(fake_server)
    yield storage
    await storage.aclose()


@pytest_asyncio.fixture
async def hash_storage(fake_server: FakeRedisServer) -> AsyncGenerator[RedisHashStorage, None]:
    """Hash-bucket storage on the fake server, closed after the test."""
    storage = make_hash_storage(fake_server)
    yield storage
    await storage.aclose()


@pytest_asyncio.fixture(params=["redis-flat", "redis-hash"])
async def storage(
    request: pytest.FixtureRequest, fake_server: FakeRedisServer
) -> AsyncGenerator[CacheStorage, None]:
    """Each adapter in turn, for contract tests that must hold for both."""
    if request.param == "redis-hash":
        adapter: CacheStorage = make_hash_storage(fake_server)
    else:
        adapter = make_flat_storage(fake_server)
    yield adapter
    await adapter.aclose()
