"""Integration test fixtures: real Redis on localhost:6379, database 1."""

from __future__ import annotations

import logging
import socket
import time
from collections.abc import AsyncGenerator, Generator

import pytest
import pytest_asyncio

from cache_storages_infra.storages.redis_flat import RedisFlatStorage
from cache_storages_infra.storages.redis_hash import RedisHashStorage
from tests.mocks.mock_settings import make_real_settings

# ---------------------------------------------------------------------------
# Service health checks (with retry for CI container start-up)
# ---------------------------------------------------------------------------


def _tcp_reachable(
    host: str,
    port: int,
    timeout: float = 1.0,
    retries: int = 15,
    delay: float = 2.0,
) -> bool:
    """Check if a TCP service is reachable, retrying on failure."""
    for attempt in range(retries):
        try:
            with socket.create_connection((host, port), timeout=timeout):
                return True
        except OSError:
            if attempt < retries - 1:
                time.sleep(delay)
    return False


_redis_up = _tcp_reachable("localhost", 6379, retries=3, delay=1.0)

require_redis = pytest.mark.skipif(
    not _redis_up,
    reason="Redis not reachable on localhost:6379; start one with `docker run -p 6379:6379 redis`",
)


# ---------------------------------------------------------------------------
# Storage fixtures
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def flat_storage() -> AsyncGenerator[RedisFlatStorage, None]:
    """Flat storage on test DB 1, flushed before and after each test."""
    if not _redis_up:
        pytest.skip("Redis not available")

    storage = await RedisFlatStorage.connect(make_real_settings())
    await storage.delete_all()
    yield storage
    await storage.delete_all()
    await storage.aclose()


@pytest_asyncio.fixture
async def hash_storage() -> AsyncGenerator[RedisHashStorage, None]:
    """Hash storage on test DB 1 with its own bucket, cleared around each test."""
    if not _redis_up:
        pytest.skip("Redis not available")

    storage = await RedisHashStorage.connect(
        make_real_settings(backend="redis-hash", bucket="cache_storages_test")
    )
    await storage.delete_all()
    yield storage
    await storage.delete_all()
    await storage.aclose()


# ---------------------------------------------------------------------------
# Logging cleanup
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_logging() -> Generator[None, None, None]:
    """Save and restore root logger handlers around each test."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    yield
    root.handlers = original_handlers
    root.level = original_level
