"""Factory functions for creating cache storages from settings."""

from __future__ import annotations

from typing import TYPE_CHECKING

from cache_storages_core.interfaces.storage import CacheStorage

if TYPE_CHECKING:
    from cache_storages_core.config.settings import CacheSettings
    from cache_storages_core.interfaces.codec import ObjectCodec
    from cache_storages_infra.transport.pool import ConnectionFactory


async def open_cache_storage(
    settings: CacheSettings,
    *,
    codec: ObjectCodec | None = None,
    connection_factory: ConnectionFactory | None = None,
) -> CacheStorage:
    """Create and probe the storage adapter selected by ``settings.backend``.

    Returns ``RedisHashStorage`` when ``settings.backend == "redis-hash"``,
    otherwise ``RedisFlatStorage``.
    """
    if settings.backend == "redis-hash":
        from cache_storages_infra.storages.redis_hash import RedisHashStorage

        return await RedisHashStorage.connect(
            settings, codec=codec, connection_factory=connection_factory
        )

    from cache_storages_infra.storages.redis_flat import RedisFlatStorage

    return await RedisFlatStorage.connect(
        settings, codec=codec, connection_factory=connection_factory
    )
