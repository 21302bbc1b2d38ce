"""CacheStorage adapters."""

from cache_storages_infra.storages.redis_flat import RedisFlatStorage
from cache_storages_infra.storages.redis_hash import RedisHashStorage

__all__ = [
    "RedisFlatStorage",
    "RedisHashStorage",
]
