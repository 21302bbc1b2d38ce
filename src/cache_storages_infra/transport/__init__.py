"""Transport: pooled Redis connections to one endpoint."""

from cache_storages_infra.transport.pool import ConnectionPool, PoolStats, RedisConnection

__all__ = [
    "ConnectionPool",
    "PoolStats",
    "RedisConnection",
]
