"""Domain models for cache-storages."""

from cache_storages_core.models.envelope import StorageValue

__all__ = [
    "StorageValue",
]
