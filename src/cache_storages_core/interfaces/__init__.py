"""Public interface re-exports for cache_storages_core."""

from cache_storages_core.interfaces.codec import ObjectCodec
from cache_storages_core.interfaces.storage import CacheStorage

__all__ = [
    "CacheStorage",
    "ObjectCodec",
]
