"""Shared constants for cache-storages."""

from __future__ import annotations

# Adapter identifiers returned by storage_type()
STORAGE_TYPE_REDIS_FLAT = "redis-flat"
STORAGE_TYPE_REDIS_HASH = "redis-hash"

# Pool defaults
DEFAULT_MAX_IDLE = 3
DEFAULT_IDLE_TIMEOUT_SECONDS = 180.0
DEFAULT_CONNECT_TIMEOUT_SECONDS = 5.0

# Name of the hash that holds every field of a hash-bucket adapter
DEFAULT_BUCKET = "hash_key"

DEFAULT_ADDRESS = "127.0.0.1:6379"
