"""Flat-keyspace Redis implementation of CacheStorage."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from types import TracebackType
from typing import TYPE_CHECKING, Any

from cache_storages_core.constants import STORAGE_TYPE_REDIS_FLAT
from cache_storages_core.exceptions import DecodeError
from cache_storages_core.validation import (
    to_text,
    validate_delta,
    validate_int,
    validate_key,
    validate_ttl,
)
from cache_storages_infra.codec.json_envelope import JsonEnvelopeCodec, decode_many
from cache_storages_infra.transport.pool import ConnectionFactory, ConnectionPool

if TYPE_CHECKING:
    from cache_storages_core.config.settings import CacheSettings
    from cache_storages_core.interfaces.codec import ObjectCodec


class RedisFlatStorage:
    """Cache storage where every logical key is a top-level Redis key.

    TTLs are native and enforced by the server. ``delete_all`` flushes the
    whole logical database, so each instance needs a database of its own.
    """

    def __init__(self, pool: ConnectionPool, codec: ObjectCodec | None = None) -> None:
        """Initialize with an owned connection pool and an object codec."""
        self._pool = pool
        self._codec: ObjectCodec = codec or JsonEnvelopeCodec()
        self._log = pool.bind_logger(storage_type=STORAGE_TYPE_REDIS_FLAT)

    @classmethod
    async def connect(
        cls,
        settings: CacheSettings,
        *,
        codec: ObjectCodec | None = None,
        connection_factory: ConnectionFactory | None = None,
    ) -> RedisFlatStorage:
        """Build the pool from settings and probe it once.

        Raises ``ConnectError`` if the server is unreachable or rejects the
        credentials or database index.
        """
        pool = ConnectionPool.from_settings(settings, connection_factory=connection_factory)
        try:
            await pool.probe()
        except Exception:
            await pool.aclose()
            raise
        storage = cls(pool, codec)
        storage._log.info("storage_opened")
        return storage

    async def __aenter__(self) -> RedisFlatStorage:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    @property
    def pool(self) -> ConnectionPool:
        """The connection pool owned by this storage."""
        return self._pool

    def storage_type(self) -> str:
        """Return ``redis-flat``."""
        return STORAGE_TYPE_REDIS_FLAT

    # --- Objects ---

    async def set_object(self, key: str, value: Any, ttl_seconds: int = 0) -> None:
        """Encode ``value`` in an envelope and store it."""
        validate_key(key)
        validate_ttl(ttl_seconds)
        await self._set_raw(key, self._codec.encode(value), ttl_seconds)

    async def get_object(self, key: str, target: Any, default: Any = None) -> Any:
        """Decode the stored envelope as ``target``; absent keys yield ``default``."""
        validate_key(key)
        data = await self._pool.execute("GET", key)
        if data is None:
            return default
        return self._codec.decode(data, target)

    async def get_multi_object(self, targets: Mapping[str, Any]) -> dict[str, Any]:
        """Fetch every key with one MGET and decode all of them or none."""
        keys = list(targets)
        for key in keys:
            validate_key(key)
        if not keys:
            return {}
        raw_values = await self._pool.execute("MGET", *keys)
        try:
            return decode_many(self._codec, keys, raw_values, targets)
        except DecodeError:
            self._log.warning("multi_object_decode_failed", keys=len(keys))
            raise

    # --- Text and integers ---

    async def set(self, key: str, value: str, ttl_seconds: int = 0) -> None:
        """Store raw text."""
        validate_key(key)
        validate_ttl(ttl_seconds)
        await self._set_raw(key, value, ttl_seconds)

    async def get(self, key: str) -> str:
        """Retrieve raw text, or ``""`` if the key is absent."""
        validate_key(key)
        return to_text(await self._pool.execute("GET", key))

    async def set_int(self, key: str, value: int, ttl_seconds: int = 0) -> None:
        """Store an integer."""
        validate_key(key)
        validate_int(value)
        validate_ttl(ttl_seconds)
        await self._set_raw(key, value, ttl_seconds)

    async def get_int(self, key: str) -> int:
        """Retrieve an integer, or ``0`` if the key is absent."""
        validate_key(key)
        reply = await self._pool.execute("GET", key)
        if reply is None:
            return 0
        try:
            return int(to_text(reply))
        except ValueError as exc:
            msg = f"value of {key!r} is not an integer"
            raise DecodeError(msg) from exc

    async def get_multi(self, keys: Iterable[str]) -> dict[str, str]:
        """Fetch several keys with one MGET; absent keys map to ``""``."""
        unique = list(dict.fromkeys(keys))
        for key in unique:
            validate_key(key)
        if not unique:
            return {}
        replies = await self._pool.execute("MGET", *unique)
        return {key: to_text(reply) for key, reply in zip(unique, replies, strict=True)}

    # --- Expiry and counters ---

    async def touch(self, key: str, ttl_seconds: int) -> None:
        """Reset the TTL; ``0`` removes it so the key never expires."""
        validate_key(key)
        validate_ttl(ttl_seconds)
        if ttl_seconds > 0:
            await self._pool.execute("EXPIRE", key, ttl_seconds)
        else:
            await self._pool.execute("PERSIST", key)

    async def increment(self, key: str, delta: int = 1) -> int:
        """Atomically add ``delta`` (INCRBY); absent keys start at 0."""
        validate_key(key)
        validate_delta(delta)
        return int(await self._pool.execute("INCRBY", key, delta))

    async def decrement(self, key: str, delta: int = 1) -> int:
        """Atomically subtract ``delta`` (DECRBY); results may go negative."""
        validate_key(key)
        validate_delta(delta)
        return int(await self._pool.execute("DECRBY", key, delta))

    # --- Deletion ---

    async def delete(self, key: str) -> None:
        """Delete a key; absent keys are ignored."""
        validate_key(key)
        await self._pool.execute("DEL", key)

    async def delete_all(self) -> None:
        """Flush the whole logical database, including keys written by others."""
        await self._pool.execute("FLUSHDB")
        self._log.info("database_flushed")

    # --- Flat keyspace extras ---

    async def set_nx(self, key: str, value: str) -> bool:
        """Store ``value`` only if ``key`` does not exist; return whether it was set."""
        validate_key(key)
        return bool(await self._pool.execute("SETNX", key, value))

    async def get_set(self, key: str, value: str) -> str:
        """Store ``value`` and return the previous text, or ``""`` if there was none."""
        validate_key(key)
        return to_text(await self._pool.execute("GETSET", key, value))

    async def keys(self, pattern: str = "*") -> list[str]:
        """List keys matching a glob pattern (KEYS; scans the whole database)."""
        return [to_text(name) for name in await self._pool.execute("KEYS", pattern)]

    async def ttl(self, key: str) -> int:
        """Remaining TTL in seconds; -1 without expiry, -2 when absent."""
        validate_key(key)
        return int(await self._pool.execute("TTL", key))

    async def aclose(self) -> None:
        """Release pooled connections."""
        await self._pool.aclose()

    async def _set_raw(self, key: str, value: Any, ttl_seconds: int) -> None:
        if ttl_seconds > 0:
            await self._pool.execute("SET", key, value, "EX", ttl_seconds)
        else:
            await self._pool.execute("SET", key, value)
