"""Hash-bucket Redis implementation of CacheStorage."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from types import TracebackType
from typing import TYPE_CHECKING, Any

from cache_storages_core.constants import DEFAULT_BUCKET, STORAGE_TYPE_REDIS_HASH
from cache_storages_core.exceptions import CacheStorageError, DecodeError, PartialResultError
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


class RedisHashStorage:
    """Cache storage where every logical key is a field of one Redis hash.

    Redis has no per-field expiry, so ``ttl_seconds`` arguments are accepted
    and ignored, and ``touch`` is a no-op. ``delete_all`` only clears the
    bucket; other keys in the database are left alone.
    """

    def __init__(
        self,
        pool: ConnectionPool,
        bucket: str = DEFAULT_BUCKET,
        codec: ObjectCodec | None = None,
    ) -> None:
        """Initialize with an owned connection pool, a bucket name and a codec."""
        if not bucket:
            msg = "bucket cannot be empty"
            raise ValueError(msg)
        self._pool = pool
        self._bucket = bucket
        self._codec: ObjectCodec = codec or JsonEnvelopeCodec()
        self._log = pool.bind_logger(storage_type=STORAGE_TYPE_REDIS_HASH, bucket=bucket)

    @classmethod
    async def connect(
        cls,
        settings: CacheSettings,
        *,
        codec: ObjectCodec | None = None,
        connection_factory: ConnectionFactory | None = None,
    ) -> RedisHashStorage:
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
        storage = cls(pool, settings.bucket, codec)
        storage._log.info("storage_opened")
        return storage

    async def __aenter__(self) -> RedisHashStorage:
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

    @property
    def bucket(self) -> str:
        """Name of the hash holding every field."""
        return self._bucket

    def storage_type(self) -> str:
        """Return ``redis-hash``."""
        return STORAGE_TYPE_REDIS_HASH

    # --- Objects ---

    async def set_object(self, key: str, value: Any, ttl_seconds: int = 0) -> None:
        """Encode ``value`` in an envelope and store it; the TTL is ignored."""
        validate_key(key)
        validate_ttl(ttl_seconds)
        await self._pool.execute("HSET", self._bucket, key, self._codec.encode(value))

    async def get_object(self, key: str, target: Any, default: Any = None) -> Any:
        """Decode the stored envelope as ``target``; absent fields yield ``default``."""
        validate_key(key)
        data = await self._pool.execute("HGET", self._bucket, key)
        if data is None:
            return default
        return self._codec.decode(data, target)

    async def get_multi_object(self, targets: Mapping[str, Any]) -> dict[str, Any]:
        """Fetch every field with one HMGET and decode all of them or none."""
        keys = list(targets)
        for key in keys:
            validate_key(key)
        if not keys:
            return {}
        raw_values = await self._pool.execute("HMGET", self._bucket, *keys)
        try:
            return decode_many(self._codec, keys, raw_values, targets)
        except DecodeError:
            self._log.warning("multi_object_decode_failed", keys=len(keys))
            raise

    # --- Text and integers ---

    async def set(self, key: str, value: str, ttl_seconds: int = 0) -> None:
        """Store raw text; the TTL is ignored."""
        validate_key(key)
        validate_ttl(ttl_seconds)
        await self._pool.execute("HSET", self._bucket, key, value)

    async def get(self, key: str) -> str:
        """Retrieve raw text, or ``""`` if the field is absent."""
        validate_key(key)
        return to_text(await self._pool.execute("HGET", self._bucket, key))

    async def set_int(self, key: str, value: int, ttl_seconds: int = 0) -> None:
        """Store an integer; the TTL is ignored."""
        validate_key(key)
        validate_int(value)
        validate_ttl(ttl_seconds)
        await self._pool.execute("HSET", self._bucket, key, value)

    async def get_int(self, key: str) -> int:
        """Retrieve an integer, or ``0`` if the field is absent."""
        validate_key(key)
        reply = await self._pool.execute("HGET", self._bucket, key)
        if reply is None:
            return 0
        try:
            return int(to_text(reply))
        except ValueError as exc:
            msg = f"field {key!r} of {self._bucket!r} is not an integer"
            raise DecodeError(msg) from exc

    async def get_multi(self, keys: Iterable[str]) -> dict[str, str]:
        """Fetch several fields with one HMGET; absent fields map to ``""``."""
        unique = list(dict.fromkeys(keys))
        for key in unique:
            validate_key(key)
        if not unique:
            return {}
        replies = await self._pool.execute("HMGET", self._bucket, *unique)
        return {key: to_text(reply) for key, reply in zip(unique, replies, strict=True)}

    # --- Expiry and counters ---

    async def touch(self, key: str, ttl_seconds: int) -> None:
        """No-op: hash fields cannot expire individually."""
        validate_key(key)
        validate_ttl(ttl_seconds)

    async def increment(self, key: str, delta: int = 1) -> int:
        """Atomically add ``delta`` (HINCRBY); absent fields start at 0."""
        validate_key(key)
        validate_delta(delta)
        return await self._increment_by(key, delta)

    async def decrement(self, key: str, delta: int = 1) -> int:
        """Atomically subtract ``delta`` (HINCRBY by ``-delta``); results may go negative."""
        validate_key(key)
        validate_delta(delta)
        return await self._increment_by(key, -delta)

    # --- Deletion ---

    async def delete(self, key: str) -> None:
        """Remove one field; absent fields are ignored."""
        validate_key(key)
        await self._pool.execute("HDEL", self._bucket, key)

    async def delete_all(self) -> None:
        """Remove every field of the bucket, one HDEL per field.

        Not atomic: a field written after the HKEYS listing survives. If an
        HDEL fails, ``PartialResultError.partial`` lists the fields already
        removed.
        """
        fields = await self._pool.execute("HKEYS", self._bucket)
        removed: list[str] = []
        for field in fields:
            try:
                await self._pool.execute("HDEL", self._bucket, field)
            except CacheStorageError as exc:
                self._log.warning(
                    "bucket_clear_aborted",
                    removed=len(removed),
                    remaining=len(fields) - len(removed),
                )
                msg = f"clearing {self._bucket!r} stopped after {len(removed)} fields: {exc}"
                raise PartialResultError(msg, removed) from exc
            # field names written by other clients need not be UTF-8
            removed.append(to_text(field, errors="surrogateescape"))
        self._log.info("bucket_cleared", removed=len(removed))

    # --- Hash bucket extras ---

    async def set_nx(self, key: str, value: str) -> bool:
        """Store ``value`` only if the field does not exist; return whether it was set."""
        validate_key(key)
        return bool(await self._pool.execute("HSETNX", self._bucket, key, value))

    async def aclose(self) -> None:
        """Release pooled connections."""
        await self._pool.aclose()

    async def _increment_by(self, key: str, amount: int) -> int:
        return int(await self._pool.execute("HINCRBY", self._bucket, key, amount))
