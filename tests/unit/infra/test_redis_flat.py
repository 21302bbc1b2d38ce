"""Tests for the flat-keyspace adapter against the fake Redis."""

from __future__ import annotations

import pytest

from cache_storages_core.exceptions import DecodeError
from cache_storages_infra.storages.redis_flat import RedisFlatStorage
from tests.mocks.fake_redis import FakeRedisServer


@pytest.mark.unit
class TestRedisFlatStorage:
    """Flat-keyspace specifics: native TTL, native counters, FLUSHDB."""

    @pytest.mark.asyncio
    async def test_storage_type(self, flat_storage: RedisFlatStorage) -> None:
        """Identifier is redis-flat."""
        assert flat_storage.storage_type() == "redis-flat"

    @pytest.mark.asyncio
    async def test_set_with_ttl_uses_set_ex(
        self, flat_storage: RedisFlatStorage, fake_server: FakeRedisServer
    ) -> None:
        """A positive TTL is sent as SET ... EX in one command."""
        await flat_storage.set("k", "v", 60)
        assert fake_server.commands[-1] == (0, ("SET", "k", "v", "EX", "60"))

    @pytest.mark.asyncio
    async def test_set_without_ttl_is_plain_set(
        self, flat_storage: RedisFlatStorage, fake_server: FakeRedisServer
    ) -> None:
        """TTL 0 sends a plain SET."""
        await flat_storage.set("k", "v", 0)
        assert fake_server.commands[-1] == (0, ("SET", "k", "v"))

    @pytest.mark.asyncio
    async def test_value_expires_after_ttl(
        self, flat_storage: RedisFlatStorage, fake_server: FakeRedisServer
    ) -> None:
        """A key written with TTL 1 reads as '' once the TTL has passed."""
        await flat_storage.set("k", "v", 1)
        assert await flat_storage.get("k") == "v"
        fake_server.advance(1.5)
        assert await flat_storage.get("k") == ""

    @pytest.mark.asyncio
    async def test_ttl_zero_never_expires(
        self, flat_storage: RedisFlatStorage, fake_server: FakeRedisServer
    ) -> None:
        """A key written with TTL 0 survives any amount of time."""
        await flat_storage.set("k", "v", 0)
        fake_server.advance(10_000)
        assert await flat_storage.get("k") == "v"
        assert await flat_storage.ttl("k") == -1

    @pytest.mark.asyncio
    async def test_object_ttl_is_native(
        self, flat_storage: RedisFlatStorage, fake_server: FakeRedisServer
    ) -> None:
        """Object writes honour the TTL too."""
        await flat_storage.set_object("obj", {"a": 1}, 2)
        fake_server.advance(3)
        assert await flat_storage.get_object("obj", dict) is None

    @pytest.mark.asyncio
    async def test_touch_refreshes_ttl(
        self, flat_storage: RedisFlatStorage, fake_server: FakeRedisServer
    ) -> None:
        """Touch issues EXPIRE with the new TTL."""
        await flat_storage.set("k", "v", 2)
        fake_server.advance(1)
        await flat_storage.touch("k", 10)
        fake_server.advance(5)
        assert await flat_storage.get("k") == "v"
        assert "EXPIRE" in fake_server.names()

    @pytest.mark.asyncio
    async def test_touch_zero_removes_expiry(
        self, flat_storage: RedisFlatStorage, fake_server: FakeRedisServer
    ) -> None:
        """Touch with 0 means 'no expiry' and is sent as PERSIST."""
        await flat_storage.set("k", "v", 2)
        await flat_storage.touch("k", 0)
        fake_server.advance(100)
        assert await flat_storage.get("k") == "v"
        assert "PERSIST" in fake_server.names()

    @pytest.mark.asyncio
    async def test_counters_use_native_commands(
        self, flat_storage: RedisFlatStorage, fake_server: FakeRedisServer
    ) -> None:
        """Increment and decrement map to INCRBY and DECRBY."""
        await flat_storage.increment("c", 3)
        await flat_storage.decrement("c", 1)
        assert fake_server.names()[-2:] == ["INCRBY", "DECRBY"]
        assert await flat_storage.get_int("c") == 2

    @pytest.mark.asyncio
    async def test_get_multi_is_one_mget(
        self, flat_storage: RedisFlatStorage, fake_server: FakeRedisServer
    ) -> None:
        """GetMulti issues a single MGET with duplicate keys collapsed."""
        await flat_storage.get_multi(["a", "b", "a"])
        assert fake_server.commands[-1] == (0, ("MGET", "a", "b"))

    @pytest.mark.asyncio
    async def test_get_multi_object_is_one_mget(
        self, flat_storage: RedisFlatStorage, fake_server: FakeRedisServer
    ) -> None:
        """GetMultiObject issues a single MGET."""
        await flat_storage.set_object("a", 1)
        await flat_storage.get_multi_object({"a": int, "b": int})
        assert fake_server.commands[-1] == (0, ("MGET", "a", "b"))

    @pytest.mark.asyncio
    async def test_envelope_wire_format(
        self, flat_storage: RedisFlatStorage, fake_server: FakeRedisServer
    ) -> None:
        """Objects are stored as a {"v": ...} JSON envelope."""
        await flat_storage.set_object("obj", {"name": "y"})
        assert fake_server.raw(0, "obj") == b'{"v":{"name":"y"}}'

    @pytest.mark.asyncio
    async def test_delete_all_flushes_whole_database(
        self, flat_storage: RedisFlatStorage, fake_server: FakeRedisServer
    ) -> None:
        """FLUSHDB also removes keys this adapter never wrote."""
        fake_server.execute(0, ("SET", "foreign", "x"))
        await flat_storage.set("mine", "y")
        await flat_storage.delete_all()
        assert await flat_storage.keys() == []
        assert fake_server.names()[-2] == "FLUSHDB"

    @pytest.mark.asyncio
    async def test_delete_all_leaves_other_databases(self, fake_server: FakeRedisServer) -> None:
        """Only the selected logical database is flushed."""
        from tests.mocks.mock_factories import make_flat_storage

        other = make_flat_storage(fake_server, db=2)
        mine = make_flat_storage(fake_server, db=1)
        await other.set("k", "kept")
        await mine.set("k", "gone")
        await mine.delete_all()
        assert await other.get("k") == "kept"
        assert await mine.get("k") == ""
        await other.aclose()
        await mine.aclose()

    @pytest.mark.asyncio
    async def test_set_nx(self, flat_storage: RedisFlatStorage) -> None:
        """SetNX only writes when the key is absent."""
        assert await flat_storage.set_nx("k", "first") is True
        assert await flat_storage.set_nx("k", "second") is False
        assert await flat_storage.get("k") == "first"

    @pytest.mark.asyncio
    async def test_get_set(self, flat_storage: RedisFlatStorage) -> None:
        """GetSet returns the previous value, '' the first time."""
        assert await flat_storage.get_set("k", "v1") == ""
        assert await flat_storage.get_set("k", "v2") == "v1"
        assert await flat_storage.get("k") == "v2"

    @pytest.mark.asyncio
    async def test_keys_pattern(self, flat_storage: RedisFlatStorage) -> None:
        """KEYS filters by glob pattern."""
        await flat_storage.set("user:1", "a")
        await flat_storage.set("user:2", "b")
        await flat_storage.set("order:1", "c")
        assert sorted(await flat_storage.keys("user:*")) == ["user:1", "user:2"]

    @pytest.mark.asyncio
    async def test_context_manager_closes_pool(self, fake_server: FakeRedisServer) -> None:
        """Leaving the async context closes the owned pool."""
        from tests.mocks.mock_factories import make_flat_storage

        async with make_flat_storage(fake_server) as storage:
            await storage.set("k", "v")
        assert storage.pool.closed

    @pytest.mark.asyncio
    async def test_non_utf8_value_is_decode_error(
        self, flat_storage: RedisFlatStorage, fake_server: FakeRedisServer
    ) -> None:
        """Binary values written by other clients surface as DecodeError."""
        fake_server.execute(0, ("SET", "blob", b"\xff\xfe\x00"))
        with pytest.raises(DecodeError, match="UTF-8"):
            await flat_storage.get("blob")
        with pytest.raises(DecodeError, match="UTF-8"):
            await flat_storage.get_multi(["blob", "other"])
        with pytest.raises(DecodeError, match="UTF-8"):
            await flat_storage.get_set("blob", "text")
        assert await flat_storage.get("blob") == "text"
