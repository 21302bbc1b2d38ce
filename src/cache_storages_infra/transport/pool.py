"""Connection pool for one Redis endpoint."""

from __future__ import annotations

import asyncio
import time
from collections import deque
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol

import structlog
from redis.asyncio.connection import Connection
from redis.exceptions import RedisError, ResponseError

from cache_storages_core.config.settings import parse_address
from cache_storages_core.constants import (
    DEFAULT_ADDRESS,
    DEFAULT_IDLE_TIMEOUT_SECONDS,
    DEFAULT_MAX_IDLE,
)
from cache_storages_core.exceptions import BackendError, ConnectError

if TYPE_CHECKING:
    from cache_storages_core.config.settings import CacheSettings


class RedisConnection(Protocol):
    """The subset of ``redis.asyncio.connection.Connection`` the pool relies on."""

    async def connect(self) -> None: ...

    async def send_command(self, *args: Any, **kwargs: Any) -> None: ...

    async def read_response(self, *args: Any, **kwargs: Any) -> Any: ...

    async def disconnect(self, nowait: bool = False) -> None: ...


ConnectionFactory = Callable[[], RedisConnection]


@dataclass
class PoolStats:
    """Point-in-time pool occupancy."""

    idle: int
    in_use: int


class ConnectionPool:
    """Pool of Redis connections with a capped idle set.

    A borrowed connection belongs to the borrower until released. The pool
    dials a new connection whenever the idle set is empty, so a borrow never
    waits on capacity; only the idle set is bounded (``max_idle``). Idle
    connections older than ``idle_timeout`` are closed on the next borrow.

    Dialing runs connect, AUTH (if a password is set) and SELECT (if a
    database index is set) in that order; any failure raises
    ``ConnectError``. Nothing is retried here.
    """

    def __init__(
        self,
        address: str = DEFAULT_ADDRESS,
        *,
        db: int = 0,
        password: str | None = None,
        max_idle: int = DEFAULT_MAX_IDLE,
        idle_timeout: float = DEFAULT_IDLE_TIMEOUT_SECONDS,
        connect_timeout: float | None = None,
        socket_timeout: float | None = None,
        connection_factory: ConnectionFactory | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the pool; no connection is opened until the first borrow."""
        if max_idle < 0:
            msg = f"max_idle must be >= 0, got {max_idle}"
            raise ValueError(msg)
        if idle_timeout <= 0:
            msg = f"idle_timeout must be > 0, got {idle_timeout}"
            raise ValueError(msg)

        self.address = address
        self.db = db
        self.max_idle = max_idle
        self.idle_timeout = idle_timeout
        host, port = parse_address(address)
        self._connection_factory = connection_factory or (
            lambda: Connection(
                host=host,
                port=port,
                db=db,
                password=password,
                socket_connect_timeout=connect_timeout,
                socket_timeout=socket_timeout,
            )
        )
        self._clock = clock
        self._idle: deque[tuple[RedisConnection, float]] = deque()
        self._in_use = 0
        self._closed = False
        self._lock = asyncio.Lock()
        self._log = self.bind_logger()

    @classmethod
    def from_settings(
        cls,
        settings: CacheSettings,
        *,
        connection_factory: ConnectionFactory | None = None,
    ) -> ConnectionPool:
        """Build a pool from ``CacheSettings``."""
        password = settings.password.get_secret_value() if settings.password else None
        return cls(
            settings.address,
            db=settings.db,
            password=password,
            max_idle=settings.max_idle,
            idle_timeout=settings.idle_timeout_seconds,
            connect_timeout=settings.connect_timeout_seconds,
            socket_timeout=settings.socket_timeout_seconds,
            connection_factory=connection_factory,
        )

    def bind_logger(self, **values: Any) -> Any:
        """Return a structlog logger that stamps this endpoint on every event."""
        return structlog.get_logger(address=self.address, db=self.db, **values)

    @property
    def closed(self) -> bool:
        """Whether ``aclose`` has been called."""
        return self._closed

    def stats(self) -> PoolStats:
        """Return current idle and borrowed connection counts."""
        return PoolStats(idle=len(self._idle), in_use=self._in_use)

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[RedisConnection]:
        """Borrow a connection for the duration of the block.

        A server error reply leaves the connection usable and it returns to
        the idle set; any other failure inside the block discards it.
        """
        conn = await self._acquire()
        healthy = False
        try:
            yield conn
            healthy = True
        except ResponseError:
            healthy = True
            raise
        finally:
            await self._release(conn, discard=not healthy)

    async def execute(self, *args: Any) -> Any:
        """Run one command on a borrowed connection and return its reply."""
        try:
            async with self.connection() as conn:
                await conn.send_command(*args)
                return await conn.read_response()
        except (RedisError, OSError) as exc:
            msg = f"{args[0]} failed on {self.address}/{self.db}: {exc}"
            raise BackendError(msg) from exc

    async def probe(self) -> None:
        """Borrow, PING and release once so a bad configuration fails fast."""
        await self.execute("PING")

    async def aclose(self) -> None:
        """Close every idle connection and refuse further borrows."""
        async with self._lock:
            self._closed = True
            idle = [conn for conn, _ in self._idle]
            self._idle.clear()
        for conn in idle:
            await self._close(conn)
        self._log.debug("pool_closed")

    async def _acquire(self) -> RedisConnection:
        async with self._lock:
            if self._closed:
                msg = f"connection pool for {self.address} is closed"
                raise ConnectError(msg)
            stale = self._prune_locked()
            conn = self._idle.pop()[0] if self._idle else None
            self._in_use += 1

        for old in stale:
            await self._close(old)
        if stale:
            self._log.debug("pool_idle_pruned", count=len(stale))

        if conn is not None:
            return conn
        try:
            return await self._dial()
        except BaseException:
            async with self._lock:
                self._in_use -= 1
            raise

    async def _dial(self) -> RedisConnection:
        conn = self._connection_factory()
        try:
            await conn.connect()
        except (RedisError, OSError) as exc:
            await self._close(conn)
            self._log.warning("pool_dial_failed", error=str(exc))
            msg = f"cannot connect to {self.address}/{self.db}: {exc}"
            raise ConnectError(msg) from exc
        self._log.debug("pool_connection_dialed")
        return conn

    async def _release(self, conn: RedisConnection, *, discard: bool) -> None:
        evicted: RedisConnection | None = None
        async with self._lock:
            self._in_use -= 1
            keep = not discard and not self._closed and self.max_idle > 0
            if keep:
                self._idle.append((conn, self._clock()))
                if len(self._idle) > self.max_idle:
                    evicted = self._idle.popleft()[0]

        if not keep:
            await self._close(conn)
            if discard:
                self._log.debug("pool_connection_discarded")
        if evicted is not None:
            await self._close(evicted)

    def _prune_locked(self) -> list[RedisConnection]:
        """Pop idle connections past the idle timeout; caller holds the lock."""
        deadline = self._clock() - self.idle_timeout
        stale: list[RedisConnection] = []
        while self._idle and self._idle[0][1] < deadline:
            stale.append(self._idle.popleft()[0])
        return stale

    async def _close(self, conn: RedisConnection) -> None:
        try:
            await conn.disconnect(nowait=True)
        except (RedisError, OSError) as exc:
            self._log.debug("pool_disconnect_failed", error=str(exc))
