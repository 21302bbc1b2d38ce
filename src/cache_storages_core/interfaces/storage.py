"""Abstract cache storage interface."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class CacheStorage(Protocol):
    """Uniform cache contract; backend adapters can be swapped freely.

    Absent keys are never errors: ``get`` yields ``""``, ``get_int`` yields
    ``0`` and ``get_object`` yields the caller's ``default``. TTLs are in
    seconds, with ``0`` meaning "no expiry".
    """

    def storage_type(self) -> str:
        """Return the adapter identifier, e.g. ``redis-flat``."""
        ...

    async def set_object(self, key: str, value: Any, ttl_seconds: int = 0) -> None:
        """Wrap ``value`` in an envelope and store it."""
        ...

    async def get_object(self, key: str, target: Any, default: Any = None) -> Any:
        """Decode the stored envelope as ``target``, or return ``default`` if absent."""
        ...

    async def get_multi_object(self, targets: Mapping[str, Any]) -> dict[str, Any]:
        """Decode several envelopes at once; any decode failure fails the whole batch."""
        ...

    async def set(self, key: str, value: str, ttl_seconds: int = 0) -> None:
        """Store raw text."""
        ...

    async def get(self, key: str) -> str:
        """Retrieve raw text, or ``""`` if absent; non-UTF-8 bytes raise ``DecodeError``."""
        ...

    async def set_int(self, key: str, value: int, ttl_seconds: int = 0) -> None:
        """Store an integer; anything but an ``int`` raises ``TypeError``."""
        ...

    async def get_int(self, key: str) -> int:
        """Retrieve an integer, or ``0`` if absent."""
        ...

    async def get_multi(self, keys: Iterable[str]) -> dict[str, str]:
        """Retrieve several raw values; absent keys map to ``""``."""
        ...

    async def touch(self, key: str, ttl_seconds: int) -> None:
        """Refresh the TTL of a key where the backend supports it."""
        ...

    async def increment(self, key: str, delta: int = 1) -> int:
        """Atomically add ``delta`` and return the new value."""
        ...

    async def decrement(self, key: str, delta: int = 1) -> int:
        """Atomically subtract ``delta`` and return the new (signed) value."""
        ...

    async def delete(self, key: str) -> None:
        """Delete a key; deleting an absent key succeeds."""
        ...

    async def delete_all(self) -> None:
        """Remove every entry this adapter is responsible for."""
        ...

    async def aclose(self) -> None:
        """Release pooled connections."""
        ...
