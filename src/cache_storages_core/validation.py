"""Argument validation shared by every storage adapter."""

from __future__ import annotations

from typing import Any

from cache_storages_core.exceptions import DecodeError


def validate_key(key: Any) -> None:
    """Reject non-string and empty keys."""
    if not isinstance(key, str):
        msg = "key must be a string"
        raise TypeError(msg)
    if not key:
        msg = "key cannot be empty"
        raise ValueError(msg)


def validate_int(value: Any) -> None:
    """Reject anything but a real ``int``; ``bool`` and floats are not counters."""
    if isinstance(value, bool) or not isinstance(value, int):
        msg = f"value must be an int, got {type(value).__name__}"
        raise TypeError(msg)


def validate_ttl(ttl_seconds: int) -> None:
    """Reject negative TTLs; 0 means no expiry."""
    if ttl_seconds < 0:
        msg = f"ttl_seconds must be >= 0, got {ttl_seconds}"
        raise ValueError(msg)


def validate_delta(delta: int) -> None:
    """Reject negative increment/decrement magnitudes."""
    if delta < 0:
        msg = f"delta must be >= 0, got {delta}"
        raise ValueError(msg)


def to_text(reply: Any, *, errors: str = "strict") -> str:
    """Convert a bulk-string reply to text; a nil reply becomes ``""``.

    With the default ``errors="strict"`` a reply that is not valid UTF-8
    raises ``DecodeError``.
    """
    if reply is None:
        return ""
    if isinstance(reply, bytes):
        try:
            return reply.decode("utf-8", errors)
        except UnicodeDecodeError as exc:
            msg = f"reply is not valid UTF-8: {exc}"
            raise DecodeError(msg) from exc
    return str(reply)
