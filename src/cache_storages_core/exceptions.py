"""Custom exception hierarchy for cache-storages."""

from __future__ import annotations

from typing import Any


class CacheStorageError(Exception):
    """Base exception for all cache-storages errors."""


class ConnectError(CacheStorageError):
    """Raised when the cache server cannot be reached, authenticated to, or selected."""


class CodecError(CacheStorageError):
    """Raised when a value cannot cross the object codec boundary."""


class EncodeError(CodecError):
    """Raised when a value cannot be serialized into a storage envelope."""


class DecodeError(CodecError):
    """Raised when stored bytes cannot be unwrapped into the requested shape."""


class BackendError(CacheStorageError):
    """Raised when the server rejects a command or the transport fails mid-command."""


class PartialResultError(BackendError):
    """Raised when a multi-step operation aborts after making partial progress.

    ``partial`` holds whatever had already been produced (fetched values or
    removed keys) when the failing step ran. A half-completed bulk operation
    is an expected, observable outcome rather than corruption.
    """

    def __init__(self, message: str, partial: Any) -> None:
        super().__init__(message)
        self.partial = partial
