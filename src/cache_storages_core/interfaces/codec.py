"""Abstract object codec interface."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class ObjectCodec(Protocol):
    """Byte-oriented serializer for structured cache values."""

    def encode(self, value: Any) -> bytes:
        """Wrap ``value`` in an envelope and serialize it.

        Raises ``EncodeError`` if the value cannot be serialized.
        """
        ...

    def decode(self, data: bytes, target: Any) -> Any:
        """Unwrap an envelope and validate its payload as ``target``.

        Raises ``DecodeError`` on malformed bytes or a shape mismatch.
        """
        ...
