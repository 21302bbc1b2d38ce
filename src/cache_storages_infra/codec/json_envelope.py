"""JSON implementation of ObjectCodec using pydantic envelopes."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from cache_storages_core.exceptions import DecodeError, EncodeError
from cache_storages_core.models.envelope import StorageValue

if TYPE_CHECKING:
    from cache_storages_core.interfaces.codec import ObjectCodec


class JsonEnvelopeCodec:
    """Serialize values as ``{"v": value}`` JSON.

    Decoding validates the payload strictly against the requested target:
    a stored ``"1"`` does not silently become ``1``.
    """

    def __init__(self, *, strict: bool = True) -> None:
        """Initialize; ``strict=False`` permits pydantic's lax coercions."""
        self.strict = strict

    def encode(self, value: Any) -> bytes:
        """Wrap ``value`` in an envelope and serialize it to UTF-8 JSON."""
        try:
            return StorageValue[Any](v=value).model_dump_json().encode("utf-8")
        except (TypeError, ValueError) as exc:
            msg = f"cannot encode {type(value).__name__}: {exc}"
            raise EncodeError(msg) from exc

    def decode(self, data: bytes, target: Any) -> Any:
        """Unwrap an envelope and validate the payload as ``target``."""
        try:
            envelope = StorageValue[target].model_validate_json(data, strict=self.strict)
        except ValidationError as exc:
            msg = f"cannot decode envelope as {_target_name(target)}: {exc}"
            raise DecodeError(msg) from exc
        return envelope.v


def decode_many(
    codec: ObjectCodec,
    keys: Sequence[str],
    raw_values: Sequence[bytes | None],
    targets: Mapping[str, Any],
) -> dict[str, Any]:
    """Decode a multi-fetch reply, skipping absent keys.

    Nothing is returned unless every present value decodes, so callers never
    observe a half-applied batch.
    """
    decoded: dict[str, Any] = {}
    for key, data in zip(keys, raw_values, strict=True):
        if data is None:
            continue
        try:
            decoded[key] = codec.decode(data, targets[key])
        except DecodeError as exc:
            msg = f"key {key!r}: {exc}"
            raise DecodeError(msg) from exc
    return decoded


def _target_name(target: Any) -> str:
    return getattr(target, "__name__", None) or repr(target)
