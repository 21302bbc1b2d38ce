"""Object codecs for structured cache values."""

from cache_storages_infra.codec.json_envelope import JsonEnvelopeCodec, decode_many

__all__ = [
    "JsonEnvelopeCodec",
    "decode_many",
]
