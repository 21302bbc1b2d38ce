"""Observability: structured logging."""

from cache_storages_core.observability.logging import (
    bind_endpoint_context,
    clear_endpoint_context,
    configure_logging,
)

__all__ = [
    "bind_endpoint_context",
    "clear_endpoint_context",
    "configure_logging",
]
