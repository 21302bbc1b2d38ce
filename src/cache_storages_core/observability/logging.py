"""Structured logging for cache storages.

Every event is rendered by structlog, including records emitted through the
stdlib ``logging`` module (redis-py logs that way). ``configure_logging``
also binds the configured endpoint into contextvars, so pool and storage
events in the same context carry ``backend``, ``address``, ``db`` and, for
the hash adapter, ``bucket`` without passing them at each call site.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import structlog
from structlog.contextvars import bind_contextvars, merge_contextvars, unbind_contextvars

from cache_storages_core.constants import STORAGE_TYPE_REDIS_HASH

if TYPE_CHECKING:
    from collections.abc import MutableMapping

    from cache_storages_core.config.settings import CacheSettings

ENDPOINT_CONTEXT_KEYS = ("backend", "address", "db", "bucket")

_SECRET_KEYS = frozenset({"password", "auth"})


def configure_logging(settings: CacheSettings) -> None:
    """Route structlog and stdlib logging through one handler on the root logger.

    ``settings.log_format`` selects JSON or console rendering and
    ``settings.log_level`` the root level; redis-py's own logger is kept at
    WARNING or above.
    """
    level = _resolve_level(settings.log_level)
    pre_chain = _shared_processors()

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    _install_root_handler(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(settings.log_format),
            ],
            foreign_pre_chain=pre_chain,
        ),
        level,
    )
    # redis-py logs every reconnect at DEBUG
    logging.getLogger("redis").setLevel(max(level, logging.WARNING))

    bind_endpoint_context(settings)


def bind_endpoint_context(settings: CacheSettings) -> None:
    """Bind the configured backend and endpoint to every later log entry."""
    clear_endpoint_context()
    context: dict[str, Any] = {
        "backend": settings.backend,
        "address": settings.address,
        "db": settings.db,
    }
    if settings.backend == STORAGE_TYPE_REDIS_HASH:
        context["bucket"] = settings.bucket
    bind_contextvars(**context)


def clear_endpoint_context() -> None:
    """Drop the endpoint keys bound by ``bind_endpoint_context``."""
    unbind_contextvars(*ENDPOINT_CONTEXT_KEYS)


def redact_secrets(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Mask credential values if a caller ever passes one as a log field."""
    for key in _SECRET_KEYS.intersection(event_dict):
        event_dict[key] = "***"
    return event_dict


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        merge_contextvars,
        redact_secrets,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def _install_root_handler(formatter: logging.Formatter, level: int) -> None:
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)
    root_logger.setLevel(level)


def _resolve_level(level_name: str) -> int:
    """Map a level name to its number; unknown names fall back to INFO."""
    level = logging.getLevelNamesMapping().get(level_name.upper())
    return logging.INFO if level is None else level
