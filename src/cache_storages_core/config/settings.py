"""Application settings using pydantic-settings."""

from __future__ import annotations

from typing import Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from cache_storages_core.constants import (
    DEFAULT_ADDRESS,
    DEFAULT_BUCKET,
    DEFAULT_CONNECT_TIMEOUT_SECONDS,
    DEFAULT_IDLE_TIMEOUT_SECONDS,
    DEFAULT_MAX_IDLE,
)


def parse_address(address: str) -> tuple[str, int]:
    """Split a ``host:port`` endpoint into its parts.

    IPv6 hosts may be bracketed (``[::1]:6379``).
    """
    host, sep, port_text = address.strip().rpartition(":")
    if not sep or not host:
        msg = f"address must be host:port, got {address!r}"
        raise ValueError(msg)
    try:
        port = int(port_text)
    except ValueError as exc:
        msg = f"address port must be an integer, got {port_text!r}"
        raise ValueError(msg) from exc
    if not 1 <= port <= 65535:
        msg = f"address port must be between 1 and 65535, got {port}"
        raise ValueError(msg)
    return host.strip("[]"), port


class CacheSettings(BaseSettings):
    """Central configuration for a cache storage adapter."""

    model_config = SettingsConfigDict(env_prefix="CACHE_", env_file=".env")

    # --- Backend ---
    backend: Literal["redis-flat", "redis-hash"] = Field(
        default="redis-flat",
        description="Adapter: 'redis-flat' (one key per entry) or 'redis-hash' (one bucket)",
    )
    bucket: str = Field(
        default=DEFAULT_BUCKET,
        min_length=1,
        description="Hash name holding every field (redis-hash only)",
    )

    # --- Connection ---
    address: str = Field(
        default=DEFAULT_ADDRESS,
        description="Cache server endpoint as host:port",
    )
    db: int = Field(
        default=0,
        ge=0,
        description="Logical database index selected on every connection",
    )
    password: SecretStr | None = Field(
        default=None,
        description="AUTH credential (optional)",
    )

    # --- Pool ---
    max_idle: int = Field(
        default=DEFAULT_MAX_IDLE,
        ge=0,
        description="Maximum idle connections kept by the pool",
    )
    idle_timeout_seconds: float = Field(
        default=DEFAULT_IDLE_TIMEOUT_SECONDS,
        gt=0,
        description="Idle connections older than this are closed",
    )
    connect_timeout_seconds: float | None = Field(
        default=DEFAULT_CONNECT_TIMEOUT_SECONDS,
        description="Timeout for establishing a connection (None waits forever)",
    )
    socket_timeout_seconds: float | None = Field(
        default=None,
        description="Timeout for a single command round trip (None waits forever)",
    )

    # --- Logging ---
    log_level: str = Field(
        default="INFO",
        description="Root log level",
    )
    log_format: Literal["console", "json"] = Field(
        default="console",
        description="Log renderer: 'console' for humans, 'json' for aggregation",
    )

    @field_validator("address")
    @classmethod
    def validate_address(cls, value: str) -> str:
        """Reject endpoints that are not host:port."""
        parse_address(value)
        return value.strip()

    @property
    def host(self) -> str:
        """Host part of the endpoint address."""
        return parse_address(self.address)[0]

    @property
    def port(self) -> int:
        """Port part of the endpoint address."""
        return parse_address(self.address)[1]
