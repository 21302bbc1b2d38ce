"""CLI entrypoint using typer."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import structlog
import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from cache_storages_core.config.settings import CacheSettings
from cache_storages_core.exceptions import CacheStorageError
from cache_storages_core.interfaces.storage import CacheStorage
from cache_storages_core.observability import configure_logging
from cache_storages_infra.factory import open_cache_storage

app = typer.Typer(
    name="cache-storages",
    help="Inspect and edit a cache storage from the command line",
)
console = Console()
logger = structlog.get_logger()

T = TypeVar("T")


@app.callback()
def main(
    ctx: typer.Context,
    backend: str | None = typer.Option(
        None, "--backend", help="Adapter: redis-flat or redis-hash"
    ),
    address: str | None = typer.Option(None, "--address", help="Server endpoint host:port"),
    db: int | None = typer.Option(None, "--db", help="Logical database index"),
    bucket: str | None = typer.Option(None, "--bucket", help="Hash name (redis-hash only)"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Enable debug logging"),
) -> None:
    """Resolve settings from the environment plus command-line overrides."""
    overrides: dict[str, Any] = {
        "backend": backend,
        "address": address,
        "db": db,
        "bucket": bucket,
    }
    if verbose:
        overrides["log_level"] = "DEBUG"
    try:
        settings = CacheSettings(**{k: v for k, v in overrides.items() if v is not None})
    except ValidationError as exc:
        console.print(f"[red]Invalid settings:[/red] {escape(str(exc))}")
        raise typer.Exit(code=2) from exc
    configure_logging(settings)
    ctx.obj = settings


@app.command()
def ping(ctx: typer.Context) -> None:
    """Connect once and report the adapter type."""
    storage_type = _run(ctx, lambda storage: _storage_type(storage))
    console.print(f"[bold green]OK[/bold green] {storage_type}")


@app.command()
def get(ctx: typer.Context, key: str = typer.Argument(..., help="Key to read")) -> None:
    """Print the raw text stored under KEY (empty if absent)."""
    console.print(_run(ctx, lambda storage: storage.get(key)), markup=False)


@app.command("set")
def set_(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Key to write"),
    value: str = typer.Argument(..., help="Text to store"),
    ttl: int = typer.Option(0, "--ttl", help="Expiry in seconds, 0 for none"),
) -> None:
    """Store raw text under KEY."""
    _run(ctx, lambda storage: storage.set(key, value, ttl))
    console.print(f"[green]stored[/green] {key}")


@app.command("get-object")
def get_object(
    ctx: typer.Context, key: str = typer.Argument(..., help="Key to read")
) -> None:
    """Decode the object envelope under KEY and print it as JSON."""
    missing = object()
    value = _run(ctx, lambda storage: storage.get_object(key, Any, missing))
    if value is missing:
        console.print(f"[yellow]not found:[/yellow] {key}")
        raise typer.Exit(code=1)
    console.print_json(json.dumps(value))


@app.command()
def incr(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Counter key"),
    by: int = typer.Option(1, "--by", min=0, help="Amount to add"),
) -> None:
    """Atomically increment a counter and print the new value."""
    console.print(_run(ctx, lambda storage: storage.increment(key, by)))


@app.command()
def decr(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Counter key"),
    by: int = typer.Option(1, "--by", min=0, help="Amount to subtract"),
) -> None:
    """Atomically decrement a counter and print the new value."""
    console.print(_run(ctx, lambda storage: storage.decrement(key, by)))


@app.command()
def delete(ctx: typer.Context, key: str = typer.Argument(..., help="Key to delete")) -> None:
    """Delete KEY (absent keys are ignored)."""
    _run(ctx, lambda storage: storage.delete(key))
    console.print(f"[green]deleted[/green] {key}")


@app.command()
def flush(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", help="Confirm the bulk delete"),
) -> None:
    """Remove every entry the adapter owns."""
    if not yes:
        console.print("[red]Error:[/red] flush deletes everything; pass --yes to confirm")
        raise typer.Exit(code=1)
    _run(ctx, lambda storage: storage.delete_all())
    console.print("[green]flushed[/green]")


@app.command()
def version() -> None:
    """Show version."""
    console.print("cache-storages v0.1.0")


async def _storage_type(storage: CacheStorage) -> str:
    return storage.storage_type()


def _run(ctx: typer.Context, operation: Callable[[CacheStorage], Awaitable[T]]) -> T:
    """Open the configured storage, run one operation and close it."""
    settings: CacheSettings = ctx.obj
    try:
        return asyncio.run(_with_storage(settings, operation))
    except (CacheStorageError, ValueError, TypeError) as exc:
        logger.debug("cli_operation_failed", error=str(exc))
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc


async def _with_storage(
    settings: CacheSettings, operation: Callable[[CacheStorage], Awaitable[T]]
) -> T:
    storage = await open_cache_storage(settings)
    try:
        return await operation(storage)
    finally:
        await storage.aclose()


if __name__ == "__main__":
    app()
