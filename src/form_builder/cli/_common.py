"""Shared CLI utilities: logging setup, store construction, value parsing."""

import json
import logging
from pathlib import Path
from typing import Any

import typer
from rich.logging import RichHandler

from form_builder.cli._console import console
from form_builder.config.settings import FormBuilderConfig
from form_builder.runtime.store import FormStateStore
from form_builder.startup import ensure_initialized
from form_builder.storage import FileKeyValueStore, FormStorage


def setup_logging(*, verbose: bool = False, quiet: bool = False) -> None:
    """Route log records to the stderr console.

    --verbose wins over --quiet; without either flag the configured
    ``log_level`` applies. httpx request logs are only shown when verbose.
    """
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.getLevelName(ensure_initialized().log_level)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(RichHandler(console=console, show_path=False, markup=False, rich_tracebacks=True))
    root.setLevel(level)

    http_level = logging.DEBUG if verbose else logging.WARNING
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(http_level)


def build_store(
    config: FormBuilderConfig | None = None,
    *,
    storage_dir: Path | None = None,
) -> FormStateStore:
    """Create a store backed by the configured file storage and restore saved data.

    Args:
        config: Settings to use (default: ensure_initialized())
        storage_dir: Overrides ``config.storage_dir`` (the CLI's --storage-dir)
    """
    config = config or ensure_initialized()
    if storage_dir is not None:
        config = config.model_copy(update={"storage_dir": Path(storage_dir)})
    storage = FormStorage(
        FileKeyValueStore(config.storage_dir),
        key=config.storage_key,
        expiration_ms=config.expiration_ms,
    )
    store = FormStateStore(
        storage=storage,
        discard_stale_options=config.discard_stale_options,
        fetch_timeout=config.fetch_timeout_seconds,
    )
    store.load()
    return store


def parse_value(raw: str | None) -> Any:
    """Parse a command-line value as JSON, falling back to the raw string.

    ``true``, ``42`` and ``["a"]`` become bool, int and list; ``hello``
    stays a string.
    """
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def open_store(ctx: typer.Context) -> FormStateStore:
    """Configure logging from the global flags and open the saved form."""
    setup_logging(verbose=ctx.obj["verbose"], quiet=ctx.obj["quiet"])
    return build_store(storage_dir=ctx.obj.get("storage_dir"))
