"""Root Typer application for ``form-builder``."""

from pathlib import Path
from typing import Optional

import typer

app = typer.Typer(
    name="form-builder",
    no_args_is_help=True,
    rich_markup_mode="rich",
    pretty_exceptions_enable=False,
)


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug-level logging"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Warnings and errors only"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON to stdout"),
    storage_dir: Optional[Path] = typer.Option(
        None, "--storage-dir", help="Directory holding the saved form (overrides settings)",
    ),
):
    """Build rule-driven dynamic forms and evaluate field changes."""
    ctx.ensure_object(dict)
    ctx.obj.update(
        verbose=verbose,
        quiet=quiet,
        json=json_output,
        storage_dir=storage_dir,
    )
