"""CLI package: Typer-based command-line interface.

Usage:
    python -m form_builder.cli --help
    form-builder field add country --type select
"""

from form_builder.cli._app import app

# Register command modules (side-effect imports)
import form_builder.cli.cmd_field  # noqa: F401
import form_builder.cli.cmd_rule  # noqa: F401
import form_builder.cli.cmd_form  # noqa: F401

__all__ = ["app"]
