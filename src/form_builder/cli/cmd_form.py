"""Form commands: apply changes, inspect state, lint, import/export, reset."""

import asyncio
import json
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError

from form_builder.cli._app import app
from form_builder.cli._common import build_store, open_store, parse_value, setup_logging
from form_builder.cli._console import (
    console,
    output_result,
    output_table,
    print_err,
    print_lint_report,
    print_ok,
    print_warn,
    state_rows,
)
from form_builder.runtime.config_linter import lint_config
from form_builder.runtime.store import FormStateStore
from form_builder.schemas.form import FormConfig


def _state_table(store: FormStateStore, ctx: typer.Context) -> None:
    output_table(state_rows(store.config, store.state, store.options_for), ctx=ctx, title="Form state")


@app.command("change", help="Set a field value and apply the rules it triggers.")
def change_cmd(
    ctx: typer.Context,
    field_id: str = typer.Argument(..., help="Field id that changed"),
    value: Optional[str] = typer.Argument(None, help="New value (parsed as JSON when possible)"),
    no_fetch: bool = typer.Option(False, "--no-fetch", help="Skip remote option population"),
):
    """Run one rule pass, then wait for any option fetches it triggered."""
    store = open_store(ctx)

    if store.config.get_field(field_id) is None:
        print_warn(f"Field '{field_id}' is not defined; applying anyway")

    async def _run():
        if no_fetch:
            return store.handle_change(field_id, parse_value(value))
        result = await store.dispatch(field_id, parse_value(value))
        await store.drain()
        return result

    result = asyncio.run(_run())

    if ctx.obj["json"]:
        output_result(
            {
                "fired_rules": result.fired_rules,
                "fetches": [f.to_json_dict() for f in result.pending_fetches],
                "state": store.state.to_json_dict(),
            },
            ctx=ctx,
        )
        return

    if not ctx.obj["quiet"]:
        print_ok(
            f"{len(result.fired_rules)} rules fired, "
            f"{len(result.pending_fetches)} option fetches"
        )
        _state_table(store, ctx)


@app.command("show", help="Show the current form state.")
def show_cmd(ctx: typer.Context):
    """Print fields with their current value, visibility and options."""
    store = open_store(ctx)

    if ctx.obj["json"]:
        output_result(
            {"config": store.config.to_json_dict(), "state": store.state.to_json_dict()},
            ctx=ctx,
        )
        return

    if not store.config.fields:
        console.print("No fields defined.")
        return
    _state_table(store, ctx)


@app.command("check", help="Report dangling references and other rule problems.")
def check_cmd(ctx: typer.Context):
    """Lint the configuration. Exits 1 when errors are found."""
    store = open_store(ctx)
    report = lint_config(store.config)

    print_lint_report(report, ctx=ctx)

    if report.summary()["errors"]:
        raise SystemExit(1)


@app.command("export", help="Print the configuration as JSON.")
def export_cmd(ctx: typer.Context):
    """Export the configuration (camelCase JSON) to stdout."""
    store = open_store(ctx)
    typer.echo(json.dumps(store.config.to_json_dict(), indent=2, ensure_ascii=False))


@app.command("import", help="Replace the configuration with one loaded from a JSON file.")
def import_cmd(
    ctx: typer.Context,
    path: Path = typer.Argument(..., help="JSON file with {fields, rules}"),
):
    """Import a configuration file."""
    setup_logging(verbose=ctx.obj["verbose"], quiet=ctx.obj["quiet"])

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        config = FormConfig.model_validate(data.get("config", data))
    except FileNotFoundError:
        print_err(f"File not found: {path}")
        raise SystemExit(1)
    except (json.JSONDecodeError, ValidationError, AttributeError) as e:
        print_err(f"Invalid configuration: {e}")
        raise SystemExit(1)

    store = build_store(storage_dir=ctx.obj.get("storage_dir"))
    store.replace_config(config)

    if ctx.obj["json"]:
        output_result({"fields": len(config.fields), "rules": len(config.rules)}, ctx=ctx)
    elif not ctx.obj["quiet"]:
        print_ok(f"Imported {len(config.fields)} fields and {len(config.rules)} rules")


@app.command("reset", help="Clear the saved configuration and form state.")
def reset_cmd(
    ctx: typer.Context,
    force: bool = typer.Option(False, "--force", help="Skip confirmation prompt"),
):
    """Reset the form."""
    setup_logging(verbose=ctx.obj["verbose"], quiet=ctx.obj["quiet"])

    if not force and not typer.confirm("Delete all fields, rules and values?"):
        print_warn("Aborted")
        raise SystemExit(1)

    store = build_store(storage_dir=ctx.obj.get("storage_dir"))
    store.reset()

    if ctx.obj["json"]:
        output_result({"reset": True}, ctx=ctx)
    elif not ctx.obj["quiet"]:
        print_ok("Form reset")
