"""Field commands: add, list and delete form fields."""

from typing import List, Optional

import typer
from pydantic import ValidationError

from form_builder.cli._app import app
from form_builder.cli._common import open_store, parse_value
from form_builder.cli._console import output_result, output_table, print_err, print_ok
from form_builder.schemas.form import FieldOption, FormField

field_app = typer.Typer(
    no_args_is_help=True,
    help="Manage form fields (add, list, delete).",
)
app.add_typer(field_app, name="field")


def _parse_option(raw: str) -> FieldOption:
    """Parse ``label=value`` (or a bare ``value``) into an option."""
    label, sep, value = raw.partition("=")
    if not sep:
        return FieldOption(label=raw, value=raw)
    return FieldOption(label=label, value=value)


@field_app.command("add", help="Add a field, or replace the field with the same id.")
def field_add(
    ctx: typer.Context,
    field_id: str = typer.Argument(..., help="Unique field id"),
    label: str = typer.Option("", "--label", "-l", help="Field label (default: the id)"),
    field_type: str = typer.Option("text", "--type", "-t", help="Field type (text, number, select, checkbox, ...)"),
    default: Optional[str] = typer.Option(None, "--default", help="Default value (parsed as JSON when possible)"),
    hidden: bool = typer.Option(False, "--hidden", help="Start hidden"),
    option: List[str] = typer.Option([], "--option", "-o", help="Option as label=value (repeatable)"),
):
    """Add or replace a field definition."""
    store = open_store(ctx)

    try:
        field = FormField(
            id=field_id,
            label=label or field_id,
            type=field_type,
            default_value=parse_value(default),
            visible=not hidden,
            options=[_parse_option(o) for o in option],
        )
        replaced = store.upsert_field(field)
    except (ValidationError, ValueError) as e:
        print_err(f"Invalid field: {e}")
        raise SystemExit(1)

    if ctx.obj["json"]:
        output_result({"field": field.to_json_dict(), "replaced": replaced}, ctx=ctx)
    elif not ctx.obj["quiet"]:
        print_ok(f"{'Replaced' if replaced else 'Added'} field '{field_id}' ({field_type})")


@field_app.command("list", help="List all fields.")
def field_list(ctx: typer.Context):
    """List field definitions."""
    store = open_store(ctx)

    rows = [
        {
            "id": f.id,
            "label": f.label,
            "type": f.type,
            "default": f.default_value,
            "visible": f.visible,
            "options": len(f.options),
        }
        for f in store.config.fields
    ]
    output_table(rows, ctx=ctx, title="Fields")


@field_app.command("delete", help="Delete a field and every rule that references it.")
def field_delete(
    ctx: typer.Context,
    field_id: str = typer.Argument(..., help="Field id to delete"),
):
    """Delete a field (cascades to its rules)."""
    store = open_store(ctx)

    if store.config.get_field(field_id) is None:
        print_err(f"Field not found: {field_id}")
        raise SystemExit(1)

    removed = store.delete_field(field_id)

    if ctx.obj["json"]:
        output_result({"deleted": field_id, "rules_removed": removed}, ctx=ctx)
    elif not ctx.obj["quiet"]:
        print_ok(f"Deleted field '{field_id}' ({removed} rules removed)")
