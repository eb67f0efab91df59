"""Rule commands: add, list and delete rules."""

from typing import List, Optional

import typer
from pydantic import ValidationError

from form_builder.cli._app import app
from form_builder.cli._common import open_store, parse_value
from form_builder.cli._console import output_result, output_table, print_err, print_ok
from form_builder.schemas.form import ApiConfig, FormRule, RuleAction

rule_app = typer.Typer(
    no_args_is_help=True,
    help="Manage rules (add, list, delete).",
)
app.add_typer(rule_app, name="rule")


def _parse_mapping(entries: List[str]) -> Optional[dict]:
    """Parse ``field=param`` entries into a paramMapping."""
    if not entries:
        return None
    mapping = {}
    for entry in entries:
        local_id, sep, remote = entry.partition("=")
        if not sep or not local_id or not remote:
            raise ValueError(f"Invalid param mapping '{entry}', expected field=param")
        mapping[local_id] = remote
    return mapping


@rule_app.command("add", help="Add a rule, or replace the rule at --index.")
def rule_add(
    ctx: typer.Context,
    source: str = typer.Argument(..., help="Source field id"),
    action: str = typer.Argument(..., help="show, hide, enable, disable, setValue, toggle, populateOptions"),
    target: str = typer.Argument(..., help="Target field id"),
    event: str = typer.Option("change", "--event", help="Triggering event"),
    source_type: Optional[str] = typer.Option(None, "--source-type", help="Only fire for this source field type"),
    impact: Optional[str] = typer.Option(None, "--impact", help="Value for setValue (parsed as JSON when possible)"),
    url: Optional[str] = typer.Option(None, "--url", help="Option source URL (populateOptions)"),
    method: str = typer.Option("GET", "--method", help="HTTP method for --url"),
    param: List[str] = typer.Option([], "--param", "-p", help="Param mapping field=param (repeatable)"),
    response_path: Optional[str] = typer.Option(None, "--path", help="Dot path to the option list"),
    label_key: Optional[str] = typer.Option(None, "--label-key", help="Dot path to each option label"),
    value_key: Optional[str] = typer.Option(None, "--value-key", help="Dot path to each option value"),
    index: Optional[int] = typer.Option(None, "--index", help="Replace the rule at this index"),
):
    """Add or replace a rule."""
    store = open_store(ctx)

    try:
        api_config = None
        if url:
            api_config = ApiConfig(
                url=url,
                method=method,
                param_mapping=_parse_mapping(param),
                response_path=response_path,
                label_key=label_key,
                value_key=value_key,
            )
        elif action == RuleAction.POPULATE_OPTIONS:
            print_err("populateOptions needs --url")
            raise SystemExit(1)

        rule = FormRule(
            source_field_id=source,
            source_field_type=source_type,
            event=event,
            action=action,
            target_field_id=target,
            impact=parse_value(impact),
            api_config=api_config,
        )
        position = store.upsert_rule(rule, index)
    except (ValidationError, ValueError, IndexError) as e:
        print_err(f"Invalid rule: {e}")
        raise SystemExit(1)

    if ctx.obj["json"]:
        output_result({"index": position, "rule": rule.to_json_dict()}, ctx=ctx)
    elif not ctx.obj["quiet"]:
        verb = "Replaced" if index is not None else "Added"
        print_ok(f"{verb} rule {position}: when {source} {event}, {action} {target}")


@rule_app.command("list", help="List all rules in evaluation order.")
def rule_list(ctx: typer.Context):
    """List rules."""
    store = open_store(ctx)

    rows = [
        {
            "index": i,
            "source": r.source_field_id,
            "event": r.event,
            "action": r.action,
            "target": r.target_field_id,
            "guard": r.source_field_type or "",
            "impact": "" if r.impact is None else r.impact,
            "url": r.api_config.url if r.api_config else "",
        }
        for i, r in enumerate(store.config.rules)
    ]
    output_table(rows, ctx=ctx, title="Rules")


@rule_app.command("delete", help="Delete the rule at an index.")
def rule_delete(
    ctx: typer.Context,
    index: int = typer.Argument(..., help="Rule index (see 'rule list')"),
):
    """Delete a rule by index."""
    store = open_store(ctx)

    try:
        removed = store.delete_rule(index)
    except IndexError as e:
        print_err(str(e))
        raise SystemExit(1)

    if ctx.obj["json"]:
        output_result({"deleted": index, "rule": removed.to_json_dict()}, ctx=ctx)
    elif not ctx.obj["quiet"]:
        print_ok(f"Deleted rule {index}")
