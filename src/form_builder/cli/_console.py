"""Rich consoles and rendering for form builder output.

Status lines go to stderr; data (``--json`` output, exports) goes to stdout
so it can be piped.
"""

import json as json_mod
import sys
from typing import Any, Callable, Dict, List

import typer
from rich.console import Console
from rich.table import Table

from form_builder.runtime.config_linter import LintReport, Severity
from form_builder.schemas.form import FieldOption, FormConfig, FormState

console = Console(stderr=True)
stdout_console = Console(file=sys.stdout)

_MARKS = {
    "ok": "[green]✓[/green]",
    "err": "[red]✗[/red]",
    "warn": "[yellow]![/yellow]",
}


def _status(kind: str, msg: str) -> None:
    console.print(f"{_MARKS[kind]} {msg}")


def print_ok(msg: str) -> None:
    _status("ok", msg)


def print_err(msg: str) -> None:
    _status("err", msg)


def print_warn(msg: str) -> None:
    _status("warn", msg)


def _cell(value: Any) -> str:
    """Render a table cell: None as blank, strings as-is, anything else as JSON."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return json_mod.dumps(value, ensure_ascii=False, default=str)


def output_result(data: Dict[str, Any], *, ctx: typer.Context) -> None:
    """Print a command result as JSON (stdout) or indented text (stderr)."""
    if ctx.obj.get("json"):
        stdout_console.print_json(data=data, default=str)
    else:
        console.print(json_mod.dumps(data, indent=2, ensure_ascii=False, default=str))


def output_table(rows: List[Dict[str, Any]], *, ctx: typer.Context, title: str = "") -> None:
    """Print rows as a JSON array or a Rich table."""
    if ctx.obj.get("json"):
        stdout_console.print_json(data=rows, default=str)
        return

    if not rows:
        console.print("[dim]No data[/dim]")
        return

    table = Table(title=title, show_lines=False)
    for col in rows[0]:
        table.add_column(col)
    for row in rows:
        table.add_row(*[_cell(v) for v in row.values()])
    console.print(table)


def state_rows(
    config: FormConfig,
    state: FormState,
    options_for: Callable[[str], List[FieldOption]],
) -> List[Dict[str, Any]]:
    """One row per declared field with its runtime value, flags and options."""
    return [
        {
            "id": f.id,
            "type": f.type,
            "value": state.values.get(f.id),
            "visible": f.id in state.visible_fields,
            "disabled": f.id in state.disabled_fields,
            "options": ", ".join(o.label for o in options_for(f.id)),
        }
        for f in config.fields
    ]


def print_lint_report(report: LintReport, *, ctx: typer.Context) -> None:
    """Print lint issues, errors first."""
    if ctx.obj.get("json"):
        stdout_console.print_json(data=report.to_dict())
        return

    if report.ok:
        print_ok("No issues found")
        return

    ordered = sorted(report.issues, key=lambda issue: issue.severity != Severity.ERROR)
    for issue in ordered:
        if issue.severity == Severity.ERROR:
            print_err(issue.message)
        else:
            print_warn(issue.message)

    summary = report.summary()
    console.print(f"[dim]{summary['errors']} errors, {summary['warnings']} warnings[/dim]")
