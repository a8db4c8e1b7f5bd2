"""
CLI: ``conductor templates`` — browse pre-built workflows.
"""

from __future__ import annotations

import typer
from rich.table import Table

from conductor.cli.utils import console, fail, output_definition
from conductor.orchestration.templates import get_template, list_templates

app = typer.Typer(no_args_is_help=True)


@app.command("list")
def list_cmd() -> None:
    """List available templates."""
    table = Table(title="Templates")
    table.add_column("Template", style="cyan")
    table.add_column("Workflow ID")
    table.add_column("Pattern")
    table.add_column("Nodes", justify="right")
    for name in list_templates():
        definition = get_template(name)()
        table.add_row(name, definition.id, definition.pattern_name, str(len(definition.nodes)))
    console.print(table)


@app.command("show")
def show_cmd(
    name: str = typer.Argument(..., help="Template name"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show a template's graph."""
    try:
        factory = get_template(name)
    except KeyError as e:
        raise fail(str(e.args[0])) from None
    output_definition(factory(), as_json=json_out)
