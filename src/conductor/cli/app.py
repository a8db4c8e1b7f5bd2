"""
Root Typer application for the conductor CLI.
"""

from __future__ import annotations

import sys
from pathlib import Path

import typer
from typer import Typer

from conductor.cli.utils import (
    console,
    fail,
    load_executor,
    output_definition,
    output_execution,
    parse_input,
    read_definition,
)
from conductor.core.errors import ConductorError
from conductor.core.logging import configure_logging
from conductor.core.settings import get_settings
from conductor.orchestration.orchestrator import Orchestrator
from conductor.orchestration.results import ExecutionStatus
from conductor.orchestration.validator import validate_workflow

app = Typer(
    name="conductor",
    help="conductor — multi-pattern workflow orchestration for agent graphs.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from conductor import __version__

        typer.echo(f"conductor {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: str | None = typer.Option(
        None, "--log-level", help="Log level (defaults to CONDUCTOR_LOG_LEVEL)."
    ),
) -> None:
    """conductor CLI — validate, run and inspect workflows."""
    settings = get_settings()
    configure_logging(
        level=log_level or settings.log_level,
        json_format=settings.log_format.lower() == "json",
        stream=sys.stderr,
    )


# ── Commands ─────────────────────────────────────────────────────────────


@app.command("validate")
def validate_cmd(
    file: Path = typer.Argument(..., help="Workflow definition (YAML or JSON)"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Load a workflow definition and check its structure."""
    definition = read_definition(file)
    try:
        validate_workflow(definition)
    except ConductorError as e:
        raise fail(e.message) from e
    if not json_out:
        console.print(f"[green]✓[/green] {definition.id} is valid")
    output_definition(definition, as_json=json_out)


@app.command("run")
def run_cmd(
    file: Path = typer.Argument(..., help="Workflow definition (YAML or JSON)"),
    input: str | None = typer.Option(None, "--input", "-i", help="Workflow input (JSON)"),
    executor: str | None = typer.Option(
        None, "--executor", "-e", help="Node executor as module:qualname (default: echo)"
    ),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Register a workflow and execute it once."""
    definition = read_definition(file)
    orchestrator = Orchestrator(load_executor(executor))
    try:
        orchestrator.register_workflow(definition)
    except ConductorError as e:
        raise fail(e.message) from e

    result = orchestrator.execute_sync(definition.id, parse_input(input))
    output_execution(result, as_json=json_out)
    if result.status in (ExecutionStatus.FAILED, ExecutionStatus.TIMEOUT):
        raise typer.Exit(code=1)


# ── Sub-command registration ─────────────────────────────────────────────

from conductor.cli.templates import app as templates_app  # noqa: E402

app.add_typer(templates_app, name="templates", help="Pre-built workflow templates.")
