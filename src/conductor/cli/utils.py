"""
CLI utility helpers — output formatting and executor loading.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from conductor.core.errors import ConductorError
from conductor.orchestration.models import WorkflowDefinition
from conductor.orchestration.node_executor import NodeExecutor
from conductor.orchestration.refs import resolve_callable_ref
from conductor.orchestration.results import ExecutionResult, ExecutionStatus
from conductor.orchestration.workflow_yaml import load_definition

console = Console()
err_console = Console(stderr=True)

_STATUS_STYLE = {
    ExecutionStatus.COMPLETED: "green",
    ExecutionStatus.FAILED: "red",
    ExecutionStatus.TIMEOUT: "yellow",
    ExecutionStatus.PENDING_APPROVAL: "cyan",
}


def fail(message: str, code: int = 1) -> typer.Exit:
    """Print an error and return an ``Exit`` to raise."""
    err_console.print(f"[bold red]Error[/bold red]: {message}")
    return typer.Exit(code=code)


def read_definition(path: Path) -> WorkflowDefinition:
    """Load a YAML/JSON definition, turning load errors into CLI errors."""
    try:
        return load_definition(path)
    except FileNotFoundError:
        raise fail(f"File not found: {path}") from None
    except (ValueError, KeyError, ConductorError) as e:
        raise fail(f"Invalid definition in {path}: {e}") from e


def parse_input(raw: str | None) -> Any:
    """Parse ``--input`` as JSON, falling back to the raw string."""
    if raw is None:
        return {}
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def load_executor(ref: str | None) -> NodeExecutor | Any:
    """Resolve ``--executor module:qualname``; classes are instantiated.

    Defaults to the echo executor from the test harness.
    """
    if ref is None:
        from conductor.orchestration.testing import EchoNodeExecutor

        return EchoNodeExecutor()
    try:
        target = resolve_callable_ref(ref)
    except (ImportError, AttributeError, TypeError, ValueError) as e:
        raise fail(f"Cannot load executor {ref!r}: {e}") from e
    return target() if isinstance(target, type) else target


def output_definition(definition: WorkflowDefinition, *, as_json: bool = False) -> None:
    if as_json:
        console.print_json(json.dumps(definition.to_dict(), default=str))
        return

    console.print(f"[bold]{definition.name}[/bold] ({definition.id}) pattern: {definition.pattern_name}")
    if definition.description:
        console.print(definition.description)

    table = Table(title="Nodes")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Type")
    table.add_column("Capabilities")
    table.add_column("Role")
    for node in definition.nodes:
        role = []
        if node.id == definition.entry_point:
            role.append("entry")
        if node.id in definition.exit_points:
            role.append("exit")
        table.add_row(node.id, node.name, node.type, ", ".join(node.capabilities), ", ".join(role))
    console.print(table)

    if definition.edges:
        console.print("Edges: " + ", ".join(f"{e.from_node}→{e.to_node}" for e in definition.edges))


def output_execution(result: ExecutionResult, *, as_json: bool = False) -> None:
    if as_json:
        console.print_json(json.dumps(result.to_dict(), default=str))
        return

    style = _STATUS_STYLE.get(result.status, "white")
    console.print(
        f"Execution [bold]{result.execution_id}[/bold] "
        f"→ [{style}]{result.status.value}[/{style}]"
    )
    if result.error:
        console.print(f"[red]{result.error}[/red]")
    if result.pending_decision is not None:
        d = result.pending_decision
        console.print(f"Awaiting approval for [bold]{d.next_node}[/bold]: {d.reasoning}")

    table = Table(title="History")
    table.add_column("#", justify="right")
    table.add_column("Node", style="cyan")
    table.add_column("Status")
    table.add_column("Attempts", justify="right")
    table.add_column("Duration (ms)", justify="right")
    for i, entry in enumerate(result.context.history, start=1):
        table.add_row(
            str(i),
            entry.node_id,
            entry.status.value,
            str(entry.attempts),
            f"{entry.duration_seconds * 1000:.1f}",
        )
    console.print(table)

    m = result.metrics
    console.print(
        f"nodes={m.nodes_executed} tokens={m.total_tokens} cost=${m.total_cost:.4f} "
        f"retries={m.retries} duration={m.duration_seconds:.3f}s"
    )
