"""Test Harness — node-executor doubles, assertions and factories.

Manifesto:
    Testing orchestration should not need a model provider. This module
    provides deterministic ``NodeExecutor`` doubles and small factories so
    test code stays short and reads like the scenario it checks.

ARCHITECTURE
────────────
::

    Test doubles:
      EchoNodeExecutor        → {"node", "agent", "input"} for every call
      ScriptedNodeExecutor    → per-node values, exceptions, callables or sequences
      FailingNodeExecutor     → raises for the listed nodes, echoes the rest

    Assertion helpers:
      assert_execution_completed(result)
      assert_execution_failed(result, error_contains=None)
      assert_history_order(result, *node_ids)
      assert_node_status(result, node_id, status)

    Factories:
      make_node(id, **fields)
      make_definition(pattern, node_ids, ...)
      make_orchestrator(executor=None, **kwargs)

Example::

    from conductor.orchestration.testing import (
        EchoNodeExecutor,
        assert_execution_completed,
        make_definition,
        make_orchestrator,
    )

    async def test_pipeline():
        orchestrator = make_orchestrator()
        orchestrator.register_workflow(make_definition("sequential", ["a", "b"]))
        result = await orchestrator.execute("test_workflow", "brief")
        assert_execution_completed(result)
        assert_history_order(result, "a", "b")

Tags:
    conductor, orchestration, testing, harness, assertions, mocks

Doc-Types:
    api-reference
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Sequence
from typing import Any

from conductor.core.settings import ConductorSettings
from conductor.orchestration.execution_context import ExecutionContext, HistoryStatus
from conductor.orchestration.models import (
    AgentEdge,
    AgentNode,
    ErrorHandling,
    OrchestrationPattern,
    WorkflowConfig,
    WorkflowDefinition,
)
from conductor.orchestration.node_executor import NodeRun
from conductor.orchestration.orchestrator import Orchestrator
from conductor.orchestration.results import ExecutionResult, ExecutionStatus

# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------


class EchoNodeExecutor:
    """Returns ``{"node", "agent", "input"}`` for every node.

    Parameters
    ----------
    tokens_per_call
        Tokens reported for each call.
    cost_per_call
        Cost reported for each call.
    delays
        Optional per-node sleep in seconds (to shuffle completion order).
    """

    def __init__(
        self,
        tokens_per_call: int = 0,
        cost_per_call: float = 0.0,
        delays: dict[str, float] | None = None,
    ) -> None:
        self.tokens_per_call = tokens_per_call
        self.cost_per_call = cost_per_call
        self.delays = delays or {}
        self.calls: list[tuple[str, Any]] = []

    async def execute(self, node: AgentNode, input: Any, context: ExecutionContext) -> NodeRun:
        self.calls.append((node.id, input))
        delay = self.delays.get(node.id)
        if delay:
            await asyncio.sleep(delay)
        return NodeRun(
            output={"node": node.id, "agent": node.name, "input": input},
            tokens_used=self.tokens_per_call,
            cost_usd=self.cost_per_call,
        )

    @property
    def called_nodes(self) -> list[str]:
        return [node_id for node_id, _ in self.calls]


class ScriptedNodeExecutor(EchoNodeExecutor):
    """Executor with per-node scripted behaviour.

    Each script entry may be:

    - an exception instance or class → raised
    - a callable ``fn(node, input, context)`` → its (awaited) return value
    - a ``NodeRun`` or plain value → returned
    - a list of the above → consumed one per call (last one repeats)

    Unscripted nodes echo.

    Example::

        executor = ScriptedNodeExecutor({
            "writer": [RuntimeError("rate limited"), {"draft": "v1"}],
            "editor": {"approved": True},
        })
    """

    def __init__(
        self,
        scripts: dict[str, Any] | None = None,
        *,
        delays: dict[str, float] | None = None,
        tokens_per_call: int = 0,
    ) -> None:
        super().__init__(tokens_per_call=tokens_per_call, delays=delays)
        self._scripts = dict(scripts or {})

    def call_count(self, node_id: str) -> int:
        return sum(1 for called, _ in self.calls if called == node_id)

    async def execute(self, node: AgentNode, input: Any, context: ExecutionContext) -> Any:
        if node.id not in self._scripts:
            return await super().execute(node, input, context)

        self.calls.append((node.id, input))
        delay = self.delays.get(node.id)
        if delay:
            await asyncio.sleep(delay)

        script = self._scripts[node.id]
        if isinstance(script, list):
            index = min(self.call_count(node.id) - 1, len(script) - 1)
            script = script[index]

        if isinstance(script, BaseException) or (
            isinstance(script, type) and issubclass(script, BaseException)
        ):
            raise script
        if callable(script):
            result = script(node, input, context)
            if asyncio.iscoroutine(result):
                result = await result
            return result
        return script


class FailingNodeExecutor(EchoNodeExecutor):
    """Raises ``error`` for every node in ``fail_nodes``; echoes the rest."""

    def __init__(
        self,
        fail_nodes: Iterable[str],
        error: Exception | None = None,
    ) -> None:
        super().__init__()
        self.fail_nodes = set(fail_nodes)
        self.error = error or RuntimeError("Simulated node failure")

    async def execute(self, node: AgentNode, input: Any, context: ExecutionContext) -> NodeRun:
        if node.id in self.fail_nodes:
            self.calls.append((node.id, input))
            raise self.error
        return await super().execute(node, input, context)


# ---------------------------------------------------------------------------
# Assertion helpers
# ---------------------------------------------------------------------------


class ExecutionAssertionError(AssertionError):
    """Raised when an execution assertion fails."""

    def __init__(self, message: str, result: ExecutionResult) -> None:
        self.result = result
        super().__init__(
            f"{message}\n  Workflow: {result.workflow_id}\n  Status: {result.status.value}"
        )


def assert_execution_completed(result: ExecutionResult) -> None:
    if result.status != ExecutionStatus.COMPLETED:
        raise ExecutionAssertionError(
            f"Expected completed, got {result.status.value}"
            + (f" ({result.error})" if result.error else ""),
            result,
        )


def assert_execution_failed(result: ExecutionResult, error_contains: str | None = None) -> None:
    if result.status != ExecutionStatus.FAILED:
        raise ExecutionAssertionError(f"Expected failed, got {result.status.value}", result)
    if error_contains and (result.error is None or error_contains not in result.error):
        raise ExecutionAssertionError(
            f"Expected error containing '{error_contains}', got: {result.error}", result
        )


def assert_history_order(result: ExecutionResult, *node_ids: str) -> None:
    """Assert the history visits exactly ``node_ids`` in order."""
    actual = [e.node_id for e in result.context.history]
    if actual != list(node_ids):
        raise ExecutionAssertionError(f"Expected history {list(node_ids)}, got {actual}", result)


def assert_node_status(result: ExecutionResult, node_id: str, status: HistoryStatus | str) -> None:
    entry = result.context.last_entry(node_id)
    if entry is None:
        raise ExecutionAssertionError(f"Node '{node_id}' has no history entry", result)
    if entry.status != HistoryStatus(status):
        raise ExecutionAssertionError(
            f"Expected '{node_id}' {HistoryStatus(status).value}, got {entry.status.value}", result
        )


# ---------------------------------------------------------------------------
# Factory helpers
# ---------------------------------------------------------------------------


def make_node(node_id: str, **fields: Any) -> AgentNode:
    """``AgentNode`` with ``name`` defaulting to a title-cased id."""
    fields.setdefault("name", node_id.replace("_", " ").title())
    return AgentNode(id=node_id, **fields)


def make_definition(
    pattern: OrchestrationPattern | str,
    node_ids: Sequence[str],
    *,
    workflow_id: str = "test_workflow",
    edges: Sequence[tuple[str, str]] | Sequence[AgentEdge] | str = "chain",
    entry_point: str | None = None,
    exit_points: Sequence[str] | None = None,
    nodes: Sequence[AgentNode] | None = None,
    error_handling: ErrorHandling | str = ErrorHandling.CONTINUE,
    **config: Any,
) -> WorkflowDefinition:
    """Quick definition for tests.

    ``edges="chain"`` links nodes in order; ``edges="none"`` adds none;
    otherwise pass ``(from, to)`` pairs or ``AgentEdge`` objects.
    """
    if edges == "chain":
        edge_objs = tuple(AgentEdge(a, b) for a, b in zip(node_ids, node_ids[1:]))
    elif edges == "none":
        edge_objs = ()
    else:
        edge_objs = tuple(e if isinstance(e, AgentEdge) else AgentEdge(*e) for e in edges)

    return WorkflowDefinition(
        id=workflow_id,
        name=workflow_id.replace("_", " ").title(),
        pattern=pattern,
        nodes=tuple(nodes) if nodes is not None else tuple(make_node(n) for n in node_ids),
        edges=edge_objs,
        entry_point=entry_point if entry_point is not None else (node_ids[0] if node_ids else ""),
        exit_points=tuple(exit_points) if exit_points is not None else tuple(node_ids[-1:]),
        config=WorkflowConfig(error_handling=ErrorHandling(error_handling), **config),
    )


def make_orchestrator(
    executor: Any | None = None,
    *,
    settings: ConductorSettings | None = None,
    **kwargs: Any,
) -> Orchestrator:
    """Orchestrator with an ``EchoNodeExecutor`` and zero retry delay by default."""
    settings = settings or ConductorSettings(retry_base_delay_seconds=0.0, retry_max_delay_seconds=0.0)
    return Orchestrator(executor or EchoNodeExecutor(), settings=settings, **kwargs)


def node_ids(result: ExecutionResult) -> list[str]:
    """History node ids in order."""
    return [e.node_id for e in result.context.history]


def statuses(result: ExecutionResult) -> dict[str, str]:
    """Last status per node id."""
    return {e.node_id: e.status.value for e in result.context.history}


__all__: list[str] = [
    "EchoNodeExecutor",
    "ScriptedNodeExecutor",
    "FailingNodeExecutor",
    "ExecutionAssertionError",
    "assert_execution_completed",
    "assert_execution_failed",
    "assert_history_order",
    "assert_node_status",
    "make_node",
    "make_definition",
    "make_orchestrator",
    "node_ids",
    "statuses",
]
