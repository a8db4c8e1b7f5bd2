"""Pattern executor base class and the pattern registration table.

Every orchestration pattern is a ``PatternExecutor`` subclass registered
against an ``OrchestrationPattern`` with :func:`register_pattern`. The
orchestrator looks executors up with :func:`get_pattern_executor`; adding a
seventh pattern means writing one class, not editing a switch statement.

Node-failure policy shared by all executors (implemented in
:meth:`PatternExecutor.invoke`):

- ``NodeExecutionError`` → history entry with ``status=error``; re-raised
  under ``fail_fast``, otherwise the run continues with its input/output
  unchanged.
- ``NodeTimeoutError`` → history entry with ``status=timeout``; always
  re-raised.
- Cancellation (workflow deadline) → history entry with ``status=timeout``
  for every node still in flight; re-raised.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any, ClassVar

from conductor.core.errors import OrchestrationError
from conductor.core.logging import get_logger
from conductor.core.settings import ConductorSettings, get_settings
from conductor.orchestration.exceptions import (
    NodeExecutionError,
    NodeTimeoutError,
    UnsupportedPatternError,
)
from conductor.orchestration.execution_context import (
    ExecutionContext,
    HistoryEntry,
    HistoryStatus,
)
from conductor.orchestration.models import (
    AgentNode,
    ErrorHandling,
    OrchestrationPattern,
    WorkflowDefinition,
)
from conductor.orchestration.node_executor import AdapterOutcome, NodeExecutionAdapter
from conductor.orchestration.policies import DecisionPolicies

logger = get_logger(__name__)


class PatternExecutor(ABC):
    """Drives one workflow run to completion for a single pattern."""

    pattern: ClassVar[OrchestrationPattern]

    def __init__(
        self,
        adapter: NodeExecutionAdapter,
        policies: DecisionPolicies | None = None,
        settings: ConductorSettings | None = None,
    ):
        self.adapter = adapter
        self.policies = policies or DecisionPolicies()
        self.settings = settings or get_settings()

    @abstractmethod
    async def run(self, workflow: WorkflowDefinition, context: ExecutionContext) -> Any:
        """Execute ``workflow`` and return its terminal output."""
        ...

    # =========================================================================
    # Node helpers
    # =========================================================================

    async def invoke(
        self,
        workflow: WorkflowDefinition,
        node: AgentNode,
        input: Any,
        context: ExecutionContext,
    ) -> AdapterOutcome | None:
        """Run ``node`` through the adapter, recording failures.

        Returns the outcome on success (not yet recorded) or ``None`` when
        the node failed and the run should continue.
        """
        error_handling = workflow.config.error_handling
        started_at = datetime.now(UTC)
        try:
            return await self.adapter.execute(node, input, context, error_handling=error_handling)
        except asyncio.CancelledError:
            context.record(
                HistoryEntry.failure(
                    node.id, input, "Workflow deadline exceeded", started_at, status=HistoryStatus.TIMEOUT
                )
            )
            raise
        except NodeTimeoutError as e:
            context.record(
                HistoryEntry.failure(
                    node.id, input, e.message, started_at, status=HistoryStatus.TIMEOUT
                )
            )
            raise
        except NodeExecutionError as e:
            context.record(
                HistoryEntry.failure(node.id, input, e.reason, started_at, attempts=e.attempts)
            )
            if error_handling == ErrorHandling.FAIL_FAST:
                raise
            return None

    def record_success(
        self,
        node: AgentNode,
        input: Any,
        outcome: AdapterOutcome,
        context: ExecutionContext,
        *,
        recorded_output: Any = None,
    ) -> None:
        context.record(
            HistoryEntry.success(
                node.id,
                input,
                outcome.output if recorded_output is None else recorded_output,
                outcome.started_at,
                outcome.completed_at,
                attempts=outcome.attempts,
            )
        )

    async def run_node(
        self,
        workflow: WorkflowDefinition,
        node: AgentNode,
        input: Any,
        context: ExecutionContext,
        *,
        advance: bool = True,
    ) -> AdapterOutcome | None:
        """Invoke, record and (optionally) advance the context to ``node``."""
        outcome = await self.invoke(workflow, node, input, context)
        if outcome is None:
            return None
        self.record_success(node, input, outcome, context)
        if advance:
            context.advance(node.id, outcome.output)
        return outcome

    def require_node(self, workflow: WorkflowDefinition, node_id: str) -> AgentNode:
        node = workflow.get_node(node_id)
        if node is None:
            raise OrchestrationError(f"Node '{node_id}' not found in workflow '{workflow.id}'")
        return node


# =============================================================================
# Registration table
# =============================================================================

_PATTERNS: dict[OrchestrationPattern, type[PatternExecutor]] = {}


def register_pattern(
    pattern: OrchestrationPattern,
) -> Callable[[type[PatternExecutor]], type[PatternExecutor]]:
    """Class decorator that registers a ``PatternExecutor`` for ``pattern``.

    Registering an already-known pattern replaces its executor.
    """

    def decorator(cls: type[PatternExecutor]) -> type[PatternExecutor]:
        if pattern in _PATTERNS and _PATTERNS[pattern] is not cls:
            logger.info(
                "pattern.replaced",
                pattern=pattern.value,
                previous=_PATTERNS[pattern].__name__,
                executor=cls.__name__,
            )
        cls.pattern = pattern
        _PATTERNS[pattern] = cls
        return cls

    return decorator


def unregister_pattern(pattern: OrchestrationPattern) -> bool:
    return _PATTERNS.pop(pattern, None) is not None


def get_pattern_executor(pattern: OrchestrationPattern | str) -> type[PatternExecutor]:
    """Look up the executor class for ``pattern``.

    Raises:
        UnsupportedPatternError: Unknown pattern value or no executor registered.
    """
    try:
        key = OrchestrationPattern(pattern)
    except ValueError:
        raise UnsupportedPatternError(pattern) from None
    try:
        return _PATTERNS[key]
    except KeyError:
        raise UnsupportedPatternError(key.value) from None


def list_patterns() -> list[str]:
    """Registered pattern names in registration order."""
    return [p.value for p in _PATTERNS]
