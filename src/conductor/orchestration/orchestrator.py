"""Orchestrator — the public face of the engine.

Manifesto:
    Callers should not care which of six patterns drives a workflow. The
    orchestrator looks the definition up, builds a fresh
    ``ExecutionContext``, dispatches to the registered ``PatternExecutor``
    and folds whatever happens (completion, node failure, deadline,
    approval request) into one ``ExecutionResult``.

ARCHITECTURE
────────────
::

    Orchestrator(node_executor, registry=, executions=, policies=, settings=)
      ├── register_workflow(definition)        → WorkflowRegistry.register
      ├── execute(workflow_id, input)           → ExecutionResult  (async)
      │     ├── registry.require(id)            → WorkflowNotFoundError
      │     ├── ExecutionContext.create(...)
      │     ├── get_pattern_executor(pattern)   → PatternExecutor
      │     ├── asyncio.wait_for(config.timeout_seconds)
      │     └── ExecutionStore.save(result)
      ├── execute_sync(...)                     → asyncio.run(execute(...))
      ├── get_workflow / list_workflows / delete_workflow
      ├── get_execution / list_executions
      ├── get_execution_context / list_running   (in-flight runs)
      ├── create_template_workflow(name)
      └── health()

Result status mapping::

    pattern returned            → completed
    PendingApprovalSignal       → pending_approval (decision attached)
    NodeTimeoutError /
    WorkflowTimeoutError        → timeout
    anything else               → failed (partial output = last good output)

Example::

    orchestrator = Orchestrator(my_node_executor)
    orchestrator.register_workflow(definition)
    result = await orchestrator.execute("content_pipeline", {"topic": "AI"})
    assert result.status is ExecutionStatus.COMPLETED

Tags:
    conductor, orchestration, facade, async, execution

Doc-Types:
    api-reference
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from typing import Any

from conductor.core.errors import ConductorError, TimeoutError
from conductor.core.logging import LogContext, get_logger
from conductor.core.settings import ConductorSettings, get_settings
from conductor.orchestration.exceptions import PendingApprovalSignal, WorkflowTimeoutError
from conductor.orchestration.execution_context import ExecutionContext
from conductor.orchestration.models import WorkflowDefinition
from conductor.orchestration.node_executor import NodeExecutionAdapter, NodeExecutor
from conductor.orchestration.patterns import get_pattern_executor, list_patterns
from conductor.orchestration.policies import Decision, DecisionPolicies
from conductor.orchestration.registry import (
    ExecutionStore,
    InMemoryExecutionStore,
    WorkflowRegistry,
)
from conductor.orchestration.results import ExecutionMetrics, ExecutionResult, ExecutionStatus
from conductor.orchestration.retry import RetryStrategy
from conductor.orchestration.templates import get_template

logger = get_logger(__name__)


class Orchestrator:
    """
    Registers workflows and executes them.

    Args:
        node_executor: Performs each node's work (``NodeExecutor`` or a plain
            ``fn(node, input, context)``)
        registry: Workflow registry (a fresh in-memory one by default)
        executions: Execution store (in-memory by default)
        policies: Decision policies for routing patterns
        settings: Engine settings (``get_settings()`` by default)
        retry_strategy: Per-node retry strategy factory for ``retry`` mode
    """

    def __init__(
        self,
        node_executor: NodeExecutor | Callable[..., Any],
        *,
        registry: WorkflowRegistry | None = None,
        executions: ExecutionStore | None = None,
        policies: DecisionPolicies | None = None,
        settings: ConductorSettings | None = None,
        retry_strategy: Callable[..., RetryStrategy] | None = None,
    ):
        self.settings = settings or get_settings()
        self.registry = registry or WorkflowRegistry()
        self.executions: ExecutionStore = executions if executions is not None else InMemoryExecutionStore()
        self.policies = policies or DecisionPolicies()
        self.adapter = NodeExecutionAdapter(
            node_executor,
            settings=self.settings,
            retry_strategy=retry_strategy,
        )
        self._running: dict[str, ExecutionContext] = {}

    # =========================================================================
    # Workflows
    # =========================================================================

    def register_workflow(self, definition: WorkflowDefinition) -> WorkflowDefinition:
        """Validate and register a definition (see ``WorkflowRegistry.register``)."""
        return self.registry.register(definition)

    def get_workflow(self, workflow_id: str) -> WorkflowDefinition | None:
        return self.registry.get(workflow_id)

    def list_workflows(self) -> list[WorkflowDefinition]:
        return self.registry.list()

    def delete_workflow(self, workflow_id: str) -> bool:
        return self.registry.delete(workflow_id)

    def create_template_workflow(self, name: str, **kwargs: Any) -> WorkflowDefinition:
        """Build a pre-built template and register it.

        Raises:
            KeyError: Unknown template name.
        """
        definition = get_template(name)(**kwargs)
        return self.register_workflow(definition)

    # =========================================================================
    # Execution
    # =========================================================================

    async def execute(
        self,
        workflow_id: str,
        input: Any,
        *,
        execution_id: str | None = None,
    ) -> ExecutionResult:
        """
        Execute a registered workflow.

        Args:
            workflow_id: Id of a registered workflow
            input: Workflow input handed to the first node(s)
            execution_id: Optional caller-chosen execution id

        Returns:
            ExecutionResult; every runtime failure is folded into it

        Raises:
            WorkflowNotFoundError: The workflow id is not registered
        """
        workflow = self.registry.require(workflow_id)
        context = ExecutionContext.create(
            workflow.id,
            input,
            pattern=workflow.pattern_name,
            execution_id=execution_id,
        )

        status = ExecutionStatus.COMPLETED
        output: Any = None
        error: str | None = None
        error_details: dict[str, Any] = {}
        pending: Decision | None = None

        self._running[context.execution_id] = context
        start = time.perf_counter()
        try:
            async with LogContext(execution_id=context.execution_id, workflow_id=workflow.id):
                logger.info(
                    "workflow.start",
                    pattern=workflow.pattern_name,
                    node_count=len(workflow.nodes),
                )
                try:
                    output = await self._run_pattern(workflow, context)
                except PendingApprovalSignal as signal:
                    status = ExecutionStatus.PENDING_APPROVAL
                    output = signal.partial_output
                    pending = signal.decision
                    logger.info(
                        "workflow.pending_approval",
                        next_node=signal.decision.next_node,
                        reasoning=signal.decision.reasoning,
                    )
                except TimeoutError as e:
                    status = ExecutionStatus.TIMEOUT
                    output = context.current_output
                    error = e.message
                    error_details = e.to_dict()
                    logger.warning("workflow.failed", status=status.value, error=error)
                except ConductorError as e:
                    status = ExecutionStatus.FAILED
                    output = context.current_output
                    error = e.message
                    error_details = e.to_dict()
                    logger.warning("workflow.failed", status=status.value, error=error)
                except Exception as e:
                    status = ExecutionStatus.FAILED
                    output = context.current_output
                    error = str(e) or type(e).__name__
                    error_details = {"error_type": type(e).__name__, "message": error}
                    logger.error("workflow.failed", status=status.value, error=error, exc_info=True)

                duration = time.perf_counter() - start
                metrics = ExecutionMetrics.from_context(context, duration)
                if status is ExecutionStatus.COMPLETED:
                    logger.info(
                        "workflow.complete",
                        duration_ms=round(duration * 1000, 2),
                        nodes_executed=metrics.nodes_executed,
                        total_tokens=metrics.total_tokens,
                        retries=metrics.retries,
                    )
        finally:
            self._running.pop(context.execution_id, None)

        result = ExecutionResult(
            execution_id=context.execution_id,
            workflow_id=workflow.id,
            status=status,
            output=output,
            metrics=metrics,
            context=context,
            error=error,
            pending_decision=pending,
            error_details=error_details,
        )
        self.executions.save(result)
        return result

    def execute_sync(
        self,
        workflow_id: str,
        input: Any,
        *,
        execution_id: str | None = None,
    ) -> ExecutionResult:
        """Run :meth:`execute` to completion on a new event loop."""
        return asyncio.run(self.execute(workflow_id, input, execution_id=execution_id))

    async def _run_pattern(self, workflow: WorkflowDefinition, context: ExecutionContext) -> Any:
        executor_cls = get_pattern_executor(workflow.pattern)
        executor = executor_cls(self.adapter, self.policies, self.settings)

        deadline = workflow.config.timeout_seconds
        if deadline is None:
            return await executor.run(workflow, context)
        try:
            return await asyncio.wait_for(executor.run(workflow, context), timeout=deadline)
        except asyncio.TimeoutError:
            raise WorkflowTimeoutError(workflow.id, deadline) from None

    # =========================================================================
    # Executions
    # =========================================================================

    def get_execution(self, execution_id: str) -> ExecutionResult | None:
        return self.executions.load(execution_id)

    def get_execution_context(self, execution_id: str) -> ExecutionContext | None:
        """Live context of an in-flight run, else the stored result's context."""
        context = self._running.get(execution_id)
        if context is not None:
            return context
        result = self.executions.load(execution_id)
        return result.context if result is not None else None

    def list_running(self) -> list[str]:
        """Execution ids of runs that have not finished yet."""
        return list(self._running)

    def list_executions(self, workflow_id: str | None = None) -> list[ExecutionResult]:
        results = self.executions.all()
        if workflow_id is not None:
            results = [r for r in results if r.workflow_id == workflow_id]
        return results

    # =========================================================================
    # Health
    # =========================================================================

    def health(self) -> dict[str, Any]:
        return {
            "status": "healthy",
            "workflows_registered": len(self.registry),
            "executions": len(self.executions.all()),
            "active_executions": len(self._running),
            "patterns": list_patterns(),
        }
