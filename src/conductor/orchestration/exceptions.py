"""Orchestration exceptions — structured error hierarchy.

All orchestration exceptions inherit from the ``conductor.core.errors``
family so that callers can catch them with a single ``except ConductorError``.

Hierarchy::

    ValidationError   (conductor.core.errors)
      └── WorkflowValidationError     ── definition rejected at registration
            └── CycleDetectedError      ── custom-pattern graph has a cycle

    OrchestrationError  (conductor.core.errors)
      ├── UnsupportedPatternError     ── no executor registered for pattern
      ├── WorkflowNotFoundError       ── unknown workflow id
      ├── NodeExecutionError          ── one node's work failed
      └── InvalidDecisionError        ── policy chose a node it was not offered

    TimeoutError  (conductor.core.errors)
      ├── NodeTimeoutError            ── node deadline exceeded
      └── WorkflowTimeoutError        ── workflow deadline exceeded

    PendingApprovalSignal             ── not a failure: run suspended for approval
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from conductor.core.errors import (
    ErrorCategory,
    ErrorContext,
    OrchestrationError,
    TimeoutError,
    ValidationError,
)

if TYPE_CHECKING:
    from conductor.orchestration.policies import Decision


class WorkflowValidationError(ValidationError):
    """Raised when a workflow definition violates a structural invariant."""

    def __init__(self, message: str, *, workflow_id: str | None = None, **kwargs: Any):
        super().__init__(message, context=ErrorContext(workflow_id=workflow_id or None), **kwargs)
        self.workflow_id = workflow_id


class CycleDetectedError(WorkflowValidationError):
    """Raised when a dependency graph contains a cycle."""

    def __init__(self, cycle: list[str], *, workflow_id: str | None = None):
        self.cycle = cycle
        cycle_str = " -> ".join(cycle)
        super().__init__(
            f"Cycle detected in dependency graph: {cycle_str}",
            workflow_id=workflow_id,
            field="edges",
            constraint="acyclic",
        )


class UnsupportedPatternError(OrchestrationError):
    """Raised when no executor is registered for a workflow's pattern."""

    def __init__(self, pattern: Any):
        self.pattern = pattern
        super().__init__(f"Unsupported pattern: {pattern}")


class WorkflowNotFoundError(OrchestrationError):
    """Raised when a workflow id is not registered."""

    def __init__(self, workflow_id: str, available: list[str] | None = None):
        self.workflow_id = workflow_id
        listing = ", ".join(sorted(available)) if available else "(none)"
        super().__init__(
            f"Workflow not found: {workflow_id}. Available: {listing}",
            context=ErrorContext(workflow_id=workflow_id),
        )


class NodeExecutionError(OrchestrationError):
    """Raised when a single node's work fails.

    Attributes:
        node_id: The node that failed.
        attempts: How many times the node was attempted.
    """

    default_category = ErrorCategory.NODE
    default_retryable = True

    def __init__(
        self,
        node_id: str,
        message: str,
        *,
        attempts: int = 1,
        cause: BaseException | None = None,
        execution_id: str | None = None,
    ):
        self.node_id = node_id
        self.attempts = attempts
        super().__init__(
            f"Node '{node_id}' failed: {message}",
            cause=cause,
            context=ErrorContext(node_id=node_id, execution_id=execution_id),
        )
        self.reason = message


class InvalidDecisionError(OrchestrationError):
    """Raised when a decision policy picks a node outside its candidates."""

    def __init__(self, node_id: str, candidates: list[str]):
        self.node_id = node_id
        self.candidates = candidates
        super().__init__(
            f"Decision selected '{node_id}', which is not an available candidate: "
            f"{', '.join(candidates) or '(none)'}"
        )


class NodeTimeoutError(TimeoutError):
    """Raised when a node exceeds its deadline."""

    def __init__(self, node_id: str, timeout_seconds: float, *, execution_id: str | None = None):
        self.node_id = node_id
        super().__init__(
            f"Node '{node_id}' timed out after {timeout_seconds}s",
            timeout_seconds=timeout_seconds,
            context=ErrorContext(node_id=node_id, execution_id=execution_id),
        )


class WorkflowTimeoutError(TimeoutError):
    """Raised when a whole run exceeds the workflow deadline."""

    def __init__(self, workflow_id: str, timeout_seconds: float):
        self.workflow_id = workflow_id
        super().__init__(
            f"Workflow '{workflow_id}' timed out after {timeout_seconds}s",
            timeout_seconds=timeout_seconds,
            context=ErrorContext(workflow_id=workflow_id),
        )


class PendingApprovalSignal(Exception):
    """Raised by the supervisor pattern when a decision needs human approval.

    This is a suspension, not a failure: the orchestrator converts it into an
    ``ExecutionResult`` with status ``pending_approval``.
    """

    def __init__(self, partial_output: Any, decision: Decision):
        self.partial_output = partial_output
        self.decision = decision
        super().__init__(
            f"Approval required before executing '{decision.next_node}'"
        )
