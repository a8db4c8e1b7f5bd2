"""Execution results - the terminal record of a run."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from conductor.orchestration.execution_context import ExecutionContext

if TYPE_CHECKING:
    from conductor.orchestration.policies import Decision


class ExecutionStatus(str, Enum):
    """Terminal status of an execution. The single source of truth for success."""

    COMPLETED = "completed"
    FAILED = "failed"
    PENDING_APPROVAL = "pending_approval"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class ExecutionMetrics:
    """Aggregate metrics for a run."""

    duration_seconds: float = 0.0
    nodes_executed: int = 0
    total_tokens: int = 0
    total_cost: float = 0.0
    retries: int = 0

    @classmethod
    def from_context(cls, context: ExecutionContext, duration_seconds: float) -> ExecutionMetrics:
        return cls(
            duration_seconds=duration_seconds,
            nodes_executed=context.nodes_executed,
            total_tokens=context.metadata.total_tokens,
            total_cost=context.metadata.total_cost,
            retries=context.metadata.retries,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "duration_seconds": self.duration_seconds,
            "nodes_executed": self.nodes_executed,
            "total_tokens": self.total_tokens,
            "total_cost": self.total_cost,
            "retries": self.retries,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExecutionMetrics:
        return cls(**{k: data[k] for k in cls.__dataclass_fields__ if k in data})


@dataclass(frozen=True)
class ExecutionResult:
    """
    Outcome of ``Orchestrator.execute``.

    ``output`` is the terminal value for ``completed`` runs and the partial
    value produced so far for every other status.
    """

    execution_id: str
    workflow_id: str
    status: ExecutionStatus
    output: Any
    metrics: ExecutionMetrics
    context: ExecutionContext
    error: str | None = None
    pending_decision: Decision | None = None
    error_details: dict[str, Any] = field(default_factory=dict)

    @property
    def completed(self) -> bool:
        return self.status == ExecutionStatus.COMPLETED

    @property
    def history(self):
        return self.context.history

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "execution_id": self.execution_id,
            "workflow_id": self.workflow_id,
            "status": self.status.value,
            "output": self.output,
            "metrics": self.metrics.to_dict(),
            "context": self.context.to_dict(),
        }
        if self.error is not None:
            result["error"] = self.error
        if self.error_details:
            result["error_details"] = self.error_details
        if self.pending_decision is not None:
            result["pending_decision"] = self.pending_decision.to_dict()
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExecutionResult:
        from conductor.orchestration.policies import Decision

        pending = data.get("pending_decision")
        return cls(
            execution_id=data["execution_id"],
            workflow_id=data["workflow_id"],
            status=ExecutionStatus(data["status"]),
            output=data.get("output"),
            metrics=ExecutionMetrics.from_dict(data.get("metrics", {})),
            context=ExecutionContext.from_dict(data["context"]),
            error=data.get("error"),
            pending_decision=Decision.from_dict(pending) if pending else None,
            error_details=data.get("error_details", {}),
        )

    def __repr__(self) -> str:
        return (
            f"ExecutionResult({self.execution_id!r}, status={self.status.value}, "
            f"nodes={self.metrics.nodes_executed})"
        )
