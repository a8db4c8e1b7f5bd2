"""
Execution Context - per-run state and append-only history.

Every call to ``Orchestrator.execute`` creates exactly one
``ExecutionContext``. Pattern executors read the current output from it,
record one ``HistoryEntry`` per node invocation, and fold token/cost usage
into its metadata. Once the pattern executor returns, the context is frozen
in spirit: the orchestrator only reads it to build the ``ExecutionResult``.

Concurrency:
    Concurrent batches record history from several coroutines; ``record()``
    and ``add_usage()`` are guarded by a ``threading.Lock`` so the context
    is also safe when a node executor hops threads.

Example:
    ctx = ExecutionContext.create("content", {"topic": "AI"}, pattern="sequential")
    ctx.record(HistoryEntry.success("research", ctx.input, {"facts": 3}, started))
    ctx.add_usage(tokens=120, cost=0.002)

Tags:
    conductor, orchestration, context, history, audit-trail

Doc-Types:
    api-reference
"""

from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


def new_execution_id() -> str:
    """Generate a unique execution id (``exec_<hex>``)."""
    return f"exec_{uuid.uuid4().hex[:16]}"


def _utcnow() -> datetime:
    return datetime.now(UTC)


class HistoryStatus(str, Enum):
    """Outcome of one node invocation."""

    SUCCESS = "success"
    ERROR = "error"
    SKIPPED = "skipped"  # Never reached because a dependency failed
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class HistoryEntry:
    """
    Immutable record of one node invocation.

    Attributes:
        node_id: Node that ran (or was skipped)
        input: Value handed to the node
        output: Value produced (``None`` on error/timeout/skip)
        started_at: When the first attempt began
        completed_at: When the last attempt finished
        status: success, error, skipped or timeout
        error: Error message for non-success entries
        attempts: Number of attempts (>1 only in ``retry`` mode)
    """

    node_id: str
    input: Any
    output: Any
    started_at: datetime
    completed_at: datetime
    status: HistoryStatus = HistoryStatus.SUCCESS
    error: str | None = None
    attempts: int = 1

    @classmethod
    def success(
        cls,
        node_id: str,
        input: Any,
        output: Any,
        started_at: datetime,
        completed_at: datetime | None = None,
        *,
        attempts: int = 1,
    ) -> HistoryEntry:
        return cls(
            node_id=node_id,
            input=input,
            output=output,
            started_at=started_at,
            completed_at=completed_at or _utcnow(),
            attempts=attempts,
        )

    @classmethod
    def failure(
        cls,
        node_id: str,
        input: Any,
        error: str,
        started_at: datetime,
        *,
        status: HistoryStatus = HistoryStatus.ERROR,
        attempts: int = 1,
    ) -> HistoryEntry:
        return cls(
            node_id=node_id,
            input=input,
            output=None,
            started_at=started_at,
            completed_at=_utcnow(),
            status=status,
            error=error,
            attempts=attempts,
        )

    @classmethod
    def skipped(cls, node_id: str, reason: str) -> HistoryEntry:
        now = _utcnow()
        return cls(
            node_id=node_id,
            input=None,
            output=None,
            started_at=now,
            completed_at=now,
            status=HistoryStatus.SKIPPED,
            error=reason,
            attempts=0,
        )

    @property
    def ok(self) -> bool:
        return self.status == HistoryStatus.SUCCESS

    @property
    def duration_seconds(self) -> float:
        return (self.completed_at - self.started_at).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "node_id": self.node_id,
            "input": self.input,
            "output": self.output,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat(),
            "status": self.status.value,
            "attempts": self.attempts,
        }
        if self.error is not None:
            result["error"] = self.error
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HistoryEntry:
        return cls(
            node_id=data["node_id"],
            input=data.get("input"),
            output=data.get("output"),
            started_at=datetime.fromisoformat(data["started_at"]),
            completed_at=datetime.fromisoformat(data["completed_at"]),
            status=HistoryStatus(data.get("status", HistoryStatus.SUCCESS.value)),
            error=data.get("error"),
            attempts=data.get("attempts", 1),
        )


@dataclass
class ExecutionMetadata:
    """Aggregate accounting for a run. Mutated only by the driving run."""

    pattern: str = ""
    started_at: datetime = field(default_factory=_utcnow)
    total_tokens: int = 0
    total_cost: float = 0.0
    retries: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "pattern": self.pattern,
            "started_at": self.started_at.isoformat(),
            "total_tokens": self.total_tokens,
            "total_cost": self.total_cost,
            "retries": self.retries,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExecutionMetadata:
        return cls(
            pattern=data.get("pattern", ""),
            started_at=datetime.fromisoformat(data["started_at"]) if data.get("started_at") else _utcnow(),
            total_tokens=data.get("total_tokens", 0),
            total_cost=data.get("total_cost", 0.0),
            retries=data.get("retries", 0),
        )


@dataclass
class ExecutionContext:
    """
    Mutable state of one execution.

    Attributes:
        workflow_id: Definition being executed
        execution_id: Unique id of this run
        input: Original workflow input
        current_node: Node most recently executed
        current_output: Latest successfully produced value
        history: Append-only list of ``HistoryEntry`` in execution order
        state: Scratch map for pattern executors (e.g. ``batches``)
        metadata: Token/cost/retry accounting
    """

    workflow_id: str
    execution_id: str = field(default_factory=new_execution_id)
    input: Any = None
    current_node: str | None = None
    current_output: Any = None
    history: list[HistoryEntry] = field(default_factory=list)
    state: dict[str, Any] = field(default_factory=dict)
    metadata: ExecutionMetadata = field(default_factory=ExecutionMetadata)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    @classmethod
    def create(
        cls,
        workflow_id: str,
        input: Any,
        *,
        pattern: str = "",
        execution_id: str | None = None,
    ) -> ExecutionContext:
        """Create a fresh context; ``current_output`` starts as the input."""
        return cls(
            workflow_id=workflow_id,
            execution_id=execution_id or new_execution_id(),
            input=input,
            current_output=input,
            metadata=ExecutionMetadata(pattern=pattern),
        )

    # =========================================================================
    # Mutation (lock-guarded)
    # =========================================================================

    def record(self, entry: HistoryEntry) -> None:
        """Append a history entry."""
        with self._lock:
            self.history.append(entry)

    def add_usage(self, tokens: int = 0, cost: float = 0.0) -> None:
        """Fold a node's reported usage into the run totals."""
        with self._lock:
            self.metadata.total_tokens += tokens
            self.metadata.total_cost += cost

    def add_retry(self) -> None:
        with self._lock:
            self.metadata.retries += 1

    def advance(self, node_id: str, output: Any) -> None:
        """Mark ``node_id`` as the current node with ``output``."""
        self.current_node = node_id
        self.current_output = output

    # =========================================================================
    # Queries
    # =========================================================================

    def visited(self) -> set[str]:
        """Node ids with at least one history entry."""
        return {e.node_id for e in self.history}

    def entries_for(self, node_id: str) -> list[HistoryEntry]:
        return [e for e in self.history if e.node_id == node_id]

    def last_entry(self, node_id: str) -> HistoryEntry | None:
        entries = self.entries_for(node_id)
        return entries[-1] if entries else None

    @property
    def nodes_executed(self) -> int:
        """History entries that represent an actual invocation."""
        return sum(1 for e in self.history if e.status != HistoryStatus.SKIPPED)

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_dict(self) -> dict[str, Any]:
        return {
            "workflow_id": self.workflow_id,
            "execution_id": self.execution_id,
            "input": self.input,
            "current_node": self.current_node,
            "current_output": self.current_output,
            "history": [e.to_dict() for e in self.history],
            "state": dict(self.state),
            "metadata": self.metadata.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExecutionContext:
        return cls(
            workflow_id=data["workflow_id"],
            execution_id=data["execution_id"],
            input=data.get("input"),
            current_node=data.get("current_node"),
            current_output=data.get("current_output"),
            history=[HistoryEntry.from_dict(e) for e in data.get("history", [])],
            state=dict(data.get("state", {})),
            metadata=ExecutionMetadata.from_dict(data.get("metadata", {})),
        )

    def __repr__(self) -> str:
        return (
            f"ExecutionContext(execution_id={self.execution_id!r}, "
            f"workflow_id={self.workflow_id!r}, entries={len(self.history)})"
        )
