"""Node execution — the boundary between the engine and the work a node does.

Manifesto:
    Pattern executors decide *which* node runs next. What running a node
    means (calling an LLM, a tool, a human) is somebody else's concern.
    ``NodeExecutor`` is that seam, and ``NodeExecutionAdapter`` wraps it
    with the engine's guarantees: a deadline per call, bounded retries in
    ``retry`` mode, usage accounting, and typed errors.

ARCHITECTURE
────────────
::

    NodeExecutor (Protocol)
      └── async execute(node, input, context) → NodeRun | Any

    FunctionNodeExecutor(fn)      — adapt a sync/async function
    NodeRun(output, tokens_used, cost_usd)

    NodeExecutionAdapter(executor)
      └── async execute(node, input, context, error_handling=...)
            ├── asyncio.wait_for(node timeout)  → NodeTimeoutError
            ├── retry with backoff (retry mode) → node.retry events
            ├── failure                         → NodeExecutionError
            └── success                         → AdapterOutcome

Example::

    async def call_agent(node, input, context):
        return NodeRun(output=f"{node.name} handled {input}", tokens_used=42)

    adapter = NodeExecutionAdapter(FunctionNodeExecutor(call_agent))
    outcome = await adapter.execute(node, "brief", ctx)

Tags:
    conductor, orchestration, node-executor, timeout, retry, protocol

Doc-Types:
    api-reference
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Protocol, runtime_checkable

from conductor.core.logging import get_logger
from conductor.core.settings import ConductorSettings, get_settings
from conductor.orchestration.exceptions import NodeExecutionError, NodeTimeoutError
from conductor.orchestration.execution_context import ExecutionContext
from conductor.orchestration.models import AgentNode, ErrorHandling
from conductor.orchestration.retry import ExponentialBackoff, NoRetry, RetryStrategy

logger = get_logger(__name__)


@dataclass(frozen=True)
class NodeRun:
    """What a node executor reports for one invocation."""

    output: Any
    tokens_used: int = 0
    cost_usd: float = 0.0

    @classmethod
    def coerce(cls, value: Any) -> NodeRun:
        """Wrap a plain return value."""
        return value if isinstance(value, NodeRun) else cls(output=value)


@runtime_checkable
class NodeExecutor(Protocol):
    """Performs the unit of work for one node."""

    async def execute(self, node: AgentNode, input: Any, context: ExecutionContext) -> NodeRun | Any:
        ...


class FunctionNodeExecutor:
    """Adapt a plain ``fn(node, input, context)`` (sync or async) to ``NodeExecutor``."""

    def __init__(self, fn: Callable[[AgentNode, Any, ExecutionContext], Any | Awaitable[Any]]):
        self._fn = fn

    async def execute(self, node: AgentNode, input: Any, context: ExecutionContext) -> NodeRun:
        result = self._fn(node, input, context)
        if inspect.isawaitable(result):
            result = await result
        return NodeRun.coerce(result)

    def __repr__(self) -> str:
        return f"FunctionNodeExecutor({getattr(self._fn, '__qualname__', self._fn)!r})"


def as_node_executor(obj: NodeExecutor | Callable[..., Any]) -> NodeExecutor:
    """Accept either a ``NodeExecutor`` or a bare function."""
    if isinstance(obj, NodeExecutor):
        return obj
    if callable(obj):
        return FunctionNodeExecutor(obj)
    raise TypeError(f"Expected a NodeExecutor or callable, got {type(obj).__name__}")


@dataclass(frozen=True)
class AdapterOutcome:
    """Successful result of one adapted node invocation."""

    output: Any
    started_at: datetime
    completed_at: datetime
    attempts: int = 1
    tokens_used: int = 0
    cost_usd: float = 0.0


class NodeExecutionAdapter:
    """
    Runs one node through a ``NodeExecutor`` with deadline and retry.

    The adapter never lets an untyped exception escape: failures become
    ``NodeExecutionError`` and deadline expiry becomes ``NodeTimeoutError``.
    Recording the invocation in history is the calling pattern executor's
    job, so the adapter's errors carry what the caller needs (node id,
    attempts).
    """

    def __init__(
        self,
        executor: NodeExecutor | Callable[..., Any],
        *,
        settings: ConductorSettings | None = None,
        retry_strategy: Callable[[AgentNode], RetryStrategy] | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.executor = as_node_executor(executor)
        self._settings = settings
        self._retry_strategy = retry_strategy
        self._sleep = sleep

    @property
    def settings(self) -> ConductorSettings:
        return self._settings or get_settings()

    def timeout_for(self, node: AgentNode) -> float | None:
        if node.timeout_seconds is not None:
            return node.timeout_seconds
        return self.settings.default_node_timeout_seconds

    def strategy_for(self, node: AgentNode, error_handling: ErrorHandling) -> RetryStrategy:
        if error_handling != ErrorHandling.RETRY:
            return NoRetry()
        if self._retry_strategy is not None:
            return self._retry_strategy(node)
        return ExponentialBackoff.from_settings(self.settings, max_retries=node.max_retries)

    async def execute(
        self,
        node: AgentNode,
        input: Any,
        context: ExecutionContext,
        *,
        error_handling: ErrorHandling = ErrorHandling.CONTINUE,
    ) -> AdapterOutcome:
        """Execute ``node`` once (or with retries) and return its outcome.

        Raises:
            NodeExecutionError: The node failed (after retries, if any).
            NodeTimeoutError: The node exceeded its deadline.
        """
        timeout = self.timeout_for(node)
        strategy = self.strategy_for(node, error_handling)
        started_at = datetime.now(UTC)
        attempt = 0

        while True:
            attempt += 1
            logger.debug(
                "node.start",
                node_id=node.id,
                execution_id=context.execution_id,
                attempt=attempt,
            )
            try:
                run = await self._invoke(node, input, context, timeout)
            except asyncio.TimeoutError:
                logger.warning(
                    "node.timeout",
                    node_id=node.id,
                    execution_id=context.execution_id,
                    timeout_seconds=timeout,
                )
                raise NodeTimeoutError(
                    node.id, timeout or 0.0, execution_id=context.execution_id
                ) from None
            except Exception as e:
                retry_index = attempt - 1
                if strategy.should_retry(retry_index, e):
                    delay = strategy.next_delay(retry_index)
                    context.add_retry()
                    logger.info(
                        "node.retry",
                        node_id=node.id,
                        execution_id=context.execution_id,
                        attempt=attempt,
                        delay_seconds=round(delay, 3),
                        error=str(e),
                    )
                    await self._sleep(delay)
                    continue
                logger.warning(
                    "node.failed",
                    node_id=node.id,
                    execution_id=context.execution_id,
                    attempts=attempt,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                raise NodeExecutionError(
                    node.id,
                    str(e) or type(e).__name__,
                    attempts=attempt,
                    cause=e,
                    execution_id=context.execution_id,
                ) from e

            context.add_usage(run.tokens_used, run.cost_usd)
            completed_at = datetime.now(UTC)
            logger.debug(
                "node.complete",
                node_id=node.id,
                execution_id=context.execution_id,
                attempts=attempt,
                tokens=run.tokens_used,
                duration_ms=round((completed_at - started_at).total_seconds() * 1000, 2),
            )
            return AdapterOutcome(
                output=run.output,
                started_at=started_at,
                completed_at=completed_at,
                attempts=attempt,
                tokens_used=run.tokens_used,
                cost_usd=run.cost_usd,
            )

    async def _invoke(
        self,
        node: AgentNode,
        input: Any,
        context: ExecutionContext,
        timeout: float | None,
    ) -> NodeRun:
        call = self.executor.execute(node, input, context)
        if timeout is None:
            result = await call
        else:
            result = await asyncio.wait_for(call, timeout=timeout)
        return NodeRun.coerce(result)
