"""Concurrent pattern — batched fan-out over the original input.

Follows the batch/barrier shape of an ``asyncio.gather`` worker: each
batch of ``max_concurrency`` nodes runs fully in parallel and completes
before the next batch starts. Aggregation is in declaration order, not
completion order.
"""

from __future__ import annotations

import asyncio
from typing import Any

from conductor.core.logging import get_logger
from conductor.orchestration.exceptions import NodeTimeoutError
from conductor.orchestration.execution_context import ExecutionContext
from conductor.orchestration.models import AgentNode, OrchestrationPattern, WorkflowDefinition
from conductor.orchestration.patterns.base import PatternExecutor, register_pattern

logger = get_logger(__name__)


def make_batches(nodes: tuple[AgentNode, ...], max_concurrency: int | None) -> list[tuple[AgentNode, ...]]:
    """Split ``nodes`` into consecutive batches of ``max_concurrency``."""
    size = max_concurrency or len(nodes) or 1
    return [nodes[i : i + size] for i in range(0, len(nodes), size)]


def aggregate(nodes: tuple[AgentNode, ...], outputs: dict[str, Any]) -> dict[str, Any]:
    results = [{"agent": n.name, "node_id": n.id, "output": outputs.get(n.id)} for n in nodes]
    return {
        "aggregated": True,
        "results": results,
        "summary": f"Aggregated {len(results)} agent outputs",
    }


@register_pattern(OrchestrationPattern.CONCURRENT)
class ConcurrentExecutor(PatternExecutor):
    """Fan out every node on ``context.input`` in batches."""

    async def run(self, workflow: WorkflowDefinition, context: ExecutionContext) -> Any:
        batches = make_batches(workflow.nodes, workflow.config.max_concurrency)
        outputs: dict[str, Any] = {}

        for index, batch in enumerate(batches, start=1):
            logger.info(
                "concurrent.batch",
                execution_id=context.execution_id,
                batch=index,
                of=len(batches),
                nodes=[n.id for n in batch],
            )
            results = await asyncio.gather(
                *(self.run_node(workflow, n, context.input, context, advance=False) for n in batch),
                return_exceptions=True,
            )
            context.state["batches"] = index

            abort: BaseException | None = None
            for node, result in zip(batch, results):
                if isinstance(result, BaseException):
                    outputs[node.id] = None
                    # A timeout outranks a fail-fast node error.
                    if abort is None or isinstance(result, NodeTimeoutError):
                        abort = result
                else:
                    outputs[node.id] = result.output if result is not None else None
            if abort is not None:
                raise abort

        result = aggregate(workflow.nodes, outputs)
        context.current_output = result
        return result
