"""Custom pattern — edges are dataflow dependencies of a DAG.

A ready-queue is seeded with the entry point, followed by any other source
nodes (no incoming edges) in declaration order. A queued node runs once
every predecessor has executed; until then it is re-queued. Inputs are
gathered from predecessors:

- no predecessors → the workflow input
- one predecessor → its output
- several         → a list of their outputs in edge order

Dependents of a failed or skipped node are recorded as ``skipped``, the
same way a dependency failure propagates in a parallel step runner.

Cycles are rejected at registration. If the queue still stops making
progress at runtime, the run fails with ``OrchestrationError`` instead of
spinning.
"""

from __future__ import annotations

from collections import deque
from typing import Any

from conductor.core.errors import OrchestrationError
from conductor.core.logging import get_logger
from conductor.orchestration.execution_context import ExecutionContext, HistoryEntry
from conductor.orchestration.models import OrchestrationPattern, WorkflowDefinition
from conductor.orchestration.patterns.base import PatternExecutor, register_pattern

logger = get_logger(__name__)


def predecessors(workflow: WorkflowDefinition, node_id: str) -> list[str]:
    """Distinct predecessor ids in edge order."""
    return list(dict.fromkeys(e.from_node for e in workflow.incoming(node_id)))


def successors(workflow: WorkflowDefinition, node_id: str) -> list[str]:
    """Distinct successor ids in edge order."""
    return list(dict.fromkeys(e.to_node for e in workflow.outgoing(node_id)))


def seed_order(workflow: WorkflowDefinition) -> list[str]:
    sources = [n.id for n in workflow.nodes if not workflow.incoming(n.id)]
    return [workflow.entry_point] + [s for s in sources if s != workflow.entry_point]


@register_pattern(OrchestrationPattern.CUSTOM)
class CustomDagExecutor(PatternExecutor):
    async def run(self, workflow: WorkflowDefinition, context: ExecutionContext) -> Any:
        queue: deque[str] = deque(seed_order(workflow))
        queued: set[str] = set(queue)
        results: dict[str, Any] = {}
        failed: set[str] = set()
        requeues = 0

        while queue:
            node_id = queue.popleft()
            deps = predecessors(workflow, node_id)

            broken = [d for d in deps if d in failed]
            if broken:
                logger.info(
                    "node.skipped",
                    execution_id=context.execution_id,
                    node_id=node_id,
                    reason="dependency_failed",
                    dependencies=broken,
                )
                context.record(
                    HistoryEntry.skipped(node_id, f"Dependency failed: {', '.join(broken)}")
                )
                failed.add(node_id)
                requeues = 0
                self._enqueue(workflow, node_id, queue, queued)
                continue

            if not all(d in results for d in deps):
                queue.append(node_id)
                requeues += 1
                if requeues > len(queue):
                    pending = list(queue)
                    raise OrchestrationError(
                        f"Dependency queue stalled in workflow '{workflow.id}': {', '.join(pending)}"
                    )
                continue

            requeues = 0
            inputs = [results[d] for d in deps]
            if not inputs:
                node_input = context.input
            elif len(inputs) == 1:
                node_input = inputs[0]
            else:
                node_input = inputs

            node = self.require_node(workflow, node_id)
            outcome = await self.run_node(workflow, node, node_input, context)
            if outcome is None:
                failed.add(node_id)
            else:
                results[node_id] = outcome.output
            self._enqueue(workflow, node_id, queue, queued)

        exits = [results.get(e) for e in workflow.exit_points]
        output = exits[0] if len(exits) == 1 else exits
        context.current_output = output
        return output

    @staticmethod
    def _enqueue(workflow: WorkflowDefinition, node_id: str, queue: deque[str], queued: set[str]) -> None:
        for succ in successors(workflow, node_id):
            if succ not in queued:
                queue.append(succ)
                queued.add(succ)
