"""Sequential pattern — a linear pipeline that chains outputs."""

from __future__ import annotations

from typing import Any

from conductor.orchestration.execution_context import ExecutionContext
from conductor.orchestration.models import AgentNode, OrchestrationPattern, WorkflowDefinition
from conductor.orchestration.patterns.base import PatternExecutor, register_pattern


def pipeline_order(workflow: WorkflowDefinition) -> list[AgentNode]:
    """Follow the first outgoing edge from the entry point.

    Stops at a node with no outgoing edge or when a node would repeat.
    """
    order: list[AgentNode] = []
    seen: set[str] = set()
    node = workflow.get_node(workflow.entry_point)
    while node is not None and node.id not in seen:
        order.append(node)
        seen.add(node.id)
        edges = workflow.outgoing(node.id)
        node = workflow.get_node(edges[0].to_node) if edges else None
    return order


@register_pattern(OrchestrationPattern.SEQUENTIAL)
class SequentialExecutor(PatternExecutor):
    """Run nodes in pipeline order; each node receives the previous output.

    A failed node (``continue``/``retry`` handling) passes the previous
    output through unchanged.
    """

    async def run(self, workflow: WorkflowDefinition, context: ExecutionContext) -> Any:
        current = context.input
        for node in pipeline_order(workflow):
            outcome = await self.run_node(workflow, node, current, context)
            if outcome is not None:
                current = outcome.output
        return current
