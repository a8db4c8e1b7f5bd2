"""Adaptive network pattern — decentralised hops along conditional edges."""

from __future__ import annotations

from typing import Any

from conductor.core.logging import get_logger
from conductor.orchestration.execution_context import ExecutionContext
from conductor.orchestration.models import AgentNode, OrchestrationPattern, WorkflowDefinition
from conductor.orchestration.patterns.base import PatternExecutor, register_pattern

logger = get_logger(__name__)


def hop_candidates(
    workflow: WorkflowDefinition,
    node: AgentNode,
    output: Any,
    visited: set[str],
) -> list[AgentNode]:
    """Nodes the network may hop to from ``node``.

    Targets of outgoing edges whose condition holds for ``output`` (edge
    order), excluding visited nodes. When no edge qualifies, every unvisited
    node in declaration order.
    """
    candidates: list[AgentNode] = []
    for edge in workflow.outgoing(node.id):
        if edge.to_node in visited or any(c.id == edge.to_node for c in candidates):
            continue
        if edge.matches(output):
            target = workflow.get_node(edge.to_node)
            if target is not None:
                candidates.append(target)
    if candidates:
        return candidates
    return [n for n in workflow.nodes if n.id not in visited]


@register_pattern(OrchestrationPattern.ADAPTIVE_NETWORK)
class AdaptiveNetworkExecutor(PatternExecutor):
    """Hop from node to node; the adaptive policy picks among candidates.

    Never revisits a node and never exceeds ``adaptive_hop_factor × |nodes|``
    hops.
    """

    async def run(self, workflow: WorkflowDefinition, context: ExecutionContext) -> Any:
        budget = self.settings.adaptive_hop_factor * len(workflow.nodes)
        visited: set[str] = set()
        node: AgentNode | None = self.require_node(workflow, workflow.entry_point)
        hops = 0

        while node is not None and hops < budget:
            hops += 1
            visited.add(node.id)
            await self.run_node(workflow, node, context.current_output, context)
            if workflow.is_exit_point(node.id):
                break

            candidates = hop_candidates(workflow, node, context.current_output, visited)
            decision = self.policies.adaptive.decide(
                node, candidates, context.current_output, context
            ).check(candidates)
            logger.debug(
                "adaptive.hop",
                execution_id=context.execution_id,
                from_node=node.id,
                to_node=decision.next_node,
                hop=hops,
            )
            node = self.require_node(workflow, decision.next_node) if decision.next_node else None

        context.state["hops"] = hops
        return context.current_output
