"""Handoff pattern — a referral chain where each agent passes work on."""

from __future__ import annotations

from typing import Any

from conductor.core.logging import get_logger
from conductor.orchestration.execution_context import ExecutionContext
from conductor.orchestration.models import AgentNode, OrchestrationPattern, WorkflowDefinition
from conductor.orchestration.patterns.base import PatternExecutor, register_pattern
from conductor.orchestration.policies import Decision

logger = get_logger(__name__)


@register_pattern(OrchestrationPattern.HANDOFF)
class HandoffExecutor(PatternExecutor):
    """
    Start at the entry point and follow the handoff policy.

    History records ``{"result", "handoff_to", "reasoning"}`` for each node;
    the next node receives the raw result. The chain holds at most
    ``settings.max_handoffs`` nodes and never repeats one.
    """

    async def run(self, workflow: WorkflowDefinition, context: ExecutionContext) -> Any:
        chain: list[str] = []
        node: AgentNode | None = self.require_node(workflow, workflow.entry_point)

        while node is not None and len(chain) < self.settings.max_handoffs:
            chain.append(node.id)
            input = context.current_output
            outcome = await self.invoke(workflow, node, input, context)
            output = outcome.output if outcome is not None else input

            if workflow.is_exit_point(node.id):
                decision = Decision.stop(f"{node.name} is an exit point")
            else:
                candidates = [n for n in workflow.nodes if n.id not in chain]
                decision = self.policies.handoff.decide(node, candidates, output, context).check(
                    candidates
                )

            if outcome is not None:
                self.record_success(
                    node,
                    input,
                    outcome,
                    context,
                    recorded_output={
                        "result": output,
                        "handoff_to": decision.next_node,
                        "reasoning": decision.reasoning,
                    },
                )
                context.advance(node.id, output)

            logger.info(
                "handoff",
                execution_id=context.execution_id,
                from_node=node.id,
                to_node=decision.next_node,
                reasoning=decision.reasoning,
                chain_length=len(chain),
            )
            node = self.require_node(workflow, decision.next_node) if decision.next_node else None

        context.state["chain"] = chain
        return context.current_output
