"""Supervisor pattern — a central node delegates to specialists.

The entry node is the supervisor. It is never executed itself; it is the
vantage point from which the supervisor policy chooses the next specialist.
The loop is bounded by ``settings.max_supervisor_iterations``.
"""

from __future__ import annotations

from typing import Any

from conductor.core.logging import get_logger
from conductor.orchestration.exceptions import PendingApprovalSignal
from conductor.orchestration.execution_context import ExecutionContext
from conductor.orchestration.models import OrchestrationPattern, WorkflowDefinition
from conductor.orchestration.patterns.base import PatternExecutor, register_pattern

logger = get_logger(__name__)


@register_pattern(OrchestrationPattern.SUPERVISOR)
class SupervisorExecutor(PatternExecutor):
    async def run(self, workflow: WorkflowDefinition, context: ExecutionContext) -> Any:
        supervisor = self.require_node(workflow, workflow.entry_point)
        candidates = [n for n in workflow.nodes if n.id != supervisor.id]
        hitl = workflow.config.human_in_the_loop
        current = supervisor

        for iteration in range(1, self.settings.max_supervisor_iterations + 1):
            decision = self.policies.supervisor.decide(
                current, candidates, context.current_output, context
            ).check(candidates)
            logger.info(
                "supervisor.decision",
                execution_id=context.execution_id,
                iteration=iteration,
                next_node=decision.next_node,
                reasoning=decision.reasoning,
                confidence=decision.confidence,
                needs_human_approval=decision.needs_human_approval,
            )
            if decision.next_node is None:
                break
            if decision.needs_human_approval and hitl.enabled:
                raise PendingApprovalSignal(context.current_output, decision)

            current = self.require_node(workflow, decision.next_node)
            await self.run_node(workflow, current, context.current_output, context)
            if workflow.is_exit_point(current.id):
                break

        context.state["iterations"] = iteration
        return context.current_output
