"""Decision policies — who runs next in supervisor, adaptive and handoff patterns.

Manifesto:
    Routing is the interesting, swappable part of multi-agent workflows.
    Pattern executors own the loop, its bounds and its bookkeeping; a
    ``DecisionPolicy`` only answers "given where we are, which of these
    candidates next?". Policies are synchronous and pure so they can be
    unit-tested without an event loop.

ARCHITECTURE
────────────
::

    DecisionPolicy (Protocol)
      └── decide(current, candidates, output, context) → Decision

    DecisionPolicies(supervisor, adaptive, handoff)   — one slot per pattern
      ├── FirstUnvisitedSupervisorPolicy(approval_rule=None)
      ├── FirstCandidateAdaptivePolicy
      └── CapabilityHandoffPolicy

    ApprovalRule (Protocol) — (node, confidence, context) → bool
      ├── ApprovalPointsRule(points)
      └── ConfidenceThresholdRule(threshold)

Example::

    policies = DecisionPolicies(
        supervisor=FirstUnvisitedSupervisorPolicy(
            approval_rule=ApprovalPointsRule(["ads"]),
        ),
    )
    orchestrator = Orchestrator(executor, policies=policies)

Tags:
    conductor, orchestration, routing, decision-policy, human-in-the-loop

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from conductor.orchestration.exceptions import InvalidDecisionError
from conductor.orchestration.execution_context import ExecutionContext
from conductor.orchestration.models import AgentNode, HumanInTheLoopConfig


@dataclass(frozen=True)
class Decision:
    """
    A routing decision.

    Attributes:
        next_node: Node id to run next, or ``None`` to stop
        reasoning: Human-readable justification (logged, surfaced in results)
        confidence: 0.0 - 1.0
        needs_human_approval: Suspend the run before executing ``next_node``
    """

    next_node: str | None
    reasoning: str = ""
    confidence: float = 1.0
    needs_human_approval: bool = False

    @classmethod
    def stop(cls, reasoning: str, confidence: float = 1.0) -> Decision:
        return cls(next_node=None, reasoning=reasoning, confidence=confidence)

    def check(self, candidates: Sequence[AgentNode]) -> Decision:
        """Raise ``InvalidDecisionError`` if ``next_node`` was not offered."""
        ids = [c.id for c in candidates]
        if self.next_node is not None and self.next_node not in ids:
            raise InvalidDecisionError(self.next_node, ids)
        return self

    def to_dict(self) -> dict[str, Any]:
        return {
            "next_node": self.next_node,
            "reasoning": self.reasoning,
            "confidence": self.confidence,
            "needs_human_approval": self.needs_human_approval,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Decision:
        return cls(
            next_node=data.get("next_node"),
            reasoning=data.get("reasoning", ""),
            confidence=data.get("confidence", 1.0),
            needs_human_approval=data.get("needs_human_approval", False),
        )


@runtime_checkable
class DecisionPolicy(Protocol):
    """Chooses the next node from a list of candidates."""

    def decide(
        self,
        current: AgentNode | None,
        candidates: Sequence[AgentNode],
        output: Any,
        context: ExecutionContext,
    ) -> Decision:
        ...


# =============================================================================
# Approval rules
# =============================================================================


class ApprovalRule(Protocol):
    """Decides whether running ``node`` needs a human to sign off first."""

    def __call__(self, node: AgentNode, confidence: float, context: ExecutionContext) -> bool:
        ...


class ApprovalPointsRule:
    """Require approval before any node listed as an approval point."""

    def __init__(self, points: Iterable[str]):
        self.points = frozenset(points)

    @classmethod
    def from_config(cls, config: HumanInTheLoopConfig) -> ApprovalPointsRule:
        return cls(config.approval_points)

    def __call__(self, node: AgentNode, confidence: float, context: ExecutionContext) -> bool:
        return node.id in self.points


class ConfidenceThresholdRule:
    """Require approval when the decision's confidence is below ``threshold``."""

    def __init__(self, threshold: float):
        self.threshold = threshold

    def __call__(self, node: AgentNode, confidence: float, context: ExecutionContext) -> bool:
        return confidence < self.threshold


# =============================================================================
# Default policies
# =============================================================================


class FirstUnvisitedSupervisorPolicy:
    """Pick the first candidate that has not run yet.

    Without an ``approval_rule`` this policy never requests approval, even
    when the workflow enables human-in-the-loop.
    """

    confidence = 0.85

    def __init__(self, approval_rule: ApprovalRule | None = None):
        self.approval_rule = approval_rule

    def decide(
        self,
        current: AgentNode | None,
        candidates: Sequence[AgentNode],
        output: Any,
        context: ExecutionContext,
    ) -> Decision:
        visited = context.visited()
        for node in candidates:
            if node.id in visited:
                continue
            needs_approval = bool(
                self.approval_rule and self.approval_rule(node, self.confidence, context)
            )
            return Decision(
                next_node=node.id,
                reasoning=f"Delegating to {node.name} ({node.type})",
                confidence=self.confidence,
                needs_human_approval=needs_approval,
            )
        return Decision.stop("All agents have been consulted")


class FirstCandidateAdaptivePolicy:
    """Follow the first candidate offered (edge order, then declaration order)."""

    def decide(
        self,
        current: AgentNode | None,
        candidates: Sequence[AgentNode],
        output: Any,
        context: ExecutionContext,
    ) -> Decision:
        if not candidates:
            return Decision.stop("No further agents to route to")
        return Decision(
            next_node=candidates[0].id,
            reasoning=f"Routing to {candidates[0].name}",
            confidence=0.8,
        )


class CapabilityHandoffPolicy:
    """Hand off by explicit request, then by missing capability."""

    def decide(
        self,
        current: AgentNode | None,
        candidates: Sequence[AgentNode],
        output: Any,
        context: ExecutionContext,
    ) -> Decision:
        by_id = {c.id: c for c in candidates}

        requested = output.get("handoff_to") if isinstance(output, dict) else None
        if isinstance(requested, str) and requested in by_id:
            return Decision(
                next_node=requested,
                reasoning=f"Handoff requested to {by_id[requested].name}",
                confidence=0.95,
            )

        have = set(current.capabilities) if current else set()
        for node in candidates:
            missing = [c for c in node.capabilities if c not in have]
            if missing:
                return Decision(
                    next_node=node.id,
                    reasoning=f"{node.name} adds {', '.join(missing)}",
                    confidence=0.7,
                )
        return Decision.stop("No better-suited agent available")


class _CallablePolicy:
    def __init__(self, fn: Callable[..., Any]):
        self._fn = fn

    def decide(
        self,
        current: AgentNode | None,
        candidates: Sequence[AgentNode],
        output: Any,
        context: ExecutionContext,
    ) -> Decision:
        result = self._fn(current, candidates, output, context)
        if isinstance(result, Decision):
            return result
        if result is None:
            return Decision.stop("Policy returned no node")
        return Decision(next_node=str(result))

    def __repr__(self) -> str:
        return f"policy_from_callable({getattr(self._fn, '__qualname__', self._fn)!r})"


def policy_from_callable(fn: Callable[..., Any]) -> DecisionPolicy:
    """Adapt ``fn(current, candidates, output, context)`` to ``DecisionPolicy``.

    ``fn`` may return a ``Decision``, a node id, or ``None`` to stop.
    """
    return _CallablePolicy(fn)


@dataclass
class DecisionPolicies:
    """The three policy slots used by the routing patterns."""

    supervisor: DecisionPolicy = field(default_factory=FirstUnvisitedSupervisorPolicy)
    adaptive: DecisionPolicy = field(default_factory=FirstCandidateAdaptivePolicy)
    handoff: DecisionPolicy = field(default_factory=CapabilityHandoffPolicy)
