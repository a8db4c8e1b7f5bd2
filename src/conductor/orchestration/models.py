"""Graph model — agent nodes, edges and workflow definitions.

Manifesto:
    A workflow definition is a *blueprint*: it declares which agent nodes
    exist, how they connect, where execution starts and ends, and which
    orchestration pattern drives it. It never says **how** to run a node
    (that is the node executor's job) or **how** to traverse the graph
    (that is the pattern executor's job).

ARCHITECTURE
────────────
::

    WorkflowDefinition   ── frozen, validated once at registration
      ├── pattern          ── OrchestrationPattern (6 variants)
      ├── nodes[]          ── AgentNode (unit of work)
      ├── edges[]          ── AgentEdge (directed, optional condition)
      ├── entry_point      ── node id where execution starts
      ├── exit_points[]    ── node ids whose completion ends the run
      └── config           ── WorkflowConfig
            └── human_in_the_loop ── HumanInTheLoopConfig

All types are frozen dataclasses with ``to_dict()`` / ``from_dict()``.
Edge conditions are written out as ``'module:qualname'`` references.

Example::

    definition = WorkflowDefinition(
        id="content",
        name="Content Pipeline",
        pattern=OrchestrationPattern.SEQUENTIAL,
        nodes=(
            AgentNode(id="research", name="Research Agent", type="research"),
            AgentNode(id="writer", name="Content Writer", type="creative"),
        ),
        edges=(AgentEdge("research", "writer"),),
        entry_point="research",
        exit_points=("writer",),
    )

Tags:
    conductor, orchestration, graph, workflow-definition, immutable

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from conductor.core.logging import get_logger
from conductor.orchestration.refs import callable_ref, resolve_callable_ref

logger = get_logger(__name__)

EdgeCondition = Callable[[Any], bool]


class OrchestrationPattern(str, Enum):
    """Traversal strategy applied to a workflow graph."""

    SEQUENTIAL = "sequential"  # Linear pipeline
    CONCURRENT = "concurrent"  # Batched fan-out on the same input
    SUPERVISOR = "supervisor"  # Central node decides who runs next
    ADAPTIVE_NETWORK = "adaptive_network"  # Decentralised hops along edges
    HANDOFF = "handoff"  # Referral chain by expertise
    CUSTOM = "custom"  # Dataflow DAG


class ErrorHandling(str, Enum):
    """What to do when a node fails."""

    FAIL_FAST = "fail_fast"  # Abort the run
    CONTINUE = "continue"  # Record and carry on (default)
    RETRY = "retry"  # Retry with backoff, then carry on


def _coerce_pattern(value: Any) -> OrchestrationPattern | str:
    """Coerce to OrchestrationPattern, keeping unknown strings as-is."""
    if isinstance(value, OrchestrationPattern):
        return value
    try:
        return OrchestrationPattern(value)
    except ValueError:
        return value


@dataclass(frozen=True)
class AgentNode:
    """
    One unit of work in the graph.

    Attributes:
        id: Identifier, unique within a workflow
        name: Display name
        type: Free-form role label (e.g. "research", "executive")
        capabilities: What this node is good at (used by handoff routing)
        model: Optional model identifier for the node executor
        system_prompt: Optional prompt for the node executor
        tools: Tool names the node executor may use
        timeout_seconds: Node deadline (falls back to settings)
        max_retries: Retries in ``retry`` error handling (falls back to settings)
    """

    id: str
    name: str
    type: str = "agent"
    capabilities: tuple[str, ...] = ()
    model: str | None = None
    system_prompt: str | None = None
    tools: tuple[str, ...] = ()
    timeout_seconds: float | None = None
    max_retries: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "capabilities", tuple(self.capabilities))
        object.__setattr__(self, "tools", tuple(self.tools))

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "capabilities": list(self.capabilities),
        }
        if self.model is not None:
            result["model"] = self.model
        if self.system_prompt is not None:
            result["system_prompt"] = self.system_prompt
        if self.tools:
            result["tools"] = list(self.tools)
        if self.timeout_seconds is not None:
            result["timeout_seconds"] = self.timeout_seconds
        if self.max_retries is not None:
            result["max_retries"] = self.max_retries
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AgentNode:
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            type=data.get("type", "agent"),
            capabilities=tuple(data.get("capabilities", ())),
            model=data.get("model"),
            system_prompt=data.get("system_prompt"),
            tools=tuple(data.get("tools", ())),
            timeout_seconds=data.get("timeout_seconds"),
            max_retries=data.get("max_retries"),
        )


@dataclass(frozen=True)
class AgentEdge:
    """
    Directed transition between two nodes.

    ``condition`` is a predicate over the source node's output. It may be a
    callable or a ``'module:qualname'`` reference resolved on first use.
    """

    from_node: str
    to_node: str
    condition: EdgeCondition | str | None = None
    transform_output: bool = False

    def resolve_condition(self) -> EdgeCondition | None:
        """Return the condition as a callable (resolving references)."""
        if self.condition is None or callable(self.condition):
            return self.condition
        return resolve_callable_ref(self.condition)

    def matches(self, output: Any) -> bool:
        """Evaluate the condition against ``output``.

        Unconditional edges always match. A condition that raises is logged
        and treated as matching.
        """
        if self.condition is None:
            return True
        try:
            predicate = self.resolve_condition()
            return bool(predicate(output)) if predicate else True
        except Exception as e:
            logger.warning(
                "edge.condition_failed",
                from_node=self.from_node,
                to_node=self.to_node,
                error=str(e),
            )
            return True

    def condition_ref(self) -> str | None:
        """Importable reference for the condition, if it has one."""
        if isinstance(self.condition, str):
            return self.condition
        return callable_ref(self.condition)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"from": self.from_node, "to": self.to_node}
        ref = self.condition_ref()
        if ref:
            result["condition"] = ref
        elif self.condition is not None:
            logger.warning(
                "edge.condition_not_serializable",
                from_node=self.from_node,
                to_node=self.to_node,
            )
        if self.transform_output:
            result["transform_output"] = True
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AgentEdge:
        return cls(
            from_node=data.get("from", data.get("from_node", "")),
            to_node=data.get("to", data.get("to_node", "")),
            condition=data.get("condition"),
            transform_output=data.get("transform_output", False),
        )


@dataclass(frozen=True)
class ApprovalThresholds:
    """Numeric gates for human approval (consumed by approval rules)."""

    confidence: float | None = None
    cost: float | None = None


@dataclass(frozen=True)
class HumanInTheLoopConfig:
    """
    Human-approval gating.

    Attributes:
        enabled: Whether approval requests suspend the run
        approval_points: Node ids that require approval before they run
        thresholds: Confidence/cost thresholds for approval rules
    """

    enabled: bool = False
    approval_points: tuple[str, ...] = ()
    thresholds: ApprovalThresholds = field(default_factory=ApprovalThresholds)

    def __post_init__(self) -> None:
        object.__setattr__(self, "approval_points", tuple(self.approval_points))

    def to_dict(self) -> dict[str, Any]:
        thresholds = {
            k: v
            for k, v in (("confidence", self.thresholds.confidence), ("cost", self.thresholds.cost))
            if v is not None
        }
        return {
            "enabled": self.enabled,
            "approval_points": list(self.approval_points),
            "thresholds": thresholds,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HumanInTheLoopConfig:
        thresholds = data.get("thresholds") or {}
        return cls(
            enabled=data.get("enabled", False),
            approval_points=tuple(data.get("approval_points", ())),
            thresholds=ApprovalThresholds(
                confidence=thresholds.get("confidence"),
                cost=thresholds.get("cost"),
            ),
        )


@dataclass(frozen=True)
class WorkflowConfig:
    """
    Controls how a workflow is executed.

    Attributes:
        max_concurrency: Batch size for the concurrent pattern (None = all nodes)
        timeout_seconds: Overall workflow deadline
        error_handling: fail_fast, continue (default) or retry
        checkpoint_enabled: Persist the execution context after the run
        human_in_the_loop: Approval gating configuration
    """

    max_concurrency: int | None = None
    timeout_seconds: float | None = None
    error_handling: ErrorHandling = ErrorHandling.CONTINUE
    checkpoint_enabled: bool = False
    human_in_the_loop: HumanInTheLoopConfig = field(default_factory=HumanInTheLoopConfig)

    def __post_init__(self) -> None:
        object.__setattr__(self, "error_handling", ErrorHandling(self.error_handling))

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "error_handling": self.error_handling.value,
            "checkpoint_enabled": self.checkpoint_enabled,
            "human_in_the_loop": self.human_in_the_loop.to_dict(),
        }
        if self.max_concurrency is not None:
            result["max_concurrency"] = self.max_concurrency
        if self.timeout_seconds is not None:
            result["timeout_seconds"] = self.timeout_seconds
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> WorkflowConfig:
        data = data or {}
        return cls(
            max_concurrency=data.get("max_concurrency"),
            timeout_seconds=data.get("timeout_seconds"),
            error_handling=ErrorHandling(data.get("error_handling", ErrorHandling.CONTINUE.value)),
            checkpoint_enabled=data.get("checkpoint_enabled", False),
            human_in_the_loop=HumanInTheLoopConfig.from_dict(data.get("human_in_the_loop") or {}),
        )


@dataclass(frozen=True)
class WorkflowDefinition:
    """
    A registered, reusable agent graph.

    Construction does not validate structure: that happens once, atomically,
    in :func:`conductor.orchestration.validator.validate_workflow` when the
    definition is registered.
    """

    id: str
    name: str
    pattern: OrchestrationPattern | str
    nodes: tuple[AgentNode, ...]
    edges: tuple[AgentEdge, ...] = ()
    entry_point: str = ""
    exit_points: tuple[str, ...] = ()
    description: str = ""
    config: WorkflowConfig = field(default_factory=WorkflowConfig)

    def __post_init__(self) -> None:
        object.__setattr__(self, "pattern", _coerce_pattern(self.pattern))
        object.__setattr__(self, "nodes", tuple(self.nodes or ()))
        object.__setattr__(self, "edges", tuple(self.edges or ()))
        object.__setattr__(self, "exit_points", tuple(self.exit_points or ()))

    # =========================================================================
    # Accessors
    # =========================================================================

    def get_node(self, node_id: str) -> AgentNode | None:
        """Get node by id."""
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def node_ids(self) -> list[str]:
        """Node ids in declaration order."""
        return [n.id for n in self.nodes]

    def outgoing(self, node_id: str) -> list[AgentEdge]:
        """Edges leaving ``node_id`` in declaration order."""
        return [e for e in self.edges if e.from_node == node_id]

    def incoming(self, node_id: str) -> list[AgentEdge]:
        """Edges entering ``node_id`` in declaration order."""
        return [e for e in self.edges if e.to_node == node_id]

    def is_exit_point(self, node_id: str | None) -> bool:
        return node_id is not None and node_id in self.exit_points

    @property
    def pattern_name(self) -> str:
        return self.pattern.value if isinstance(self.pattern, OrchestrationPattern) else str(self.pattern)

    def with_config(self, **overrides: Any) -> WorkflowDefinition:
        """Copy with config fields overridden."""
        return replace(self, config=replace(self.config, **overrides))

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for YAML/JSON."""
        result: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "pattern": self.pattern_name,
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
            "entry_point": self.entry_point,
            "exit_points": list(self.exit_points),
            "config": self.config.to_dict(),
        }
        if self.description:
            result["description"] = self.description
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WorkflowDefinition:
        """Deserialize from dictionary."""
        return cls(
            id=data.get("id", ""),
            name=data.get("name", ""),
            pattern=data.get("pattern", ""),
            nodes=tuple(AgentNode.from_dict(n) for n in data.get("nodes", [])),
            edges=tuple(AgentEdge.from_dict(e) for e in data.get("edges", [])),
            entry_point=data.get("entry_point", ""),
            exit_points=tuple(data.get("exit_points", [])),
            description=data.get("description", ""),
            config=WorkflowConfig.from_dict(data.get("config")),
        )

    def __repr__(self) -> str:
        return (
            f"WorkflowDefinition({self.id!r}, pattern={self.pattern_name}, "
            f"nodes={len(self.nodes)}, edges={len(self.edges)})"
        )
