"""
Conductor - multi-pattern workflow orchestration for agent graphs.

Packages:
- conductor.core: errors, structured logging, settings
- conductor.orchestration: graph model, pattern executors, orchestrator
- conductor.cli: ``conductor`` command-line interface
"""

__version__ = "0.1.0"

from conductor.orchestration import (  # noqa: E402
    AgentEdge,
    AgentNode,
    ExecutionResult,
    ExecutionStatus,
    OrchestrationPattern,
    Orchestrator,
    WorkflowDefinition,
)

__all__ = [
    "__version__",
    "AgentEdge",
    "AgentNode",
    "ExecutionResult",
    "ExecutionStatus",
    "OrchestrationPattern",
    "Orchestrator",
    "WorkflowDefinition",
]
