"""
Conductor Orchestration — multi-pattern agent workflow engine.

WHY
───
A single agent call is one unit of work. Orchestration arranges many agent
nodes into a graph and drives them with a pattern (a pipeline, a fan-out,
a supervisor, a decentralised network, a referral chain, or a dataflow
DAG) while keeping an auditable history and aggregate metrics.

ARCHITECTURE
────────────
::

    WorkflowDefinition (graph of AgentNodes + AgentEdges)
      └── pattern ∈ sequential | concurrent | supervisor |
                    adaptive_network | handoff | custom

    Orchestrator                ─ register / execute / inspect
      ├── WorkflowRegistry      ─ validated definitions (WorkflowStore)
      ├── PatternExecutor       ─ one class per pattern, registration table
      ├── NodeExecutionAdapter  ─ deadline + retry around a NodeExecutor
      └── DecisionPolicies      ─ supervisor / adaptive / handoff routing

    ExecutionContext  ─ per-run history, scratch state, token/cost totals
    ExecutionResult   ─ status, output, metrics, pending decision

MODULE MAP (recommended reading order)
──────────────────────────────────────
1. exceptions.py          ─ error hierarchy
2. models.py              ─ nodes, edges, definitions, config
3. refs.py                ─ 'module:qualname' callable references
4. execution_context.py   ─ per-run context + history entries
5. results.py             ─ ExecutionResult + metrics
6. retry.py               ─ backoff strategies
7. node_executor.py       ─ NodeExecutor protocol + adapter
8. policies.py            ─ decision policies + approval rules
9. patterns/              ─ the six pattern executors
10. validator.py          ─ structural validation
11. registry.py           ─ registry + stores
12. orchestrator.py       ─ public facade
13. templates.py          ─ pre-built workflows
14. workflow_yaml.py      ─ YAML definitions
15. testing.py            ─ executor doubles + assertions

Example:
    from conductor.orchestration import Orchestrator, get_template

    async def run_agent(node, input, context):
        return f"{node.name} handled {input}"

    orchestrator = Orchestrator(run_agent)
    orchestrator.create_template_workflow("content_pipeline")
    result = await orchestrator.execute("marketing_content_pipeline", {"topic": "AI"})
    print(result.status, result.metrics.nodes_executed)
"""

from conductor.orchestration.exceptions import (
    CycleDetectedError,
    InvalidDecisionError,
    NodeExecutionError,
    NodeTimeoutError,
    PendingApprovalSignal,
    UnsupportedPatternError,
    WorkflowNotFoundError,
    WorkflowTimeoutError,
    WorkflowValidationError,
)
from conductor.orchestration.execution_context import (
    ExecutionContext,
    ExecutionMetadata,
    HistoryEntry,
    HistoryStatus,
)
from conductor.orchestration.models import (
    AgentEdge,
    AgentNode,
    ApprovalThresholds,
    ErrorHandling,
    HumanInTheLoopConfig,
    OrchestrationPattern,
    WorkflowConfig,
    WorkflowDefinition,
)
from conductor.orchestration.node_executor import (
    AdapterOutcome,
    FunctionNodeExecutor,
    NodeExecutionAdapter,
    NodeExecutor,
    NodeRun,
)
from conductor.orchestration.orchestrator import Orchestrator
from conductor.orchestration.patterns import (
    PatternExecutor,
    get_pattern_executor,
    list_patterns,
    register_pattern,
)
from conductor.orchestration.policies import (
    ApprovalPointsRule,
    ApprovalRule,
    CapabilityHandoffPolicy,
    ConfidenceThresholdRule,
    Decision,
    DecisionPolicies,
    DecisionPolicy,
    FirstCandidateAdaptivePolicy,
    FirstUnvisitedSupervisorPolicy,
    policy_from_callable,
)
from conductor.orchestration.registry import (
    ExecutionStore,
    InMemoryExecutionStore,
    InMemoryWorkflowStore,
    WorkflowRegistry,
    WorkflowStore,
)
from conductor.orchestration.results import ExecutionMetrics, ExecutionResult, ExecutionStatus
from conductor.orchestration.retry import ExponentialBackoff, NoRetry, RetryStrategy
from conductor.orchestration.templates import get_template, list_templates, register_template
from conductor.orchestration.validator import validate_workflow

__all__ = [
    # Exceptions
    "CycleDetectedError",
    "InvalidDecisionError",
    "NodeExecutionError",
    "NodeTimeoutError",
    "PendingApprovalSignal",
    "UnsupportedPatternError",
    "WorkflowNotFoundError",
    "WorkflowTimeoutError",
    "WorkflowValidationError",
    # Context
    "ExecutionContext",
    "ExecutionMetadata",
    "HistoryEntry",
    "HistoryStatus",
    # Graph model
    "AgentEdge",
    "AgentNode",
    "ApprovalThresholds",
    "ErrorHandling",
    "HumanInTheLoopConfig",
    "OrchestrationPattern",
    "WorkflowConfig",
    "WorkflowDefinition",
    # Node execution
    "AdapterOutcome",
    "FunctionNodeExecutor",
    "NodeExecutionAdapter",
    "NodeExecutor",
    "NodeRun",
    # Engine
    "Orchestrator",
    "PatternExecutor",
    "get_pattern_executor",
    "list_patterns",
    "register_pattern",
    # Policies
    "ApprovalPointsRule",
    "ApprovalRule",
    "CapabilityHandoffPolicy",
    "ConfidenceThresholdRule",
    "Decision",
    "DecisionPolicies",
    "DecisionPolicy",
    "FirstCandidateAdaptivePolicy",
    "FirstUnvisitedSupervisorPolicy",
    "policy_from_callable",
    # Registry
    "ExecutionStore",
    "InMemoryExecutionStore",
    "InMemoryWorkflowStore",
    "WorkflowRegistry",
    "WorkflowStore",
    # Results
    "ExecutionMetrics",
    "ExecutionResult",
    "ExecutionStatus",
    # Retry
    "ExponentialBackoff",
    "NoRetry",
    "RetryStrategy",
    # Templates
    "get_template",
    "list_templates",
    "register_template",
    # Validation
    "validate_workflow",
]
