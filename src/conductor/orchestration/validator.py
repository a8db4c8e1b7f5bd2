"""Structural validation of workflow definitions.

Runs once, at registration, and reports the first violated invariant.
Checks, in order:

1. id, name and pattern present
2. at least one node
3. node ids unique
4. entry point declared and among the nodes
5. every edge endpoint among the nodes
6. every exit point among the nodes
7. ``max_concurrency`` >= 1 when set
8. workflow and node ``timeout_seconds`` > 0 when set
9. for ``custom`` workflows, no cycle in the edge set (Kahn's algorithm)
"""

from __future__ import annotations

from collections import deque

from conductor.orchestration.exceptions import CycleDetectedError, WorkflowValidationError
from conductor.orchestration.models import OrchestrationPattern, WorkflowDefinition


def validate_workflow(definition: WorkflowDefinition) -> WorkflowDefinition:
    """Validate ``definition`` and return it unchanged.

    Raises:
        WorkflowValidationError: A structural invariant is violated.
        CycleDetectedError: A ``custom`` workflow's edges contain a cycle.
    """
    wf_id = definition.id or None

    for attr in ("id", "name", "pattern"):
        if not getattr(definition, attr):
            raise WorkflowValidationError(
                f"Workflow {attr} is required", workflow_id=wf_id, field=attr
            )

    if not definition.nodes:
        raise WorkflowValidationError(
            "Workflow must have at least one node", workflow_id=wf_id, field="nodes"
        )

    seen: set[str] = set()
    for node in definition.nodes:
        if node.id in seen:
            raise WorkflowValidationError(
                f"Duplicate node id: {node.id}", workflow_id=wf_id, field="nodes", value=node.id
            )
        seen.add(node.id)

    if not definition.entry_point:
        raise WorkflowValidationError(
            "Workflow entry point is required", workflow_id=wf_id, field="entry_point"
        )
    if definition.entry_point not in seen:
        raise WorkflowValidationError(
            f"Entry point '{definition.entry_point}' not found in nodes",
            workflow_id=wf_id,
            field="entry_point",
            value=definition.entry_point,
        )

    for edge in definition.edges:
        for endpoint in (edge.from_node, edge.to_node):
            if endpoint not in seen:
                raise WorkflowValidationError(
                    f"Edge {edge.from_node} -> {edge.to_node} references unknown node '{endpoint}'",
                    workflow_id=wf_id,
                    field="edges",
                    value=endpoint,
                )

    for exit_point in definition.exit_points:
        if exit_point not in seen:
            raise WorkflowValidationError(
                f"Exit point '{exit_point}' not found in nodes",
                workflow_id=wf_id,
                field="exit_points",
                value=exit_point,
            )

    max_concurrency = definition.config.max_concurrency
    if max_concurrency is not None and max_concurrency < 1:
        raise WorkflowValidationError(
            "max_concurrency must be at least 1",
            workflow_id=wf_id,
            field="config.max_concurrency",
            value=max_concurrency,
            constraint=">= 1",
        )

    timeout = definition.config.timeout_seconds
    if timeout is not None and timeout <= 0:
        raise WorkflowValidationError(
            "Workflow timeout_seconds must be positive",
            workflow_id=wf_id,
            field="config.timeout_seconds",
            value=timeout,
            constraint="> 0",
        )

    for node in definition.nodes:
        if node.timeout_seconds is not None and node.timeout_seconds <= 0:
            raise WorkflowValidationError(
                f"Node '{node.id}' timeout_seconds must be positive",
                workflow_id=wf_id,
                field="nodes.timeout_seconds",
                value=node.timeout_seconds,
                constraint="> 0",
            )

    if definition.pattern == OrchestrationPattern.CUSTOM:
        check_acyclic(definition)

    return definition


def check_acyclic(definition: WorkflowDefinition) -> None:
    """Raise ``CycleDetectedError`` if the edges contain a cycle."""
    in_degree: dict[str, int] = {n.id: 0 for n in definition.nodes}
    adjacency: dict[str, list[str]] = {n.id: [] for n in definition.nodes}
    for edge in definition.edges:
        adjacency[edge.from_node].append(edge.to_node)
        in_degree[edge.to_node] += 1

    queue: deque[str] = deque(nid for nid, deg in in_degree.items() if deg == 0)
    visited = 0
    while queue:
        current = queue.popleft()
        visited += 1
        for neighbor in adjacency[current]:
            in_degree[neighbor] -= 1
            if in_degree[neighbor] == 0:
                queue.append(neighbor)

    if visited != len(in_degree):
        cycle_nodes = [nid for nid, deg in in_degree.items() if deg > 0]
        raise CycleDetectedError(cycle_nodes, workflow_id=definition.id)
