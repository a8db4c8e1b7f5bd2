"""Workflow Registry — validated registration and lookup of workflow definitions.

Manifesto:
    Runners, CLIs and APIs need to find workflows by id without knowing
    which module built them. The registry is that lookup table, but it is
    an injected object rather than a module global: each orchestrator owns
    one, tests get a fresh one per test, and the storage behind it is a
    swappable ``WorkflowStore``.

ARCHITECTURE
────────────
::

    WorkflowRegistry(store=InMemoryWorkflowStore())
      ├── register(definition)   → validate, then store (replaces same id)
      ├── get(id) / require(id)  → definition or None / WorkflowNotFoundError
      ├── list()                 → registration order
      ├── delete(id) / clear()
      └── stats()                → counts by pattern

    WorkflowStore (Protocol)  ── save / load / delete / all
    ExecutionStore (Protocol) ── save / load / all

BEST PRACTICES
──────────────
- Registration is atomic: a definition that fails validation never
  touches the store.
- Re-registering an id is an update; it is logged so accidental
  overwrites are visible.

Example::

    registry = WorkflowRegistry()
    registry.register(definition)
    registry.require("content_pipeline")

Tags:
    conductor, orchestration, registry, repository, lookup

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections import Counter
from typing import Protocol, runtime_checkable

from conductor.core.logging import get_logger
from conductor.orchestration.exceptions import WorkflowNotFoundError
from conductor.orchestration.models import WorkflowDefinition
from conductor.orchestration.results import ExecutionResult
from conductor.orchestration.validator import validate_workflow

logger = get_logger(__name__)


# =============================================================================
# Stores
# =============================================================================


@runtime_checkable
class WorkflowStore(Protocol):
    """Persistence for workflow definitions."""

    def save(self, definition: WorkflowDefinition) -> None: ...

    def load(self, workflow_id: str) -> WorkflowDefinition | None: ...

    def delete(self, workflow_id: str) -> bool: ...

    def all(self) -> list[WorkflowDefinition]: ...


@runtime_checkable
class ExecutionStore(Protocol):
    """Persistence for execution results."""

    def save(self, result: ExecutionResult) -> None: ...

    def load(self, execution_id: str) -> ExecutionResult | None: ...

    def all(self) -> list[ExecutionResult]: ...


class InMemoryWorkflowStore:
    """Dict-backed ``WorkflowStore``; iteration follows first registration."""

    def __init__(self) -> None:
        self._items: dict[str, WorkflowDefinition] = {}

    def save(self, definition: WorkflowDefinition) -> None:
        self._items[definition.id] = definition

    def load(self, workflow_id: str) -> WorkflowDefinition | None:
        return self._items.get(workflow_id)

    def delete(self, workflow_id: str) -> bool:
        return self._items.pop(workflow_id, None) is not None

    def all(self) -> list[WorkflowDefinition]:
        return list(self._items.values())

    def clear(self) -> None:
        self._items.clear()


class InMemoryExecutionStore:
    """Dict-backed ``ExecutionStore``."""

    def __init__(self) -> None:
        self._items: dict[str, ExecutionResult] = {}

    def save(self, result: ExecutionResult) -> None:
        self._items[result.execution_id] = result

    def load(self, execution_id: str) -> ExecutionResult | None:
        return self._items.get(execution_id)

    def all(self) -> list[ExecutionResult]:
        return list(self._items.values())


# =============================================================================
# Registry
# =============================================================================


class WorkflowRegistry:
    """Validated access to a ``WorkflowStore``."""

    def __init__(self, store: WorkflowStore | None = None):
        self.store: WorkflowStore = store if store is not None else InMemoryWorkflowStore()

    def register(self, definition: WorkflowDefinition) -> WorkflowDefinition:
        """
        Validate and store a definition.

        Args:
            definition: The workflow to register

        Returns:
            The registered definition

        Raises:
            WorkflowValidationError: The definition is structurally invalid;
                the store is left untouched.
        """
        validate_workflow(definition)

        replaced = self.store.load(definition.id) is not None
        self.store.save(definition)

        logger.info(
            "workflow.registered",
            workflow_id=definition.id,
            pattern=definition.pattern_name,
            node_count=len(definition.nodes),
            edge_count=len(definition.edges),
            replaced=replaced,
        )
        return definition

    def get(self, workflow_id: str) -> WorkflowDefinition | None:
        return self.store.load(workflow_id)

    def require(self, workflow_id: str) -> WorkflowDefinition:
        """
        Get a definition by id.

        Raises:
            WorkflowNotFoundError: If the workflow is not registered
        """
        definition = self.store.load(workflow_id)
        if definition is None:
            raise WorkflowNotFoundError(workflow_id, [d.id for d in self.store.all()])
        return definition

    def list(self) -> list[WorkflowDefinition]:
        return self.store.all()

    def exists(self, workflow_id: str) -> bool:
        return self.store.load(workflow_id) is not None

    def delete(self, workflow_id: str) -> bool:
        deleted = self.store.delete(workflow_id)
        if deleted:
            logger.info("workflow.deleted", workflow_id=workflow_id)
        return deleted

    def clear(self) -> None:
        """Remove every definition (primarily for tests)."""
        for definition in self.store.all():
            self.store.delete(definition.id)
        logger.debug("workflow.registry_cleared")

    def stats(self) -> dict[str, object]:
        definitions = self.store.all()
        return {
            "total": len(definitions),
            "by_pattern": dict(Counter(d.pattern_name for d in definitions)),
        }

    def __len__(self) -> int:
        return len(self.store.all())

    def __contains__(self, workflow_id: object) -> bool:
        return isinstance(workflow_id, str) and self.exists(workflow_id)
