"""Pydantic models for workflow YAML definitions.

Provides strong typing for YAML (or JSON) workflow files and converts them
to the same ``WorkflowDefinition`` used by code-first authors. Structural
checks (entry point, dangling edges, cycles) stay in the validator, which
runs when the definition is registered.

Usage::

    from conductor.orchestration.workflow_yaml import WorkflowSpec

    spec = WorkflowSpec.from_yaml_file("workflows/content.yaml")
    definition = spec.to_definition()

Example YAML::

    apiVersion: conductor.io/v1
    kind: Workflow
    metadata:
      id: content_pipeline
      name: Content Pipeline
    spec:
      pattern: sequential
      entry_point: research
      exit_points: [writer]
      nodes:
        - id: research
          name: Research Agent
          capabilities: [web_search]
        - id: writer
          name: Content Writer
      edges:
        - from: research
          to: writer
      config:
        error_handling: retry
        timeout_seconds: 120

Manifesto:
    Workflow authors should be able to define agent graphs in YAML
    without writing Python. This module parses YAML definitions into the
    same model used by code-first authors, keeping both paths first-class.

Tags:
    conductor, orchestration, yaml, declarative, config-driven

Doc-Types:
    api-reference
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field

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

API_VERSION = "conductor.io/v1"


class WorkflowMetadataSpec(BaseModel):
    """Metadata section of a workflow spec."""

    model_config = ConfigDict(extra="forbid")

    id: str = Field(..., min_length=1, description="Unique workflow id")
    name: str = Field(..., min_length=1, description="Display name")
    description: str = Field(default="", description="Human-readable description")


class NodeSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str = Field(..., min_length=1)
    name: str | None = None
    type: str = "agent"
    capabilities: list[str] = Field(default_factory=list)
    model: str | None = None
    system_prompt: str | None = None
    tools: list[str] = Field(default_factory=list)
    timeout_seconds: float | None = Field(default=None, gt=0)
    max_retries: int | None = Field(default=None, ge=0)

    def to_node(self) -> AgentNode:
        return AgentNode(
            id=self.id,
            name=self.name or self.id,
            type=self.type,
            capabilities=tuple(self.capabilities),
            model=self.model,
            system_prompt=self.system_prompt,
            tools=tuple(self.tools),
            timeout_seconds=self.timeout_seconds,
            max_retries=self.max_retries,
        )


class EdgeSpec(BaseModel):
    """Directed edge. ``condition`` is a ``'module:qualname'`` reference."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    from_node: str = Field(..., alias="from")
    to_node: str = Field(..., alias="to")
    condition: str | None = None
    transform_output: bool = False

    def to_edge(self) -> AgentEdge:
        return AgentEdge(
            from_node=self.from_node,
            to_node=self.to_node,
            condition=self.condition,
            transform_output=self.transform_output,
        )


class ThresholdsSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    confidence: float | None = Field(default=None, ge=0, le=1)
    cost: float | None = Field(default=None, ge=0)


class HumanInTheLoopSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    enabled: bool = False
    approval_points: list[str] = Field(default_factory=list)
    thresholds: ThresholdsSpec = Field(default_factory=ThresholdsSpec)


class WorkflowConfigSpec(BaseModel):
    """Execution config section of a workflow spec."""

    model_config = ConfigDict(extra="forbid")

    max_concurrency: int | None = Field(default=None, ge=1, description="Concurrent batch size")
    timeout_seconds: float | None = Field(default=None, gt=0, description="Workflow deadline")
    error_handling: ErrorHandling = Field(default=ErrorHandling.CONTINUE)
    checkpoint_enabled: bool = False
    human_in_the_loop: HumanInTheLoopSpec = Field(default_factory=HumanInTheLoopSpec)

    def to_config(self) -> WorkflowConfig:
        hitl = self.human_in_the_loop
        return WorkflowConfig(
            max_concurrency=self.max_concurrency,
            timeout_seconds=self.timeout_seconds,
            error_handling=self.error_handling,
            checkpoint_enabled=self.checkpoint_enabled,
            human_in_the_loop=HumanInTheLoopConfig(
                enabled=hitl.enabled,
                approval_points=tuple(hitl.approval_points),
                thresholds=ApprovalThresholds(
                    confidence=hitl.thresholds.confidence,
                    cost=hitl.thresholds.cost,
                ),
            ),
        )


class WorkflowSpecSection(BaseModel):
    """The 'spec' section: pattern, graph and config."""

    model_config = ConfigDict(extra="forbid")

    pattern: OrchestrationPattern
    entry_point: str = Field(..., min_length=1)
    exit_points: list[str] = Field(default_factory=list)
    nodes: list[NodeSpec] = Field(..., min_length=1)
    edges: list[EdgeSpec] = Field(default_factory=list)
    config: WorkflowConfigSpec = Field(default_factory=WorkflowConfigSpec)


class WorkflowSpec(BaseModel):
    """Complete YAML workflow specification (root model)."""

    model_config = ConfigDict(extra="forbid")

    apiVersion: Literal["conductor.io/v1"] = Field(default=API_VERSION)
    kind: Literal["Workflow"] = Field(default="Workflow")
    metadata: WorkflowMetadataSpec
    spec: WorkflowSpecSection

    def to_definition(self) -> WorkflowDefinition:
        """Convert the validated spec to a ``WorkflowDefinition``."""
        return WorkflowDefinition(
            id=self.metadata.id,
            name=self.metadata.name,
            description=self.metadata.description,
            pattern=self.spec.pattern,
            nodes=tuple(n.to_node() for n in self.spec.nodes),
            edges=tuple(e.to_edge() for e in self.spec.edges),
            entry_point=self.spec.entry_point,
            exit_points=tuple(self.spec.exit_points),
            config=self.spec.config.to_config(),
        )

    @classmethod
    def from_definition(cls, definition: WorkflowDefinition) -> WorkflowSpec:
        """Build a spec from a runtime definition.

        Edge conditions without an importable reference (lambdas, locals)
        are dropped.
        """
        data = definition.to_dict()
        return cls.model_validate(
            {
                "metadata": {
                    "id": data["id"],
                    "name": data["name"],
                    "description": data.get("description", ""),
                },
                "spec": {
                    "pattern": data["pattern"],
                    "entry_point": data["entry_point"],
                    "exit_points": data["exit_points"],
                    "nodes": data["nodes"],
                    "edges": data["edges"],
                    "config": data["config"],
                },
            }
        )

    def to_yaml(self) -> str:
        data = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        return yaml.safe_dump(data, sort_keys=False)

    @classmethod
    def from_yaml(cls, yaml_content: str) -> WorkflowSpec:
        """Parse and validate YAML content.

        Raises:
            ValueError: If YAML is invalid or doesn't match the schema
                (pydantic's ``ValidationError`` is a ``ValueError``).
        """
        try:
            data = yaml.safe_load(yaml_content)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML: {e}") from e
        return cls.model_validate(data)

    @classmethod
    def from_yaml_file(cls, path: str | Path) -> WorkflowSpec:
        content = Path(path).read_text(encoding="utf-8")
        return cls.from_yaml(content)


def load_definition(path: str | Path) -> WorkflowDefinition:
    """Load a definition from a YAML or JSON file.

    Accepts either the ``apiVersion/kind/metadata/spec`` document or the
    flat ``WorkflowDefinition.to_dict()`` layout.
    """
    content = Path(path).read_text(encoding="utf-8")
    try:
        data: Any = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"Expected a mapping at the top of {path}, got {type(data).__name__}")
    if "spec" in data and "metadata" in data:
        return WorkflowSpec.model_validate(data).to_definition()
    return WorkflowDefinition.from_dict(data)
