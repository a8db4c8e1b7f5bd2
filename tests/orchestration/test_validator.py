"""Tests for structural workflow validation."""

from __future__ import annotations

import pytest

from conductor.orchestration.exceptions import CycleDetectedError, WorkflowValidationError
from conductor.orchestration.models import AgentNode, OrchestrationPattern, WorkflowDefinition
from conductor.orchestration.testing import make_definition, make_node
from conductor.orchestration.validator import check_acyclic, validate_workflow


def _field_of(definition: WorkflowDefinition) -> str | None:
    with pytest.raises(WorkflowValidationError) as exc_info:
        validate_workflow(definition)
    return exc_info.value.field


class TestValidWorkflows:
    @pytest.mark.parametrize("pattern", list(OrchestrationPattern))
    def test_chain_is_valid_for_every_pattern(self, pattern):
        definition = make_definition(pattern, ["a", "b", "c"])
        assert validate_workflow(definition) is definition

    def test_unknown_pattern_string_passes(self):
        validate_workflow(make_definition("swarm", ["a"]))

    def test_no_exit_points_is_valid(self):
        validate_workflow(make_definition("supervisor", ["s", "a"], exit_points=[]))


class TestRequiredFields:
    def test_missing_id(self):
        assert _field_of(make_definition("sequential", ["a"], workflow_id="")) == "id"

    def test_missing_pattern(self):
        assert _field_of(make_definition("", ["a"])) == "pattern"

    def test_no_nodes(self):
        definition = make_definition("sequential", [], entry_point="a")
        with pytest.raises(WorkflowValidationError, match="at least one node"):
            validate_workflow(definition)

    def test_duplicate_node_ids(self):
        definition = make_definition(
            "sequential", ["a", "b"], nodes=[make_node("a"), make_node("a")], edges="none"
        )
        assert _field_of(definition) == "nodes"


class TestReferences:
    def test_entry_point_missing(self):
        assert _field_of(make_definition("sequential", ["a"], entry_point="")) == "entry_point"

    def test_entry_point_unknown(self):
        with pytest.raises(WorkflowValidationError, match="Entry point 'zz' not found"):
            validate_workflow(make_definition("sequential", ["a"], entry_point="zz"))

    def test_dangling_edge(self):
        definition = make_definition("sequential", ["a", "b"], edges=[("a", "ghost")])
        with pytest.raises(WorkflowValidationError, match="unknown node 'ghost'") as exc_info:
            validate_workflow(definition)
        assert exc_info.value.field == "edges"

    def test_unknown_exit_point(self):
        assert _field_of(make_definition("sequential", ["a"], exit_points=["zz"])) == "exit_points"

    def test_max_concurrency_below_one(self):
        definition = make_definition("concurrent", ["a", "b"], max_concurrency=0)
        assert _field_of(definition) == "config.max_concurrency"

    @pytest.mark.parametrize("timeout", [0, -1.5])
    def test_workflow_timeout_must_be_positive(self, timeout):
        definition = make_definition("sequential", ["a"], timeout_seconds=timeout)
        assert _field_of(definition) == "config.timeout_seconds"

    @pytest.mark.parametrize("timeout", [0, -1.5])
    def test_node_timeout_must_be_positive(self, timeout):
        nodes = [make_node("a"), make_node("b", timeout_seconds=timeout)]
        definition = make_definition("sequential", ["a", "b"], nodes=nodes)
        assert _field_of(definition) == "nodes.timeout_seconds"

    def test_error_carries_workflow_id(self):
        with pytest.raises(WorkflowValidationError) as exc_info:
            validate_workflow(make_definition("sequential", ["a"], workflow_id="wf", exit_points=["x"]))
        assert exc_info.value.workflow_id == "wf"


class TestCycles:
    def test_custom_cycle_rejected(self):
        definition = make_definition(
            "custom", ["a", "b", "c"], edges=[("a", "b"), ("b", "c"), ("c", "b")]
        )
        with pytest.raises(CycleDetectedError) as exc_info:
            validate_workflow(definition)
        assert sorted(exc_info.value.cycle) == ["b", "c"]

    def test_self_loop_rejected(self):
        definition = make_definition("custom", ["a"], edges=[("a", "a")])
        with pytest.raises(CycleDetectedError):
            validate_workflow(definition)

    def test_cycles_allowed_outside_custom(self):
        definition = make_definition(
            "adaptive_network", ["a", "b"], edges=[("a", "b"), ("b", "a")]
        )
        validate_workflow(definition)

    def test_diamond_is_acyclic(self, diamond_definition):
        check_acyclic(diamond_definition)

    def test_direct_definition(self):
        definition = WorkflowDefinition(
            id="wf",
            name="WF",
            pattern="custom",
            nodes=(AgentNode("a", "A"),),
            entry_point="a",
        )
        validate_workflow(definition)
