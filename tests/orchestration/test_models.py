"""Tests for the graph model — nodes, edges, configs and definitions."""

from __future__ import annotations

import operator

import pytest

from conductor.orchestration.models import (
    AgentEdge,
    AgentNode,
    ErrorHandling,
    HumanInTheLoopConfig,
    OrchestrationPattern,
    WorkflowConfig,
    WorkflowDefinition,
)
from conductor.orchestration.refs import callable_ref, resolve_callable_ref


def _is_go(output):
    return output == "go"


def _raise(output):
    raise RuntimeError("condition blew up")


class TestAgentNode:
    def test_defaults(self):
        node = AgentNode("writer", "Content Writer")
        assert node.type == "agent"
        assert node.capabilities == ()
        assert node.timeout_seconds is None

    def test_lists_become_tuples(self):
        node = AgentNode("writer", "Writer", capabilities=["copywriting"], tools=["search"])
        assert node.capabilities == ("copywriting",)
        assert node.tools == ("search",)

    def test_round_trip(self):
        node = AgentNode("writer", "Writer", "creative", ("seo",), model="m", timeout_seconds=3.0)
        assert AgentNode.from_dict(node.to_dict()) == node

    def test_from_dict_name_defaults_to_id(self):
        assert AgentNode.from_dict({"id": "solo"}).name == "solo"


class TestAgentEdge:
    def test_unconditional_always_matches(self):
        assert AgentEdge("a", "b").matches(None) is True

    def test_callable_condition(self):
        edge = AgentEdge("a", "b", condition=lambda out: out == "go")
        assert edge.matches("go") is True
        assert edge.matches("stop") is False

    def test_ref_condition_is_resolved(self):
        edge = AgentEdge("a", "b", condition="operator:truth")
        assert edge.matches(0) is False
        assert edge.matches(1) is True

    def test_raising_condition_counts_as_match(self):
        assert AgentEdge("a", "b", condition=_raise).matches("x") is True

    def test_unresolvable_ref_counts_as_match(self):
        assert AgentEdge("a", "b", condition="no_such_module_xyz:fn").matches("x") is True

    def test_to_dict_uses_from_to_keys(self):
        d = AgentEdge("a", "b", condition=_is_go).to_dict()
        assert d == {"from": "a", "to": "b", "condition": f"{__name__}:_is_go"}

    def test_lambda_condition_is_dropped_on_serialise(self):
        d = AgentEdge("a", "b", condition=lambda out: True).to_dict()
        assert "condition" not in d

    def test_from_dict_accepts_long_keys(self):
        edge = AgentEdge.from_dict({"from_node": "a", "to_node": "b"})
        assert (edge.from_node, edge.to_node) == ("a", "b")


class TestCallableRefs:
    def test_named_function(self):
        assert callable_ref(_raise) == f"{__name__}:_raise"

    def test_lambda_has_no_ref(self):
        assert callable_ref(lambda: None) is None

    def test_resolve(self):
        assert resolve_callable_ref("operator:truth") is operator.truth

    def test_resolve_requires_separator(self):
        with pytest.raises(ValueError, match="missing ':'"):
            resolve_callable_ref("operator.truth")

    def test_resolve_non_callable(self):
        with pytest.raises(TypeError):
            resolve_callable_ref("math:pi")


class TestWorkflowConfig:
    def test_defaults(self):
        config = WorkflowConfig()
        assert config.error_handling is ErrorHandling.CONTINUE
        assert config.max_concurrency is None
        assert config.human_in_the_loop.enabled is False

    def test_error_handling_coerced_from_string(self):
        assert WorkflowConfig(error_handling="retry").error_handling is ErrorHandling.RETRY

    def test_round_trip(self):
        config = WorkflowConfig(
            max_concurrency=3,
            timeout_seconds=30,
            error_handling=ErrorHandling.FAIL_FAST,
            human_in_the_loop=HumanInTheLoopConfig(enabled=True, approval_points=["ads"]),
        )
        assert WorkflowConfig.from_dict(config.to_dict()) == config

    def test_from_none(self):
        assert WorkflowConfig.from_dict(None) == WorkflowConfig()


class TestWorkflowDefinition:
    @pytest.fixture
    def definition(self):
        return WorkflowDefinition(
            id="wf",
            name="Workflow",
            pattern="custom",
            nodes=[AgentNode("a", "A"), AgentNode("b", "B"), AgentNode("c", "C")],
            edges=[AgentEdge("a", "b"), AgentEdge("a", "c"), AgentEdge("b", "c")],
            entry_point="a",
            exit_points=["c"],
        )

    def test_pattern_string_is_coerced(self, definition):
        assert definition.pattern is OrchestrationPattern.CUSTOM
        assert definition.pattern_name == "custom"

    def test_unknown_pattern_kept_as_string(self):
        wf = WorkflowDefinition(id="x", name="X", pattern="swarm", nodes=())
        assert wf.pattern == "swarm"
        assert wf.pattern_name == "swarm"

    def test_construction_does_not_validate(self):
        wf = WorkflowDefinition(id="", name="", pattern="sequential", nodes=())
        assert wf.nodes == ()

    def test_accessors(self, definition):
        assert definition.node_ids() == ["a", "b", "c"]
        assert [e.to_node for e in definition.outgoing("a")] == ["b", "c"]
        assert [e.from_node for e in definition.incoming("c")] == ["a", "b"]
        assert definition.get_node("b").name == "B"
        assert definition.get_node("zz") is None
        assert definition.is_exit_point("c")
        assert not definition.is_exit_point(None)

    def test_with_config(self, definition):
        updated = definition.with_config(timeout_seconds=5)
        assert updated.config.timeout_seconds == 5
        assert definition.config.timeout_seconds is None

    def test_round_trip(self, definition):
        restored = WorkflowDefinition.from_dict(definition.to_dict())
        assert restored == definition

    def test_repr(self, definition):
        assert repr(definition) == "WorkflowDefinition('wf', pattern=custom, nodes=3, edges=3)"
