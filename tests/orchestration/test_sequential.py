"""Tests for the sequential pattern."""

from __future__ import annotations

import pytest

from conductor.orchestration.execution_context import HistoryStatus
from conductor.orchestration.models import AgentEdge, ErrorHandling
from conductor.orchestration.patterns.sequential import pipeline_order
from conductor.orchestration.results import ExecutionStatus
from conductor.orchestration.testing import (
    ScriptedNodeExecutor,
    assert_execution_completed,
    assert_execution_failed,
    assert_history_order,
    assert_node_status,
    make_definition,
    make_orchestrator,
)


class TestPipelineOrder:
    def test_follows_edges_from_entry(self):
        definition = make_definition(
            "sequential", ["c", "a", "b"], edges=[("a", "b"), ("b", "c")], entry_point="a"
        )
        assert [n.id for n in pipeline_order(definition)] == ["a", "b", "c"]

    def test_first_edge_wins(self):
        definition = make_definition(
            "sequential",
            ["a", "b", "c"],
            edges=[AgentEdge("a", "c"), AgentEdge("a", "b")],
        )
        assert [n.id for n in pipeline_order(definition)] == ["a", "c"]

    def test_stops_on_repeat(self):
        definition = make_definition("sequential", ["a", "b"], edges=[("a", "b"), ("b", "a")])
        assert [n.id for n in pipeline_order(definition)] == ["a", "b"]


class TestSequentialExecution:
    @pytest.mark.asyncio
    async def test_outputs_are_chained(self, orchestrator, linear_definition, echo_executor):
        orchestrator.register_workflow(linear_definition)
        result = await orchestrator.execute("linear", "brief")

        assert_execution_completed(result)
        assert_history_order(result, "research", "writer", "editor")
        assert echo_executor.calls[0] == ("research", "brief")
        assert echo_executor.calls[1][1]["node"] == "research"
        assert result.output["node"] == "editor"
        assert result.output["input"]["input"]["input"] == "brief"

    @pytest.mark.asyncio
    async def test_history_inputs_and_outputs(self, orchestrator, linear_definition):
        orchestrator.register_workflow(linear_definition)
        result = await orchestrator.execute("linear", "brief")

        first, second, _ = result.history
        assert first.input == "brief"
        assert second.input == first.output
        assert result.context.current_node == "editor"

    @pytest.mark.asyncio
    async def test_continue_passes_previous_output_through(self, fast_settings):
        executor = ScriptedNodeExecutor({"a": "A", "b": RuntimeError("down"), "c": "C"})
        orchestrator = make_orchestrator(executor, settings=fast_settings)
        orchestrator.register_workflow(make_definition("sequential", ["a", "b", "c"]))

        result = await orchestrator.execute("test_workflow", "brief")

        assert result.status is ExecutionStatus.COMPLETED
        assert_node_status(result, "b", HistoryStatus.ERROR)
        assert result.context.last_entry("b").error == "down"
        assert executor.calls[-1] == ("c", "A")
        assert result.output == "C"
        assert result.metrics.nodes_executed == 3

    @pytest.mark.asyncio
    async def test_fail_fast_stops_with_partial_output(self, fast_settings):
        executor = ScriptedNodeExecutor({"a": "A", "b": RuntimeError("down")})
        orchestrator = make_orchestrator(executor, settings=fast_settings)
        orchestrator.register_workflow(
            make_definition("sequential", ["a", "b", "c"], error_handling=ErrorHandling.FAIL_FAST)
        )

        result = await orchestrator.execute("test_workflow", "brief")

        assert_execution_failed(result, error_contains="Node 'b' failed: down")
        assert result.output == "A"
        assert_history_order(result, "a", "b")
        assert "c" not in executor.called_nodes

    @pytest.mark.asyncio
    async def test_retry_mode_recovers(self, fast_settings):
        executor = ScriptedNodeExecutor({"b": [RuntimeError("flaky"), "B"]})
        orchestrator = make_orchestrator(executor, settings=fast_settings)
        orchestrator.register_workflow(
            make_definition("sequential", ["a", "b"], error_handling=ErrorHandling.RETRY)
        )

        result = await orchestrator.execute("test_workflow", "brief")

        assert_execution_completed(result)
        assert result.output == "B"
        assert result.metrics.retries == 1
        assert result.context.last_entry("b").attempts == 2
