"""End-to-end tests for the Orchestrator facade."""

from __future__ import annotations

import asyncio

import pytest

from conductor.orchestration.exceptions import WorkflowNotFoundError
from conductor.orchestration.execution_context import HistoryStatus
from conductor.orchestration.models import AgentNode
from conductor.orchestration.node_executor import NodeRun
from conductor.orchestration.orchestrator import Orchestrator
from conductor.orchestration.policies import DecisionPolicies, policy_from_callable
from conductor.orchestration.results import ExecutionStatus
from conductor.orchestration.templates import content_pipeline
from conductor.orchestration.testing import (
    EchoNodeExecutor,
    assert_execution_completed,
    assert_execution_failed,
    assert_history_order,
    make_definition,
    make_node,
    make_orchestrator,
)


class TestContentPipeline:
    @pytest.mark.asyncio
    async def test_end_to_end(self, orchestrator):
        orchestrator.register_workflow(content_pipeline())

        result = await orchestrator.execute("marketing_content_pipeline", {"topic": "AI"})

        assert_execution_completed(result)
        assert_history_order(result, "research", "writer", "editor", "seo", "publisher")
        assert result.output["node"] == "publisher"
        assert result.metrics.nodes_executed == 5
        assert result.metrics.total_tokens == 50
        assert result.metrics.total_cost == pytest.approx(0.005)
        assert result.metrics.duration_seconds >= 0
        assert result.error is None

    @pytest.mark.asyncio
    async def test_result_ids(self, orchestrator):
        orchestrator.register_workflow(content_pipeline())
        result = await orchestrator.execute(
            "marketing_content_pipeline", "brief", execution_id="exec_fixed"
        )
        assert result.execution_id == "exec_fixed"
        assert result.context.execution_id == "exec_fixed"
        assert result.workflow_id == "marketing_content_pipeline"
        assert result.context.metadata.pattern == "sequential"


class TestPlainFunctionExecutor:
    @pytest.mark.asyncio
    async def test_function_node_executor(self, fast_settings):
        async def agent(node: AgentNode, input, context):
            return NodeRun(output=f"{input}>{node.id}", tokens_used=2)

        orchestrator = Orchestrator(agent, settings=fast_settings)
        orchestrator.register_workflow(make_definition("sequential", ["a", "b"]))

        result = await orchestrator.execute("test_workflow", "in")

        assert result.output == "in>a>b"
        assert result.metrics.total_tokens == 4


class TestFailureFolding:
    @pytest.mark.asyncio
    async def test_unknown_workflow_raises(self, orchestrator):
        with pytest.raises(WorkflowNotFoundError):
            await orchestrator.execute("nope", "brief")

    @pytest.mark.asyncio
    async def test_unsupported_pattern_is_a_failed_result(self, orchestrator):
        orchestrator.register_workflow(make_definition("swarm", ["a"]))

        result = await orchestrator.execute("test_workflow", "brief")

        assert_execution_failed(result, error_contains="Unsupported pattern: swarm")
        assert result.history == []
        assert result.error_details["error_type"] == "UnsupportedPatternError"

    @pytest.mark.asyncio
    async def test_workflow_timeout(self, fast_settings):
        executor = EchoNodeExecutor(delays={"b": 1.0})
        orchestrator = make_orchestrator(executor, settings=fast_settings)
        orchestrator.register_workflow(
            make_definition("sequential", ["a", "b", "c"], timeout_seconds=0.05)
        )

        result = await orchestrator.execute("test_workflow", "brief")

        assert result.status is ExecutionStatus.TIMEOUT
        assert "timed out after 0.05s" in result.error
        assert result.output["node"] == "a"
        assert "c" not in executor.called_nodes
        assert [(e.node_id, e.status) for e in result.history] == [
            ("a", HistoryStatus.SUCCESS),
            ("b", HistoryStatus.TIMEOUT),
        ]
        assert result.context.last_entry("b").error == "Workflow deadline exceeded"

    @pytest.mark.asyncio
    async def test_workflow_timeout_records_unfinished_batch_nodes(self, fast_settings):
        executor = EchoNodeExecutor(delays={"y": 1.0, "z": 1.0})
        orchestrator = make_orchestrator(executor, settings=fast_settings)
        orchestrator.register_workflow(
            make_definition("concurrent", ["x", "y", "z"], edges="none", timeout_seconds=0.05)
        )

        result = await orchestrator.execute("test_workflow", "brief")

        assert result.status is ExecutionStatus.TIMEOUT
        statuses = {e.node_id: e.status for e in result.history}
        assert statuses == {
            "x": HistoryStatus.SUCCESS,
            "y": HistoryStatus.TIMEOUT,
            "z": HistoryStatus.TIMEOUT,
        }
        assert len(result.history) == 3

    @pytest.mark.asyncio
    async def test_node_timeout_aborts_run(self, fast_settings):
        executor = EchoNodeExecutor(delays={"b": 1.0})
        orchestrator = make_orchestrator(executor, settings=fast_settings)
        nodes = [make_node("a"), make_node("b", timeout_seconds=0.01), make_node("c")]
        orchestrator.register_workflow(make_definition("sequential", ["a", "b", "c"], nodes=nodes))

        result = await orchestrator.execute("test_workflow", "brief")

        assert result.status is ExecutionStatus.TIMEOUT
        assert result.context.last_entry("b").status is HistoryStatus.TIMEOUT
        assert "c" not in executor.called_nodes

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_folded(self, fast_settings):
        def broken(current, candidates, output, context):
            raise LookupError("routing table missing")

        orchestrator = make_orchestrator(
            settings=fast_settings,
            policies=DecisionPolicies(supervisor=policy_from_callable(broken)),
        )
        orchestrator.register_workflow(make_definition("supervisor", ["boss", "a"], edges="none"))

        result = await orchestrator.execute("test_workflow", "brief")

        assert_execution_failed(result, error_contains="routing table missing")
        assert result.error_details["error_type"] == "LookupError"
        assert result.output == "brief"


class TestExecutionStore:
    @pytest.mark.asyncio
    async def test_results_are_stored(self, orchestrator, linear_definition, diamond_definition):
        orchestrator.register_workflow(linear_definition)
        orchestrator.register_workflow(diamond_definition)

        first = await orchestrator.execute("linear", "one")
        await orchestrator.execute("linear", "two")
        await orchestrator.execute("diamond", "three")

        assert orchestrator.get_execution(first.execution_id) is first
        assert orchestrator.get_execution("exec_missing") is None
        assert len(orchestrator.list_executions()) == 3
        assert len(orchestrator.list_executions("linear")) == 2

    @pytest.mark.asyncio
    async def test_in_flight_context_is_visible(self, fast_settings):
        executor = EchoNodeExecutor(delays={"b": 0.5})
        orchestrator = make_orchestrator(executor, settings=fast_settings)
        orchestrator.register_workflow(make_definition("sequential", ["a", "b"]))

        task = asyncio.create_task(
            orchestrator.execute("test_workflow", "brief", execution_id="exec_live")
        )
        live = None
        for _ in range(100):
            await asyncio.sleep(0.01)
            live = orchestrator.get_execution_context("exec_live")
            if live is not None and live.history:
                break

        assert orchestrator.list_running() == ["exec_live"]
        assert [e.node_id for e in live.history] == ["a"]
        assert orchestrator.get_execution("exec_live") is None
        assert orchestrator.health()["active_executions"] == 1

        result = await task

        assert orchestrator.list_running() == []
        assert orchestrator.get_execution_context("exec_live") is result.context
        assert orchestrator.get_execution_context("exec_missing") is None

    @pytest.mark.asyncio
    async def test_failed_runs_are_stored(self, fast_settings):
        orchestrator = make_orchestrator(settings=fast_settings)
        orchestrator.register_workflow(make_definition("swarm", ["a"]))
        result = await orchestrator.execute("test_workflow", "brief")
        assert orchestrator.get_execution(result.execution_id).status is ExecutionStatus.FAILED


class TestConcurrentRuns:
    @pytest.mark.asyncio
    async def test_runs_do_not_share_context(self, fast_settings):
        executor = EchoNodeExecutor(delays={"a": 0.01})
        orchestrator = make_orchestrator(executor, settings=fast_settings)
        orchestrator.register_workflow(make_definition("sequential", ["a", "b"]))

        results = await asyncio.gather(
            *(orchestrator.execute("test_workflow", i) for i in range(5))
        )

        assert len({r.execution_id for r in results}) == 5
        for i, result in enumerate(results):
            assert len(result.history) == 2
            assert result.history[0].input == i
        assert orchestrator.health()["active_executions"] == 0


class TestManagement:
    def test_register_list_delete(self, orchestrator, linear_definition):
        orchestrator.register_workflow(linear_definition)
        assert orchestrator.get_workflow("linear") is linear_definition
        assert [w.id for w in orchestrator.list_workflows()] == ["linear"]
        assert orchestrator.delete_workflow("linear")
        assert orchestrator.get_workflow("linear") is None

    def test_create_template_workflow(self, orchestrator):
        definition = orchestrator.create_template_workflow("campaign_launch", workflow_id="spring")
        assert definition.id == "spring"
        assert orchestrator.get_workflow("spring") is definition

    def test_unknown_template(self, orchestrator):
        with pytest.raises(KeyError, match="Unknown template"):
            orchestrator.create_template_workflow("nope")

    def test_health(self, orchestrator, linear_definition):
        orchestrator.register_workflow(linear_definition)
        health = orchestrator.health()
        assert health["status"] == "healthy"
        assert health["workflows_registered"] == 1
        assert health["executions"] == 0
        assert health["active_executions"] == 0
        assert set(health["patterns"]) == {
            "sequential",
            "concurrent",
            "supervisor",
            "adaptive_network",
            "handoff",
            "custom",
        }

    def test_execute_sync(self, orchestrator, linear_definition):
        orchestrator.register_workflow(linear_definition)
        result = orchestrator.execute_sync("linear", "brief")
        assert_execution_completed(result)
        assert orchestrator.health()["executions"] == 1
