"""Tests for the supervisor pattern — delegation, bounds and approval gating."""

from __future__ import annotations

import pytest

from conductor.core.settings import ConductorSettings
from conductor.orchestration.models import HumanInTheLoopConfig
from conductor.orchestration.policies import (
    ApprovalPointsRule,
    ConfidenceThresholdRule,
    Decision,
    DecisionPolicies,
    FirstUnvisitedSupervisorPolicy,
    policy_from_callable,
)
from conductor.orchestration.results import ExecutionStatus
from conductor.orchestration.templates import campaign_launch
from conductor.orchestration.testing import (
    EchoNodeExecutor,
    assert_execution_completed,
    assert_execution_failed,
    assert_history_order,
    make_definition,
    make_orchestrator,
)


def _gated(points):
    return DecisionPolicies(
        supervisor=FirstUnvisitedSupervisorPolicy(approval_rule=ApprovalPointsRule(points))
    )


class TestCampaignLaunch:
    @pytest.mark.asyncio
    async def test_delegates_to_each_specialist(self, orchestrator):
        orchestrator.register_workflow(campaign_launch())
        result = await orchestrator.execute("marketing_campaign_launch", {"product": "X"})

        assert_execution_completed(result)
        assert_history_order(result, "social", "email", "ads", "analytics")
        assert result.output["node"] == "analytics"

    @pytest.mark.asyncio
    async def test_default_policy_never_gates_even_with_hitl_enabled(self, orchestrator):
        definition = campaign_launch()
        assert definition.config.human_in_the_loop.enabled
        orchestrator.register_workflow(definition)

        result = await orchestrator.execute("marketing_campaign_launch", {"product": "X"})

        assert result.status is ExecutionStatus.COMPLETED
        assert result.pending_decision is None

    @pytest.mark.asyncio
    async def test_approval_point_suspends_run(self, fast_settings):
        orchestrator = make_orchestrator(settings=fast_settings, policies=_gated(["ads"]))
        orchestrator.register_workflow(campaign_launch())

        result = await orchestrator.execute("marketing_campaign_launch", {"product": "X"})

        assert result.status is ExecutionStatus.PENDING_APPROVAL
        assert_history_order(result, "social", "email")
        assert result.pending_decision.next_node == "ads"
        assert result.pending_decision.needs_human_approval
        assert result.output["node"] == "email"
        assert result.error is None

    @pytest.mark.asyncio
    async def test_approval_ignored_when_hitl_disabled(self, fast_settings):
        orchestrator = make_orchestrator(settings=fast_settings, policies=_gated(["ads"]))
        definition = campaign_launch().with_config(human_in_the_loop=HumanInTheLoopConfig())
        orchestrator.register_workflow(definition)

        result = await orchestrator.execute("marketing_campaign_launch", {"product": "X"})

        assert_execution_completed(result)
        assert "ads" in [e.node_id for e in result.history]

    @pytest.mark.asyncio
    async def test_confidence_rule_gates_first_delegation(self, fast_settings):
        policies = DecisionPolicies(
            supervisor=FirstUnvisitedSupervisorPolicy(approval_rule=ConfidenceThresholdRule(0.9))
        )
        orchestrator = make_orchestrator(settings=fast_settings, policies=policies)
        orchestrator.register_workflow(campaign_launch())

        result = await orchestrator.execute("marketing_campaign_launch", "brief")

        assert result.status is ExecutionStatus.PENDING_APPROVAL
        assert result.history == []
        assert result.output == "brief"


class TestSupervisorLoop:
    @pytest.mark.asyncio
    async def test_supervisor_node_is_never_executed(self, fast_settings):
        executor = EchoNodeExecutor()
        orchestrator = make_orchestrator(executor, settings=fast_settings)
        orchestrator.register_workflow(make_definition("supervisor", ["boss", "a", "b"], edges="none"))

        await orchestrator.execute("test_workflow", "brief")

        assert "boss" not in executor.called_nodes

    @pytest.mark.asyncio
    async def test_stops_when_all_consulted(self, fast_settings):
        orchestrator = make_orchestrator(settings=fast_settings)
        orchestrator.register_workflow(
            make_definition("supervisor", ["boss", "a", "b"], edges="none", exit_points=[])
        )

        result = await orchestrator.execute("test_workflow", "brief")

        assert_history_order(result, "a", "b")
        assert result.context.state["iterations"] == 3

    @pytest.mark.asyncio
    async def test_iteration_bound(self, fast_settings):
        ids = ["boss"] + [f"w{i}" for i in range(11)]
        orchestrator = make_orchestrator(settings=fast_settings)
        orchestrator.register_workflow(make_definition("supervisor", ids, edges="none", exit_points=[]))

        result = await orchestrator.execute("test_workflow", "brief")

        assert_execution_completed(result)
        assert len(result.history) == 10
        assert result.context.state["iterations"] == 10

    @pytest.mark.asyncio
    async def test_iteration_bound_from_settings(self):
        settings = ConductorSettings(max_supervisor_iterations=2, retry_base_delay_seconds=0)
        orchestrator = make_orchestrator(settings=settings)
        orchestrator.register_workflow(
            make_definition("supervisor", ["boss", "a", "b", "c"], edges="none", exit_points=[])
        )

        result = await orchestrator.execute("test_workflow", "brief")

        assert_history_order(result, "a", "b")

    @pytest.mark.asyncio
    async def test_invalid_decision_fails_the_run(self, fast_settings):
        policies = DecisionPolicies(supervisor=policy_from_callable(lambda *args: "boss"))
        orchestrator = make_orchestrator(settings=fast_settings, policies=policies)
        orchestrator.register_workflow(make_definition("supervisor", ["boss", "a"], edges="none"))

        result = await orchestrator.execute("test_workflow", "brief")

        assert_execution_failed(result, error_contains="not an available candidate")

    @pytest.mark.asyncio
    async def test_custom_policy_routes(self, fast_settings):
        def reverse(current, candidates, output, context):
            remaining = [c for c in candidates if c.id not in context.visited()]
            if not remaining:
                return Decision.stop("done")
            return remaining[-1].id

        orchestrator = make_orchestrator(
            settings=fast_settings,
            policies=DecisionPolicies(supervisor=policy_from_callable(reverse)),
        )
        orchestrator.register_workflow(
            make_definition("supervisor", ["boss", "a", "b", "c"], edges="none", exit_points=[])
        )

        result = await orchestrator.execute("test_workflow", "brief")

        assert_history_order(result, "c", "b", "a")
