"""
Shared pytest fixtures and configuration for conductor tests.

This module provides:
- Settings isolation (cached settings are cleared around every test)
- Fast settings (zero retry delay) and an orchestrator wired to an echo executor
- Sample workflow definitions for each pattern

Usage:
    Fixtures are auto-discovered by pytest. Use them as function arguments.

    @pytest.mark.asyncio
    async def test_something(orchestrator, linear_definition):
        orchestrator.register_workflow(linear_definition)
        ...
"""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path

import pytest

from conductor.core.settings import ConductorSettings, clear_settings_cache
from conductor.orchestration import (
    AgentNode,
    OrchestrationPattern,
    Orchestrator,
    WorkflowDefinition,
)
from conductor.orchestration.testing import EchoNodeExecutor, make_definition


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    root = Path(__file__).parent
    for item in items:
        test_path = Path(item.path).relative_to(root)
        if "integration" in str(test_path) or "orchestrator" in test_path.name:
            item.add_marker(pytest.mark.integration)
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration", "slow"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Settings Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def clean_settings_cache() -> Generator[None, None, None]:
    """Clear cached settings before and after each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def fast_settings() -> ConductorSettings:
    """Settings with zero retry backoff so retry tests do not sleep."""
    return ConductorSettings(retry_base_delay_seconds=0.0, retry_max_delay_seconds=0.0)


# =============================================================================
# Executors and Orchestrators
# =============================================================================


@pytest.fixture
def echo_executor() -> EchoNodeExecutor:
    return EchoNodeExecutor(tokens_per_call=10, cost_per_call=0.001)


@pytest.fixture
def orchestrator(echo_executor: EchoNodeExecutor, fast_settings: ConductorSettings) -> Orchestrator:
    return Orchestrator(echo_executor, settings=fast_settings)


# =============================================================================
# Sample Workflow Fixtures
# =============================================================================


@pytest.fixture
def linear_definition() -> WorkflowDefinition:
    """Sequential pipeline: research -> writer -> editor."""
    return make_definition(
        OrchestrationPattern.SEQUENTIAL,
        ["research", "writer", "editor"],
        workflow_id="linear",
    )


@pytest.fixture
def diamond_definition() -> WorkflowDefinition:
    """
    Custom DAG with a diamond dependency:
        a
       / \\
      b   c
       \\ /
        d
    """
    return make_definition(
        OrchestrationPattern.CUSTOM,
        ["a", "b", "c", "d"],
        workflow_id="diamond",
        edges=[("a", "b"), ("a", "c"), ("b", "d"), ("c", "d")],
        exit_points=["d"],
    )


@pytest.fixture
def handoff_nodes() -> list[AgentNode]:
    return [
        AgentNode("triage", "Triage Agent", "support", ("intake",)),
        AgentNode("billing", "Billing Agent", "support", ("billing",)),
        AgentNode("tech", "Tech Agent", "support", ("debugging",)),
    ]
