"""Shared fixtures for orchestration tests."""

import pytest

from conductor.core.settings import ConductorSettings
from conductor.orchestration.execution_context import ExecutionContext
from conductor.orchestration.node_executor import NodeExecutionAdapter
from conductor.orchestration.testing import EchoNodeExecutor


@pytest.fixture
def context():
    """A fresh execution context with a string input."""
    return ExecutionContext.create("test_workflow", "brief", pattern="sequential")


@pytest.fixture
def echo_adapter(fast_settings: ConductorSettings) -> NodeExecutionAdapter:
    """Adapter around an echo executor; no backoff delay."""
    return NodeExecutionAdapter(EchoNodeExecutor(), settings=fast_settings)
