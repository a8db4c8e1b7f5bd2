"""Pattern executors, one module per orchestration pattern.

Importing this package registers all built-in patterns.
"""

from conductor.orchestration.patterns.base import (
    PatternExecutor,
    get_pattern_executor,
    list_patterns,
    register_pattern,
    unregister_pattern,
)
from conductor.orchestration.patterns.sequential import SequentialExecutor
from conductor.orchestration.patterns.concurrent import ConcurrentExecutor
from conductor.orchestration.patterns.supervisor import SupervisorExecutor
from conductor.orchestration.patterns.adaptive import AdaptiveNetworkExecutor
from conductor.orchestration.patterns.handoff import HandoffExecutor
from conductor.orchestration.patterns.custom import CustomDagExecutor

__all__ = [
    "PatternExecutor",
    "get_pattern_executor",
    "list_patterns",
    "register_pattern",
    "unregister_pattern",
    "SequentialExecutor",
    "ConcurrentExecutor",
    "SupervisorExecutor",
    "AdaptiveNetworkExecutor",
    "HandoffExecutor",
    "CustomDagExecutor",
]
