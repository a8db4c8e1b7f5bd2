"""
Structured error types for the conductor engine.

Every error raised by conductor carries a category, an explicit retry flag,
structured context and an optional chained cause, so that callers can make
retry decisions and log failures without parsing messages.

Manifesto:
    - **Typed Error Hierarchy:** Different error types for different concerns
    - **Explicit Retry Semantics:** Each error knows if it's retryable
    - **Rich Context:** Errors carry workflow/node/execution metadata
    - **Error Chaining:** Preserve original exceptions while adding context

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────────┐
        │                      ConductorError                           │
        │  (category, retryable, retry_after, context, cause)          │
        ├──────────────────────────────────────────────────────────────┤
        │                                                               │
        │  ValidationError     ConfigError       TimeoutError           │
        │  (VALIDATION)        (CONFIG)          (TIMEOUT)              │
        │                                                               │
        │  OrchestrationError                                           │
        │  (ORCHESTRATION) ── subclasses live in                        │
        │                     conductor.orchestration.exceptions        │
        └──────────────────────────────────────────────────────────────┘

Examples:
    >>> error = ValidationError("Workflow must have at least one node", field="nodes")
    >>> error.retryable
    False
    >>> error.to_dict()["field"]
    'nodes'

    >>> try:
    ...     raise ConnectionError("upstream reset")
    ... except ConnectionError as e:
    ...     raise OrchestrationError("Node call failed", cause=e)
    Traceback (most recent call last):
    ...
    OrchestrationError: Node call failed

Tags:
    error-handling, exception-hierarchy, retry-logic, error-context, conductor

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

import builtins
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """
    Standard error categories for classification and routing.

    Categories group errors by their typical handling:
    - **Definition errors (never retryable):** VALIDATION, CONFIG
    - **Runtime errors:** ORCHESTRATION, NODE, TIMEOUT
    - **Internal errors:** INTERNAL, UNKNOWN
    """

    VALIDATION = "VALIDATION"       # Bad workflow definition
    CONFIG = "CONFIG"               # Missing or invalid settings
    ORCHESTRATION = "ORCHESTRATION"  # Dispatch, lookup, decision errors
    NODE = "NODE"                   # A single node's work failed
    TIMEOUT = "TIMEOUT"             # Node or workflow deadline exceeded
    INTERNAL = "INTERNAL"           # Bugs, unexpected state
    UNKNOWN = "UNKNOWN"             # Uncategorized errors


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Attributes:
        workflow_id: Workflow definition the error relates to
        execution_id: Execution the error occurred in
        node_id: Node being executed when the error occurred
        pattern: Orchestration pattern of the workflow
        metadata: Additional key-value pairs
    """

    workflow_id: str | None = None
    execution_id: str | None = None
    node_id: str | None = None
    pattern: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["workflow_id", "execution_id", "node_id", "pattern"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class ConductorError(Exception):
    """
    Base exception for all conductor errors.

    Subclasses set ``default_category`` and ``default_retryable`` to give
    sensible defaults for their domain; both can be overridden per instance.

    Attributes:
        message: Human-readable error message
        category: ErrorCategory for routing
        retryable: Whether the failed operation may be retried
        retry_after: Suggested delay in seconds before retrying
        context: ErrorContext with structured metadata
        cause: Underlying exception, also chained as ``__cause__``
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        retry_after: float | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.retry_after = retry_after
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> ConductorError:
        """
        Add context to this error (fluent API).

        Known fields (``workflow_id``, ``execution_id``, ``node_id``,
        ``pattern``) are set directly; anything else goes to ``metadata``.
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        if self.retry_after is not None:
            result["retry_after"] = self.retry_after
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# DEFINITION ERRORS (Never Retryable)
# =============================================================================


class ValidationError(ConductorError):
    """
    Definition validation error.

    Never retryable - the definition must be fixed.
    """

    default_category = ErrorCategory.VALIDATION
    default_retryable = False

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        constraint: str | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value
        self.constraint = constraint

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.field:
            result["field"] = self.field
        if self.value is not None:
            result["value"] = repr(self.value)
        if self.constraint:
            result["constraint"] = self.constraint
        return result


class ConfigError(ConductorError):
    """Configuration error (missing or invalid settings)."""

    default_category = ErrorCategory.CONFIG
    default_retryable = False


# =============================================================================
# RUNTIME ERRORS
# =============================================================================


class TimeoutError(ConductorError):  # noqa: A001
    """A node or workflow deadline was exceeded."""

    default_category = ErrorCategory.TIMEOUT
    default_retryable = False

    def __init__(self, message: str, *, timeout_seconds: float | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.timeout_seconds = timeout_seconds


class OrchestrationError(ConductorError):
    """Workflow dispatch, lookup, or traversal error."""

    default_category = ErrorCategory.ORCHESTRATION
    default_retryable = False


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def is_retryable(error: BaseException) -> bool:
    """Check if an error is retryable."""
    if isinstance(error, ConductorError):
        return error.retryable
    # Deadline expiry is never retried at the node level
    if isinstance(error, builtins.TimeoutError):
        return False
    return isinstance(error, (ConnectionError, OSError))


def categorize_error(error: BaseException) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, ConductorError):
        return error.category
    if isinstance(error, builtins.TimeoutError):
        return ErrorCategory.TIMEOUT
    if isinstance(error, ValueError):
        return ErrorCategory.VALIDATION
    if isinstance(error, KeyError):
        return ErrorCategory.CONFIG
    return ErrorCategory.UNKNOWN


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "ConductorError",
    "ValidationError",
    "ConfigError",
    "TimeoutError",
    "OrchestrationError",
    "is_retryable",
    "categorize_error",
]
