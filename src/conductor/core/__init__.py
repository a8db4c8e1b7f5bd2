"""Conductor Core -- errors, logging and settings shared by the engine.

Architecture::

    errors.py      Structured error hierarchy (ConductorError, ValidationError, ...)
    logging.py     structlog configuration + LogContext
    settings.py    ConductorSettings (pydantic-settings, cached)
"""

from conductor.core.errors import (
    ConductorError,
    ConfigError,
    ErrorCategory,
    ErrorContext,
    OrchestrationError,
    TimeoutError,
    ValidationError,
    categorize_error,
    is_retryable,
)
from conductor.core.logging import LogContext, configure_logging, get_logger
from conductor.core.settings import ConductorSettings, clear_settings_cache, get_settings

__all__ = [
    "ConductorError",
    "ConfigError",
    "ErrorCategory",
    "ErrorContext",
    "OrchestrationError",
    "TimeoutError",
    "ValidationError",
    "categorize_error",
    "is_retryable",
    "LogContext",
    "configure_logging",
    "get_logger",
    "ConductorSettings",
    "clear_settings_cache",
    "get_settings",
]
