"""Centralized settings for the conductor engine.

Manifesto:
    Loop bounds, deadlines and retry backoff are operational knobs, not
    code. ``ConductorSettings`` resolves them once from ``CONDUCTOR_*``
    environment variables and ``.env`` files, validates them, and caches
    the result.

Fields
──────
log_level                      : Structlog log level
log_format                     : ``json`` or ``console``
max_supervisor_iterations      : Decision-loop bound for the supervisor pattern
max_handoffs                   : Maximum length of a handoff chain
adaptive_hop_factor            : Adaptive-network hop budget = factor × |nodes|
default_node_timeout_seconds   : Node deadline when a node declares none
default_max_retries            : Retries per node in ``retry`` error handling
retry_base_delay_seconds       : First backoff delay
retry_max_delay_seconds        : Backoff cap

Examples:
    >>> from conductor.core.settings import get_settings
    >>> get_settings().max_supervisor_iterations
    10

Tags:
    settings, configuration, pydantic, environment, conductor
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConductorSettings(BaseSettings):
    """Conductor configuration.

    All fields can be set via ``CONDUCTOR_*`` environment variables (e.g.
    ``CONDUCTOR_MAX_HANDOFFS=3``) or through a ``.env`` file.
    """

    model_config = SettingsConfigDict(
        env_prefix="CONDUCTOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json", description="json or console")

    # ── Pattern bounds ───────────────────────────────────────────
    max_supervisor_iterations: int = Field(default=10, ge=1)
    max_handoffs: int = Field(default=5, ge=1)
    adaptive_hop_factor: int = Field(default=2, ge=1)

    # ── Deadlines ────────────────────────────────────────────────
    default_node_timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Applied to nodes that declare no timeout; None disables",
    )

    # ── Retry ────────────────────────────────────────────────────
    default_max_retries: int = Field(default=2, ge=0)
    retry_base_delay_seconds: float = Field(default=0.5, ge=0)
    retry_max_delay_seconds: float = Field(default=10.0, ge=0)
    retry_jitter: bool = Field(default=False)


@lru_cache(maxsize=1)
def get_settings() -> ConductorSettings:
    """Return the cached settings singleton."""
    return ConductorSettings()


def clear_settings_cache() -> None:
    """Drop the cached settings (tests, reconfiguration)."""
    get_settings.cache_clear()
