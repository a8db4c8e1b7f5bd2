"""Tests for conductor.core.settings.

Covers:
- Defaults for pattern bounds and retry backoff
- CONDUCTOR_* environment overrides
- Field validation
- Cached accessor
"""

import pytest
from pydantic import ValidationError

from conductor.core.settings import ConductorSettings, clear_settings_cache, get_settings


class TestConductorSettingsDefaults:
    def test_pattern_bounds(self):
        s = ConductorSettings()
        assert s.max_supervisor_iterations == 10
        assert s.max_handoffs == 5
        assert s.adaptive_hop_factor == 2

    def test_retry_defaults(self):
        s = ConductorSettings()
        assert s.default_max_retries == 2
        assert s.retry_base_delay_seconds == 0.5
        assert s.retry_max_delay_seconds == 10.0
        assert s.retry_jitter is False

    def test_no_default_node_timeout(self):
        assert ConductorSettings().default_node_timeout_seconds is None


class TestConductorSettingsEnvOverride:
    def test_max_handoffs_from_env(self, monkeypatch):
        monkeypatch.setenv("CONDUCTOR_MAX_HANDOFFS", "3")
        assert ConductorSettings().max_handoffs == 3

    def test_node_timeout_from_env(self, monkeypatch):
        monkeypatch.setenv("CONDUCTOR_DEFAULT_NODE_TIMEOUT_SECONDS", "2.5")
        assert ConductorSettings().default_node_timeout_seconds == 2.5

    def test_unprefixed_env_is_ignored(self, monkeypatch):
        monkeypatch.setenv("MAX_HANDOFFS", "1")
        assert ConductorSettings().max_handoffs == 5


class TestConductorSettingsValidation:
    def test_iterations_must_be_positive(self):
        with pytest.raises(ValidationError):
            ConductorSettings(max_supervisor_iterations=0)

    def test_negative_retries_rejected(self):
        with pytest.raises(ValidationError):
            ConductorSettings(default_max_retries=-1)


class TestGetSettings:
    def test_cached(self):
        assert get_settings() is get_settings()

    def test_clear_cache_reloads(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("CONDUCTOR_MAX_HANDOFFS", "4")
        clear_settings_cache()
        second = get_settings()
        assert second is not first
        assert second.max_handoffs == 4
