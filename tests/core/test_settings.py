"""Tests for workload_spine.core.settings — WorkloadSettings + get_settings."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from workload_spine.core.settings import (
    DEFAULT_FLUENTBIT_IMAGE,
    WorkloadSettings,
    get_settings,
)


# ── Defaults ─────────────────────────────────────────────────────────────


class TestDefaults:
    def test_workspace_root(self):
        assert WorkloadSettings().workspace_root == "."

    def test_sidecar_port(self):
        assert WorkloadSettings().default_sidecar_port == "80"

    def test_fluentbit_image(self):
        assert WorkloadSettings().fluentbit_image == DEFAULT_FLUENTBIT_IMAGE == "amazon/aws-for-fluent-bit:latest"

    def test_logging(self):
        s = WorkloadSettings()
        assert s.log_level == "INFO"
        assert s.log_format == "console"


# ── Environment variables ────────────────────────────────────────────────


class TestEnvironment:
    def test_prefix(self, monkeypatch):
        monkeypatch.setenv("WORKLOAD_SPINE_WORKSPACE_ROOT", "/ws")
        monkeypatch.setenv("WORKLOAD_SPINE_DEFAULT_SIDECAR_PORT", "8080")
        s = WorkloadSettings()
        assert s.workspace_root == "/ws"
        assert s.default_sidecar_port == "8080"

    def test_log_level_upper_cased(self, monkeypatch):
        monkeypatch.setenv("WORKLOAD_SPINE_LOG_LEVEL", "debug")
        assert WorkloadSettings().log_level == "DEBUG"

    def test_invalid_log_format(self, monkeypatch):
        monkeypatch.setenv("WORKLOAD_SPINE_LOG_FORMAT", "xml")
        with pytest.raises(ValidationError):
            WorkloadSettings()

    def test_unrelated_variables_ignored(self, monkeypatch):
        monkeypatch.setenv("WORKLOAD_SPINE_SOMETHING_ELSE", "1")
        WorkloadSettings()


# ── Caching ──────────────────────────────────────────────────────────────


class TestGetSettings:
    def test_cached(self):
        assert get_settings() is get_settings()

    def test_force_reload(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("WORKLOAD_SPINE_WORKSPACE_ROOT", "/other")
        assert get_settings().workspace_root == first.workspace_root
        reloaded = get_settings(_force_reload=True)
        assert reloaded is not first
        assert reloaded.workspace_root == "/other"
