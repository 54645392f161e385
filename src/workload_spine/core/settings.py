"""
Settings for workload-spine.

:class:`WorkloadSettings` is the single validated source for the few
knobs the resolver has: the workspace root used for build-context
resolution, the defaults that fill unset sidecar ports and log-router
images, and logging configuration. Every field can be set through a
``WORKLOAD_SPINE_*`` environment variable.

Tags:
    configuration, settings, pydantic, caching

Doc-Types:
    api-reference
"""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SIDECAR_PORT = "80"
DEFAULT_FLUENTBIT_IMAGE = "amazon/aws-for-fluent-bit:latest"


class WorkloadSettings(BaseSettings):
    """Resolver configuration.

    Example::

        settings = WorkloadSettings(workspace_root="/ws")
        build_config(image, settings.workspace_root)
    """

    model_config = SettingsConfigDict(
        env_prefix="WORKLOAD_SPINE_",
        extra="ignore",
    )

    # ── Build ────────────────────────────────────────────────────
    workspace_root: str = Field(
        default=".",
        description="Root directory that build contexts and Dockerfiles are relative to",
    )

    # ── Template defaults ────────────────────────────────────────
    default_sidecar_port: str = Field(
        default=DEFAULT_SIDECAR_PORT,
        description="Port used for a sidecar that does not declare one",
    )
    fluentbit_image: str = Field(
        default=DEFAULT_FLUENTBIT_IMAGE,
        description="Log-router image used when logging.image is unset",
    )

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="console", description="json or console")
    service_name: str = Field(default="workload-spine")

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()

    @field_validator("log_format")
    @classmethod
    def _check_format(cls, value: str) -> str:
        if value not in ("json", "console"):
            raise ValueError(f"log_format must be 'json' or 'console', got {value!r}")
        return value


# ── Settings factory with caching ────────────────────────────────────────

_settings_cache: dict[str, WorkloadSettings] = {}


def get_settings(*, _force_reload: bool = False) -> WorkloadSettings:
    """Load, validate, and cache a :class:`WorkloadSettings` instance."""
    if not _force_reload and "default" in _settings_cache:
        return _settings_cache["default"]
    settings = WorkloadSettings()
    _settings_cache["default"] = settings
    return settings


def clear_settings_cache() -> None:
    """Clear the settings cache (primarily for testing)."""
    _settings_cache.clear()


__all__ = [
    "DEFAULT_FLUENTBIT_IMAGE",
    "DEFAULT_SIDECAR_PORT",
    "WorkloadSettings",
    "clear_settings_cache",
    "get_settings",
]
