"""Cross-cutting concerns for workload-spine: errors, logging, settings."""

from workload_spine.core.errors import (
    ErrorCategory,
    ErrorContext,
    InvariantViolation,
    ManifestError,
    MergeError,
    SchemaError,
    UnionDecodeError,
)
from workload_spine.core.logging import configure_logging, get_logger, setup_logging
from workload_spine.core.settings import WorkloadSettings, get_settings

__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "InvariantViolation",
    "ManifestError",
    "MergeError",
    "SchemaError",
    "UnionDecodeError",
    "WorkloadSettings",
    "configure_logging",
    "get_logger",
    "get_settings",
    "setup_logging",
]
