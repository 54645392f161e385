"""
Workload-spine - workload definition resolution.

Turns a declarative workload document (one service or job plus its
per-environment overrides) into fully-resolved configuration:

- workload_spine.core: errors, structured logging, settings
- workload_spine.manifest: schema model, union decoding, defaults,
  override merge, build-context and health-check resolution
"""

__version__ = "0.1.0"

from workload_spine.core.errors import (
    InvariantViolation,
    ManifestError,
    MergeError,
    SchemaError,
    UnionDecodeError,
)
from workload_spine.manifest import (
    ResolvedWorkload,
    WorkloadDocument,
    WorkloadType,
    load_workload,
    resolve,
    resolve_all,
)

__all__ = [
    "__version__",
    "InvariantViolation",
    "ManifestError",
    "MergeError",
    "ResolvedWorkload",
    "SchemaError",
    "UnionDecodeError",
    "WorkloadDocument",
    "WorkloadType",
    "load_workload",
    "resolve",
    "resolve_all",
]
