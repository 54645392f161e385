"""Workload documents and environment resolution.

Lifecycle::

    Parsed ──► DefaultsApplied ──► Resolved(env=E)
    (loader)   (WorkloadDocument)  (ResolvedWorkload, terminal)

A :class:`WorkloadDocument` holds the top-level config already merged
onto its kind's baseline, plus the raw per-environment overlays.
:func:`resolve` merges one overlay onto that config and returns a
:class:`ResolvedWorkload`. Resolved values have no ``environments``
member, so a resolved value cannot be resolved a second time. Several
environments can be resolved from the same document, concurrently if
need be; the document is never modified.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from workload_spine.core.errors import ManifestError
from workload_spine.core.logging import get_logger, workload_log_context
from workload_spine.manifest.build import BuildConfig, build_config
from workload_spine.manifest.defaults import WorkloadProps, new_config
from workload_spine.manifest.merge import merge_config
from workload_spine.manifest.models import WorkloadConfig
from workload_spine.manifest.opts import WorkloadOpts, workload_opts
from workload_spine.manifest.types import WorkloadType

logger = get_logger(__name__)


@dataclass(frozen=True)
class WorkloadDocument:
    """A parsed workload with defaults applied and overlays pending."""

    name: str
    type: WorkloadType
    config: WorkloadConfig
    environments: Mapping[str, WorkloadConfig | None] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "environments", MappingProxyType(dict(self.environments)))

    def build_required(self) -> bool:
        return self.config.image.build_required()

    def environment_names(self) -> list[str]:
        return sorted(self.environments)


@dataclass(frozen=True)
class ResolvedWorkload:
    """Final configuration of one workload in one environment."""

    name: str
    type: WorkloadType
    environment: str
    config: WorkloadConfig

    def build_required(self) -> bool:
        return self.config.image.build_required()

    def build_config(self, root_directory: str | None = None) -> BuildConfig:
        return build_config(self.config.image, root_directory)

    def template_opts(self, root_directory: str | None = None) -> WorkloadOpts:
        return workload_opts(self.config, root_directory)


def new_workload(kind: WorkloadType, props: WorkloadProps) -> WorkloadDocument:
    """Create a document for *kind* from caller-supplied props."""
    return WorkloadDocument(name=props.name, type=kind, config=new_config(kind, props))


def resolve(document: WorkloadDocument, environment: str) -> ResolvedWorkload:
    """Apply the overlay registered for *environment* onto *document*.

    An environment with no overlay (or an empty one) resolves to a copy
    of the document's config.

    Raises:
        MergeError: If the overlay cannot be reconciled with the base.
        InvariantViolation: If the resolved config breaks an invariant.
    """
    overlay = document.environments.get(environment)
    with workload_log_context(workload=document.name, environment=environment):
        try:
            config = merge_config(document.config, overlay)
            config.validate_invariants()
        except ManifestError as exc:
            exc.with_context(
                workload=document.name,
                workload_type=document.type.value,
                environment=environment,
            )
            raise
        logger.debug("workload_resolved", overlay=overlay is not None)
    return ResolvedWorkload(
        name=document.name,
        type=document.type,
        environment=environment,
        config=config,
    )


def resolve_all(document: WorkloadDocument) -> dict[str, ResolvedWorkload]:
    """Resolve every environment the document declares."""
    return {env: resolve(document, env) for env in document.environment_names()}


def base_config(document: WorkloadDocument) -> WorkloadConfig:
    """Independent copy of the document's pre-overlay config."""
    return copy.deepcopy(document.config)


__all__ = [
    "ResolvedWorkload",
    "WorkloadDocument",
    "base_config",
    "new_workload",
    "resolve",
    "resolve_all",
]
