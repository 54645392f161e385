"""
Environment override merge.

Combines a base config group with one environment's partial overlay and
returns a new, structurally independent config group. The merge is
written out field by field for each config group type so every per-field
policy is visible in one place.

Merge policy:
    ┌──────────────────────────────┬────────────────────────────────────────┐
    │ field                        │ policy                                 │
    ├──────────────────────────────┼────────────────────────────────────────┤
    │ scalars, lists               │ override when present in the overlay,  │
    │                              │ including an explicit empty value      │
    │ variables, secrets, sidecars │ whole-map override                     │
    │ logging, image.healthcheck,  │ wholesale override (never deep-merged) │
    │ subscribe                    │                                        │
    │ image, network, http, on     │ recurse field by field                 │
    │ count                        │ non-clearable: an empty overlay count  │
    │                              │ keeps the base count                   │
    │ image.labels, depends_on     │ per-key upsert                         │
    │ image.build + location       │ replaced together, only when the       │
    │                              │ overlay sets a build or a location     │
    └──────────────────────────────┴────────────────────────────────────────┘

"Present in the overlay" means the key appeared in the document, as
recorded by pydantic's ``model_fields_set``; a key that was left out
keeps the base value.

Invariants:
    - ``merge_config(base, None)`` deep-equals ``base`` (identity law)
    - Neither input is mutated
    - Nothing in the result aliases a map, list or model of either input,
      so one base can be resolved against several overlays, even from
      several threads

Tags:
    merge, override, environments, deep-copy
"""

from __future__ import annotations

import copy
from collections.abc import Callable
from typing import Any, TypeVar

from workload_spine.core.errors import MergeError
from workload_spine.manifest.models import (
    BackendServiceConfig,
    Image,
    ImageWithHealthcheck,
    ImageWithPortAndHealthcheck,
    JobTrigger,
    LoadBalancedWebServiceConfig,
    NetworkSpec,
    RoutingRule,
    ScheduledJobConfig,
    VpcSpec,
    WorkerServiceConfig,
    WorkloadConfig,
)
from workload_spine.manifest.unions import ManifestModel, is_empty_count

M = TypeVar("M", bound=ManifestModel)


def _pick(base: ManifestModel, overlay: ManifestModel, name: str) -> Any:
    """Overlay's value if the overlay carried *name*, else the base's."""
    source = overlay if name in overlay.model_fields_set else base
    return copy.deepcopy(getattr(source, name))


def _upsert(base: dict[str, str] | None, overlay: dict[str, str] | None) -> dict[str, str] | None:
    if not overlay:
        return dict(base) if base is not None else None
    merged = dict(base or {})
    merged.update(overlay)
    return merged


def _rebuild(base: M, fields: dict[str, Any]) -> M:
    return base.model_copy(update=fields, deep=True)


def _check_same_type(base: ManifestModel, overlay: ManifestModel, field: str) -> None:
    if type(base) is not type(overlay):
        raise MergeError(
            f"cannot merge {type(overlay).__name__} onto {type(base).__name__} at {field!r}",
            field=field,
        )


# ── Nested groups ────────────────────────────────────────────────────────


def _sets_image_source(overlay: Image) -> bool:
    return overlay.build is not None or overlay.location is not None


def merge_image(base: Image, overlay: Image) -> Image:
    """Merge two images of the same type.

    ``build`` and ``location`` move as one unit so the result can never
    pair a stale build with a fresh location.
    """
    _check_same_type(base, overlay, "image")
    source = overlay if _sets_image_source(overlay) else base
    fields: dict[str, Any] = {
        "build": copy.deepcopy(source.build),
        "location": source.location,
        "labels": _upsert(base.labels, overlay.labels),
        "depends_on": _upsert(base.depends_on, overlay.depends_on),
    }
    if isinstance(base, ImageWithHealthcheck):
        fields["healthcheck"] = _pick(base, overlay, "healthcheck")
    if isinstance(base, ImageWithPortAndHealthcheck):
        fields["port"] = _pick(base, overlay, "port")
    return _rebuild(base, fields)


def merge_count(base: Any, overlay: Any) -> Any:
    """An empty overlay count never clears the base count."""
    if is_empty_count(overlay):
        return copy.deepcopy(base)
    return copy.deepcopy(overlay)


def merge_vpc(base: VpcSpec, overlay: VpcSpec) -> VpcSpec:
    return _rebuild(
        base,
        {
            "placement": _pick(base, overlay, "placement"),
            "security_groups": _pick(base, overlay, "security_groups"),
        },
    )


def merge_network(base: NetworkSpec, overlay: NetworkSpec) -> NetworkSpec:
    if "vpc" not in overlay.model_fields_set:
        return copy.deepcopy(base)
    return _rebuild(base, {"vpc": merge_vpc(base.vpc, overlay.vpc)})


def merge_routing_rule(base: RoutingRule, overlay: RoutingRule) -> RoutingRule:
    return _rebuild(
        base,
        {
            "path": _pick(base, overlay, "path"),
            "healthcheck": _pick(base, overlay, "healthcheck"),
            "stickiness": _pick(base, overlay, "stickiness"),
            "target_container": _pick(base, overlay, "target_container"),
            "allowed_source_ips": _pick(base, overlay, "allowed_source_ips"),
            "deregistration_delay": _pick(base, overlay, "deregistration_delay"),
        },
    )


def merge_job_trigger(base: JobTrigger, overlay: JobTrigger) -> JobTrigger:
    return _rebuild(base, {"schedule": _pick(base, overlay, "schedule")})


def _merge_nested(
    base: M, overlay: M, name: str, merge: Callable[[Any, Any], Any]
) -> Any:
    """Recurse into an embedded group the overlay carried, else copy the base's."""
    if name not in overlay.model_fields_set:
        return copy.deepcopy(getattr(base, name))
    return merge(getattr(base, name), getattr(overlay, name))


# ── Config groups ────────────────────────────────────────────────────────


def _merge_workload_fields(base: WorkloadConfig, overlay: WorkloadConfig) -> dict[str, Any]:
    return {
        "image": _merge_nested(base, overlay, "image", merge_image),
        "entrypoint": _pick(base, overlay, "entrypoint"),
        "command": _pick(base, overlay, "command"),
        "cpu": _pick(base, overlay, "cpu"),
        "memory": _pick(base, overlay, "memory"),
        "count": merge_count(base.count, overlay.count),
        "execute_command": _pick(base, overlay, "execute_command"),
        "variables": _pick(base, overlay, "variables"),
        "secrets": _pick(base, overlay, "secrets"),
        "logging": _pick(base, overlay, "logging"),
        "sidecars": _pick(base, overlay, "sidecars"),
        "network": _merge_nested(base, overlay, "network", merge_network),
    }


def merge_web_service_config(
    base: LoadBalancedWebServiceConfig, overlay: LoadBalancedWebServiceConfig
) -> LoadBalancedWebServiceConfig:
    fields = _merge_workload_fields(base, overlay)
    fields["http"] = _merge_nested(base, overlay, "http", merge_routing_rule)
    return _rebuild(base, fields)


def merge_backend_service_config(
    base: BackendServiceConfig, overlay: BackendServiceConfig
) -> BackendServiceConfig:
    return _rebuild(base, _merge_workload_fields(base, overlay))


def merge_worker_service_config(
    base: WorkerServiceConfig, overlay: WorkerServiceConfig
) -> WorkerServiceConfig:
    fields = _merge_workload_fields(base, overlay)
    fields["subscribe"] = _pick(base, overlay, "subscribe")
    return _rebuild(base, fields)


def merge_scheduled_job_config(
    base: ScheduledJobConfig, overlay: ScheduledJobConfig
) -> ScheduledJobConfig:
    fields = _merge_workload_fields(base, overlay)
    fields["on"] = _merge_nested(base, overlay, "on", merge_job_trigger)
    fields["retries"] = _pick(base, overlay, "retries")
    fields["timeout"] = _pick(base, overlay, "timeout")
    return _rebuild(base, fields)


_MERGERS: dict[type[WorkloadConfig], Callable[[Any, Any], WorkloadConfig]] = {
    LoadBalancedWebServiceConfig: merge_web_service_config,
    BackendServiceConfig: merge_backend_service_config,
    WorkerServiceConfig: merge_worker_service_config,
    ScheduledJobConfig: merge_scheduled_job_config,
}


def merge_config(base: WorkloadConfig, overlay: WorkloadConfig | None) -> WorkloadConfig:
    """Apply *overlay* onto *base* and return a new config group.

    An absent overlay, or one that carried no keys, yields a deep copy of
    *base*.

    Raises:
        MergeError: If the overlay is a different config group type than
            the base.
    """
    if overlay is None or not overlay.model_fields_set:
        return copy.deepcopy(base)
    _check_same_type(base, overlay, "environments")
    merger = _MERGERS.get(type(base))
    if merger is None:
        raise MergeError(f"no merge defined for {type(base).__name__}")
    return merger(base, overlay)


__all__ = [
    "merge_config",
    "merge_count",
    "merge_image",
    "merge_network",
    "merge_routing_rule",
]
