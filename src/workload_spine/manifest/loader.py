"""
Workload document loading.

Turns document text (or an already-parsed mapping) into a
:class:`~workload_spine.manifest.workload.WorkloadDocument`:

1. Parse YAML with ``yaml.safe_load``.
2. Read ``name`` and ``type``; the type selects the config group model.
3. Validate the remaining top-level keys into that model. Union fields
   are decoded here by :mod:`workload_spine.manifest.unions`.
4. Merge the result onto the kind's baseline.
5. Backfill a user-specified container health check with the default
   one, field by field.
6. Validate every ``environments`` entry into a partial config group.

Document shape::

    name: api
    type: Backend Service
    image:
      build: api/Dockerfile
      port: 8080
    cpu: 256
    memory: 512
    count: 1
    environments:
      prod:
        count:
          range: 2-10
          cpu_percentage: 70

The loader reads no files: callers hand it text.

Tags:
    yaml, loader, parsing, manifest
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from workload_spine.core.errors import ManifestError, SchemaError
from workload_spine.core.logging import get_logger, workload_log_context
from workload_spine.manifest.defaults import default_config
from workload_spine.manifest.healthcheck import apply_if_not_set, default_container_health_check
from workload_spine.manifest.merge import merge_config
from workload_spine.manifest.models import ImageWithHealthcheck, WorkloadConfig, config_type
from workload_spine.manifest.types import WorkloadType
from workload_spine.manifest.workload import WorkloadDocument

logger = get_logger(__name__)

_RESERVED_KEYS = ("name", "type", "environments")


def _format_validation_error(exc: PydanticValidationError) -> str:
    parts = []
    for err in exc.errors():
        location = ".".join(str(p) for p in err["loc"]) or "<root>"
        parts.append(f"{location}: {err['msg']}")
    return "; ".join(parts)


def _normalize_keys(data: Mapping[Any, Any]) -> dict[str, Any]:
    """YAML 1.1 reads a bare ``on:`` key as boolean ``True``; map it back."""
    normalized: dict[str, Any] = {}
    for key, value in data.items():
        if key is True:
            key = "on"
        elif key is False:
            key = "off"
        normalized[key] = value
    return normalized


def _validate_group(
    model: type[WorkloadConfig], data: Mapping[Any, Any], where: str
) -> WorkloadConfig:
    try:
        return model.model_validate(_normalize_keys(data))
    except PydanticValidationError as exc:
        raise SchemaError(
            f"unmarshal {where}: {_format_validation_error(exc)}",
            cause=exc,
        ) from exc


def _parse_type(raw: Any) -> WorkloadType:
    if not isinstance(raw, str) or not raw:
        raise SchemaError('workload document must declare a "type"', field="type", value=raw)
    try:
        return WorkloadType.parse(raw)
    except ValueError as exc:
        raise SchemaError(
            f"invalid manifest type {raw!r}: must be one of "
            + ", ".join(repr(t.value) for t in WorkloadType),
            field="type",
            value=raw,
            cause=exc,
        ) from exc


def load_workload_mapping(data: Any) -> WorkloadDocument:
    """Build a :class:`WorkloadDocument` from an already-parsed mapping.

    Raises:
        SchemaError: If the document does not fit the base shape.
        UnionDecodeError: If a union field matches none of its shapes.
    """
    if not isinstance(data, Mapping):
        raise SchemaError(
            f"workload document must be a mapping, got {type(data).__name__}",
            value=data,
        )

    kind = _parse_type(data.get("type"))
    name = data.get("name")
    if not isinstance(name, str) or not name:
        raise SchemaError('workload document must declare a "name"', field="name", value=name)

    with workload_log_context(workload=name, workload_type=kind.value):
        try:
            return _load(name, kind, data)
        except ManifestError as exc:
            exc.with_context(workload=name, workload_type=kind.value)
            raise


def _load(name: str, kind: WorkloadType, data: Mapping[Any, Any]) -> WorkloadDocument:
    model = config_type(kind)
    top_level = {k: v for k, v in data.items() if k not in _RESERVED_KEYS}
    parsed = _validate_group(model, top_level, kind.value.lower())

    config = merge_config(default_config(kind), parsed)
    image = config.image
    if kind.is_service and isinstance(image, ImageWithHealthcheck) and image.healthcheck is not None:
        healthcheck = apply_if_not_set(image.healthcheck, default_container_health_check())
        config = config.model_copy(
            update={"image": image.model_copy(update={"healthcheck": healthcheck})}
        )

    raw_envs = data.get("environments")
    if raw_envs is None:
        raw_envs = {}
    if not isinstance(raw_envs, Mapping):
        raise SchemaError(
            f'"environments" must be a mapping, got {type(raw_envs).__name__}',
            field="environments",
            value=raw_envs,
        )

    environments: dict[str, WorkloadConfig | None] = {}
    for env_name, overlay in raw_envs.items():
        if overlay is None:
            environments[str(env_name)] = None
            continue
        if not isinstance(overlay, Mapping):
            raise SchemaError(
                f"environment {env_name!r} must be a mapping, got {type(overlay).__name__}",
                field=f"environments.{env_name}",
                value=overlay,
            )
        try:
            environments[str(env_name)] = _validate_group(model, overlay, f"environment {env_name}")
        except ManifestError as exc:
            exc.with_context(environment=str(env_name))
            raise

    logger.debug("workload_parsed", environments=sorted(environments))
    return WorkloadDocument(name=name, type=kind, config=config, environments=environments)


def load_workload(text: str | bytes) -> WorkloadDocument:
    """Parse workload document text.

    Raises:
        SchemaError: If the text is not YAML, or does not fit the base
            shape, or declares an unknown workload type.
        UnionDecodeError: If a union field matches none of its shapes.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise SchemaError(f"unmarshal to workload manifest: {exc}", cause=exc) from exc
    return load_workload_mapping(data)


__all__ = [
    "load_workload",
    "load_workload_mapping",
]
