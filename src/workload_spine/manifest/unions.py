"""Scalar-or-structured fields and their ordered decoders.

Several document fields accept either a structured mapping or a bare
scalar. Each such field is a plain Python union whose members are the
accepted shapes, so the decoded value's type *is* its tag:

====================  ======================  ==================
field                 structured variant      scalar variant
====================  ======================  ==================
``image.build``       :class:`DockerBuildArgs`  ``str`` (Dockerfile path)
``exec``              :class:`ExecuteCommandConfig`  ``bool``
``count``             :class:`Autoscaling`    ``int`` (replicas)
``entrypoint``        ``list[str]``           ``str``
``command``           ``list[str]``           ``str``
``http.healthcheck``  :class:`HealthCheckArgs`  ``str`` (path)
====================  ======================  ==================

``None`` is the empty variant for every field.

Decoding always runs the same trial sequence (see :func:`decode_union`):

1. Structured decode. A non-empty result wins and the scalar is never
   consulted.
2. On a shape mismatch, or an empty structured result, scalar decode.
3. If the scalar decode fails too, :class:`UnionDecodeError` naming the
   field.

A value that is already a structured model (built in code rather than
read from a document) is kept as given, empty or not.

The order matters: a mapping that happens to satisfy the structured
shape never falls through to the scalar reading, and a bare string is
never forced into the structured one.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import timedelta
from typing import Annotated, Any, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from workload_spine.core.errors import InvariantViolation, UnionDecodeError
from workload_spine.manifest.types import parse_duration

Duration = Annotated[timedelta, BeforeValidator(parse_duration)]


class ManifestModel(BaseModel):
    """Base for every document model.

    Unknown keys are rejected. ``model_fields_set`` records which keys the
    document actually carried, which is how the merge engine tells "left
    alone" apart from "explicitly set to empty".
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True, coerce_numbers_to_str=True)

    def is_empty(self) -> bool:
        """True when every field is ``None``."""
        return all(getattr(self, name) is None for name in type(self).model_fields)


# ── Structured variants ──────────────────────────────────────────────────


class DockerBuildArgs(ManifestModel):
    """Compose-style ``build`` options."""

    context: str | None = None
    dockerfile: str | None = None
    args: dict[str, str] | None = None
    target: str | None = None
    cache_from: list[str] | None = None


class ExecuteCommandConfig(ManifestModel):
    enable: bool | None = None


class Autoscaling(ManifestModel):
    """Autoscaling policy: replica range plus scaling targets."""

    range: str | None = None
    cpu_percentage: int | None = None
    memory_percentage: int | None = None
    requests: int | None = None
    response_time: Duration | None = None

    def parsed_range(self) -> tuple[int, int] | None:
        """Return ``(min, max)`` from ``range: "min-max"``.

        Raises:
            InvariantViolation: If the range is not two integers with
                ``min <= max``.
        """
        if self.range is None:
            return None
        parts = self.range.split("-")
        if len(parts) != 2:
            raise InvariantViolation(
                f"invalid range value {self.range!r}: must be of the form 'min-max'",
                field="count.range",
                value=self.range,
            )
        try:
            low, high = int(parts[0].strip()), int(parts[1].strip())
        except ValueError as exc:
            raise InvariantViolation(
                f"invalid range value {self.range!r}: bounds must be integers",
                field="count.range",
                value=self.range,
                cause=exc,
            ) from exc
        if low > high:
            raise InvariantViolation(
                f"invalid range value {self.range!r}: min is greater than max",
                field="count.range",
                value=self.range,
            )
        return low, high


class HealthCheckArgs(ManifestModel):
    """Target-group health check options."""

    path: str | None = None
    success_codes: str | None = None
    healthy_threshold: int | None = None
    unhealthy_threshold: int | None = None
    interval: Duration | None = None
    timeout: Duration | None = None


# ── Decoding ─────────────────────────────────────────────────────────────


class ShapeMismatch(TypeError):
    """The raw value has the wrong shape for a variant."""


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, ManifestModel):
        return value.is_empty()
    if isinstance(value, (list, str)):
        return len(value) == 0
    return False


def decode_union(
    field: str,
    raw: Any,
    structured: Callable[[Any], Any],
    scalar: Callable[[Any], Any],
) -> Any:
    """Run the structured-then-scalar trial for one union field.

    ``structured`` and ``scalar`` raise :class:`ShapeMismatch` (or a
    pydantic validation error) when *raw* has the wrong shape; any other
    exception propagates untouched.

    Raises:
        UnionDecodeError: If neither variant accepts *raw*.
    """
    if raw is None:
        return None

    try:
        value = structured(raw)
    except (ShapeMismatch, PydanticValidationError):
        pass
    else:
        # An already-built model is kept as is, empty or not.
        if isinstance(raw, ManifestModel) or not _is_empty(value):
            return value

    try:
        return scalar(raw)
    except (ShapeMismatch, PydanticValidationError) as exc:
        raise UnionDecodeError(
            f"cannot decode field {field!r}: {raw!r} matches none of its accepted shapes",
            field=field,
            value=raw,
            cause=exc,
        ) from exc


def _model_decoder(model: type[ManifestModel]) -> Callable[[Any], ManifestModel]:
    def decode(raw: Any) -> ManifestModel:
        if isinstance(raw, model):
            return raw
        if not isinstance(raw, Mapping):
            raise ShapeMismatch(f"expected a mapping for {model.__name__}, got {type(raw).__name__}")
        return model.model_validate(dict(raw))

    return decode


def _scalar_decoder(*types: type, exclude: tuple[type, ...] = ()) -> Callable[[Any], Any]:
    def decode(raw: Any) -> Any:
        if isinstance(raw, exclude) or not isinstance(raw, types):
            names = "/".join(t.__name__ for t in types)
            raise ShapeMismatch(f"expected {names}, got {type(raw).__name__}")
        return raw

    return decode


_string_list = TypeAdapter(list[str])


def _string_list_decoder(raw: Any) -> list[str]:
    if isinstance(raw, (str, bytes, Mapping)):
        raise ShapeMismatch(f"expected a list of strings, got {type(raw).__name__}")
    return list(_string_list.validate_python(raw))


def decode_build(raw: Any) -> DockerBuildArgs | str | None:
    return decode_union("image.build", raw, _model_decoder(DockerBuildArgs), _scalar_decoder(str))


def decode_execute_command(raw: Any) -> ExecuteCommandConfig | bool | None:
    return decode_union("exec", raw, _model_decoder(ExecuteCommandConfig), _scalar_decoder(bool))


def decode_count(raw: Any) -> Autoscaling | int | None:
    return decode_union("count", raw, _model_decoder(Autoscaling), _scalar_decoder(int, exclude=(bool,)))


def decode_command(raw: Any) -> list[str] | str | None:
    return decode_union("command", raw, _string_list_decoder, _scalar_decoder(str))


def decode_entrypoint(raw: Any) -> list[str] | str | None:
    return decode_union("entrypoint", raw, _string_list_decoder, _scalar_decoder(str))


def decode_http_health_check(raw: Any) -> HealthCheckArgs | str | None:
    return decode_union("http.healthcheck", raw, _model_decoder(HealthCheckArgs), _scalar_decoder(str))


BuildArgsOrString = Annotated[Union[DockerBuildArgs, str, None], BeforeValidator(decode_build)]
ExecuteCommand = Annotated[Union[ExecuteCommandConfig, bool, None], BeforeValidator(decode_execute_command)]
Count = Annotated[Union[Autoscaling, int, None], BeforeValidator(decode_count)]
CommandOverride = Annotated[Union[list[str], str, None], BeforeValidator(decode_command)]
EntryPointOverride = Annotated[Union[list[str], str, None], BeforeValidator(decode_entrypoint)]
HealthCheckArgsOrString = Annotated[
    Union[HealthCheckArgs, str, None], BeforeValidator(decode_http_health_check)
]


def is_empty_build(build: DockerBuildArgs | str | None) -> bool:
    """True when *build* names neither a Dockerfile nor any build option."""
    return _is_empty(build)


def is_empty_count(count: Autoscaling | int | None) -> bool:
    return _is_empty(count)


def execute_command_enabled(value: ExecuteCommandConfig | bool | None) -> bool:
    if isinstance(value, ExecuteCommandConfig):
        return bool(value.enable)
    return bool(value)


__all__ = [
    "Autoscaling",
    "BuildArgsOrString",
    "CommandOverride",
    "Count",
    "DockerBuildArgs",
    "Duration",
    "EntryPointOverride",
    "ExecuteCommand",
    "ExecuteCommandConfig",
    "HealthCheckArgs",
    "HealthCheckArgsOrString",
    "ManifestModel",
    "ShapeMismatch",
    "decode_build",
    "decode_command",
    "decode_count",
    "decode_entrypoint",
    "decode_execute_command",
    "decode_http_health_check",
    "decode_union",
    "execute_command_enabled",
    "is_empty_build",
    "is_empty_count",
]
