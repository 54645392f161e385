"""
Error types raised while parsing, merging and resolving workload documents.

The pipeline is deterministic, so every failure is terminal: the same
input fails the same way, nothing is retried and no partial result is
returned. Each error names the offending field and value, carries the
workload and environment it was raised for, and chains the exception
that triggered it.

Architecture:
    ::

        ManifestError                 category   raised by
        ├── SchemaError               PARSE      loader (YAML, shape, type)
        ├── UnionDecodeError          PARSE      union decoders
        ├── InvariantViolation        VALIDATION finalized configs
        └── MergeError                CONFIG     override merge

    The loader and :func:`~workload_spine.manifest.workload.resolve` add
    the workload/environment via :meth:`ManifestError.with_context` on
    the way out, so errors raised deep in the engine still say where they
    came from::

        api[prod]: cannot parse port mapping from 2000/udp/extra

Examples:
    >>> err = UnionDecodeError("cannot decode", field="count", value=[1])
    >>> err.with_context(workload="api").to_dict()["context"]
    {'workload': 'api'}

Tags:
    error-handling, exception-hierarchy, manifest
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    PARSE = "PARSE"  # document text or field shape
    VALIDATION = "VALIDATION"  # invariant broken on a finalized value
    CONFIG = "CONFIG"  # base/overlay reconciliation
    INTERNAL = "INTERNAL"
    UNKNOWN = "UNKNOWN"


_CONTEXT_FIELDS = ("workload", "workload_type", "environment")


@dataclass
class ErrorContext:
    """Where an error was raised. Unknown keys land in ``metadata``."""

    workload: str | None = None
    workload_type: str | None = None
    environment: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def describe(self) -> str:
        """``api[prod]``, ``api`` or ``""`` depending on what is known."""
        if self.workload is None:
            return ""
        if self.environment is None:
            return self.workload
        return f"{self.workload}[{self.environment}]"

    def to_dict(self) -> dict[str, Any]:
        known = {name: getattr(self, name) for name in _CONTEXT_FIELDS}
        return {**{k: v for k, v in known.items() if v is not None}, **self.metadata}


class ManifestError(Exception):
    """Base class for every workload-spine error.

    Args:
        message: Human-readable description
        field: Dotted path of the offending document field
        value: The offending value
        category: Overrides the subclass's ``default_category``
        context: Workload/environment the error belongs to
        cause: The exception that triggered this one; also set as
            ``__cause__``
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    retryable = False

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.field = field
        self.value = value
        self.category = category if category is not None else self.default_category
        self.context = context if context is not None else ErrorContext()
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        where = self.context.describe()
        return f"{where}: {self.message}" if where else self.message

    def __repr__(self) -> str:
        return f"{type(self).__name__}(message={self.message!r}, field={self.field!r})"

    def with_context(self, **fields: Any) -> ManifestError:
        """Record where the error happened and return ``self``.

        ``workload``, ``workload_type`` and ``environment`` fill the
        matching :class:`ErrorContext` attributes; anything else goes to
        ``metadata``.
        """
        for key, value in fields.items():
            if key in _CONTEXT_FIELDS:
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Structured form for logs; unset optional parts are omitted."""
        data: dict[str, Any] = {
            "error_type": type(self).__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        optional = {
            "field": self.field,
            "value": None if self.value is None else repr(self.value),
            "context": self.context.to_dict(),
            "cause": None if self.cause is None else str(self.cause),
        }
        data.update({key: value for key, value in optional.items() if value})
        return data


class SchemaError(ManifestError):
    """The document does not parse into the base workload shape.

    Malformed YAML, a non-mapping root, a missing or unrecognized
    ``type``, and any field that fails type validation.
    """

    default_category = ErrorCategory.PARSE


class UnionDecodeError(ManifestError):
    """A scalar-or-structured field matched none of its accepted shapes."""

    default_category = ErrorCategory.PARSE


class InvariantViolation(ManifestError):
    """An exclusivity or format rule is broken on a finalized value.

    Examples: an image with both ``build`` and ``location`` (or neither),
    a sidecar port such as ``"2000/udp/extra"``, an autoscaling range
    that is not ``min-max``.
    """

    default_category = ErrorCategory.VALIDATION


class MergeError(ManifestError):
    default_category = ErrorCategory.CONFIG


def categorize_error(error: Exception) -> ErrorCategory:
    if isinstance(error, ManifestError):
        return error.category
    if isinstance(error, (ValueError, TypeError)):
        return ErrorCategory.VALIDATION
    return ErrorCategory.UNKNOWN


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "InvariantViolation",
    "ManifestError",
    "MergeError",
    "SchemaError",
    "UnionDecodeError",
    "categorize_error",
]
