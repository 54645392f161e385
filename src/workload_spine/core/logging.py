"""
Structured logging for workload-spine.

The resolution engine itself is silent: union decoding, merging and the
derived-value resolvers never log. Only the seams that face callers (the
document loader and the resolution facade) emit events, always at debug
level and always structured, through the logger from :func:`get_logger`.

Architecture:
    ::

        setup_logging(settings)  /  configure_logging(level=..., json_format=...)
              │
              ▼
        processor chain
          1. TimeStamper (iso, optional)
          2. merge_contextvars          ← workload_log_context(...)
          3. add_log_level
          4. _stamp_service
          5. _expand_manifest_error     ← error=ManifestError(...)
          6. _rename_for_ecs            (JSON only)
          7. JSONRenderer | ConsoleRenderer

Examples:
    >>> configure_logging(level="DEBUG", json_format=True)
    >>> with workload_log_context(workload="api", environment="prod"):
    ...     get_logger(__name__).debug("workload_resolved")

Tags:
    logging, structlog, json-logging
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from workload_spine.core.errors import ManifestError
from workload_spine.core.settings import get_settings

_service = "workload-spine"


def _stamp_service(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("service.name", _service)
    return event_dict


def _expand_manifest_error(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Serialize ``error=<ManifestError>`` into its structured form."""
    error = event_dict.get("error")
    if isinstance(error, ManifestError):
        event_dict["error"] = error.to_dict()
    return event_dict


_ECS_RENAMES = {"timestamp": "@timestamp", "level": "log.level", "logger_name": "log.logger"}


def _rename_for_ecs(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    for ours, ecs in _ECS_RENAMES.items():
        if ours in event_dict:
            event_dict[ecs] = event_dict.pop(ours)
    return event_dict


def _processors(json_format: bool, timestamps: bool) -> list[Processor]:
    chain: list[Processor] = []
    if timestamps:
        chain.append(structlog.processors.TimeStamper(fmt="iso"))
    chain += [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        _stamp_service,
        _expand_manifest_error,
    ]
    if json_format:
        chain += [_rename_for_ecs, structlog.processors.JSONRenderer()]
    else:
        chain.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))
    return chain


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "workload-spine",
    timestamps: bool = True,
) -> None:
    """Configure structlog for the process.

    Args:
        level: Minimum level name (DEBUG, INFO, WARNING, ERROR)
        json_format: JSON lines when True, console when False; ``None``
            picks JSON whenever stderr is not a terminal
        service: Value of the ``service.name`` field
        timestamps: Prefix events with an ISO timestamp
    """
    global _service
    _service = service

    if json_format is None:
        json_format = not sys.stderr.isatty()
    numeric_level = logging.getLevelName(level.upper())

    structlog.configure(
        processors=_processors(json_format, timestamps),
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def setup_logging(settings: Any = None) -> None:
    """Configure logging from :class:`~workload_spine.core.settings.WorkloadSettings`.

    Uses the cached settings when none are given.
    """
    if settings is None:
        settings = get_settings()
    configure_logging(
        level=settings.log_level,
        json_format=settings.log_format == "json",
        service=settings.service_name,
    )


def get_logger(name: str | None = None) -> Any:
    """Lazy structlog logger; *name* is carried as the ``logger_name`` field."""
    if name is None:
        return structlog.get_logger()
    return structlog.get_logger(logger_name=name)


@contextmanager
def workload_log_context(**fields: Any) -> Iterator[None]:
    """Attach *fields* to every event logged inside the block.

    Only non-``None`` values are bound.
    """
    bound = {key: value for key, value in fields.items() if value is not None}
    with structlog.contextvars.bound_contextvars(**bound):
        yield


__all__ = [
    "configure_logging",
    "get_logger",
    "setup_logging",
    "workload_log_context",
]
