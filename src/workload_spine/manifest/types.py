"""Workload kinds, placement enums, and the duration grammar used in documents."""

from __future__ import annotations

import re
from datetime import timedelta
from enum import Enum
from typing import Any

DOCKERFILE_DEFAULT_NAME = "Dockerfile"
DEFAULT_HEALTH_CHECK_PATH = "/"
NO_EXPOSED_CONTAINER_PORT = "-1"


class WorkloadType(str, Enum):
    """Kind of deployable unit. Values are the spellings used in documents."""

    LOAD_BALANCED_WEB_SERVICE = "Load Balanced Web Service"
    BACKEND_SERVICE = "Backend Service"
    WORKER_SERVICE = "Worker Service"
    SCHEDULED_JOB = "Scheduled Job"

    @classmethod
    def parse(cls, value: str) -> WorkloadType:
        """Look up a kind by document spelling or short alias.

        Raises:
            ValueError: If *value* names no known kind.
        """
        key = value.strip()
        for member in cls:
            if member.value == key:
                return member
        alias = _ALIASES.get(key.lower())
        if alias is None:
            raise ValueError(f"invalid workload type {value!r}")
        return alias

    @property
    def is_service(self) -> bool:
        return self is not WorkloadType.SCHEDULED_JOB


_ALIASES = {
    "web-service": WorkloadType.LOAD_BALANCED_WEB_SERVICE,
    "load-balanced-web-service": WorkloadType.LOAD_BALANCED_WEB_SERVICE,
    "backend-service": WorkloadType.BACKEND_SERVICE,
    "worker-service": WorkloadType.WORKER_SERVICE,
    "scheduled-job": WorkloadType.SCHEDULED_JOB,
}


class SubnetPlacement(str, Enum):
    """Subnets the tasks are placed in."""

    PUBLIC = "public"
    PRIVATE = "private"


# ── Durations ────────────────────────────────────────────────────────────

_UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_DURATION_RE = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")


def parse_duration(value: Any) -> timedelta:
    """Parse ``"10s"``, ``"1m30s"``, ``"500ms"`` or a bare number of seconds.

    Raises:
        ValueError: If *value* is not a duration. Pydantic turns this into
            a validation error on the owning field.
    """
    if isinstance(value, timedelta):
        return value
    if isinstance(value, bool):
        raise ValueError(f"invalid duration {value!r}")
    if isinstance(value, (int, float)):
        return timedelta(seconds=value)
    if not isinstance(value, str):
        raise ValueError(f"invalid duration {value!r}")

    text = value.strip()
    if text in ("0", "+0", "-0"):
        return timedelta(0)
    sign = 1.0
    if text[:1] in ("+", "-"):
        sign = -1.0 if text[0] == "-" else 1.0
        text = text[1:]

    pos = 0
    total = 0.0
    for match in _DURATION_RE.finditer(text):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        pos = match.end()
    if not text or pos != len(text):
        raise ValueError(f"invalid duration {value!r}")
    return timedelta(seconds=sign * total)


def duration_seconds(value: timedelta | None) -> int | None:
    """Whole seconds of *value*, truncated toward zero."""
    if value is None:
        return None
    return int(value.total_seconds())


__all__ = [
    "DEFAULT_HEALTH_CHECK_PATH",
    "DOCKERFILE_DEFAULT_NAME",
    "NO_EXPOSED_CONTAINER_PORT",
    "SubnetPlacement",
    "WorkloadType",
    "duration_seconds",
    "parse_duration",
]
