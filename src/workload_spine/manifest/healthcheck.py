"""Health-check cascade.

A container health check can be layered from two sources: the type-level
default (:func:`default_container_health_check`) and whatever the user
or an environment specified. Two null-coalescing, field-by-field modes
exist, and neither goes through the generic merge so that "unset" stays
distinguishable from "explicitly different":

- :func:`apply` — every field set on ``other`` wins. Used when an
  explicit health check is layered on top of the default.
- :func:`apply_if_not_set` — only fields unset on ``target`` are filled
  from ``other``. Used to backfill the default under a user health check
  that left some fields out.

Both return a new value; neither argument is modified.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from datetime import timedelta

from workload_spine.manifest.models import ContainerHealthCheck
from workload_spine.manifest.types import duration_seconds

DEFAULT_HEALTH_CHECK_COMMAND = ("CMD-SHELL", "curl -f http://localhost/ || exit 1")


def default_container_health_check() -> ContainerHealthCheck:
    """Defaults identical to a load balanced web service's container health check."""
    return ContainerHealthCheck(
        command=list(DEFAULT_HEALTH_CHECK_COMMAND),
        interval=timedelta(seconds=10),
        retries=2,
        timeout=timedelta(seconds=5),
        start_period=timedelta(seconds=0),
    )


def apply(target: ContainerHealthCheck, other: ContainerHealthCheck) -> ContainerHealthCheck:
    """Overwrite *target*'s fields with every field *other* has set."""
    command = other.command if other.command is not None else target.command
    return ContainerHealthCheck(
        command=copy.copy(command),
        interval=other.interval if other.interval is not None else target.interval,
        retries=other.retries if other.retries is not None else target.retries,
        timeout=other.timeout if other.timeout is not None else target.timeout,
        start_period=other.start_period if other.start_period is not None else target.start_period,
    )


def apply_if_not_set(target: ContainerHealthCheck, other: ContainerHealthCheck) -> ContainerHealthCheck:
    """Fill only the fields *target* left unset from *other*."""
    command = target.command if target.command is not None else other.command
    return ContainerHealthCheck(
        command=copy.copy(command),
        interval=target.interval if target.interval is not None else other.interval,
        retries=target.retries if target.retries is not None else other.retries,
        timeout=target.timeout if target.timeout is not None else other.timeout,
        start_period=target.start_period if target.start_period is not None else other.start_period,
    )


@dataclass(frozen=True)
class HealthCheckOpts:
    """CloudFormation-shaped container health check (durations in seconds)."""

    command: tuple[str, ...]
    interval: int
    retries: int
    start_period: int
    timeout: int

    def to_dict(self) -> dict[str, object]:
        return {
            "Command": list(self.command),
            "Interval": self.interval,
            "Retries": self.retries,
            "StartPeriod": self.start_period,
            "Timeout": self.timeout,
        }


def health_check_opts(health_check: ContainerHealthCheck | None) -> HealthCheckOpts | None:
    """Convert a resolved health check into the template shape.

    Fields an environment overlay left unset are backfilled from the
    default container health check first. ``None`` means no health check.
    """
    if health_check is None:
        return None
    hc = apply_if_not_set(health_check, default_container_health_check())
    return HealthCheckOpts(
        command=tuple(hc.command or ()),
        interval=duration_seconds(hc.interval) or 0,
        retries=hc.retries or 0,
        start_period=duration_seconds(hc.start_period) or 0,
        timeout=duration_seconds(hc.timeout) or 0,
    )


__all__ = [
    "DEFAULT_HEALTH_CHECK_COMMAND",
    "HealthCheckOpts",
    "apply",
    "apply_if_not_set",
    "default_container_health_check",
    "health_check_opts",
]
