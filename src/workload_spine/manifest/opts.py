"""Template options derived from a resolved config.

The template renderer never reads config groups directly; it consumes
the frozen option objects built here. Defaults that only exist at render
time (sidecar port 80, the FireLens image, ECS log metadata on) are
filled in at this point, never stored back into the config.
"""

from __future__ import annotations

import shlex
from dataclasses import dataclass

from workload_spine.core.settings import get_settings
from workload_spine.manifest.build import BuildConfig, build_config
from workload_spine.manifest.healthcheck import HealthCheckOpts, health_check_opts
from workload_spine.manifest.models import (
    ImageWithHealthcheck,
    ImageWithPortAndHealthcheck,
    LoadBalancedWebServiceConfig,
    LoggingSpec,
    NetworkSpec,
    RoutingRule,
    SidecarSpec,
    WorkloadConfig,
)
from workload_spine.manifest.types import (
    DEFAULT_HEALTH_CHECK_PATH,
    NO_EXPOSED_CONTAINER_PORT,
    duration_seconds,
)
from workload_spine.manifest.unions import (
    Autoscaling,
    ExecuteCommandConfig,
    HealthCheckArgs,
    execute_command_enabled,
)


@dataclass(frozen=True)
class SidecarOpts:
    name: str
    image: str | None
    port: str | None
    protocol: str | None
    credentials_parameter: str | None


@dataclass(frozen=True)
class LogConfigOpts:
    image: str
    enable_metadata: str
    destination: dict[str, str] | None
    secret_options: dict[str, str] | None
    config_file: str | None


@dataclass(frozen=True)
class AutoscalingOpts:
    min_capacity: int
    max_capacity: int
    cpu: int | None
    memory: int | None
    requests: int | None
    response_time: int | None


@dataclass(frozen=True)
class ExecuteCommandOpts:
    enabled: bool


@dataclass(frozen=True)
class NetworkOpts:
    assign_public_ip: str
    subnets_type: str
    security_groups: tuple[str, ...]


@dataclass(frozen=True)
class HTTPHealthCheckOpts:
    path: str
    success_codes: str | None
    healthy_threshold: int | None
    unhealthy_threshold: int | None
    interval: int | None
    timeout: int | None


def sidecar_options(
    sidecars: dict[str, SidecarSpec] | None, default_port: str | None = None
) -> list[SidecarOpts]:
    """Sidecar options sorted by name.

    Raises:
        InvariantViolation: If a sidecar port breaks the port grammar.
    """
    if default_port is None:
        default_port = get_settings().default_sidecar_port
    options = []
    for name in sorted(sidecars or {}):
        sidecar = sidecars[name]
        port, protocol = sidecar.port_mapping(default_port)
        options.append(
            SidecarOpts(
                name=name,
                image=sidecar.image,
                port=port,
                protocol=protocol,
                credentials_parameter=sidecar.credentials_parameter,
            )
        )
    return options


def log_config_opts(logging: LoggingSpec | None, default_image: str | None = None) -> LogConfigOpts | None:
    if logging is None:
        return None
    if default_image is None:
        default_image = get_settings().fluentbit_image
    enable_metadata = "true" if logging.enable_metadata is None else str(logging.enable_metadata).lower()
    return LogConfigOpts(
        image=logging.image if logging.image is not None else default_image,
        enable_metadata=enable_metadata,
        destination=dict(logging.destination) if logging.destination is not None else None,
        secret_options=dict(logging.secret_options) if logging.secret_options is not None else None,
        config_file=logging.config_file,
    )


def autoscaling_opts(count: Autoscaling | int | None) -> AutoscalingOpts | None:
    """Autoscaling options, or ``None`` for a fixed replica count.

    Raises:
        InvariantViolation: If the range is malformed.
    """
    if not isinstance(count, Autoscaling):
        return None
    bounds = count.parsed_range()
    if bounds is None:
        return None
    low, high = bounds
    return AutoscalingOpts(
        min_capacity=low,
        max_capacity=high,
        cpu=count.cpu_percentage,
        memory=count.memory_percentage,
        requests=count.requests,
        response_time=duration_seconds(count.response_time),
    )


def desired_count(count: Autoscaling | int | None) -> int:
    """Replica count the service starts with."""
    if isinstance(count, int):
        return count
    opts = autoscaling_opts(count)
    return opts.min_capacity if opts is not None else 1


def execute_command_opts(value: ExecuteCommandConfig | bool | None) -> ExecuteCommandOpts | None:
    if not execute_command_enabled(value):
        return None
    return ExecuteCommandOpts(enabled=True)


def network_opts(network: NetworkSpec) -> NetworkOpts:
    public = network.vpc.placement.value == "public"
    return NetworkOpts(
        assign_public_ip="ENABLED" if public else "DISABLED",
        subnets_type="PublicSubnets" if public else "PrivateSubnets",
        security_groups=tuple(network.vpc.security_groups or ()),
    )


def http_health_check_opts(rule: RoutingRule) -> HTTPHealthCheckOpts:
    hc = rule.healthcheck
    if isinstance(hc, HealthCheckArgs):
        return HTTPHealthCheckOpts(
            path=hc.path or DEFAULT_HEALTH_CHECK_PATH,
            success_codes=hc.success_codes,
            healthy_threshold=hc.healthy_threshold,
            unhealthy_threshold=hc.unhealthy_threshold,
            interval=duration_seconds(hc.interval),
            timeout=duration_seconds(hc.timeout),
        )
    return HTTPHealthCheckOpts(
        path=hc or DEFAULT_HEALTH_CHECK_PATH,
        success_codes=None,
        healthy_threshold=None,
        unhealthy_threshold=None,
        interval=None,
        timeout=None,
    )


def container_port_param(config: WorkloadConfig) -> str:
    image = config.image
    if isinstance(image, ImageWithPortAndHealthcheck) and image.port is not None:
        return str(image.port)
    return NO_EXPOSED_CONTAINER_PORT


def string_slice(value: list[str] | str | None) -> list[str] | None:
    """Entrypoint/command as an argv list. A bare string is shell-split."""
    if value is None:
        return None
    if isinstance(value, str):
        return shlex.split(value)
    return list(value)


@dataclass(frozen=True)
class WorkloadOpts:
    """Everything the template renderer reads for one workload."""

    variables: dict[str, str]
    secrets: dict[str, str]
    sidecars: list[SidecarOpts]
    autoscaling: AutoscalingOpts | None
    desired_count: int
    execute_command: ExecuteCommandOpts | None
    health_check: HealthCheckOpts | None
    log_config: LogConfigOpts | None
    docker_labels: dict[str, str]
    depends_on: dict[str, str]
    network: NetworkOpts
    entrypoint: list[str] | None
    command: list[str] | None
    container_port: str
    http_health_check: HTTPHealthCheckOpts | None = None
    build: BuildConfig | None = None


def workload_opts(config: WorkloadConfig, root_directory: str | None = None) -> WorkloadOpts:
    """Derive the template options for a resolved *config*.

    Raises:
        InvariantViolation: From the sidecar port grammar, autoscaling
            range, or image source check.
    """
    image = config.image
    health_check = None
    if isinstance(image, ImageWithHealthcheck):
        health_check = health_check_opts(image.healthcheck)
    build = build_config(image, root_directory) if image.build_required() else None
    http = None
    if isinstance(config, LoadBalancedWebServiceConfig):
        http = http_health_check_opts(config.http)
    return WorkloadOpts(
        variables=dict(config.variables or {}),
        secrets=dict(config.secrets or {}),
        sidecars=sidecar_options(config.sidecars),
        autoscaling=autoscaling_opts(config.count),
        desired_count=desired_count(config.count),
        execute_command=execute_command_opts(config.execute_command),
        health_check=health_check,
        log_config=log_config_opts(config.logging),
        docker_labels=dict(image.labels or {}),
        depends_on=dict(image.depends_on or {}),
        network=network_opts(config.network),
        entrypoint=string_slice(config.entrypoint),
        command=string_slice(config.command),
        container_port=container_port_param(config),
        http_health_check=http,
        build=build,
    )


__all__ = [
    "AutoscalingOpts",
    "ExecuteCommandOpts",
    "HTTPHealthCheckOpts",
    "LogConfigOpts",
    "NetworkOpts",
    "SidecarOpts",
    "WorkloadOpts",
    "autoscaling_opts",
    "container_port_param",
    "desired_count",
    "execute_command_opts",
    "http_health_check_opts",
    "log_config_opts",
    "network_opts",
    "sidecar_options",
    "string_slice",
    "workload_opts",
]
