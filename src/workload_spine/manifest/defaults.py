"""Per-kind baseline configs and props-driven constructors.

Every kind starts from the same minimal task: 256 CPU units, 512 MiB,
one replica, execute-command disabled, public subnets, and no health
check, logging or sidecars. Worker services additionally start with an
empty subscription topic list; web services start with the default
target-group health check path.
"""

from __future__ import annotations

from dataclasses import dataclass

from workload_spine.manifest.healthcheck import apply, default_container_health_check
from workload_spine.manifest.models import (
    BackendServiceConfig,
    ContainerHealthCheck,
    ImageWithHealthcheck,
    ImageWithPortAndHealthcheck,
    LoadBalancedWebServiceConfig,
    NetworkSpec,
    RoutingRule,
    ScheduledJobConfig,
    SubscribeSpec,
    TopicSubscription,
    VpcSpec,
    WorkerServiceConfig,
    WorkloadConfig,
)
from workload_spine.manifest.types import DEFAULT_HEALTH_CHECK_PATH, SubnetPlacement, WorkloadType
from workload_spine.manifest.unions import DockerBuildArgs

DEFAULT_CPU = 256
DEFAULT_MEMORY = 512
DEFAULT_COUNT = 1


def _task_defaults() -> dict:
    return {
        "cpu": DEFAULT_CPU,
        "memory": DEFAULT_MEMORY,
        "count": DEFAULT_COUNT,
        "execute_command": False,
        "network": NetworkSpec(vpc=VpcSpec(placement=SubnetPlacement.PUBLIC)),
    }


def default_web_service_config() -> LoadBalancedWebServiceConfig:
    return LoadBalancedWebServiceConfig(
        image=ImageWithPortAndHealthcheck(),
        http=RoutingRule(healthcheck=DEFAULT_HEALTH_CHECK_PATH),
        **_task_defaults(),
    )


def default_backend_service_config() -> BackendServiceConfig:
    return BackendServiceConfig(image=ImageWithPortAndHealthcheck(), **_task_defaults())


def default_worker_service_config() -> WorkerServiceConfig:
    return WorkerServiceConfig(
        image=ImageWithHealthcheck(),
        subscribe=SubscribeSpec(topics=[]),
        **_task_defaults(),
    )


def default_scheduled_job_config() -> ScheduledJobConfig:
    return ScheduledJobConfig(**_task_defaults())


_DEFAULTS = {
    WorkloadType.LOAD_BALANCED_WEB_SERVICE: default_web_service_config,
    WorkloadType.BACKEND_SERVICE: default_backend_service_config,
    WorkloadType.WORKER_SERVICE: default_worker_service_config,
    WorkloadType.SCHEDULED_JOB: default_scheduled_job_config,
}


def default_config(kind: WorkloadType) -> WorkloadConfig:
    """Fresh baseline for *kind*. Each call returns an independent value."""
    return _DEFAULTS[kind]()


@dataclass(frozen=True)
class WorkloadProps:
    """Caller-supplied values for a new workload."""

    name: str
    dockerfile: str = ""
    image: str = ""
    port: int | None = None
    health_check: ContainerHealthCheck | None = None
    topics: list[TopicSubscription] | None = None
    http_path: str | None = None
    schedule: str | None = None


def new_config(kind: WorkloadType, props: WorkloadProps) -> WorkloadConfig:
    """Apply *props* to the baseline of *kind*.

    An explicit health check on a web or backend service is layered on
    top of the default container health check, so the result is always
    complete. Worker services keep the caller's health check as given.
    """
    config = default_config(kind)
    image_fields: dict = {
        "location": props.image or None,
        "build": DockerBuildArgs(dockerfile=props.dockerfile) if props.dockerfile else None,
    }
    if props.port and isinstance(config.image, ImageWithPortAndHealthcheck):
        image_fields["port"] = props.port
    if isinstance(config.image, ImageWithPortAndHealthcheck) and props.health_check is not None:
        image_fields["healthcheck"] = apply(default_container_health_check(), props.health_check)
    elif isinstance(config.image, ImageWithHealthcheck) and props.health_check is not None:
        image_fields["healthcheck"] = props.health_check.model_copy(deep=True)

    update: dict = {"image": config.image.model_copy(update=image_fields, deep=True)}
    if isinstance(config, WorkerServiceConfig) and props.topics is not None:
        update["subscribe"] = SubscribeSpec(topics=[t.model_copy() for t in props.topics])
    if isinstance(config, LoadBalancedWebServiceConfig) and props.http_path is not None:
        update["http"] = config.http.model_copy(update={"path": props.http_path})
    if isinstance(config, ScheduledJobConfig) and props.schedule is not None:
        update["on"] = config.on.model_copy(update={"schedule": props.schedule})
    return config.model_copy(update=update, deep=True)


__all__ = [
    "DEFAULT_COUNT",
    "DEFAULT_CPU",
    "DEFAULT_MEMORY",
    "WorkloadProps",
    "default_backend_service_config",
    "default_config",
    "default_container_health_check",
    "default_scheduled_job_config",
    "default_web_service_config",
    "default_worker_service_config",
    "new_config",
]
