"""Typed representation of a workload document's config groups.

Every config group is a pydantic model built on :class:`ManifestModel`.
The models hold data plus invariant checks; merging lives in
:mod:`workload_spine.manifest.merge` and derived values in
:mod:`workload_spine.manifest.build`, :mod:`~workload_spine.manifest.healthcheck`
and :mod:`~workload_spine.manifest.opts`.

Layout of a config group (shared by every kind)::

    WorkloadConfig
    ├── image            Image | ImageWithHealthcheck | ImageWithPortAndHealthcheck
    ├── entrypoint       EntryPointOverride
    ├── command          CommandOverride
    ├── cpu / memory     int
    ├── count            Count
    ├── exec             ExecuteCommand
    ├── variables        dict[str, str]
    ├── secrets          dict[str, str]
    ├── logging          LoggingSpec | None
    ├── sidecars         dict[str, SidecarSpec]
    └── network          NetworkSpec

Kind-specific groups add ``http`` (web service), ``subscribe`` (worker
service) and ``on``/``retries``/``timeout`` (scheduled job).

Invariants are checked when a value is finalized for use, not at
construction: an environment overlay is allowed to be partial, so an
image with neither ``build`` nor ``location`` is only an error once it
has been resolved.
"""

from __future__ import annotations

from pydantic import Field

from workload_spine.core.errors import InvariantViolation
from workload_spine.manifest.types import SubnetPlacement, WorkloadType
from workload_spine.manifest.unions import (
    Autoscaling,
    BuildArgsOrString,
    CommandOverride,
    Count,
    Duration,
    EntryPointOverride,
    ExecuteCommand,
    HealthCheckArgsOrString,
    ManifestModel,
    is_empty_build,
)

# ── Image ────────────────────────────────────────────────────────────────


class ContainerHealthCheck(ManifestModel):
    """Container health check. Each field is independently optional."""

    command: list[str] | None = None
    interval: Duration | None = None
    retries: int | None = None
    timeout: Duration | None = None
    start_period: Duration | None = None


class Image(ManifestModel):
    """Container image: build it from a Dockerfile or pull an existing one."""

    build: BuildArgsOrString = None
    location: str | None = None
    labels: dict[str, str] | None = None
    depends_on: dict[str, str] | None = None

    def build_required(self) -> bool:
        """Whether the image is built from a local Dockerfile.

        Raises:
            InvariantViolation: If both or neither of ``build`` and
                ``location`` are set.
        """
        no_build = is_empty_build(self.build)
        no_location = self.location is None
        if no_build == no_location:
            raise InvariantViolation(
                'either "image.build" or "image.location" needs to be specified in the manifest',
                field="image",
                value={"build": self.build, "location": self.location},
            )
        return no_location

    def get_location(self) -> str:
        return self.location or ""


class ImageWithHealthcheck(Image):
    healthcheck: ContainerHealthCheck | None = None


class ImageWithPortAndHealthcheck(ImageWithHealthcheck):
    port: int | None = Field(default=None, ge=0, le=65535)


# ── Logging / sidecars / network ─────────────────────────────────────────


class LoggingSpec(ManifestModel):
    """Log-router (FireLens) configuration."""

    image: str | None = None
    destination: dict[str, str] | None = None
    enable_metadata: bool | None = Field(default=None, alias="enableMetadata")
    secret_options: dict[str, str] | None = Field(default=None, alias="secretOptions")
    config_file: str | None = Field(default=None, alias="configFilePath")


class SidecarSpec(ManifestModel):
    port: str | None = None
    image: str | None = None
    credentials_parameter: str | None = Field(default=None, alias="credentialsParameter")

    def port_mapping(self, default_port: str | None = None) -> tuple[str | None, str | None]:
        """Split ``"<port>"`` or ``"<port>/<protocol>"`` into ``(port, protocol)``.

        An unset port yields ``(default_port, None)``.

        Raises:
            InvariantViolation: If the value has more than one ``/``.
        """
        return parse_port_mapping(self.port, default_port)


def parse_port_mapping(value: str | None, default_port: str | None = None) -> tuple[str | None, str | None]:
    """Parse the sidecar port grammar: ``2000/udp`` or ``2000``."""
    if value is None:
        return default_port, None
    parts = value.split("/")
    if len(parts) == 1:
        return parts[0], None
    if len(parts) == 2:
        return parts[0], parts[1]
    raise InvariantViolation(
        f"cannot parse port mapping from {value}",
        field="sidecars.port",
        value=value,
    )


class VpcSpec(ManifestModel):
    placement: SubnetPlacement = SubnetPlacement.PUBLIC
    security_groups: list[str] | None = None


class NetworkSpec(ManifestModel):
    vpc: VpcSpec = Field(default_factory=VpcSpec)


# ── Kind-specific groups ─────────────────────────────────────────────────


class RoutingRule(ManifestModel):
    """HTTP listener rule of a load balanced web service."""

    path: str | None = None
    healthcheck: HealthCheckArgsOrString = None
    stickiness: bool | None = None
    target_container: str | None = None
    allowed_source_ips: list[str] | None = None
    deregistration_delay: Duration | None = None


class TopicSubscription(ManifestModel):
    name: str
    service: str


class SubscribeSpec(ManifestModel):
    topics: list[TopicSubscription] | None = None


class JobTrigger(ManifestModel):
    schedule: str | None = None


# ── Config groups ────────────────────────────────────────────────────────


class WorkloadConfig(ManifestModel):
    """Fields every workload kind carries. Overridable per environment."""

    image: Image = Field(default_factory=Image)
    entrypoint: EntryPointOverride = None
    command: CommandOverride = None

    # Task sizing
    cpu: int | None = None
    memory: int | None = None
    count: Count = None
    execute_command: ExecuteCommand = Field(default=None, alias="exec")
    variables: dict[str, str] | None = None
    secrets: dict[str, str] | None = None

    logging: LoggingSpec | None = None
    sidecars: dict[str, SidecarSpec] | None = None
    network: NetworkSpec = Field(default_factory=NetworkSpec)

    def validate_invariants(self) -> None:
        """Check every exclusivity and format rule of a finalized config.

        Raises:
            InvariantViolation: On the first broken rule.
        """
        self.image.build_required()
        for name in sorted(self.sidecars or {}):
            try:
                self.sidecars[name].port_mapping()
            except InvariantViolation as exc:
                exc.field = f"sidecars.{name}.port"
                raise
        if isinstance(self.count, Autoscaling):
            self.count.parsed_range()


class LoadBalancedWebServiceConfig(WorkloadConfig):
    image: ImageWithPortAndHealthcheck = Field(default_factory=ImageWithPortAndHealthcheck)
    http: RoutingRule = Field(default_factory=RoutingRule)


class BackendServiceConfig(WorkloadConfig):
    image: ImageWithPortAndHealthcheck = Field(default_factory=ImageWithPortAndHealthcheck)


class WorkerServiceConfig(WorkloadConfig):
    image: ImageWithHealthcheck = Field(default_factory=ImageWithHealthcheck)
    subscribe: SubscribeSpec | None = None


class ScheduledJobConfig(WorkloadConfig):
    on: JobTrigger = Field(default_factory=JobTrigger)
    retries: int | None = None
    timeout: Duration | None = None


CONFIG_TYPES: dict[WorkloadType, type[WorkloadConfig]] = {
    WorkloadType.LOAD_BALANCED_WEB_SERVICE: LoadBalancedWebServiceConfig,
    WorkloadType.BACKEND_SERVICE: BackendServiceConfig,
    WorkloadType.WORKER_SERVICE: WorkerServiceConfig,
    WorkloadType.SCHEDULED_JOB: ScheduledJobConfig,
}


def config_type(kind: WorkloadType) -> type[WorkloadConfig]:
    return CONFIG_TYPES[kind]


__all__ = [
    "BackendServiceConfig",
    "CONFIG_TYPES",
    "ContainerHealthCheck",
    "Image",
    "ImageWithHealthcheck",
    "ImageWithPortAndHealthcheck",
    "JobTrigger",
    "LoadBalancedWebServiceConfig",
    "LoggingSpec",
    "NetworkSpec",
    "RoutingRule",
    "ScheduledJobConfig",
    "SidecarSpec",
    "SubscribeSpec",
    "TopicSubscription",
    "VpcSpec",
    "WorkerServiceConfig",
    "WorkloadConfig",
    "config_type",
    "parse_port_mapping",
]
