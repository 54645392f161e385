"""
Workload manifest resolution.

Parses a workload document, applies its kind's defaults, and resolves
per-environment overlays into final configuration plus the derived
values (build context, container health check, template options) a
renderer consumes.

Architecture:
    ::

        text ──► load_workload() ──► WorkloadDocument
                                         │
                         resolve(doc, "prod")
                                         │
                                         ▼
                                  ResolvedWorkload
                                   ├── build_config(root)
                                   └── template_opts(root)

Example:
    >>> from workload_spine.manifest import load_workload, resolve
    >>> doc = load_workload('''
    ... name: api
    ... type: Backend Service
    ... image:
    ...   build: api/Dockerfile
    ... environments:
    ...   prod:
    ...     count: 3
    ... ''')
    >>> resolve(doc, "prod").config.count
    3

Tags:
    manifest, workload, environments, resolution
"""

from workload_spine.manifest.build import BuildConfig, build_config, build_required
from workload_spine.manifest.defaults import WorkloadProps, default_config, new_config
from workload_spine.manifest.healthcheck import (
    HealthCheckOpts,
    apply,
    apply_if_not_set,
    default_container_health_check,
    health_check_opts,
)
from workload_spine.manifest.loader import load_workload, load_workload_mapping
from workload_spine.manifest.merge import merge_config
from workload_spine.manifest.models import (
    BackendServiceConfig,
    ContainerHealthCheck,
    Image,
    ImageWithHealthcheck,
    ImageWithPortAndHealthcheck,
    LoadBalancedWebServiceConfig,
    LoggingSpec,
    NetworkSpec,
    RoutingRule,
    ScheduledJobConfig,
    SidecarSpec,
    TopicSubscription,
    WorkerServiceConfig,
    WorkloadConfig,
    parse_port_mapping,
)
from workload_spine.manifest.opts import WorkloadOpts, sidecar_options, workload_opts
from workload_spine.manifest.types import SubnetPlacement, WorkloadType
from workload_spine.manifest.unions import Autoscaling, DockerBuildArgs, HealthCheckArgs
from workload_spine.manifest.workload import (
    ResolvedWorkload,
    WorkloadDocument,
    new_workload,
    resolve,
    resolve_all,
)

__all__ = [
    # Loading and resolution
    "load_workload",
    "load_workload_mapping",
    "new_workload",
    "resolve",
    "resolve_all",
    "ResolvedWorkload",
    "WorkloadDocument",
    "WorkloadProps",
    "WorkloadType",
    # Engines
    "apply",
    "apply_if_not_set",
    "build_config",
    "build_required",
    "default_config",
    "default_container_health_check",
    "health_check_opts",
    "merge_config",
    "new_config",
    "parse_port_mapping",
    "sidecar_options",
    "workload_opts",
    # Models
    "Autoscaling",
    "BackendServiceConfig",
    "BuildConfig",
    "ContainerHealthCheck",
    "DockerBuildArgs",
    "HealthCheckArgs",
    "HealthCheckOpts",
    "Image",
    "ImageWithHealthcheck",
    "ImageWithPortAndHealthcheck",
    "LoadBalancedWebServiceConfig",
    "LoggingSpec",
    "NetworkSpec",
    "RoutingRule",
    "ScheduledJobConfig",
    "SidecarSpec",
    "SubnetPlacement",
    "TopicSubscription",
    "WorkerServiceConfig",
    "WorkloadConfig",
    "WorkloadOpts",
]
