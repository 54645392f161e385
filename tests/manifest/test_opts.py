"""Tests for template options derived from resolved configs."""

from __future__ import annotations

from datetime import timedelta

import pytest

from workload_spine.core.errors import InvariantViolation
from workload_spine.manifest.models import (
    BackendServiceConfig,
    ContainerHealthCheck,
    ImageWithPortAndHealthcheck,
    LoggingSpec,
    NetworkSpec,
    RoutingRule,
    ScheduledJobConfig,
    SidecarSpec,
    VpcSpec,
)
from workload_spine.manifest.opts import (
    autoscaling_opts,
    container_port_param,
    desired_count,
    execute_command_opts,
    http_health_check_opts,
    log_config_opts,
    network_opts,
    sidecar_options,
    string_slice,
    workload_opts,
)
from workload_spine.manifest.types import SubnetPlacement
from workload_spine.manifest.unions import Autoscaling, ExecuteCommandConfig, HealthCheckArgs


# ------------------------------------------------------------------ #
# Sidecars
# ------------------------------------------------------------------ #


class TestSidecarOptions:
    def test_sorted_with_protocol(self):
        opts = sidecar_options(
            {
                "xray": SidecarSpec(port="2000/udp", image="xray"),
                "envoy": SidecarSpec(port="9901", credentials_parameter="arn:secret"),
            }
        )
        assert [o.name for o in opts] == ["envoy", "xray"]
        assert (opts[0].port, opts[0].protocol) == ("9901", None)
        assert opts[0].credentials_parameter == "arn:secret"
        assert (opts[1].port, opts[1].protocol) == ("2000", "udp")

    def test_default_port(self):
        opts = sidecar_options({"nginx": SidecarSpec(image="nginx")})
        assert opts[0].port == "80"

    def test_default_port_from_settings(self, monkeypatch):
        monkeypatch.setenv("WORKLOAD_SPINE_DEFAULT_SIDECAR_PORT", "8080")
        assert sidecar_options({"nginx": SidecarSpec()})[0].port == "8080"

    def test_bad_port(self):
        with pytest.raises(InvariantViolation):
            sidecar_options({"x": SidecarSpec(port="2000/udp/extra")})

    def test_none(self):
        assert sidecar_options(None) == []


# ------------------------------------------------------------------ #
# Logging
# ------------------------------------------------------------------ #


class TestLogConfig:
    def test_none(self):
        assert log_config_opts(None) is None

    def test_defaults(self):
        opts = log_config_opts(LoggingSpec())
        assert opts.image == "amazon/aws-for-fluent-bit:latest"
        assert opts.enable_metadata == "true"

    def test_explicit(self):
        opts = log_config_opts(
            LoggingSpec(image="custom", enable_metadata=False, destination={"Name": "cloudwatch"})
        )
        assert opts.image == "custom"
        assert opts.enable_metadata == "false"
        assert opts.destination == {"Name": "cloudwatch"}


# ------------------------------------------------------------------ #
# Count / exec / network / http
# ------------------------------------------------------------------ #


class TestCount:
    def test_fixed(self):
        assert autoscaling_opts(3) is None
        assert desired_count(3) == 3

    def test_autoscaling(self):
        count = Autoscaling(range="2-10", cpu_percentage=70, response_time=timedelta(seconds=2))
        opts = autoscaling_opts(count)
        assert (opts.min_capacity, opts.max_capacity) == (2, 10)
        assert opts.cpu == 70
        assert opts.memory is None
        assert opts.response_time == 2
        assert desired_count(count) == 2

    def test_unset(self):
        assert desired_count(None) == 1

    def test_bad_range(self):
        with pytest.raises(InvariantViolation):
            autoscaling_opts(Autoscaling(range="ten"))


class TestExecuteCommand:
    def test_disabled(self):
        assert execute_command_opts(False) is None
        assert execute_command_opts(ExecuteCommandConfig(enable=False)) is None

    def test_enabled(self):
        assert execute_command_opts(True).enabled is True
        assert execute_command_opts(ExecuteCommandConfig(enable=True)).enabled is True


class TestNetwork:
    def test_public(self):
        opts = network_opts(NetworkSpec())
        assert opts.assign_public_ip == "ENABLED"
        assert opts.subnets_type == "PublicSubnets"
        assert opts.security_groups == ()

    def test_private(self):
        opts = network_opts(
            NetworkSpec(vpc=VpcSpec(placement=SubnetPlacement.PRIVATE, security_groups=["sg-1"]))
        )
        assert opts.assign_public_ip == "DISABLED"
        assert opts.subnets_type == "PrivateSubnets"
        assert opts.security_groups == ("sg-1",)


class TestHTTPHealthCheck:
    def test_path_string(self):
        assert http_health_check_opts(RoutingRule(healthcheck="/ping")).path == "/ping"

    def test_unset(self):
        assert http_health_check_opts(RoutingRule()).path == "/"

    def test_structured(self):
        opts = http_health_check_opts(
            RoutingRule(healthcheck=HealthCheckArgs(success_codes="200,301", interval=timedelta(seconds=15)))
        )
        assert opts.path == "/"
        assert opts.success_codes == "200,301"
        assert opts.interval == 15


class TestScalars:
    def test_container_port(self):
        assert container_port_param(BackendServiceConfig(image=ImageWithPortAndHealthcheck(port=8080))) == "8080"
        assert container_port_param(BackendServiceConfig()) == "-1"
        assert container_port_param(ScheduledJobConfig()) == "-1"

    def test_string_slice(self):
        assert string_slice("python app.py --name 'my app'") == ["python", "app.py", "--name", "my app"]
        assert string_slice(["a", "b"]) == ["a", "b"]
        assert string_slice(None) is None


# ------------------------------------------------------------------ #
# Aggregate
# ------------------------------------------------------------------ #


class TestWorkloadOpts:
    def test_build_image(self):
        config = BackendServiceConfig(
            image=ImageWithPortAndHealthcheck(
                build="api/Dockerfile",
                port=8080,
                labels={"team": "core"},
                healthcheck=ContainerHealthCheck(retries=4),
            ),
            variables={"A": "1"},
            count=2,
            execute_command=True,
            command="serve --port 8080",
        )
        opts = workload_opts(config, "/ws")
        assert opts.build.dockerfile == "/ws/api/Dockerfile"
        assert opts.build.context == "/ws/api"
        assert opts.container_port == "8080"
        assert opts.health_check.retries == 4
        assert opts.health_check.timeout == 5
        assert opts.docker_labels == {"team": "core"}
        assert opts.variables == {"A": "1"}
        assert opts.desired_count == 2
        assert opts.autoscaling is None
        assert opts.execute_command.enabled is True
        assert opts.command == ["serve", "--port", "8080"]
        assert opts.http_health_check is None
        assert opts.log_config is None

    def test_location_image_has_no_build(self):
        config = BackendServiceConfig(image=ImageWithPortAndHealthcheck(location="api:1"))
        opts = workload_opts(config)
        assert opts.build is None
        assert opts.health_check is None

    def test_invalid_image(self):
        with pytest.raises(InvariantViolation):
            workload_opts(BackendServiceConfig())
