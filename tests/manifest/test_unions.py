"""Tests for scalar-or-structured field decoding."""

from __future__ import annotations

from datetime import timedelta

import pytest

from workload_spine.core.errors import UnionDecodeError
from workload_spine.manifest.models import BackendServiceConfig, Image, RoutingRule
from workload_spine.manifest.unions import (
    Autoscaling,
    DockerBuildArgs,
    ExecuteCommandConfig,
    HealthCheckArgs,
    ShapeMismatch,
    decode_build,
    decode_command,
    decode_count,
    decode_execute_command,
    decode_union,
    execute_command_enabled,
    is_empty_build,
    is_empty_count,
)


# ------------------------------------------------------------------ #
# Trial order
# ------------------------------------------------------------------ #


class TestDecodeUnion:
    def test_structured_wins_when_non_empty(self):
        calls = []

        def structured(raw):
            calls.append("structured")
            return DockerBuildArgs(dockerfile="x")

        def scalar(raw):
            calls.append("scalar")
            return raw

        assert decode_union("f", {"dockerfile": "x"}, structured, scalar) == DockerBuildArgs(dockerfile="x")
        assert calls == ["structured"]

    def test_empty_structured_falls_through_to_scalar(self):
        calls = []

        def structured(raw):
            calls.append("structured")
            return DockerBuildArgs()

        def scalar(raw):
            calls.append("scalar")
            return raw

        assert decode_union("f", "svc/Dockerfile", structured, scalar) == "svc/Dockerfile"
        assert calls == ["structured", "scalar"]

    def test_none_is_empty_variant(self):
        assert decode_union("f", None, pytest.fail, pytest.fail) is None

    def test_no_shape_matches(self):
        def reject(raw):
            raise ShapeMismatch("no")

        with pytest.raises(UnionDecodeError) as exc_info:
            decode_union("image.build", 42, reject, reject)
        assert exc_info.value.field == "image.build"
        assert exc_info.value.value == 42
        assert isinstance(exc_info.value.cause, ShapeMismatch)

    def test_other_errors_propagate(self):
        def broken(raw):
            raise RuntimeError("bug")

        with pytest.raises(RuntimeError):
            decode_union("f", "x", broken, broken)


# ------------------------------------------------------------------ #
# image.build
# ------------------------------------------------------------------ #


class TestBuild:
    def test_bare_string_decodes_to_scalar(self):
        value = decode_build("svc/Dockerfile")
        assert value == "svc/Dockerfile"
        assert isinstance(value, str)

    def test_mapping_decodes_to_structured(self):
        value = decode_build({"context": "svc", "args": {"A": "1"}})
        assert isinstance(value, DockerBuildArgs)
        assert value.context == "svc"
        assert value.args == {"A": "1"}

    def test_list_is_rejected(self):
        with pytest.raises(UnionDecodeError) as exc_info:
            decode_build(["a", "b"])
        assert exc_info.value.field == "image.build"

    def test_inside_model(self):
        image = Image.model_validate({"build": "svc/Dockerfile"})
        assert image.build == "svc/Dockerfile"

    def test_error_escapes_model_validation_unchanged(self):
        with pytest.raises(UnionDecodeError):
            Image.model_validate({"build": 3.5})

    def test_built_empty_model_kept(self):
        assert decode_build(DockerBuildArgs()) == DockerBuildArgs()
        assert Image(build=DockerBuildArgs()).build == DockerBuildArgs()

    def test_empty_mapping_is_rejected(self):
        with pytest.raises(UnionDecodeError):
            decode_build({})

    def test_wrong_model_is_rejected(self):
        with pytest.raises(UnionDecodeError):
            decode_build(Autoscaling(range="1-2"))

    def test_is_empty_build(self):
        assert is_empty_build(None)
        assert is_empty_build("")
        assert is_empty_build(DockerBuildArgs())
        assert not is_empty_build("Dockerfile")
        assert not is_empty_build(DockerBuildArgs(target="prod"))


# ------------------------------------------------------------------ #
# count
# ------------------------------------------------------------------ #


class TestCount:
    def test_int(self):
        assert decode_count(3) == 3

    def test_autoscaling(self):
        value = decode_count({"range": "1-10", "cpu_percentage": 70, "response_time": "2s"})
        assert isinstance(value, Autoscaling)
        assert value.parsed_range() == (1, 10)
        assert value.response_time == timedelta(seconds=2)

    def test_bool_is_not_a_count(self):
        with pytest.raises(UnionDecodeError):
            decode_count(True)

    def test_empty_mapping_is_rejected(self):
        with pytest.raises(UnionDecodeError):
            decode_count({})

    def test_unknown_key_is_rejected(self):
        with pytest.raises(UnionDecodeError):
            decode_count({"spot": 2})

    def test_built_empty_model_kept(self):
        assert decode_count(Autoscaling()) == Autoscaling()

    def test_is_empty_count(self):
        assert is_empty_count(None)
        assert is_empty_count(Autoscaling())
        assert not is_empty_count(0)
        assert not is_empty_count(Autoscaling(range="1-2"))

    def test_inside_model(self):
        config = BackendServiceConfig.model_validate({"count": {"range": "2-4"}})
        assert config.count == Autoscaling(range="2-4")


# ------------------------------------------------------------------ #
# exec / command / http.healthcheck
# ------------------------------------------------------------------ #


class TestExecuteCommand:
    def test_bool(self):
        assert decode_execute_command(True) is True

    def test_structured(self):
        assert decode_execute_command({"enable": True}) == ExecuteCommandConfig(enable=True)

    def test_enabled(self):
        assert execute_command_enabled(True)
        assert execute_command_enabled(ExecuteCommandConfig(enable=True))
        assert not execute_command_enabled(ExecuteCommandConfig())
        assert not execute_command_enabled(None)

    def test_alias(self):
        config = BackendServiceConfig.model_validate({"exec": True})
        assert config.execute_command is True


class TestCommand:
    def test_list(self):
        assert decode_command(["python", "app.py"]) == ["python", "app.py"]

    def test_string(self):
        assert decode_command("python app.py") == "python app.py"

    def test_mapping_rejected(self):
        with pytest.raises(UnionDecodeError):
            decode_command({"a": 1})


class TestHealthCheckArgsOrString:
    def test_path(self):
        assert RoutingRule.model_validate({"healthcheck": "/ping"}).healthcheck == "/ping"

    def test_structured(self):
        rule = RoutingRule.model_validate({"healthcheck": {"path": "/ping", "interval": "15s"}})
        assert rule.healthcheck == HealthCheckArgs(path="/ping", interval=timedelta(seconds=15))
