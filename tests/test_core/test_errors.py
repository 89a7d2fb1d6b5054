"""Tests for the exception hierarchy."""

import pytest

from acapbuild.core.errors import (
    AcapBuildError,
    ConfigError,
    DockerError,
    InvalidAppNameError,
    InvalidEnumError,
    PackagingError,
    ProvisioningError,
    ToolchainUnavailableError,
    UnknownTargetError,
    create_docker_error,
)


@pytest.mark.parametrize(
    "error",
    [
        InvalidEnumError("start_mode", "x", ["respawn"]),
        UnknownTargetError("bogus"),
        InvalidAppNameError("a/b", "bad"),
    ],
)
def test_resolution_errors_are_config_errors(error):
    assert isinstance(error, ConfigError)
    assert isinstance(error, AcapBuildError)


@pytest.mark.parametrize(
    "cls", [ToolchainUnavailableError, DockerError, PackagingError, ProvisioningError]
)
def test_other_errors_are_not_config_errors(cls):
    assert not issubclass(cls, ConfigError)
    assert issubclass(cls, AcapBuildError)


def test_unknown_target_lists_known_targets():
    error = UnknownTargetError("bogus", ["aarch64", "mips"])
    assert str(error) == "no such target: bogus\nexpected one of:\n  * aarch64\n  * mips"
    assert error.context == {"target": "bogus"}


def test_invalid_enum_message():
    error = InvalidEnumError("start_mode", "always", ["respawn", "once", "never"])
    assert "'always'" in str(error)
    assert "respawn, once, never" in str(error)


def test_create_docker_error():
    cause = FileNotFoundError("docker")
    error = create_docker_error("boom", "docker run img", cause, {"image": "img"})
    assert str(error) == "boom"
    assert error.context == {
        "image": "img",
        "command": "docker run img",
        "cause": "FileNotFoundError: docker",
    }
