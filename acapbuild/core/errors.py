"""Exception hierarchy for acapbuild.

Configuration and environment errors abort an invocation before any target is
built. Build and packaging errors are scoped to a single target and are
collected by the pipeline instead of propagating.
"""

from typing import Any


class AcapBuildError(Exception):
    """Base class for all acapbuild errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context: dict[str, Any] = context or {}

    def __str__(self) -> str:
        return self.message


class ConfigError(AcapBuildError):
    """Project packaging configuration is missing or invalid."""


class InvalidEnumError(ConfigError):
    """A field restricted to a closed set of values holds something else."""

    def __init__(self, field: str, value: str, allowed: list[str]) -> None:
        super().__init__(
            f"invalid value {value!r} for {field}; expected one of: "
            + ", ".join(allowed),
            {"field": field, "value": value, "allowed": allowed},
        )
        self.field = field
        self.value = value
        self.allowed = allowed


class UnknownTargetError(ConfigError):
    """A requested target is not in the target registry."""

    def __init__(self, target_id: str, known: list[str] | None = None) -> None:
        message = f"no such target: {target_id}"
        if known:
            message += "\nexpected one of:\n" + "".join(f"  * {k}\n" for k in known)
        super().__init__(message.rstrip("\n"), {"target": target_id})
        self.target_id = target_id


class InvalidAppNameError(ConfigError):
    """The application name cannot be used as a file or archive name."""

    def __init__(self, app_name: str, reason: str) -> None:
        super().__init__(
            f"invalid app_name {app_name!r}: {reason}",
            {"app_name": app_name},
        )
        self.app_name = app_name


class ToolchainUnavailableError(AcapBuildError):
    """The cross-compilation environment cannot be started at all."""


class DockerError(AcapBuildError):
    """A docker invocation could not be carried out."""


class ProvisioningError(AcapBuildError):
    """Release tracking or toolchain image dispatch failed."""


class PackagingError(AcapBuildError):
    """Assembling the package for one already-built target failed."""


def create_docker_error(
    message: str,
    command: str | None = None,
    cause: Exception | None = None,
    context: dict[str, Any] | None = None,
) -> DockerError:
    """Build a DockerError carrying the failing command and its cause."""
    error_context: dict[str, Any] = dict(context or {})
    if command:
        error_context["command"] = command
    if cause is not None:
        error_context["cause"] = f"{cause.__class__.__name__}: {cause}"
    return DockerError(message, error_context)


__all__ = [
    "AcapBuildError",
    "ConfigError",
    "DockerError",
    "InvalidAppNameError",
    "InvalidEnumError",
    "PackagingError",
    "ProvisioningError",
    "ToolchainUnavailableError",
    "UnknownTargetError",
    "create_docker_error",
]
