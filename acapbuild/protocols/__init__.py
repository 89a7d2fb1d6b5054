"""Protocol definitions for pluggable collaborators."""

from acapbuild.protocols.docker_adapter_protocol import (
    DockerAdapterProtocol,
    DockerEnv,
    DockerResult,
    DockerVolume,
)
from acapbuild.protocols.toolchain_protocol import (
    ToolchainExecutorProtocol,
    ToolchainResult,
)


__all__ = [
    "DockerAdapterProtocol",
    "DockerEnv",
    "DockerResult",
    "DockerVolume",
    "ToolchainExecutorProtocol",
    "ToolchainResult",
]
