"""Adapters wrapping external tools."""

from acapbuild.adapters.docker_adapter import (
    DockerAdapter,
    LoggerOutputMiddleware,
    create_docker_adapter,
)


__all__ = ["DockerAdapter", "LoggerOutputMiddleware", "create_docker_adapter"]
