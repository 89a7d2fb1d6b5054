"""Toolchain container execution and provisioning."""

from acapbuild.toolchain.executor import (
    DockerToolchainExecutor,
    create_toolchain_executor,
    resolve_docker_image,
    show_version,
)
from acapbuild.toolchain.releases import (
    ReconcileAction,
    ReconcileReport,
    ToolchainReconciler,
    create_toolchain_reconciler,
)


__all__ = [
    "DockerToolchainExecutor",
    "ReconcileAction",
    "ReconcileReport",
    "ToolchainReconciler",
    "create_toolchain_executor",
    "create_toolchain_reconciler",
    "resolve_docker_image",
    "show_version",
]
