"""Protocol definition for Docker operations."""

from typing import Any, Protocol, TypeAlias, runtime_checkable

from acapbuild.models.docker import DockerUserContext


# (host_path, container_path) or (host_path, container_path, options)
DockerVolume: TypeAlias = tuple[str, ...]
DockerEnv: TypeAlias = dict[str, str]
DockerResult: TypeAlias = tuple[int, list[Any], list[Any]]


@runtime_checkable
class DockerAdapterProtocol(Protocol):
    """Protocol for Docker operations."""

    def is_available(self) -> bool:
        """Check if the docker CLI can reach a daemon."""
        ...

    def run_container(
        self,
        image: str,
        volumes: list[DockerVolume],
        environment: DockerEnv,
        command: list[str] | None = None,
        middleware: Any | None = None,
        user_context: DockerUserContext | None = None,
        workdir: str | None = None,
        extra_args: list[str] | None = None,
        timeout: float | None = None,
        name: str | None = None,
    ) -> DockerResult:
        """Run a container to completion.

        Returns:
            (return_code, stdout_lines, stderr_lines)

        Raises:
            DockerError: If docker itself could not be run
        """
        ...

    def remove_container(self, name: str) -> bool:
        """Force-remove the container called ``name``."""
        ...

    def list_images(self, image: str) -> DockerResult:
        """Run ``docker images <image>``."""
        ...
