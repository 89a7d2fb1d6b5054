"""Docker adapter for container operations."""

import logging
import shlex
import subprocess
from typing import cast

from acapbuild.core.errors import create_docker_error
from acapbuild.models.docker import DockerUserContext
from acapbuild.protocols.docker_adapter_protocol import (
    DockerAdapterProtocol,
    DockerEnv,
    DockerVolume,
)
from acapbuild.utils.stream_process import (
    OutputMiddleware,
    ProcessResult,
    T,
)


logger = logging.getLogger(__name__)


class LoggerOutputMiddleware(OutputMiddleware[str]):
    """Forward container output to a logger.

    stdout lines are logged at DEBUG, stderr lines at WARNING, each with an
    optional prefix identifying the container.
    """

    def __init__(
        self, logger: logging.Logger, stdout_prefix: str = "", stderr_prefix: str = ""
    ):
        self.logger = logger
        self.stderr_prefix = stderr_prefix
        self.stdout_prefix = stdout_prefix

    def process(self, line: str, stream_type: str) -> str:
        if stream_type == "stdout":
            self.logger.debug("%s%s", self.stdout_prefix, line)
        else:
            self.logger.warning("%s%s", self.stderr_prefix, line)
        return line


def format_volume(volume: DockerVolume) -> str:
    """Render a volume tuple as the argument of ``-v``."""
    return ":".join(volume)


class DockerAdapter:
    """Implementation of Docker adapter."""

    def is_available(self) -> bool:
        """Check that the docker CLI exists and can reach a daemon."""
        docker_cmd = ["docker", "version", "--format", "{{.Server.Version}}"]
        cmd_str = " ".join(docker_cmd)

        try:
            result = subprocess.run(
                docker_cmd, check=True, capture_output=True, text=True
            )
            logger.debug("Docker is available: server %s", result.stdout.strip())
            return True

        except FileNotFoundError:
            logger.warning("Docker executable not found in PATH")
            return False

        except subprocess.CalledProcessError as e:
            stderr = e.stderr.strip() if e.stderr else "unknown error"
            logger.warning("Docker command failed: %s - error: %s", cmd_str, stderr)
            return False

        except OSError as e:
            logger.warning("Unexpected error checking Docker availability: %s", e)
            return False

    def build_run_command(
        self,
        image: str,
        volumes: list[DockerVolume],
        environment: DockerEnv,
        command: list[str] | None = None,
        user_context: DockerUserContext | None = None,
        workdir: str | None = None,
        extra_args: list[str] | None = None,
        name: str | None = None,
    ) -> list[str]:
        """Assemble the ``docker run`` argument vector."""
        docker_cmd = ["docker", "run", "--rm"]

        if name:
            docker_cmd.extend(["--name", name])

        if user_context and user_context.should_use_user_mapping():
            docker_user_flag = user_context.get_docker_user_flag()
            docker_cmd.extend(["--user", docker_user_flag])
            logger.debug("Using Docker user mapping: %s", docker_user_flag)

        for volume in volumes:
            docker_cmd.extend(["-v", format_volume(volume)])

        for key, value in environment.items():
            docker_cmd.extend(["--env", f"{key}={value}"])

        if workdir:
            docker_cmd.extend(["--workdir", workdir])

        if extra_args:
            docker_cmd.extend(extra_args)

        docker_cmd.append(image)

        if command:
            docker_cmd.extend(command)

        return docker_cmd

    def run_container(
        self,
        image: str,
        volumes: list[DockerVolume],
        environment: DockerEnv,
        command: list[str] | None = None,
        middleware: OutputMiddleware[T] | None = None,
        user_context: DockerUserContext | None = None,
        workdir: str | None = None,
        extra_args: list[str] | None = None,
        timeout: float | None = None,
        name: str | None = None,
    ) -> ProcessResult[T]:
        """Run a Docker container with specified configuration."""
        from acapbuild.utils import stream_process

        docker_cmd = self.build_run_command(
            image,
            volumes,
            environment,
            command=command,
            user_context=user_context,
            workdir=workdir,
            extra_args=extra_args,
            name=name,
        )

        cmd_str = " ".join(shlex.quote(arg) for arg in docker_cmd)
        logger.debug("Docker command: %s", cmd_str)

        try:
            if middleware is None:
                # Cast is needed because T is unbound at this point
                middleware = cast(OutputMiddleware[T], LoggerOutputMiddleware(logger))
            return stream_process.run_command(docker_cmd, middleware, timeout=timeout)

        except FileNotFoundError as e:
            error = create_docker_error(f"Docker executable not found: {e}", cmd_str, e)
            logger.error("Docker executable not found: %s", e)
            raise error from e

        except (subprocess.SubprocessError, OSError) as e:
            error = create_docker_error(
                f"Failed to run Docker container: {e}",
                cmd_str,
                e,
                {"image": image, "volumes_count": len(volumes)},
            )
            logger.error("Docker subprocess error: %s", e)
            raise error from e

    def remove_container(self, name: str) -> bool:
        """Force-remove a running container.

        Killing the ``docker run`` client leaves its container running, so a
        timed out build must be stopped through the daemon.
        """
        docker_cmd = ["docker", "rm", "--force", name]

        try:
            subprocess.run(docker_cmd, check=True, capture_output=True, text=True)
            logger.debug("Removed Docker container: %s", name)
            return True

        except subprocess.CalledProcessError as e:
            stderr = e.stderr.strip() if e.stderr else "unknown error"
            logger.warning("Cannot remove Docker container %s: %s", name, stderr)
            return False

        except FileNotFoundError:
            logger.warning("Docker executable not found while removing %s", name)
            return False

    def list_images(self, image: str) -> ProcessResult[str]:
        """Run ``docker images`` for one repository."""
        from acapbuild.utils import stream_process

        docker_cmd = ["docker", "images", image]
        try:
            return stream_process.run_command(docker_cmd)
        except FileNotFoundError as e:
            raise create_docker_error(
                f"Docker executable not found: {e}", " ".join(docker_cmd), e
            ) from e


def create_docker_adapter() -> DockerAdapterProtocol:
    """Factory function to create a DockerAdapter instance.

    Example:
        >>> adapter = create_docker_adapter()
        >>> if adapter.is_available():
        ...     adapter.run_container("trunnion/cargo-acap:1.70.0", [], {})
    """
    logger.debug("Creating DockerAdapter")
    return DockerAdapter()
