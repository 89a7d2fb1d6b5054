"""Cross-compilation inside the cargo-acap toolchain container."""

import logging
import re
import shlex
import subprocess
import uuid
from pathlib import Path

from acapbuild.adapters.docker_adapter import LoggerOutputMiddleware
from acapbuild.config.project import CargoProject
from acapbuild.core.errors import DockerError, ToolchainUnavailableError
from acapbuild.models.docker import DockerUserContext
from acapbuild.protocols.docker_adapter_protocol import (
    DockerAdapterProtocol,
    DockerEnv,
    DockerVolume,
)
from acapbuild.protocols.toolchain_protocol import ToolchainResult
from acapbuild.targets.registry import TargetDescriptor
from acapbuild.utils.stream_process import TIMEOUT_RETURN_CODE


logger = logging.getLogger(__name__)

# Where the host's output directory and cargo home appear in the container
CONTAINER_TARGET_DIR = "/target"
CONTAINER_CARGO_HOME = "/.cargo"

# Lines of compiler stderr kept in a failure diagnostic
DIAGNOSTIC_TAIL = 20

_RUSTC_VERSION_RE = re.compile(r"^rustc (\d+\.\d+\.\d+\S*)")


def container_name(target: TargetDescriptor) -> str:
    """Unique name for one toolchain container run."""
    return f"acapbuild-{target.id}-{uuid.uuid4().hex[:12]}"


def image_has_tag(image: str) -> bool:
    """True if ``image`` names a tag (a registry port does not count)."""
    return ":" in image.rsplit("/", 1)[-1]


def local_rustc_version() -> str | None:
    """Version of the host's rustc, e.g. ``1.70.0``, or None if unavailable."""
    try:
        result = subprocess.run(
            ["rustc", "--version"], check=True, capture_output=True, text=True
        )
    except (FileNotFoundError, subprocess.CalledProcessError) as e:
        logger.debug("Cannot determine local rustc version: %s", e)
        return None

    match = _RUSTC_VERSION_RE.match(result.stdout.strip())
    if not match:
        logger.debug("Unrecognized rustc version output: %r", result.stdout)
        return None
    return match.group(1)


def resolve_docker_image(image: str) -> str:
    """Pin an untagged image to the local rustc version.

    Building with the same compiler release as the host keeps the container
    from rebuilding everything cargo already built locally. Without a usable
    rustc the ``latest`` tag is used.
    """
    if image_has_tag(image):
        return image
    version = local_rustc_version()
    resolved = f"{image}:{version or 'latest'}"
    logger.debug("Resolved toolchain image %s -> %s", image, resolved)
    return resolved


class DockerToolchainExecutor:
    """Build and strip binaries by running cargo in a Docker container.

    The workspace is mounted at its host path so that paths in compiler
    diagnostics match the host, and the acap output directory is cargo's
    target directory inside the container.
    """

    def __init__(
        self,
        docker_adapter: DockerAdapterProtocol,
        image: str,
        docker_opts: list[str] | None = None,
        user_context: DockerUserContext | None = None,
        timeout: float | None = None,
    ) -> None:
        self.docker_adapter = docker_adapter
        self.image = image
        self.docker_opts = list(docker_opts or [])
        self.user_context = user_context
        self.timeout = timeout

    def check_available(self) -> None:
        if not self.docker_adapter.is_available():
            raise ToolchainUnavailableError(
                "Docker is not available; cannot start the toolchain container",
                {"image": self.image},
            )

    def execute(self, target: TargetDescriptor, project: CargoProject) -> ToolchainResult:
        command = ["cargo", "build", "--target", target.compiler_triple, "--release"]
        if project.manifest_path.name != "Cargo.toml":
            command.extend(["--manifest-path", str(project.manifest_path)])

        logger.info("Building %s (%s)", target.id, target.compiler_triple)
        failure = self._run(target, project, command)
        if failure is not None:
            return failure

        built = (
            project.output_dir / target.compiler_triple / "release" / project.package_name
        )
        if not built.is_file():
            return ToolchainResult.failed(
                f"cargo succeeded but {built} was not produced"
            )
        return ToolchainResult.ok(built)

    def strip(
        self,
        target: TargetDescriptor,
        project: CargoProject,
        built: Path,
        destination: Path,
    ) -> ToolchainResult:
        try:
            source = self._container_path(project, built)
            dest = self._container_path(project, destination)
        except ValueError as e:
            return ToolchainResult.failed(str(e))

        failure = self._run(target, project, [target.objcopy, "--strip-all", source, dest])
        if failure is not None:
            return failure
        if not destination.is_file():
            return ToolchainResult.failed(f"{target.objcopy} did not write {destination}")
        return ToolchainResult.ok(destination)

    def _run(
        self, target: TargetDescriptor, project: CargoProject, command: list[str]
    ) -> ToolchainResult | None:
        """Run ``command`` in the container; None on success."""
        try:
            project.output_dir.mkdir(parents=True, exist_ok=True)
            project.cargo_home.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return ToolchainResult.failed(f"cannot create build directories: {e}")

        middleware = LoggerOutputMiddleware(
            logger, stdout_prefix=f"[{target.id}] ", stderr_prefix=f"[{target.id}] "
        )
        name = container_name(target)
        try:
            return_code, _, stderr = self.docker_adapter.run_container(
                image=self.image,
                volumes=self._volumes(project),
                environment=self._environment(),
                command=command,
                middleware=middleware,
                user_context=self.user_context,
                workdir=str(project.root),
                extra_args=self.docker_opts,
                timeout=self.timeout,
                name=name,
            )
        except DockerError as e:
            return ToolchainResult.failed(str(e))

        if return_code == TIMEOUT_RETURN_CODE:
            # The container outlives its killed docker client
            self.docker_adapter.remove_container(name)
            return ToolchainResult.failed(
                f"{shlex.join(command)} timed out after {self.timeout}s"
            )
        if return_code != 0:
            tail = "\n".join(str(line) for line in stderr[-DIAGNOSTIC_TAIL:])
            message = f"{shlex.join(command)} exited with status {return_code}"
            return ToolchainResult.failed(f"{message}\n{tail}" if tail else message)
        return None

    def _volumes(self, project: CargoProject) -> list[DockerVolume]:
        workspace = str(project.workspace_root)
        return [
            (workspace, workspace, "Z"),
            (str(project.output_dir), CONTAINER_TARGET_DIR, "Z"),
            (str(project.cargo_home), CONTAINER_CARGO_HOME, "Z"),
        ]

    def _environment(self) -> DockerEnv:
        env: DockerEnv = {"CARGO_TARGET_DIR": CONTAINER_TARGET_DIR}
        if (
            self.user_context is not None
            and self.user_context.should_use_user_mapping()
            and self.user_context.username
        ):
            env["USER"] = self.user_context.username
        return env

    @staticmethod
    def _container_path(project: CargoProject, path: Path) -> str:
        try:
            relative = path.relative_to(project.output_dir)
        except ValueError:
            raise ValueError(f"{path} is outside {project.output_dir}") from None
        return f"{CONTAINER_TARGET_DIR}/{relative.as_posix()}"


def show_version(docker_adapter: DockerAdapterProtocol, image: str) -> list[str]:
    """Describe the toolchain image and the rustc release it carries."""
    return_code, images, _ = docker_adapter.list_images(image)
    if return_code != 0:
        raise ToolchainUnavailableError(f"docker images {image} failed")

    return_code, rustc, stderr = docker_adapter.run_container(
        image=image, volumes=[], environment={}, command=["rustc", "--version"]
    )
    if return_code != 0:
        raise ToolchainUnavailableError(
            f"cannot run rustc in {image}: " + "\n".join(str(s) for s in stderr)
        )
    return [str(line) for line in images] + [str(line) for line in rustc]


def create_toolchain_executor(
    image: str,
    docker_opts: list[str] | None = None,
    enable_user_mapping: bool = True,
    timeout: float | None = None,
    docker_adapter: DockerAdapterProtocol | None = None,
) -> DockerToolchainExecutor:
    """Create a DockerToolchainExecutor for ``image``.

    An untagged image is pinned to the local rustc version.
    """
    if docker_adapter is None:
        from acapbuild.adapters.docker_adapter import create_docker_adapter

        docker_adapter = create_docker_adapter()

    return DockerToolchainExecutor(
        docker_adapter=docker_adapter,
        image=resolve_docker_image(image),
        docker_opts=docker_opts,
        user_context=DockerUserContext.detect_current_user(enable_user_mapping),
        timeout=timeout,
    )
