"""Core test fixtures for the acapbuild project."""

import os
import threading
from collections.abc import Generator
from pathlib import Path
from unittest.mock import Mock

import pytest
from typer.testing import CliRunner

from acapbuild.config.project import CargoProject, load_cargo_project
from acapbuild.core.errors import ToolchainUnavailableError
from acapbuild.protocols.docker_adapter_protocol import DockerAdapterProtocol
from acapbuild.protocols.toolchain_protocol import ToolchainResult
from acapbuild.targets.registry import TargetDescriptor


CARGO_TOML = """\
[package]
name = "demo"
version = "0.1.0"
edition = "2021"

[package.metadata.acap]
targets = ["aarch64", "mips"]
"""


class FakeToolchainExecutor:
    """Deterministic stand-in for the Docker toolchain.

    ``execute`` writes ``ELF:<target id>`` where cargo would put the binary and
    ``strip`` writes ``STRIPPED:<target id>``. Targets listed in
    ``fail_targets`` fail to compile.
    """

    def __init__(
        self,
        fail_targets: set[str] | None = None,
        fail_strip: set[str] | None = None,
        available: bool = True,
    ) -> None:
        self.fail_targets = fail_targets or set()
        self.fail_strip = fail_strip or set()
        self.available = available
        self.image = "trunnion/cargo-acap:1.70.0"
        self.executed: list[str] = []
        self.stripped: list[str] = []
        self._lock = threading.Lock()

    def check_available(self) -> None:
        if not self.available:
            raise ToolchainUnavailableError("docker is not installed")

    def execute(self, target: TargetDescriptor, project: CargoProject) -> ToolchainResult:
        with self._lock:
            self.executed.append(target.id)
        if target.id in self.fail_targets:
            return ToolchainResult.failed(f"error[E0425]: cannot find value in {target.id}")
        built = project.output_dir / target.compiler_triple / "release" / project.package_name
        built.parent.mkdir(parents=True, exist_ok=True)
        built.write_bytes(f"ELF:{target.id}".encode())
        return ToolchainResult.ok(built)

    def strip(
        self,
        target: TargetDescriptor,
        project: CargoProject,
        built: Path,
        destination: Path,
    ) -> ToolchainResult:
        with self._lock:
            self.stripped.append(target.id)
        if target.id in self.fail_strip:
            return ToolchainResult.failed("objcopy: unrecognized file format")
        destination.write_bytes(f"STRIPPED:{target.id}".encode())
        return ToolchainResult.ok(destination)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Return a Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[Path, None, None]:
    """Run in an empty directory with no user config or acapbuild env vars."""
    work = tmp_path / "work"
    work.mkdir()
    monkeypatch.chdir(work)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.setenv("CARGO_HOME", str(tmp_path / "cargo-home"))
    monkeypatch.delenv("CARGO_TARGET_DIR", raising=False)
    monkeypatch.delenv("DOCKER_OPTS", raising=False)
    for name in list(os.environ):
        if name.startswith("ACAPBUILD_"):
            monkeypatch.delenv(name)
    yield work


@pytest.fixture
def cargo_manifest(isolated_env: Path) -> Path:
    """A minimal binary crate named ``demo`` building aarch64 and mips."""
    project_dir = isolated_env / "demo"
    (project_dir / "src").mkdir(parents=True)
    (project_dir / "src" / "main.rs").write_text('fn main() { println!("hi"); }\n')
    manifest = project_dir / "Cargo.toml"
    manifest.write_text(CARGO_TOML)
    return manifest


@pytest.fixture
def cargo_project(cargo_manifest: Path) -> CargoProject:
    return load_cargo_project(cargo_manifest, use_cargo_metadata=False)


@pytest.fixture
def fake_executor() -> FakeToolchainExecutor:
    return FakeToolchainExecutor()


@pytest.fixture
def executor_factory() -> type[FakeToolchainExecutor]:
    """The fake executor class, for tests that need failing targets."""
    return FakeToolchainExecutor


@pytest.fixture
def mock_docker_adapter() -> Mock:
    """Create a mock Docker adapter for testing."""
    adapter = Mock(spec=DockerAdapterProtocol)
    adapter.is_available.return_value = True
    adapter.run_container.return_value = (0, [], [])
    adapter.list_images.return_value = (0, [], [])
    adapter.remove_container.return_value = True
    return adapter
