"""Tests for the Docker toolchain executor."""

import subprocess
from unittest.mock import Mock, patch

import pytest

from acapbuild.core.errors import DockerError, ToolchainUnavailableError
from acapbuild.models.docker import DockerUserContext
from acapbuild.protocols.toolchain_protocol import ToolchainExecutorProtocol
from acapbuild.targets.registry import TARGET_REGISTRY
from acapbuild.toolchain.executor import (
    DockerToolchainExecutor,
    create_toolchain_executor,
    image_has_tag,
    local_rustc_version,
    resolve_docker_image,
    show_version,
)
from acapbuild.utils.stream_process import TIMEOUT_RETURN_CODE


AARCH64 = TARGET_REGISTRY.lookup("aarch64")


@pytest.fixture
def user_context():
    return DockerUserContext(uid=1000, gid=1000, username="dev")


@pytest.fixture
def executor(mock_docker_adapter, user_context):
    return DockerToolchainExecutor(
        mock_docker_adapter,
        image="trunnion/cargo-acap:1.70.0",
        docker_opts=["--network", "host"],
        user_context=user_context,
        timeout=600,
    )


def _write_built(project, target=AARCH64):
    built = project.output_dir / target.compiler_triple / "release" / project.package_name
    built.parent.mkdir(parents=True, exist_ok=True)
    built.write_bytes(b"\x7fELF")
    return built


class TestExecute:
    """Test the cargo build invocation."""

    def test_docker_run_line(self, executor, mock_docker_adapter, cargo_project):
        _write_built(cargo_project)
        with patch("acapbuild.models.docker.platform.system", return_value="Linux"):
            result = executor.execute(AARCH64, cargo_project)

        assert result.success
        assert result.artifact_path == (
            cargo_project.output_dir / "aarch64-axis-linux-gnu" / "release" / "demo"
        )

        kwargs = mock_docker_adapter.run_container.call_args.kwargs
        workspace = str(cargo_project.workspace_root)
        assert kwargs["image"] == "trunnion/cargo-acap:1.70.0"
        assert kwargs["command"] == [
            "cargo",
            "build",
            "--target",
            "aarch64-axis-linux-gnu",
            "--release",
        ]
        assert kwargs["volumes"] == [
            (workspace, workspace, "Z"),
            (str(cargo_project.output_dir), "/target", "Z"),
            (str(cargo_project.cargo_home), "/.cargo", "Z"),
        ]
        assert kwargs["environment"] == {"CARGO_TARGET_DIR": "/target", "USER": "dev"}
        assert kwargs["workdir"] == str(cargo_project.root)
        assert kwargs["extra_args"] == ["--network", "host"]
        assert kwargs["timeout"] == 600

    def test_creates_mounted_directories(self, executor, cargo_project):
        executor.execute(AARCH64, cargo_project)
        assert cargo_project.output_dir.is_dir()
        assert cargo_project.cargo_home.is_dir()

    def test_non_default_manifest_name(self, executor, mock_docker_adapter, cargo_project):
        from dataclasses import replace

        project = replace(
            cargo_project, manifest_path=cargo_project.root / "Other.toml"
        )
        executor.execute(AARCH64, project)
        command = mock_docker_adapter.run_container.call_args.kwargs["command"]
        assert command[-2:] == ["--manifest-path", str(project.manifest_path)]

    def test_compile_error_diagnostic(self, executor, mock_docker_adapter, cargo_project):
        mock_docker_adapter.run_container.return_value = (
            101,
            [],
            ["   Compiling demo v0.1.0", "error[E0308]: mismatched types"],
        )
        result = executor.execute(AARCH64, cargo_project)

        assert not result.success
        assert "exited with status 101" in result.diagnostic
        assert "mismatched types" in result.diagnostic

    def test_timeout(self, executor, mock_docker_adapter, cargo_project):
        mock_docker_adapter.run_container.return_value = (TIMEOUT_RETURN_CODE, [], [])
        result = executor.execute(AARCH64, cargo_project)
        assert not result.success
        assert "timed out after 600s" in result.diagnostic
        name = mock_docker_adapter.run_container.call_args.kwargs["name"]
        assert name.startswith("acapbuild-aarch64-")
        mock_docker_adapter.remove_container.assert_called_once_with(name)

    def test_each_run_gets_its_own_container(
        self, executor, mock_docker_adapter, cargo_project
    ):
        executor.execute(AARCH64, cargo_project)
        executor.execute(AARCH64, cargo_project)
        names = [c.kwargs["name"] for c in mock_docker_adapter.run_container.call_args_list]
        assert len(set(names)) == 2
        mock_docker_adapter.remove_container.assert_not_called()

    def test_docker_error_becomes_failure(self, executor, mock_docker_adapter, cargo_project):
        mock_docker_adapter.run_container.side_effect = DockerError("docker vanished")
        result = executor.execute(AARCH64, cargo_project)
        assert not result.success
        assert result.diagnostic == "docker vanished"

    def test_missing_binary_after_success(self, executor, cargo_project):
        result = executor.execute(AARCH64, cargo_project)
        assert not result.success
        assert "was not produced" in result.diagnostic


class TestStrip:
    """Test the objcopy invocation."""

    def test_strip_paths_inside_container(
        self, executor, mock_docker_adapter, cargo_project
    ):
        built = _write_built(cargo_project)
        destination = cargo_project.output_dir / "demo_0.1.0_aarch64.stripped"
        destination.write_bytes(b"stripped")

        result = executor.strip(AARCH64, cargo_project, built, destination)

        assert result.success
        assert result.artifact_path == destination
        assert mock_docker_adapter.run_container.call_args.kwargs["command"] == [
            "aarch64-linux-gnu-objcopy",
            "--strip-all",
            "/target/aarch64-axis-linux-gnu/release/demo",
            "/target/demo_0.1.0_aarch64.stripped",
        ]

    def test_strip_outside_output_dir(self, executor, cargo_project, tmp_path):
        result = executor.strip(
            AARCH64, cargo_project, tmp_path / "elsewhere", tmp_path / "out"
        )
        assert not result.success
        assert "outside" in result.diagnostic

    def test_strip_failure(self, executor, mock_docker_adapter, cargo_project):
        built = _write_built(cargo_project)
        mock_docker_adapter.run_container.return_value = (1, [], ["bad format"])
        result = executor.strip(
            AARCH64, cargo_project, built, cargo_project.output_dir / "x.stripped"
        )
        assert not result.success
        assert "bad format" in result.diagnostic


class TestAvailability:
    """Test toolchain availability checks."""

    def test_available(self, executor):
        executor.check_available()

    def test_unavailable(self, executor, mock_docker_adapter):
        mock_docker_adapter.is_available.return_value = False
        with pytest.raises(ToolchainUnavailableError):
            executor.check_available()

    def test_satisfies_protocol(self, executor):
        assert isinstance(executor, ToolchainExecutorProtocol)


class TestImageResolution:
    """Test pinning of untagged images to the local rustc version."""

    @pytest.mark.parametrize(
        "image,expected",
        [
            ("trunnion/cargo-acap", False),
            ("trunnion/cargo-acap:1.70.0", True),
            ("localhost:5000/cargo-acap", False),
            ("localhost:5000/cargo-acap:dev", True),
        ],
    )
    def test_image_has_tag(self, image, expected):
        assert image_has_tag(image) is expected

    def test_tagged_image_untouched(self):
        with patch("acapbuild.toolchain.executor.local_rustc_version") as rustc:
            assert resolve_docker_image("img:custom") == "img:custom"
        rustc.assert_not_called()

    def test_untagged_uses_rustc_version(self):
        with patch(
            "acapbuild.toolchain.executor.local_rustc_version", return_value="1.70.0"
        ):
            assert resolve_docker_image("trunnion/cargo-acap") == (
                "trunnion/cargo-acap:1.70.0"
            )

    def test_untagged_without_rustc(self):
        with patch("acapbuild.toolchain.executor.local_rustc_version", return_value=None):
            assert resolve_docker_image("trunnion/cargo-acap") == (
                "trunnion/cargo-acap:latest"
            )

    def test_local_rustc_version_parsed(self):
        completed = Mock(stdout="rustc 1.70.0 (90c541806 2023-05-31)\n")
        with patch("subprocess.run", return_value=completed):
            assert local_rustc_version() == "1.70.0"

    def test_local_rustc_missing(self):
        with patch("subprocess.run", side_effect=FileNotFoundError("rustc")):
            assert local_rustc_version() is None

    def test_local_rustc_garbage(self):
        with patch("subprocess.run", return_value=Mock(stdout="nonsense")):
            assert local_rustc_version() is None

    def test_local_rustc_fails(self):
        with patch(
            "subprocess.run", side_effect=subprocess.CalledProcessError(1, "rustc")
        ):
            assert local_rustc_version() is None


class TestShowVersion:
    """Test toolchain description."""

    def test_show_version(self, mock_docker_adapter):
        mock_docker_adapter.list_images.return_value = (
            0,
            ["REPOSITORY  TAG", "trunnion/cargo-acap  1.70.0"],
            [],
        )
        mock_docker_adapter.run_container.return_value = (
            0,
            ["rustc 1.70.0 (90c541806 2023-05-31)"],
            [],
        )
        lines = show_version(mock_docker_adapter, "trunnion/cargo-acap:1.70.0")
        assert lines[-1].startswith("rustc 1.70.0")
        assert mock_docker_adapter.run_container.call_args.kwargs["command"] == [
            "rustc",
            "--version",
        ]

    def test_show_version_image_unusable(self, mock_docker_adapter):
        mock_docker_adapter.run_container.return_value = (125, [], ["no such image"])
        with pytest.raises(ToolchainUnavailableError, match="no such image"):
            show_version(mock_docker_adapter, "img:1")


def test_create_toolchain_executor(mock_docker_adapter):
    with patch(
        "acapbuild.toolchain.executor.local_rustc_version", return_value="1.71.1"
    ):
        executor = create_toolchain_executor(
            "trunnion/cargo-acap",
            docker_opts=["--privileged"],
            enable_user_mapping=False,
            timeout=30,
            docker_adapter=mock_docker_adapter,
        )
    assert executor.image == "trunnion/cargo-acap:1.71.1"
    assert executor.docker_opts == ["--privileged"]
    assert executor.user_context.enable_user_mapping is False
    assert executor.timeout == 30
