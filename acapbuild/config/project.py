"""Load the Cargo project being packaged."""

import json
import logging
import os
import subprocess
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from acapbuild.core.errors import ConfigError
from acapbuild.manifest.models import ProjectConfig
from acapbuild.manifest.resolver import metadata_from_table


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CargoProject:
    """A Cargo package and the directories the build needs.

    Attributes:
        manifest_path: Absolute path of the package's Cargo.toml
        package_name: Cargo package name, also the built binary's name
        version: Cargo package version
        metadata: Raw ``[package.metadata.acap]`` table
        workspace_root: Root of the enclosing Cargo workspace
        target_dir: Cargo's target directory
        cargo_home: Cargo home, mounted into the toolchain container
    """

    manifest_path: Path
    package_name: str
    version: str
    metadata: dict[str, Any]
    workspace_root: Path
    target_dir: Path
    cargo_home: Path

    @property
    def root(self) -> Path:
        return self.manifest_path.parent

    @property
    def output_dir(self) -> Path:
        """Directory receiving the ``.eap`` and ``.elf`` files."""
        return self.target_dir / "acap"

    def to_project_config(self) -> ProjectConfig:
        return ProjectConfig(
            project_name=self.package_name,
            version=self.version,
            metadata=metadata_from_table(self.metadata),
        )

    def data_path(self, data_dir: str) -> Path | None:
        if not data_dir:
            return None
        return self.root / data_dir


def load_cargo_project(
    manifest_path: str | Path = "Cargo.toml", use_cargo_metadata: bool = True
) -> CargoProject:
    """Read ``Cargo.toml`` and locate the workspace and target directories.

    ``cargo metadata`` is asked for the workspace root and target directory
    when cargo is installed; otherwise the manifest's directory and its
    ``target/`` (or ``$CARGO_TARGET_DIR``) are used.

    Raises:
        ConfigError: If the manifest cannot be read or lacks a [package] table
    """
    path = Path(manifest_path).expanduser().resolve()
    try:
        with path.open("rb") as f:
            document = tomllib.load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"Cargo manifest not found: {path}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Cannot parse {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    package = document.get("package")
    if not isinstance(package, dict):
        raise ConfigError(f"{path} has no [package] table")

    name = package.get("name")
    version = package.get("version")
    if not isinstance(name, str) or not name:
        raise ConfigError(f"{path} does not declare package.name")
    if not isinstance(version, str):
        # version.workspace = true and friends are not supported
        raise ConfigError(f"{path} does not declare a literal package.version")

    package_metadata = package.get("metadata") or {}
    acap_table = (
        package_metadata.get("acap", {}) if isinstance(package_metadata, dict) else None
    )
    if not isinstance(acap_table, dict):
        raise ConfigError(f"{path}: [package.metadata.acap] must be a table")

    workspace_root, target_dir = _locate_workspace(path, use_cargo_metadata)

    project = CargoProject(
        manifest_path=path,
        package_name=name,
        version=version,
        metadata=acap_table,
        workspace_root=workspace_root,
        target_dir=target_dir,
        cargo_home=_cargo_home(),
    )
    logger.debug(
        "Loaded Cargo project %s %s (workspace %s, target %s)",
        name,
        version,
        workspace_root,
        target_dir,
    )
    return project


def _locate_workspace(manifest_path: Path, use_cargo_metadata: bool) -> tuple[Path, Path]:
    if use_cargo_metadata:
        located = _cargo_metadata(manifest_path)
        if located is not None:
            return located

    root = manifest_path.parent
    env_target = os.environ.get("CARGO_TARGET_DIR")
    target_dir = Path(env_target).resolve() if env_target else root / "target"
    return root, target_dir


def _cargo_metadata(manifest_path: Path) -> tuple[Path, Path] | None:
    cmd = [
        "cargo",
        "metadata",
        "--format-version",
        "1",
        "--no-deps",
        "--manifest-path",
        str(manifest_path),
    ]
    try:
        result = subprocess.run(cmd, check=True, capture_output=True, text=True)
        data = json.loads(result.stdout)
        return Path(data["workspace_root"]), Path(data["target_directory"])
    except FileNotFoundError:
        logger.debug("cargo not found, falling back to manifest directory layout")
    except subprocess.CalledProcessError as e:
        logger.warning("cargo metadata failed: %s", (e.stderr or "").strip())
    except (json.JSONDecodeError, KeyError) as e:
        logger.warning("Unexpected cargo metadata output: %s", e)
    return None


def _cargo_home() -> Path:
    env_home = os.environ.get("CARGO_HOME")
    if env_home:
        return Path(env_home).expanduser().resolve()
    return Path.home() / ".cargo"
