"""
User configuration management for acapbuild.

Settings are read from, in order of precedence:
1. Environment variables (``ACAPBUILD_*``)
2. Command-line provided config file
3. ``acapbuild.yaml`` in the current directory
4. The user's XDG config directory
5. Default values
"""

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from acapbuild.config.models import UserConfigData
from acapbuild.core.errors import ConfigError


logger = logging.getLogger(__name__)

ENV_PREFIX = "ACAPBUILD_"


class UserConfig:
    """Loads :class:`UserConfigData` and remembers where each value came from."""

    def __init__(self, cli_config_path: str | Path | None = None) -> None:
        self._config_sources: dict[str, str] = {}
        self._config_path: Path | None = None
        self._config_paths = self._generate_config_paths(cli_config_path)
        self._cli_config_path = self._config_paths[0] if cli_config_path else None
        self._load_config()

    def _generate_config_paths(self, cli_config_path: str | Path | None) -> list[Path]:
        config_paths = []

        if cli_config_path:
            config_paths.append(Path(cli_config_path).expanduser().resolve())

        config_paths.extend([Path.cwd() / "acapbuild.yaml", Path.cwd() / ".acapbuild.yml"])

        xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
        config_root = (
            Path(xdg_config_home) if xdg_config_home else Path.home() / ".config"
        )
        config_paths.extend(
            [
                config_root / "acapbuild" / "config.yaml",
                config_root / "acapbuild" / "config.yml",
            ]
        )
        return config_paths

    def _load_config(self) -> None:
        if self._cli_config_path and not self._cli_config_path.exists():
            raise ConfigError(f"Config file not found: {self._cli_config_path}")

        config_data: dict[str, Any] = {}
        for path in self._config_paths:
            if path.is_file():
                config_data = self._read_yaml(path)
                self._config_path = path
                logger.debug("Loaded user configuration from %s", path)
                break
        else:
            logger.debug("No user configuration file found, using defaults")

        try:
            self._config = UserConfigData(**config_data)
        except ValidationError as e:
            source = self._config_path or "environment"
            raise ConfigError(f"Invalid configuration in {source}: {e}") from e

        if self._config_path is not None:
            for key in config_data:
                self._config_sources[key] = f"file:{self._config_path.name}"
        for env_name in os.environ:
            if env_name.startswith(ENV_PREFIX):
                key = env_name[len(ENV_PREFIX) :].lower()
                if key in UserConfigData.model_fields:
                    self._config_sources[key] = "environment"

    def _read_yaml(self, path: Path) -> dict[str, Any]:
        try:
            with path.open(encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Cannot read config file {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")
        return data

    @property
    def data(self) -> UserConfigData:
        return self._config

    @property
    def config_path(self) -> Path | None:
        """The config file that was loaded, if any."""
        return self._config_path

    def get_source(self, key: str) -> str:
        """Where ``key`` was set: ``environment``, ``file:<name>`` or ``default``."""
        return self._config_sources.get(key, "default")

    def get_log_level_int(self) -> int:
        return getattr(logging, self._config.log_level, logging.WARNING)


def create_user_config(cli_config_path: str | Path | None = None) -> UserConfig:
    """Create a UserConfig, searching the default locations."""
    return UserConfig(cli_config_path=cli_config_path)
