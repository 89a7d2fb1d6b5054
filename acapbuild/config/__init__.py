"""Configuration loading."""

from acapbuild.config.models import UserConfigData
from acapbuild.config.project import CargoProject, load_cargo_project
from acapbuild.config.user_config import UserConfig, create_user_config


__all__ = [
    "CargoProject",
    "UserConfig",
    "UserConfigData",
    "create_user_config",
    "load_cargo_project",
]
