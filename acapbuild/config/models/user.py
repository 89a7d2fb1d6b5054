"""User configuration models."""

import os
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_DOCKER_IMAGE = "trunnion/cargo-acap"


def _default_jobs() -> int:
    return os.cpu_count() or 1


class UserConfigData(BaseSettings):
    """User configuration with automatic environment variable support.

    Precedence order (highest to lowest):
    1. Environment variables (``ACAPBUILD_*``)
    2. Constructor arguments (config file data)
    3. Default values
    """

    model_config = SettingsConfigDict(
        env_prefix="ACAPBUILD_",
        case_sensitive=False,
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: Any,
        env_settings: Any,
        dotenv_settings: Any,
        file_secret_settings: Any,
    ) -> tuple[Any, ...]:
        """Environment variables override file configuration."""
        return (env_settings, init_settings, file_secret_settings)

    docker_image: str = Field(
        default=DEFAULT_DOCKER_IMAGE,
        description="Toolchain image; the local rustc version is used as tag when none is given",
    )

    jobs: int = Field(
        default_factory=_default_jobs,
        ge=1,
        description="Maximum number of targets built at the same time",
    )

    build_timeout: float | None = Field(
        default=None,
        gt=0,
        description="Seconds after which a toolchain container is killed",
    )

    docker_opts: str = Field(
        default_factory=lambda: os.environ.get("DOCKER_OPTS", ""),
        description="Extra arguments for docker run, space separated",
    )

    enable_user_mapping: bool = Field(
        default=True,
        description="Run containers as the current user so outputs stay user-owned",
    )

    log_level: str = "WARNING"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {v}")
        return level

    @field_validator("docker_image")
    @classmethod
    def validate_docker_image(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("docker_image cannot be empty")
        return v.strip()

    def docker_opts_list(self) -> list[str]:
        return [opt for opt in self.docker_opts.split(" ") if opt]
