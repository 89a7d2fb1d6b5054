"""Packaging metadata models.

``AcapMetadata`` mirrors the ``[package.metadata.acap]`` table exactly as the
user wrote it: every field optional, nothing validated beyond types.
``PackageManifest`` is the resolved, validated and frozen result.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_snake

from acapbuild.models.base import AcapBaseModel


class StartMode(str, Enum):
    """How the device starts the application after installation."""

    RESPAWN = "respawn"
    ONCE = "once"
    NEVER = "never"

    @classmethod
    def values(cls) -> list[str]:
        return [mode.value for mode in cls]


def _kebab(name: str) -> str:
    return to_snake(name).replace("_", "-")


class AcapMetadata(AcapBaseModel):
    """Raw ``[package.metadata.acap]`` table.

    Keys may be written in snake_case or kebab-case.
    """

    model_config = ConfigDict(
        extra="ignore",
        populate_by_name=True,
        alias_generator=_kebab,
    )

    app_name: str | None = None
    display_name: str | None = None
    menu_name: str | None = None
    vendor: str | None = None
    vendor_homepage_url: str | None = None
    launch_arguments: str | None = None
    license_check_arguments: str | None = None
    axis_application_id: str | None = None
    # Left as a string so the resolver can report it as an enum error
    start_mode: str | None = None
    targets: list[str] | None = None
    data_dir: str | None = None


class ProjectConfig(AcapBaseModel):
    """Everything the resolver needs to know about the source project."""

    project_name: str
    version: str
    metadata: AcapMetadata = Field(default_factory=AcapMetadata)


class PackageManifest(BaseModel):
    """Resolved packaging configuration for one project version.

    Built once per invocation by :class:`MetadataResolver` and never mutated.
    """

    model_config = ConfigDict(frozen=True)

    app_name: str
    version: str
    project_name: str
    display_name: str = ""
    menu_name: str = ""
    vendor: str = ""
    vendor_homepage_url: str = ""
    launch_arguments: str = ""
    license_check_arguments: str = ""
    axis_application_id: str = ""
    start_mode: StartMode | None = None
    targets: tuple[str, ...] = ()
    data_dir: str = ""

    def artifact_stem(self, target_id: str) -> str:
        """Base file name shared by the ``.eap`` and ``.elf`` of a target."""
        return f"{self.app_name}_{self.version}_{target_id}"

    @property
    def install_path(self) -> str:
        """Directory the package loader installs the application into."""
        return f"/usr/local/packages/{self.app_name}"

    @property
    def executable_install_path(self) -> str:
        return f"{self.install_path}/{self.app_name}"


__all__ = ["AcapMetadata", "PackageManifest", "ProjectConfig", "StartMode"]
