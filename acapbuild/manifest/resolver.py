"""Resolve raw project metadata into a validated PackageManifest."""

import re
from pathlib import PurePosixPath
from typing import Any

from pydantic import ValidationError

from acapbuild.core.errors import (
    ConfigError,
    InvalidAppNameError,
    InvalidEnumError,
)
from acapbuild.core.structlog_logger import get_struct_logger
from acapbuild.manifest.models import (
    AcapMetadata,
    PackageManifest,
    ProjectConfig,
    StartMode,
)
from acapbuild.manifest.package_conf import split_version
from acapbuild.targets.registry import TARGET_REGISTRY, TargetRegistry


logger = get_struct_logger(__name__)

# Used for file names, archive members, the install path and package.conf,
# so only characters that are safe in all of them are allowed.
APP_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9._-]*$")


class MetadataResolver:
    """Turn a :class:`ProjectConfig` into a :class:`PackageManifest`.

    Resolution is a pure function of the project config, the registry and the
    optional target override; it performs no I/O.
    """

    def __init__(self, registry: TargetRegistry | None = None) -> None:
        self.registry = registry or TARGET_REGISTRY

    def resolve(
        self,
        config: ProjectConfig | dict[str, Any],
        requested_targets: list[str] | None = None,
    ) -> PackageManifest:
        """Apply defaults and validate.

        Args:
            config: Project config, or a plain dict with ``project_name``,
                ``version`` and ``metadata`` keys
            requested_targets: Targets given on the command line; replaces
                the declared ``targets`` when not empty

        Returns:
            The frozen manifest

        Raises:
            ConfigError: If any field is invalid. No partial manifest is
                produced.
        """
        project = self._coerce(config)
        meta = project.metadata

        app_name = meta.app_name if meta.app_name is not None else project.project_name
        self._validate_app_name(app_name)
        self._validate_version(project.version)

        start_mode = self._resolve_start_mode(meta.start_mode)

        declared = requested_targets if requested_targets else meta.targets
        targets = self._resolve_targets(declared)

        data_dir = self._resolve_data_dir(meta.data_dir)

        manifest = PackageManifest(
            app_name=app_name,
            version=project.version,
            project_name=project.project_name,
            display_name=meta.display_name or "",
            menu_name=meta.menu_name or "",
            vendor=meta.vendor or "",
            vendor_homepage_url=meta.vendor_homepage_url or "",
            launch_arguments=meta.launch_arguments or "",
            license_check_arguments=meta.license_check_arguments or "",
            axis_application_id=meta.axis_application_id or "",
            start_mode=start_mode,
            targets=targets,
            data_dir=data_dir,
        )
        logger.debug(
            "manifest_resolved",
            app_name=manifest.app_name,
            version=manifest.version,
            targets=list(manifest.targets),
        )
        return manifest

    def _coerce(self, config: ProjectConfig | dict[str, Any]) -> ProjectConfig:
        if isinstance(config, ProjectConfig):
            return config
        try:
            return ProjectConfig.model_validate(config)
        except ValidationError as e:
            raise ConfigError(f"invalid [package.metadata.acap] table: {e}") from e

    def _validate_app_name(self, app_name: str) -> None:
        if not app_name:
            raise InvalidAppNameError(app_name, "must not be empty")
        if "/" in app_name or "\\" in app_name:
            raise InvalidAppNameError(app_name, "must not contain path separators")
        if not APP_NAME_PATTERN.match(app_name):
            raise InvalidAppNameError(
                app_name,
                "only letters, digits, '.', '_' and '-' are allowed, "
                "and it must not start with '.' or '-'",
            )

    def _validate_version(self, version: str) -> None:
        # package.conf needs numeric major/minor parts
        split_version(version)

    def _resolve_start_mode(self, value: str | None) -> StartMode | None:
        if value is None or value == "":
            return None
        try:
            return StartMode(value)
        except ValueError:
            raise InvalidEnumError("start_mode", value, StartMode.values()) from None

    def _resolve_targets(self, declared: list[str] | None) -> tuple[str, ...]:
        if declared is None:
            return self.registry.all_ids()
        if not declared:
            raise ConfigError("targets must list at least one target")

        resolved: list[str] = []
        for key in declared:
            # lookup() raises UnknownTargetError before anything is returned
            target_id = self.registry.lookup(key).id
            if target_id not in resolved:
                resolved.append(target_id)
        return tuple(resolved)

    def _resolve_data_dir(self, value: str | None) -> str:
        if not value:
            return ""
        path = PurePosixPath(value.replace("\\", "/"))
        if path.is_absolute() or ".." in path.parts:
            raise ConfigError(
                f"data_dir must be a relative path inside the project: {value!r}"
            )
        return str(path)


def resolve_manifest(
    config: ProjectConfig | dict[str, Any],
    registry: TargetRegistry | None = None,
    requested_targets: list[str] | None = None,
) -> PackageManifest:
    """Resolve ``config`` against ``registry`` (the built-in one by default)."""
    return MetadataResolver(registry).resolve(config, requested_targets)


def metadata_from_table(table: dict[str, Any] | None) -> AcapMetadata:
    """Validate a raw ``[package.metadata.acap]`` table."""
    try:
        return AcapMetadata.model_validate(table or {})
    except ValidationError as e:
        raise ConfigError(f"invalid [package.metadata.acap] table: {e}") from e
