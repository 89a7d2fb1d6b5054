"""Package manifest models and resolution."""

from acapbuild.manifest.models import (
    AcapMetadata,
    PackageManifest,
    ProjectConfig,
    StartMode,
)
from acapbuild.manifest.resolver import MetadataResolver, resolve_manifest


__all__ = [
    "AcapMetadata",
    "MetadataResolver",
    "PackageManifest",
    "ProjectConfig",
    "StartMode",
    "resolve_manifest",
]
