"""acapbuild - cross-compile one Rust project into ACAP packages for every Axis target."""

from acapbuild.build.models import BuildFailure, BuildResult, BuildSuccess
from acapbuild.manifest.models import PackageManifest, StartMode
from acapbuild.manifest.resolver import MetadataResolver, resolve_manifest
from acapbuild.packaging.models import PackageArtifact
from acapbuild.pipeline import AcapPipeline, PipelineReport, create_pipeline
from acapbuild.targets.registry import (
    TARGET_REGISTRY,
    TargetDescriptor,
    TargetRegistry,
)


__all__ = [
    "AcapPipeline",
    "BuildFailure",
    "BuildResult",
    "BuildSuccess",
    "MetadataResolver",
    "PackageArtifact",
    "PackageManifest",
    "PipelineReport",
    "StartMode",
    "TARGET_REGISTRY",
    "TargetDescriptor",
    "TargetRegistry",
    "create_pipeline",
    "resolve_manifest",
]
