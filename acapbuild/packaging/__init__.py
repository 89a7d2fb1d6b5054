"""Installable package assembly."""

from acapbuild.packaging.assembler import PackageAssembler, create_package_assembler
from acapbuild.packaging.models import PackageArtifact, PackageMember
from acapbuild.packaging.serializer import (
    PackageSerializerProtocol,
    TarGzPackageSerializer,
    create_package_serializer,
)


__all__ = [
    "PackageArtifact",
    "PackageAssembler",
    "PackageMember",
    "PackageSerializerProtocol",
    "TarGzPackageSerializer",
    "create_package_assembler",
    "create_package_serializer",
]
