"""Installable package container formats.

The loader's container format is owned by the device firmware. Assembly only
decides *what* goes into a package; a serializer decides how those members
are written to disk, so the format can be swapped without touching assembly.
"""

import gzip
import io
import os
import tarfile
import tempfile
from pathlib import Path
from typing import Protocol, runtime_checkable

from acapbuild.packaging.models import PackageMember


@runtime_checkable
class PackageSerializerProtocol(Protocol):
    """Writes package members to a container file."""

    extension: str

    def write(self, destination: Path, members: list[PackageMember]) -> None:
        """Write ``members`` to ``destination``, replacing it atomically.

        Raises:
            OSError: If the file cannot be written
        """
        ...


class TarGzPackageSerializer:
    """Gzip-compressed tar archive with reproducible bytes.

    Members are sorted by name, and every timestamp and ownership field is
    zeroed, so identical members always produce an identical file.
    """

    extension = ".eap"

    def __init__(self, compresslevel: int = 9) -> None:
        self.compresslevel = compresslevel

    def write(self, destination: Path, members: list[PackageMember]) -> None:
        destination.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{destination.name}.", dir=destination.parent
        )
        try:
            with os.fdopen(fd, "wb") as raw:
                self._write_archive(raw, members)
            os.replace(tmp_name, destination)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _write_archive(self, raw: io.BufferedIOBase, members: list[PackageMember]) -> None:
        with gzip.GzipFile(
            filename="",
            mode="wb",
            fileobj=raw,
            compresslevel=self.compresslevel,
            mtime=0,
        ) as gz:
            with tarfile.open(fileobj=gz, mode="w", format=tarfile.GNU_FORMAT) as tar:
                for member in sorted(members, key=lambda m: m.name):
                    info = tarfile.TarInfo(member.name)
                    info.mtime = 0
                    info.uid = info.gid = 0
                    info.uname = info.gname = ""
                    info.mode = member.mode
                    if member.is_dir:
                        info.type = tarfile.DIRTYPE
                        tar.addfile(info)
                        continue
                    data = member.read()
                    info.size = len(data)
                    tar.addfile(info, io.BytesIO(data))


def create_package_serializer() -> PackageSerializerProtocol:
    return TarGzPackageSerializer()
