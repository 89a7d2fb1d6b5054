"""Assemble the installable package for one built target."""

import shutil
import stat
from pathlib import Path

from acapbuild.build.models import BuildResult, BuildSuccess
from acapbuild.core.errors import PackagingError
from acapbuild.core.structlog_logger import StructlogMixin
from acapbuild.manifest.models import PackageManifest
from acapbuild.manifest.package_conf import PackageConf
from acapbuild.packaging.models import PackageArtifact, PackageMember
from acapbuild.packaging.serializer import (
    PackageSerializerProtocol,
    create_package_serializer,
)


PACKAGE_CONF = "package.conf"
CGI_PATHS_FILE = "cgi.txt"


class PackageAssembler(StructlogMixin):
    """Lay out package contents and write the archive and its companion ELF.

    Archive members are relative to the application's install directory
    (``/usr/local/packages/<app_name>``): the stripped executable is named
    after the application, and the data directory is copied beneath it.
    """

    def __init__(
        self,
        output_dir: Path,
        data_path: Path | None = None,
        serializer: PackageSerializerProtocol | None = None,
    ) -> None:
        super().__init__()
        self.output_dir = output_dir
        self.data_path = data_path
        self.serializer = serializer or create_package_serializer()

    def assemble(self, manifest: PackageManifest, result: BuildResult) -> PackageArtifact:
        """Write ``<stem>.eap`` next to ``<stem>.elf`` for one target.

        Raises:
            PackagingError: If the build failed or any file cannot be
                read or written
        """
        if not isinstance(result.outcome, BuildSuccess):
            raise PackagingError(
                f"{result.target.id} was not built; nothing to package",
                {"target": result.target.id},
            )
        outcome = result.outcome
        stem = manifest.artifact_stem(result.target.id)
        eap_path = self.output_dir / f"{stem}{self.serializer.extension}"
        elf_path = self.output_dir / f"{stem}.elf"
        log = self.log_operation("assemble", target=result.target.id)

        try:
            if outcome.unstripped_path != elf_path:
                shutil.copy2(outcome.unstripped_path, elf_path)

            data_members = self._data_members()
            top_level = sorted({m.name.split("/", 1)[0] for m in data_members})
            for reserved in (manifest.app_name, PACKAGE_CONF):
                if reserved in top_level:
                    raise PackagingError(
                        f"data directory must not contain {reserved!r}",
                        {"target": result.target.id},
                    )

            has_cgi = CGI_PATHS_FILE in top_level
            conf = PackageConf.from_manifest(
                manifest,
                other_files=[n for n in top_level if n != CGI_PATHS_FILE],
                http_cgi_paths=CGI_PATHS_FILE if has_cgi else None,
            )
            members = [
                PackageMember(
                    name=manifest.app_name,
                    mode=0o755,
                    source=outcome.artifact_path,
                ),
                PackageMember(name=PACKAGE_CONF, data=conf.render().encode()),
                *data_members,
            ]
            self.serializer.write(eap_path, members)
        except PackagingError:
            elf_path.unlink(missing_ok=True)
            raise
        except OSError as e:
            # No lone .elf for a target whose package was not written
            elf_path.unlink(missing_ok=True)
            log.warning("packaging_failed", error=str(e))
            raise PackagingError(
                f"cannot package {result.target.id}: {e}",
                {"target": result.target.id},
            ) from e

        # The stripped executable only exists inside the package
        if outcome.artifact_path.parent == self.output_dir:
            outcome.artifact_path.unlink(missing_ok=True)

        log.info("package_written", eap=str(eap_path))
        return PackageArtifact(
            target_id=result.target.id, eap_path=eap_path, elf_path=elf_path
        )

    def _data_members(self) -> list[PackageMember]:
        """Members for the data directory, copied verbatim."""
        if self.data_path is None:
            return []
        if not self.data_path.is_dir():
            raise OSError(f"data directory {self.data_path} is not readable")

        members: list[PackageMember] = []
        self._walk(self.data_path, self.data_path, members)
        return members

    def _walk(self, root: Path, directory: Path, members: list[PackageMember]) -> None:
        # iterdir raises on an unreadable directory instead of skipping it
        for path in sorted(directory.iterdir()):
            name = path.relative_to(root).as_posix()
            mode = stat.S_IMODE(path.stat().st_mode)
            if path.is_dir():
                members.append(PackageMember(name=name, mode=mode, is_dir=True))
                self._walk(root, path, members)
            else:
                members.append(PackageMember(name=name, mode=mode, source=path))


def create_package_assembler(
    output_dir: Path,
    data_path: Path | None = None,
    serializer: PackageSerializerProtocol | None = None,
) -> PackageAssembler:
    return PackageAssembler(output_dir=output_dir, data_path=data_path, serializer=serializer)
