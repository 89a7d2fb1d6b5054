"""Packaging data models."""

from pathlib import Path

from pydantic import BaseModel, ConfigDict


class PackageMember(BaseModel):
    """One entry of the package archive.

    ``name`` is relative to the application's install directory. Exactly one
    of ``data`` and ``source`` is set for files; directories have neither.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    mode: int = 0o644
    data: bytes | None = None
    source: Path | None = None
    is_dir: bool = False

    def read(self) -> bytes:
        if self.data is not None:
            return self.data
        if self.source is not None:
            return self.source.read_bytes()
        return b""


class PackageArtifact(BaseModel):
    """The files produced for one target."""

    model_config = ConfigDict(frozen=True)

    target_id: str
    eap_path: Path
    elf_path: Path
