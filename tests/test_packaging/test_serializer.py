"""Tests for the tar.gz package serializer."""

import gzip
import tarfile

import pytest

from acapbuild.packaging.models import PackageMember
from acapbuild.packaging.serializer import (
    PackageSerializerProtocol,
    TarGzPackageSerializer,
    create_package_serializer,
)


def _members():
    return [
        PackageMember(name="package.conf", data=b'APPNAME="demo"\n'),
        PackageMember(name="demo", mode=0o755, data=b"\x7fELF"),
        PackageMember(name="html", mode=0o755, is_dir=True),
        PackageMember(name="html/index.html", data=b"<html></html>"),
    ]


class TestTarGzPackageSerializer:
    """Test archive layout and reproducibility."""

    def test_protocol(self):
        serializer = create_package_serializer()
        assert isinstance(serializer, PackageSerializerProtocol)
        assert serializer.extension == ".eap"

    def test_members_written_sorted_with_zeroed_metadata(self, tmp_path):
        destination = tmp_path / "demo.eap"
        TarGzPackageSerializer().write(destination, _members())

        with tarfile.open(destination, "r:gz") as tar:
            infos = tar.getmembers()
            assert [i.name for i in infos] == [
                "demo",
                "html",
                "html/index.html",
                "package.conf",
            ]
            for info in infos:
                assert info.mtime == 0
                assert info.uid == 0 and info.gid == 0
                assert info.uname == "" and info.gname == ""
            assert tar.getmember("demo").mode == 0o755
            assert tar.getmember("html").isdir()
            assert tar.extractfile("html/index.html").read() == b"<html></html>"

    def test_gzip_header_has_no_timestamp(self, tmp_path):
        destination = tmp_path / "demo.eap"
        TarGzPackageSerializer().write(destination, _members())
        header = destination.read_bytes()[:10]
        assert header[:2] == b"\x1f\x8b"
        assert header[4:8] == b"\x00\x00\x00\x00"
        with gzip.open(destination) as f:
            f.read()

    def test_byte_identical_regardless_of_member_order(self, tmp_path):
        first = tmp_path / "a.eap"
        second = tmp_path / "b.eap"
        serializer = TarGzPackageSerializer()
        serializer.write(first, _members())
        serializer.write(second, list(reversed(_members())))
        assert first.read_bytes() == second.read_bytes()

    def test_member_from_source_file(self, tmp_path):
        source = tmp_path / "binary"
        source.write_bytes(b"payload")
        destination = tmp_path / "out" / "demo.eap"
        TarGzPackageSerializer().write(
            destination, [PackageMember(name="demo", mode=0o755, source=source)]
        )
        with tarfile.open(destination, "r:gz") as tar:
            assert tar.extractfile("demo").read() == b"payload"

    def test_failed_write_leaves_no_partial_file(self, tmp_path):
        destination = tmp_path / "demo.eap"
        missing = PackageMember(name="demo", source=tmp_path / "does-not-exist")
        with pytest.raises(OSError):
            TarGzPackageSerializer().write(destination, [missing])
        assert list(tmp_path.iterdir()) == []
