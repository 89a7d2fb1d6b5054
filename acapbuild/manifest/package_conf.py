"""Render the ``package.conf`` control file read by the ACAP package loader.

The file is a shell include: one ``KEY="value"`` assignment per line.
"""

import html
import re
from dataclasses import dataclass
from enum import Enum

from acapbuild.core.errors import ConfigError, PackagingError
from acapbuild.manifest.models import PackageManifest, StartMode


# Minimum embedded development version; firmware 5.60 corresponds to 2.0
REQUIRED_EMBEDDED_DEVELOPMENT_VERSION = "2.0"
DEFAULT_UNIX_USER = "sdk"
DEFAULT_UNIX_GROUP = "sdk"

SEMVER_PATTERN = re.compile(
    r"^(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)"
    r"(?:-(?P<pre>[0-9A-Za-z.-]+))?(?:\+(?P<build>[0-9A-Za-z.-]+))?$"
)


class LicensePage(str, Enum):
    AXIS = "axis"
    CUSTOM = "custom"
    NONE = "none"


@dataclass(frozen=True)
class PackageConf:
    """Values written to ``package.conf``, in file order."""

    app_name: str
    package_name: str
    menu_name: str
    app_id: str
    vendor: str
    launch_arguments: str
    major_version: int
    minor_version: int
    micro_version: str
    license_page: LicensePage
    start_mode: StartMode
    other_files: tuple[str, ...] = ()
    license_check_arguments: str | None = None
    settings_page_file: str | None = None
    settings_page_text: str | None = None
    vendor_homepage_link: str | None = None
    http_cgi_paths: str | None = None
    post_install_script: str | None = None
    required_embedded_development_version: str = REQUIRED_EMBEDDED_DEVELOPMENT_VERSION
    unix_user: str = DEFAULT_UNIX_USER
    unix_group: str = DEFAULT_UNIX_GROUP

    @classmethod
    def from_manifest(
        cls,
        manifest: PackageManifest,
        other_files: list[str] | None = None,
        http_cgi_paths: str | None = None,
    ) -> "PackageConf":
        """Derive control values, filling in what the manifest leaves empty.

        Args:
            manifest: Resolved manifest
            other_files: Top-level entries of the data payload
            http_cgi_paths: Name of the CGI list file in the payload, if any
        """
        major, minor, micro = split_version(manifest.version)

        package_name = manifest.display_name or manifest.project_name
        menu_name = manifest.menu_name or package_name
        vendor = manifest.vendor or f"{package_name} authors"

        if manifest.axis_application_id:
            license_page = LicensePage.AXIS
        elif manifest.license_check_arguments:
            license_page = LicensePage.CUSTOM
        else:
            license_page = LicensePage.NONE

        vendor_homepage_link = None
        if manifest.vendor_homepage_url:
            vendor_homepage_link = '<a href="{}">{}</a>'.format(
                html.escape(manifest.vendor_homepage_url, quote=True),
                html.escape(vendor),
            )

        return cls(
            app_name=manifest.app_name,
            package_name=package_name,
            menu_name=menu_name,
            app_id=manifest.axis_application_id,
            vendor=vendor,
            launch_arguments=manifest.launch_arguments,
            major_version=major,
            minor_version=minor,
            micro_version=micro,
            license_page=license_page,
            license_check_arguments=manifest.license_check_arguments or None,
            vendor_homepage_link=vendor_homepage_link,
            http_cgi_paths=http_cgi_paths,
            start_mode=manifest.start_mode or StartMode.RESPAWN,
            other_files=tuple(other_files or ()),
        )

    def items(self) -> list[tuple[str, str]]:
        """(KEY, value) pairs in file order; optional keys left out when unset."""
        for name in self.other_files:
            if " " in name:
                raise PackagingError(
                    f"cannot list {name!r} in OTHERFILES since it contains a space"
                )

        entries: list[tuple[str, str | None]] = [
            ("APPNAME", self.app_name),
            ("PACKAGENAME", self.package_name),
            ("MENUNAME", self.menu_name),
            ("APPID", self.app_id),
            ("VENDOR", self.vendor),
            ("APPOPTS", self.launch_arguments),
            ("APPMAJORVERSION", str(self.major_version)),
            ("APPMINORVERSION", str(self.minor_version)),
            ("APPMICROVERSION", self.micro_version),
            ("OTHERFILES", " ".join(self.other_files)),
            ("LICENSEPAGE", self.license_page.value),
            ("LICENSE_CHECK_ARGS", self.license_check_arguments),
            ("SETTINGSPAGEFILE", self.settings_page_file),
            ("SETTINGSPAGETEXT", self.settings_page_text),
            ("VENDORHOMEPAGELINK", self.vendor_homepage_link),
            ("HTTPCGIPATHS", self.http_cgi_paths),
            ("POSTINSTALLSCRIPT", self.post_install_script),
            ("REQEMBDEVVERSION", self.required_embedded_development_version),
            ("APPUSR", self.unix_user),
            ("APPGRP", self.unix_group),
            ("STARTMODE", self.start_mode.value),
        ]
        return [(key, value) for key, value in entries if value is not None]

    def render(self) -> str:
        return "".join(f'{key}="{shell_escape(value)}"\n' for key, value in self.items())

    def __str__(self) -> str:
        return self.render()


def shell_escape(value: str) -> str:
    """Escape ``value`` for use inside a double-quoted shell string."""
    out = []
    for char in value:
        if char in '\\"$`':
            out.append("\\")
        out.append(char)
    return "".join(out).replace("\n", "\\n")


def split_version(version: str) -> tuple[int, int, str]:
    """Split a semantic version into (major, minor, micro).

    The micro part keeps pre-release and build suffixes since the loader treats
    it as a string.

    Raises:
        ConfigError: If ``version`` is not a semantic version
    """
    match = SEMVER_PATTERN.match(version)
    if match is None:
        raise ConfigError(f"version {version!r} is not a semantic version")
    micro = match.group("patch")
    if match.group("pre"):
        micro += "-" + match.group("pre")
    if match.group("build"):
        micro += "+" + match.group("build")
    return int(match.group("major")), int(match.group("minor")), micro
