"""Docker user mapping for volume permissions."""

import os
import platform
from typing import ClassVar

from pydantic import BaseModel, Field, field_validator


class DockerUserContext(BaseModel):
    """Host identity passed to ``docker run`` so build outputs stay user-owned.

    Cargo writes into the mounted target directory; without ``--user`` the
    files would belong to root on the host.
    """

    uid: int = Field(..., description="User ID for Docker --user flag")
    gid: int = Field(..., description="Group ID for Docker --user flag")
    username: str | None = Field(
        default=None, description="Exported as USER inside the container"
    )
    enable_user_mapping: bool = Field(
        default=True, description="Whether to pass --user to docker run"
    )

    _supported_platforms: ClassVar[set[str]] = {"Linux", "Darwin"}

    @field_validator("uid", "gid")
    @classmethod
    def validate_positive_ids(cls, v: int) -> int:
        if v < 0:
            raise ValueError("UID and GID must be non-negative")
        return v

    @classmethod
    def detect_current_user(cls, enable_user_mapping: bool = True) -> "DockerUserContext":
        """Detect the effective user of this process.

        Falls back to 1000:1000 without a username on platforms that have no
        POSIX ids.
        """
        if platform.system() not in cls._supported_platforms:
            return cls(uid=1000, gid=1000, enable_user_mapping=enable_user_mapping)

        username = os.getenv("USER") or os.getenv("USERNAME")
        return cls(
            uid=os.geteuid(),
            gid=os.getegid(),
            username=username or None,
            enable_user_mapping=enable_user_mapping,
        )

    def get_docker_user_flag(self) -> str:
        """Value for ``--user``, formatted as ``uid:gid``."""
        return f"{self.uid}:{self.gid}"

    def should_use_user_mapping(self) -> bool:
        return self.enable_user_mapping and platform.system() in self._supported_platforms


__all__ = ["DockerUserContext"]
