"""Shared pydantic models."""

from acapbuild.models.base import AcapBaseModel
from acapbuild.models.docker import DockerUserContext


__all__ = ["AcapBaseModel", "DockerUserContext"]
