"""Configuration models."""

from acapbuild.config.models.user import UserConfigData


__all__ = ["UserConfigData"]
