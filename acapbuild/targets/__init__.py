"""Supported Axis target architectures."""

from acapbuild.targets.registry import (
    TARGET_REGISTRY,
    TargetDescriptor,
    TargetRegistry,
    get_target_registry,
)


__all__ = [
    "TARGET_REGISTRY",
    "TargetDescriptor",
    "TargetRegistry",
    "get_target_registry",
]
