"""Fixed table of the architectures acapbuild can build for.

Every entry needs a matching cross-compiler inside the toolchain image, so the
table is part of the code rather than user configuration.
"""

from collections.abc import Iterator
from dataclasses import dataclass

from acapbuild.core.errors import UnknownTargetError


@dataclass(frozen=True)
class TargetDescriptor:
    """One supported architecture.

    Attributes:
        id: Short architecture name used on the command line and in file names
        compiler_triple: Rust ``--target`` understood by the toolchain image
        objcopy: Binutils ``objcopy`` used inside the image to strip binaries
        soc_families: SoCs shipping this architecture (informational)
    """

    id: str
    compiler_triple: str
    objcopy: str
    soc_families: frozenset[str]

    def __str__(self) -> str:
        return self.id


_TARGETS: tuple[TargetDescriptor, ...] = (
    TargetDescriptor(
        id="aarch64",
        compiler_triple="aarch64-axis-linux-gnu",
        objcopy="aarch64-linux-gnu-objcopy",
        soc_families=frozenset(
            {"ARTPEC-8", "CV25", "S5", "S5L", "i.MX 8QuadMax"}
        ),
    ),
    TargetDescriptor(
        id="armv5tej",
        compiler_triple="armv5te-axis-linux-gnueabi",
        objcopy="arm-linux-gnueabi-objcopy",
        soc_families=frozenset({"Hi3516C V300"}),
    ),
    TargetDescriptor(
        id="armv6",
        compiler_triple="arm-axis-linux-gnueabi",
        objcopy="arm-linux-gnueabi-objcopy",
        soc_families=frozenset({"A5S"}),
    ),
    TargetDescriptor(
        id="armv7",
        compiler_triple="armv7-axis-linux-gnueabi",
        objcopy="arm-linux-gnueabihf-objcopy",
        soc_families=frozenset({"S2"}),
    ),
    TargetDescriptor(
        id="armv7hf",
        compiler_triple="armv7-axis-linux-gnueabihf",
        objcopy="arm-linux-gnueabihf-objcopy",
        soc_families=frozenset(
            {
                "ARTPEC-6",
                "ARTPEC-7",
                "S2E",
                "S2L",
                "Hi3719C V100",
                "i.MX 6SoloX",
                "i.MX 6ULL",
            }
        ),
    ),
    TargetDescriptor(
        id="mips",
        compiler_triple="mipsel-axis-linux-gnu",
        objcopy="mipsisa32r2el-axis-linux-gnu-objcopy",
        soc_families=frozenset({"ARTPEC-4", "ARTPEC-5"}),
    ),
)


class TargetRegistry:
    """Read-only lookup over a fixed set of target descriptors."""

    def __init__(self, targets: tuple[TargetDescriptor, ...]) -> None:
        by_id: dict[str, TargetDescriptor] = {}
        by_triple: dict[str, TargetDescriptor] = {}
        for target in targets:
            if target.id in by_id:
                raise ValueError(f"duplicate target id: {target.id}")
            if target.compiler_triple in by_triple:
                raise ValueError(
                    f"compiler triple {target.compiler_triple} is mapped twice"
                )
            by_id[target.id] = target
            by_triple[target.compiler_triple] = target
        self._targets = targets
        self._by_id = by_id
        self._by_triple = by_triple

    def lookup(self, key: str) -> TargetDescriptor:
        """Find a target by id or by compiler triple.

        Raises:
            UnknownTargetError: If no target matches ``key``
        """
        target = self._by_id.get(key) or self._by_triple.get(key)
        if target is None:
            raise UnknownTargetError(key, list(self.all_ids()))
        return target

    def get(self, key: str) -> TargetDescriptor | None:
        """Like :meth:`lookup` but returns None for unknown keys."""
        return self._by_id.get(key) or self._by_triple.get(key)

    def all_ids(self) -> tuple[str, ...]:
        """All target ids in declaration order."""
        return tuple(target.id for target in self._targets)

    def soc_table(self) -> list[tuple[str, TargetDescriptor]]:
        """(SoC name, target) pairs sorted by SoC name."""
        rows = [
            (soc, target) for target in self._targets for soc in target.soc_families
        ]
        return sorted(rows, key=lambda row: (row[0].lower(), row[1].id))

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.get(key) is not None

    def __iter__(self) -> Iterator[TargetDescriptor]:
        return iter(self._targets)

    def __len__(self) -> int:
        return len(self._targets)


TARGET_REGISTRY = TargetRegistry(_TARGETS)


def get_target_registry() -> TargetRegistry:
    """Return the process-wide target registry."""
    return TARGET_REGISTRY
