"""Protocol for the isolated cross-compilation environment."""

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable


if TYPE_CHECKING:
    from acapbuild.config.project import CargoProject
    from acapbuild.targets.registry import TargetDescriptor


@dataclass(frozen=True)
class ToolchainResult:
    """Outcome of one toolchain invocation.

    Exactly one of ``artifact_path`` and ``diagnostic`` is meaningful:
    ``artifact_path`` on success, ``diagnostic`` text on failure.
    """

    success: bool
    artifact_path: Path | None = None
    diagnostic: str = ""

    @classmethod
    def ok(cls, artifact_path: Path) -> "ToolchainResult":
        return cls(success=True, artifact_path=artifact_path)

    @classmethod
    def failed(cls, diagnostic: str) -> "ToolchainResult":
        return cls(success=False, diagnostic=diagnostic)


@runtime_checkable
class ToolchainExecutorProtocol(Protocol):
    """Cross-compiles the project for one target at a time.

    Implementations must be safe to call from several threads at once.
    """

    def check_available(self) -> None:
        """Raise ToolchainUnavailableError if nothing can be built at all."""
        ...

    def execute(
        self, target: "TargetDescriptor", project: "CargoProject"
    ) -> ToolchainResult:
        """Build a release binary for ``target``."""
        ...

    def strip(
        self,
        target: "TargetDescriptor",
        project: "CargoProject",
        built: Path,
        destination: Path,
    ) -> ToolchainResult:
        """Write a copy of ``built`` without symbols to ``destination``."""
        ...
