"""Resolve, build and package a Cargo project for every requested target."""

import threading
from pathlib import Path

from pydantic import BaseModel, Field

from acapbuild.build.orchestrator import create_build_orchestrator
from acapbuild.config.project import CargoProject
from acapbuild.core.errors import PackagingError
from acapbuild.core.structlog_logger import StructlogMixin
from acapbuild.manifest.models import PackageManifest
from acapbuild.manifest.resolver import MetadataResolver
from acapbuild.packaging.assembler import create_package_assembler
from acapbuild.packaging.serializer import PackageSerializerProtocol
from acapbuild.protocols.toolchain_protocol import ToolchainExecutorProtocol
from acapbuild.targets.registry import TARGET_REGISTRY, TargetRegistry


class TargetReport(BaseModel):
    """What became of one requested target."""

    target_id: str
    success: bool
    eap: Path | None = None
    elf: Path | None = None
    error: str | None = None


class PipelineReport(BaseModel):
    manifest: PackageManifest
    targets: list[TargetReport] = Field(default_factory=list)

    @property
    def success(self) -> bool:
        """True only if every requested target produced an .eap/.elf pair."""
        return all(t.success for t in self.targets)

    @property
    def failed_targets(self) -> list[str]:
        return [t.target_id for t in self.targets if not t.success]

    @property
    def artifacts(self) -> list[Path]:
        paths: list[Path] = []
        for t in self.targets:
            if t.success and t.eap and t.elf:
                paths.extend([t.eap, t.elf])
        return paths


class AcapPipeline(StructlogMixin):
    """Run one invocation end to end.

    Configuration problems and an unreachable toolchain abort before anything
    is built. Build and packaging failures are per target and end up in the
    report; artifacts of the other targets are kept.
    """

    def __init__(
        self,
        project: CargoProject,
        executor: ToolchainExecutorProtocol,
        jobs: int | None = None,
        registry: TargetRegistry | None = None,
        serializer: PackageSerializerProtocol | None = None,
        cancel_event: threading.Event | None = None,
    ) -> None:
        super().__init__()
        self.project = project
        self.executor = executor
        self.registry = registry or TARGET_REGISTRY
        self.resolver = MetadataResolver(self.registry)
        self.orchestrator = create_build_orchestrator(
            executor,
            project,
            jobs=jobs,
            registry=self.registry,
            cancel_event=cancel_event,
        )
        self.serializer = serializer

    def resolve(self, requested_targets: list[str] | None = None) -> PackageManifest:
        return self.resolver.resolve(self.project.to_project_config(), requested_targets)

    def run(self, requested_targets: list[str] | None = None) -> PipelineReport:
        """Build and package the project.

        Raises:
            ConfigError: If the packaging metadata is invalid
            ToolchainUnavailableError: If the toolchain cannot be started
        """
        manifest = self.resolve(requested_targets)
        self.executor.check_available()

        assembler = create_package_assembler(
            output_dir=self.project.output_dir,
            data_path=self.project.data_path(manifest.data_dir),
            serializer=self.serializer,
        )

        report = PipelineReport(manifest=manifest)
        for result in self.orchestrator.build_all(manifest):
            target_id = result.target.id
            if not result.success:
                report.targets.append(
                    TargetReport(
                        target_id=target_id,
                        success=False,
                        error=getattr(result.outcome, "reason", "build failed"),
                    )
                )
                continue
            try:
                artifact = assembler.assemble(manifest, result)
            except PackagingError as e:
                report.targets.append(
                    TargetReport(target_id=target_id, success=False, error=str(e))
                )
                continue
            report.targets.append(
                TargetReport(
                    target_id=target_id,
                    success=True,
                    eap=artifact.eap_path,
                    elf=artifact.elf_path,
                )
            )

        self.logger.info(
            "pipeline_finished",
            success=report.success,
            failed_targets=report.failed_targets,
        )
        return report


def create_pipeline(
    project: CargoProject,
    executor: ToolchainExecutorProtocol,
    jobs: int | None = None,
    cancel_event: threading.Event | None = None,
) -> AcapPipeline:
    """Factory function to create an AcapPipeline."""
    return AcapPipeline(
        project=project, executor=executor, jobs=jobs, cancel_event=cancel_event
    )
