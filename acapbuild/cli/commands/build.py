"""Build command: cross-compile and package every requested target."""

import logging
import threading
from pathlib import Path
from typing import Annotated

import typer

from acapbuild.cli.app import AppContext
from acapbuild.cli.decorators import handle_errors
from acapbuild.cli.helpers.output import print_pipeline_report


logger = logging.getLogger(__name__)


@handle_errors
def build_command(
    ctx: typer.Context,
    targets: Annotated[
        list[str] | None,
        typer.Option(
            "-t",
            "--target",
            help="Target id or Rust triple to build (repeatable; default: "
            "targets from Cargo.toml, else all)",
        ),
    ] = None,
    manifest_path: Annotated[
        Path,
        typer.Option("--manifest-path", help="Path to Cargo.toml"),
    ] = Path("Cargo.toml"),
    docker_image: Annotated[
        str | None,
        typer.Option("--docker-image", help="Toolchain image (overrides config)"),
    ] = None,
    jobs: Annotated[
        int | None,
        typer.Option("-j", "--jobs", min=1, help="Targets to build concurrently"),
    ] = None,
    show_version: Annotated[
        bool,
        typer.Option("--show-version", help="Describe the toolchain image and exit"),
    ] = False,
) -> None:
    """Build .eap packages for the Cargo project."""
    from acapbuild.adapters.docker_adapter import create_docker_adapter
    from acapbuild.config.project import load_cargo_project
    from acapbuild.pipeline import create_pipeline
    from acapbuild.toolchain.executor import create_toolchain_executor
    from acapbuild.toolchain.executor import show_version as describe_toolchain

    app_ctx: AppContext = ctx.obj
    settings = app_ctx.user_config.data

    docker_adapter = create_docker_adapter()
    executor = create_toolchain_executor(
        image=docker_image or settings.docker_image,
        docker_opts=settings.docker_opts_list(),
        enable_user_mapping=settings.enable_user_mapping,
        timeout=settings.build_timeout,
        docker_adapter=docker_adapter,
    )

    if show_version:
        executor.check_available()
        for line in describe_toolchain(docker_adapter, executor.image):
            typer.echo(line)
        return

    project = load_cargo_project(manifest_path)
    pipeline = create_pipeline(
        project,
        executor,
        jobs=jobs or settings.jobs,
        cancel_event=threading.Event(),
    )
    report = pipeline.run(targets or None)
    print_pipeline_report(report)

    if not report.success:
        raise typer.Exit(1)


def register_commands(app: typer.Typer) -> None:
    """Register the build command with the main app."""
    app.command(name="build")(build_command)
