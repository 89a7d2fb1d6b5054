"""Toolchain image provisioning commands."""

from typing import Annotated

import typer

from acapbuild.cli.decorators import handle_errors
from acapbuild.cli.helpers.output import print_list_item, print_success_message
from acapbuild.toolchain.releases import (
    DEFAULT_IMAGE_REPOSITORY,
    DEFAULT_LIMIT,
    DEFAULT_WORKFLOW_REF,
    DEFAULT_WORKFLOW_REPOSITORY,
    ReconcileAction,
)


toolchain_app = typer.Typer(
    name="toolchain",
    help="Manage the cross-compilation toolchain images.",
    no_args_is_help=True,
)

_ACTION_LABELS = {
    ReconcileAction.DISPATCHED: "build dispatched",
    ReconcileAction.WOULD_DISPATCH: "missing (dry run, not dispatched)",
    ReconcileAction.EXISTS: "already exists",
}


@toolchain_app.command(name="reconcile")
@handle_errors
def reconcile_command(
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Report missing images without dispatching"),
    ] = False,
    limit: Annotated[
        int,
        typer.Option("--limit", min=1, help="Number of recent Rust releases to check"),
    ] = DEFAULT_LIMIT,
    image_repository: Annotated[
        str,
        typer.Option("--image-repository", help="Docker Hub repository of the images"),
    ] = DEFAULT_IMAGE_REPOSITORY,
    workflow_repository: Annotated[
        str,
        typer.Option("--workflow-repository", help="GitHub repository running the build"),
    ] = DEFAULT_WORKFLOW_REPOSITORY,
    ref: Annotated[
        str,
        typer.Option("--ref", help="Git ref to run the workflow on"),
    ] = DEFAULT_WORKFLOW_REF,
) -> None:
    """Dispatch an image build for every recent Rust release without an image.

    Requires GITHUB_TOKEN unless --dry-run is given.
    """
    from acapbuild.toolchain.releases import create_toolchain_reconciler

    reconciler = create_toolchain_reconciler(
        image_repository=image_repository,
        workflow_repository=workflow_repository,
        ref=ref,
    )
    report = reconciler.reconcile(limit=limit, dry_run=dry_run)

    for outcome in report.outcomes:
        print_list_item(f"Rust {outcome.version}: {_ACTION_LABELS[outcome.action]}")
    print_success_message(
        f"{len(report.dispatched)} build(s) dispatched, "
        f"{len(report.existing)} image(s) already present"
    )


def register_commands(app: typer.Typer) -> None:
    """Register toolchain commands with the main app."""
    app.add_typer(toolchain_app, name="toolchain")
