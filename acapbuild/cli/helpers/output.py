"""Helper functions for CLI output formatting with Rich integration."""

from rich.console import Console
from rich.table import Table

from acapbuild.pipeline import PipelineReport
from acapbuild.targets.registry import TargetRegistry


def _console() -> Console:
    return Console()


def print_success_message(message: str) -> None:
    _console().print(f"[bold green]✓[/bold green] {message}")


def print_error_message(message: str) -> None:
    _console().print(f"[bold red]✗[/bold red] {message}")


def print_list_item(item: str, indent: int = 1) -> None:
    _console().print(f"{' ' * (indent * 2)}• {item}", highlight=False)


def print_target_table(registry: TargetRegistry, soc: bool = False) -> None:
    """Print the target registry as a table.

    Args:
        registry: Registry to print
        soc: List one row per SoC, sorted by SoC name, instead of one per target
    """
    console = _console()
    if soc:
        table = Table(title="Supported SoCs", show_header=True, header_style="bold")
        table.add_column("SoC", style="cyan", no_wrap=True)
        table.add_column("Target")
        table.add_column("Rust target triple", style="dim", no_wrap=True)
        for soc_name, target in registry.soc_table():
            table.add_row(soc_name, target.id, target.compiler_triple)
    else:
        table = Table(title="Targets", show_header=True, header_style="bold")
        table.add_column("Target", style="cyan", no_wrap=True)
        table.add_column("Rust target triple", no_wrap=True)
        table.add_column("SoCs", style="dim")
        for target in registry:
            table.add_row(
                target.id,
                target.compiler_triple,
                ", ".join(sorted(target.soc_families, key=str.lower)),
            )
    console.print(table)


def print_pipeline_report(report: PipelineReport) -> None:
    """Print one row per requested target, then an overall verdict."""
    console = _console()
    table = Table(
        title=f"{report.manifest.app_name} {report.manifest.version}",
        show_header=True,
        header_style="bold",
    )
    table.add_column("Target", style="cyan", no_wrap=True)
    table.add_column("Status")
    table.add_column("Package / error", overflow="fold")

    for target in report.targets:
        if target.success:
            table.add_row(target.target_id, "[green]ok[/green]", str(target.eap))
        else:
            error = (target.error or "").splitlines()
            table.add_row(
                target.target_id, "[red]failed[/red]", error[0] if error else ""
            )
    console.print(table)

    if report.success:
        print_success_message(f"Built {len(report.targets)} target(s)")
    else:
        print_error_message("Failed targets: " + ", ".join(report.failed_targets))
