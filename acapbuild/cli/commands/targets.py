"""List the supported targets."""

from enum import Enum
from typing import Annotated

import typer

from acapbuild.cli.decorators import handle_errors
from acapbuild.cli.helpers.output import print_target_table
from acapbuild.targets.registry import get_target_registry


class TargetListFormat(str, Enum):
    PLAIN = "plain"
    TABLE = "table"
    SOC_TABLE = "soc_table"


@handle_errors
def targets_command(
    output_format: Annotated[
        TargetListFormat,
        typer.Argument(
            help="plain: target ids; table: targets with triples; "
            "soc_table: one row per SoC",
            case_sensitive=False,
        ),
    ] = TargetListFormat.PLAIN,
) -> None:
    """Show the targets acapbuild can build for."""
    registry = get_target_registry()
    if output_format == TargetListFormat.PLAIN:
        for target_id in registry.all_ids():
            typer.echo(target_id)
    else:
        print_target_table(registry, soc=output_format == TargetListFormat.SOC_TABLE)


def register_commands(app: typer.Typer) -> None:
    """Register the targets command with the main app."""
    app.command(name="targets")(targets_command)
