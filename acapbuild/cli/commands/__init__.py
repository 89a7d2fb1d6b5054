"""CLI command modules."""

import typer

from acapbuild.cli.commands.build import register_commands as register_build_commands
from acapbuild.cli.commands.targets import (
    register_commands as register_targets_commands,
)
from acapbuild.cli.commands.toolchain import (
    register_commands as register_toolchain_commands,
)


def register_all_commands(app: typer.Typer) -> None:
    """Register all CLI commands with the main app.

    Args:
        app: The main Typer app
    """
    register_build_commands(app)
    register_targets_commands(app)
    register_toolchain_commands(app)
