"""Command line interface."""

from acapbuild.cli.app import app, main
from acapbuild.cli.commands import register_all_commands


register_all_commands(app)

__all__ = ["app", "main"]
