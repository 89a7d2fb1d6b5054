"""Main CLI application for acapbuild."""

import logging
import sys
from importlib.metadata import distribution
from typing import Annotated

import typer

from acapbuild.cli.decorators.error_handling import print_stack_trace_if_verbose
from acapbuild.core.errors import ConfigError
from acapbuild.core.logging import setup_logging


__all__ = ["app", "main", "__version__", "setup_logging"]


__version__ = distribution("acapbuild").version

logger = logging.getLogger(__name__)


class AppContext:
    """Application context for storing shared state."""

    def __init__(
        self,
        verbose: int = 0,
        log_file: str | None = None,
        config_file: str | None = None,
    ):
        self.verbose = verbose
        self.log_file = log_file
        self.config_file = config_file

        from acapbuild.config.user_config import create_user_config

        self.user_config = create_user_config(cli_config_path=config_file)


app = typer.Typer(
    name="acapbuild",
    help=f"""acapbuild v{__version__}

Cross-compile a Rust project for every Axis camera architecture and package
each binary as an installable ACAP (.eap).

Common workflows:
  • Build all targets:     acapbuild build
  • Build some targets:    acapbuild build -t aarch64 -t armv7hf
  • List targets:          acapbuild targets soc_table
  • Provision toolchains:  acapbuild toolchain reconcile --dry-run""",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "-v",
            "--verbose",
            count=True,
            help="Increase verbosity (-v=INFO, -vv=DEBUG)",
        ),
    ] = 0,
    debug: Annotated[
        bool,
        typer.Option("--debug", help="Enable debug logging (equivalent to -vv)"),
    ] = False,
    log_file: Annotated[
        str | None, typer.Option("--log-file", help="Log to file")
    ] = None,
    config_file: Annotated[
        str | None,
        typer.Option("-c", "--config", help="Path to configuration file"),
    ] = None,
    version: Annotated[
        bool, typer.Option("--version", help="Show version and exit")
    ] = False,
) -> None:
    """acapbuild: build ACAP packages for Axis devices."""
    if version:
        print(f"acapbuild v{__version__}")
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        print(ctx.get_help())
        raise typer.Exit()

    try:
        app_context = AppContext(
            verbose=verbose, log_file=log_file, config_file=config_file
        )
    except ConfigError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e
    ctx.obj = app_context

    log_level = logging.WARNING
    if debug:
        log_level = logging.DEBUG
    elif verbose == 1:
        log_level = logging.INFO
    elif verbose >= 2:
        log_level = logging.DEBUG
    elif log_file is None:
        log_level = app_context.user_config.get_log_level_int()

    setup_logging(level=log_level, log_file=log_file)


def main() -> int:
    """Main CLI entry point."""
    try:
        # Commands are registered when the acapbuild.cli package is imported
        app()
        return 0

    except SystemExit as e:
        return e.code if isinstance(e.code, int) else 0

    except Exception as e:
        logger.exception("Unexpected error: %s", e)
        print_stack_trace_if_verbose()
        return 1


if __name__ == "__main__":
    sys.exit(main())
