"""Error handling decorators for CLI commands."""

import logging
import sys
import traceback
from collections.abc import Callable
from functools import wraps
from typing import Any

import typer

from acapbuild.core.errors import (
    ConfigError,
    DockerError,
    PackagingError,
    ProvisioningError,
    ToolchainUnavailableError,
)
from acapbuild.core.structlog_logger import get_struct_logger


__all__ = ["handle_errors", "print_stack_trace_if_verbose"]

logger = get_struct_logger(__name__)


def handle_errors(func: Callable[..., Any]) -> Callable[..., Any]:
    """Decorator to handle common exceptions in CLI commands.

    Errors that abort a whole invocation are logged and turned into exit
    status 1; ``typer.Exit`` raised by the command passes through untouched.
    """

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except ConfigError as e:
            logger.error("configuration_error", error=str(e))
            print_stack_trace_if_verbose()
            raise typer.Exit(1) from e
        except ToolchainUnavailableError as e:
            logger.error("toolchain_unavailable", error=str(e))
            print_stack_trace_if_verbose()
            raise typer.Exit(1) from e
        except DockerError as e:
            logger.error("docker_error", error=str(e), **e.context)
            print_stack_trace_if_verbose()
            raise typer.Exit(1) from e
        except PackagingError as e:
            logger.error("packaging_error", error=str(e))
            print_stack_trace_if_verbose()
            raise typer.Exit(1) from e
        except ProvisioningError as e:
            logger.error("provisioning_error", error=str(e))
            print_stack_trace_if_verbose()
            raise typer.Exit(1) from e
        except KeyboardInterrupt as e:
            logger.error("interrupted")
            raise typer.Exit(130) from e
        except Exception as e:
            exc_info = logging.getLogger().isEnabledFor(logging.DEBUG)
            logger.error("unexpected_error", error=str(e), exc_info=exc_info)
            print_stack_trace_if_verbose()
            raise typer.Exit(1) from e

    return wrapper


def print_stack_trace_if_verbose() -> None:
    """Print stack trace if verbose/debug mode is enabled."""
    if any(arg in sys.argv for arg in ["-v", "-vv", "--verbose", "--debug"]):
        print("\nStack trace:", file=sys.stderr)
        traceback.print_exc(file=sys.stderr)
