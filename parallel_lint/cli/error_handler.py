"""Global exception handling for parallel-lint.

This module provides the fatal error hierarchy and a decorator that turns
those errors into consistent console messages and exit codes. Per-file
syntax and process errors are not exceptions: they are recorded as lint
outcomes and never interrupt a run.
"""

from functools import wraps
from typing import Callable, TypeVar, Any
import logging

import typer
from rich.console import Console

from parallel_lint.cli.exit_codes import ExitCode

# Console for error output (stderr)
console = Console(stderr=True)

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


class ParallelLintError(Exception):
    """Base exception for parallel-lint.

    Every subclass is fatal: it aborts the run before any file is
    scheduled.

    Attributes:
        message: Error message
        exit_code: Exit code to use when exiting
        details: Optional dictionary of additional error details
    """

    exit_code: int = ExitCode.FAILED

    def __init__(
        self,
        message: str,
        exit_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if exit_code is not None:
            self.exit_code = exit_code
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class ArgumentError(ParallelLintError):
    """Invalid command-line argument.

    When ``usage`` is given it is printed after the message, followed by a
    pointer to ``--help``.

    Examples:
        - Unknown option
        - Option missing its value
        - Empty extension list
    """

    def __init__(
        self,
        message: str,
        usage: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=details)
        self.usage = usage


class PathError(ParallelLintError):
    """A path to check is neither a file nor a directory."""

    def __init__(self, path: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(f"Path '{path}' does not exist", details=details)
        self.path = path


class CheckerInvocationError(ParallelLintError):
    """The checker executable is missing or cannot be run.

    Raised by the preflight probe, before any file is scheduled.
    """

    def __init__(
        self,
        executable: str,
        reason: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(f"Unable to execute '{executable} -v': {reason}", details=details)
        self.executable = executable
        self.reason = reason


class ConfigurationError(ParallelLintError):
    """Configuration file is unreadable or fails validation."""


def handle_errors(func: F) -> F:
    """Decorator for consistent error handling across CLI commands.

    - ParallelLintError subclasses: message on stderr, the error's exit code
    - KeyboardInterrupt: cancellation message, exit code 130
    - Other exceptions: logged with traceback, exit code 255

    Example:
        @app.command()
        @handle_errors
        def lint(...):
            raise PathError("missing.php")
    """
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except ParallelLintError as e:
            logger.error(
                f"{type(e).__name__}: {e.message}",
                extra={"exit_code": e.exit_code, "details": e.details},
            )

            console.print(f"[red]Error:[/red] {e.message}", highlight=False)

            if e.details:
                for key, value in e.details.items():
                    console.print(f"  [dim]{key}:[/dim] {value}", highlight=False)

            if isinstance(e, ArgumentError) and e.usage:
                console.print()
                console.print(e.usage, markup=False, highlight=False, soft_wrap=True)
                console.print("Try '--help' for more information.", markup=False, highlight=False)

            raise typer.Exit(code=e.exit_code)

        except KeyboardInterrupt:
            console.print("\n[yellow]Operation cancelled by user.[/yellow]")
            logger.info("Operation cancelled by user (KeyboardInterrupt)")
            raise typer.Exit(code=ExitCode.CANCELLED)

        except typer.Exit:
            raise

        except Exception as e:
            logger.exception("Unexpected error occurred")
            console.print(f"[red]Unexpected error:[/red] {e}", highlight=False)
            console.print("[dim]Run with --debug for more details[/dim]")
            raise typer.Exit(code=ExitCode.FAILED)

    return wrapper  # type: ignore[return-value]
