"""Command-line support for parallel-lint: exit codes, fatal errors and report output.

Report sinks live in ``parallel_lint.cli.output`` and are imported from
there directly.
"""

from parallel_lint.cli.exit_codes import ExitCode
from parallel_lint.cli.error_handler import (
    ParallelLintError,
    ArgumentError,
    PathError,
    CheckerInvocationError,
    ConfigurationError,
    handle_errors,
)

__all__ = [
    # Exit codes
    "ExitCode",
    # Error handling
    "ParallelLintError",
    "ArgumentError",
    "PathError",
    "CheckerInvocationError",
    "ConfigurationError",
    "handle_errors",
]
