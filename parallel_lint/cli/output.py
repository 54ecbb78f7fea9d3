"""Report rendering for parallel-lint.

Two ReportSink implementations: ConsoleReport prints a progress mark per
file followed by a summary and the error messages, JsonReport stays silent
during the run and prints the aggregate report as JSON at the end.
"""

import json
from typing import Any

from rich.console import Console
from rich.json import JSON as RichJSON
from rich.markup import escape

from parallel_lint.lint.process import LintResult, Outcome
from parallel_lint.lint.scheduler import AggregateReport

# Default console for output
console = Console()

# Marks per progress line
LINE_WIDTH = 60


def print_json(data: Any, console_instance: Console | None = None) -> None:
    """Print data as formatted JSON.

    Long string values are never wrapped at the console width, so the
    output stays parseable.

    Args:
        data: Data to print (must be JSON-serializable)
        console_instance: Optional custom console instance
    """
    prog_console = console_instance or console

    json_str = json.dumps(data, indent=2, default=str)
    prog_console.print(RichJSON(json_str), soft_wrap=True)


def format_summary(report: AggregateReport) -> str:
    """Build the one-line summary of a run.

    Example:
        format_summary(report)  # "Checked 12 files, syntax error found in 2 files"
    """
    message = f"Checked {report.checked_count} files, "
    if report.syntax_error_count == 0:
        message += "no syntax error found"
    else:
        message += f"syntax error found in {report.syntax_error_count} files"

    if report.process_error_count:
        message += f", process error in {report.process_error_count} files"

    return message


def format_duration(seconds: float) -> str:
    """Format duration in human-readable format.

    Example:
        format_duration(90)  # Returns "1m 30s"
    """
    if seconds < 60:
        return f"{seconds:.1f}s"
    elif seconds < 3600:
        minutes = int(seconds // 60)
        secs = int(seconds % 60)
        return f"{minutes}m {secs}s"
    else:
        hours = int(seconds // 3600)
        minutes = int((seconds % 3600) // 60)
        return f"{hours}h {minutes}m"


class ConsoleReport:
    """Human-readable report.

    Prints ``.`` for every passing file and ``X`` for every failing one,
    with a ``current/total (percent %)`` counter after each full line of
    marks, then the summary line and every error message.
    """

    def __init__(self, console_instance: Console | None = None) -> None:
        self.console = console_instance or console
        self.total_files = 0
        self._marks = 0

    def start(self, total_files: int) -> None:
        self.total_files = total_files
        self._marks = 0

    def ok(self, result: LintResult) -> None:
        self._mark(".")

    def error(self, result: LintResult) -> None:
        self._mark("[red]X[/red]")

    def _mark(self, mark: str) -> None:
        self.console.print(mark, end="", highlight=False, soft_wrap=True)
        self._marks += 1
        if self._marks % LINE_WIDTH == 0:
            width = len(str(self.total_files))
            percent = round(self._marks / self.total_files * 100) if self.total_files else 100
            self.console.print(
                f" {self._marks:>{width}}/{self.total_files} ({percent} %)",
                highlight=False,
                soft_wrap=True,
            )

    def finish(self, report: AggregateReport) -> None:
        if self._marks % LINE_WIDTH:
            self.console.print()
        self.console.print()

        style = "green" if report.success else "red"
        self.console.print(
            f"[{style}]{format_summary(report)}[/{style}] "
            f"[dim]({format_duration(report.duration)})[/dim]",
            highlight=False,
            soft_wrap=True,
        )

        for error in report.errors:
            label = "Syntax error" if error.outcome is Outcome.SYNTAX_ERROR else "Process error"
            self.console.print()
            self.console.print(
                f"[bold]{label}:[/bold] {escape(error.file_path)}",
                highlight=False,
                soft_wrap=True,
            )
            self.console.print(error.message, markup=False, highlight=False, soft_wrap=True)


class JsonReport:
    """Machine-readable report printed once the run is over."""

    def __init__(self, console_instance: Console | None = None) -> None:
        self.console = console_instance or console

    def start(self, total_files: int) -> None:
        pass

    def ok(self, result: LintResult) -> None:
        pass

    def error(self, result: LintResult) -> None:
        pass

    def finish(self, report: AggregateReport) -> None:
        print_json(report.to_dict(), self.console)
