"""Checker processes, file discovery and the bounded-concurrency scheduler."""

from parallel_lint.lint.checker import CheckerCommand
from parallel_lint.lint.discovery import DEFAULT_EXTENSIONS, PathResolver, parse_extensions
from parallel_lint.lint.process import (
    DEFAULT_SYNTAX_ERROR_PATTERNS,
    ErrorMatcher,
    Job,
    JobProcess,
    LintResult,
    Outcome,
)
from parallel_lint.lint.scheduler import (
    AggregateReport,
    FileError,
    ReportSink,
    RunningJob,
    Scheduler,
)

__all__ = [
    "CheckerCommand",
    "DEFAULT_EXTENSIONS",
    "PathResolver",
    "parse_extensions",
    "DEFAULT_SYNTAX_ERROR_PATTERNS",
    "ErrorMatcher",
    "Job",
    "JobProcess",
    "LintResult",
    "Outcome",
    "AggregateReport",
    "FileError",
    "ReportSink",
    "RunningJob",
    "Scheduler",
]
