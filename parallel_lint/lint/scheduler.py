"""Bounded-concurrency scheduler for checker processes.

The Scheduler runs one JobProcess per file with at most ``parallel_jobs``
alive at any time. A single control loop fills the pool, polls the running
processes and refills it, until the pending queue and the running set are
both empty:

    Filling  -> launch jobs while capacity and pending work remain
    Polling  -> sleep one poll interval, then collect every finished job
    Draining -> pending is empty, running jobs are collected as they exit
    Finished -> both empty, the aggregate report is emitted

There is no portable way to block on "any of these child processes", so
readiness is checked by polling at a fixed interval whenever more than one
process is alive. With a single live process the loop blocks on it
directly, because nothing else could complete meanwhile. This also
happens in the draining phase after a parallel run: the last asynchronous
process is waited for instead of polled, which yields the same results
without the polling delay.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Deque, Dict, List, Optional, Protocol, Sequence, runtime_checkable

from parallel_lint.lint.checker import CheckerCommand
from parallel_lint.lint.discovery import PathResolver
from parallel_lint.lint.process import ErrorMatcher, Job, JobProcess, LintResult, Outcome

logger = logging.getLogger(__name__)

DEFAULT_PARALLEL_JOBS = 10
DEFAULT_POLL_INTERVAL = 0.05  # seconds

ProcessFactory = Callable[[Job, ErrorMatcher, bool], JobProcess]


@dataclass(frozen=True)
class FileError:
    """A failed file as listed in the final report."""

    file_path: str
    message: str
    outcome: Outcome


@dataclass
class AggregateReport:
    """Totals of a lint run.

    Attributes:
        total_files: Number of files discovered
        checked_count: Number of files whose check completed
        syntax_error_count: Files classified SYNTAX_ERROR
        process_error_count: Files classified PROCESS_ERROR
        errors: Failed files in completion order
        duration: Wall-clock seconds spent in the control loop
    """

    total_files: int = 0
    checked_count: int = 0
    syntax_error_count: int = 0
    process_error_count: int = 0
    errors: List[FileError] = field(default_factory=list)
    duration: float = 0.0

    @property
    def error_count(self) -> int:
        return self.syntax_error_count + self.process_error_count

    @property
    def success(self) -> bool:
        return self.error_count == 0

    def add(self, result: LintResult) -> None:
        """Account for one finished check."""
        self.checked_count += 1
        if result.outcome is Outcome.SYNTAX_ERROR:
            self.syntax_error_count += 1
        elif result.outcome is Outcome.PROCESS_ERROR:
            self.process_error_count += 1
        else:
            return
        self.errors.append(FileError(result.file_path, result.message, result.outcome))

    def to_dict(self) -> dict:
        return {
            "total_files": self.total_files,
            "checked_files": self.checked_count,
            "error_count": self.error_count,
            "syntax_error_count": self.syntax_error_count,
            "process_error_count": self.process_error_count,
            "success": self.success,
            "duration": round(self.duration, 3),
            "errors": [
                {
                    "file": e.file_path,
                    "type": e.outcome.value,
                    "message": e.message,
                }
                for e in self.errors
            ],
        }


@runtime_checkable
class ReportSink(Protocol):
    """Receives progress events and the final report of a run."""

    def start(self, total_files: int) -> None: ...

    def ok(self, result: LintResult) -> None: ...

    def error(self, result: LintResult) -> None: ...

    def finish(self, report: AggregateReport) -> None: ...


@dataclass
class RunningJob:
    """A job whose checker process is alive."""

    job: Job
    process: JobProcess
    started_at: float


class Scheduler:
    """Runs the checker over a set of files with bounded parallelism.

    Example:
        scheduler = Scheduler(CheckerCommand("php"), ConsoleReport(), parallel_jobs=8)
        report = scheduler.run(["src/", "index.php"])
        sys.exit(0 if report.success else 1)
    """

    def __init__(
        self,
        checker: CheckerCommand,
        sink: ReportSink,
        resolver: Optional[PathResolver] = None,
        parallel_jobs: int = DEFAULT_PARALLEL_JOBS,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        matcher: Optional[ErrorMatcher] = None,
        process_factory: Optional[ProcessFactory] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the scheduler.

        Args:
            checker: Builds per-file commands and runs the preflight probe
            sink: Receives per-file events and the final report
            resolver: Expands paths into files (defaults to all PHP extensions)
            parallel_jobs: Maximum number of concurrent checker processes,
                values below 1 are raised to 1
            poll_interval: Seconds to sleep between readiness checks
            matcher: Syntax error recogniser passed to every JobProcess
            process_factory: Creates JobProcess instances, for tests
            sleep: Sleep function, for tests
        """
        self.checker = checker
        self.sink = sink
        self.resolver = resolver or PathResolver()
        self.parallel_jobs = max(int(parallel_jobs), 1)
        self.poll_interval = poll_interval
        self.matcher = matcher or ErrorMatcher()
        self._process_factory: ProcessFactory = process_factory or JobProcess
        self._sleep = sleep
        self._running: Dict[str, RunningJob] = {}

    def run(self, paths: Sequence[str]) -> AggregateReport:
        """Preflight the checker, discover files and check them all.

        Raises:
            CheckerInvocationError: If the checker cannot be invoked
            PathError: If a path is neither a file nor a directory
        """
        self.checker.preflight()
        files = self.resolver.resolve(paths)
        return self.check_files(files)

    def check_files(self, files: Sequence[str]) -> AggregateReport:
        """Check ``files`` and return the aggregate report.

        Per-file failures are recorded in the report and never stop the run.
        """
        pending: Deque[Job] = deque(
            Job(file_path=f, command=self.checker.for_file(f)) for f in files
        )
        report = AggregateReport(total_files=len(pending))
        self._running = {}

        logger.info(
            f"Checking {report.total_files} files with up to {self.parallel_jobs} parallel jobs"
        )
        self.sink.start(report.total_files)
        started_at = time.monotonic()

        try:
            while pending or self._running:
                self._fill(pending)

                if len(self._running) > 1:
                    self._sleep(self.poll_interval)
                elif len(self._running) == 1:
                    # Only one process left and nothing pending: just wait for it
                    next(iter(self._running.values())).process.wait()

                self._collect_ready(report)
        finally:
            self._kill_running()

        report.duration = time.monotonic() - started_at
        logger.info(
            f"Checked {report.checked_count} files in {report.duration:.2f}s, "
            f"{report.syntax_error_count} syntax errors, "
            f"{report.process_error_count} process errors"
        )
        self.sink.finish(report)
        return report

    def _fill(self, pending: Deque[Job]) -> None:
        while pending and len(self._running) < self.parallel_jobs:
            job = pending.popleft()
            if job.file_path in self._running:
                raise RuntimeError(f"{job.file_path} is already running")

            parallel = self.parallel_jobs > 1 and len(self._running) + len(pending) > 0
            process = self._process_factory(job, self.matcher, not parallel)
            process.start()
            self._running[job.file_path] = RunningJob(
                job=job, process=process, started_at=time.monotonic()
            )

    def _collect_ready(self, report: AggregateReport) -> None:
        for file_path, running in list(self._running.items()):
            if not running.process.is_ready():
                continue

            result = running.process.collect_result()
            del self._running[file_path]
            logger.debug(
                f"{file_path}: {result.outcome.value} "
                f"{time.monotonic() - running.started_at:.3f}s after launch"
            )
            report.add(result)

            if result.is_error:
                logger.debug(f"{file_path}: {result.message}")
                self.sink.error(result)
            else:
                self.sink.ok(result)

    def _kill_running(self) -> None:
        if not self._running:
            return
        logger.warning(f"Stopping {len(self._running)} running checker processes")
        for running in self._running.values():
            running.process.kill()
        self._running = {}
