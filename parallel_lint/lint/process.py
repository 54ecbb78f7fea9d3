"""Single checker process: spawn, poll, collect and classify.

A JobProcess wraps one invocation of the checker for one file. Output from
both stdout and stderr goes to an anonymous temporary file rather than a
pipe, so a checker that prints a lot can never stall waiting for the
control loop to drain it.
"""

from __future__ import annotations

import logging
import re
import subprocess
import tempfile
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import IO, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

DEFAULT_SYNTAX_ERROR_PATTERNS: Tuple[str, ...] = (
    r"(?:PHP )?(?P<message>Parse error:.+)",
    r"(?:PHP )?(?P<message>Fatal error:.+)",
)


class Outcome(Enum):
    """Classification of a finished check."""

    OK = "ok"
    SYNTAX_ERROR = "syntax_error"
    PROCESS_ERROR = "process_error"


@dataclass(frozen=True)
class Job:
    """One file's syntax check, created once when the queue is built."""

    file_path: str
    command: Tuple[str, ...]


@dataclass(frozen=True)
class LintResult:
    """Outcome of checking a single file.

    Attributes:
        file_path: The checked file
        exit_code: Checker exit code (negative when killed by a signal)
        output: Combined stdout and stderr of the checker
        outcome: Classification of the run
        message: Diagnostic for SYNTAX_ERROR and PROCESS_ERROR, empty for OK
        duration: Wall-clock seconds between spawn and collection
    """

    file_path: str
    exit_code: int
    output: str
    outcome: Outcome
    message: str = ""
    duration: float = 0.0

    @property
    def is_error(self) -> bool:
        return self.outcome is not Outcome.OK


@dataclass
class ErrorMatcher:
    """Recognises syntax-error diagnostics in checker output.

    Each pattern is matched against every output line. When a pattern has a
    ``message`` group, that group is the extracted diagnostic, otherwise the
    whole matched text is used. Runs of whitespace are collapsed and
    identical diagnostics are reported once, which merges the copy PHP
    writes to stderr with the one on stdout.
    """

    patterns: Sequence[str] = DEFAULT_SYNTAX_ERROR_PATTERNS
    _compiled: List[re.Pattern] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if not self.patterns:
            raise ValueError("At least one syntax error pattern is required")
        self._compiled = [re.compile(p) for p in self.patterns]

    def find(self, output: str) -> List[str]:
        """Return diagnostic messages found in ``output``, in order."""
        messages: List[str] = []
        for line in output.splitlines():
            line = line.strip()
            if not line:
                continue
            for pattern in self._compiled:
                match = pattern.search(line)
                if match is None:
                    continue
                if "message" in pattern.groupindex:
                    message = match.group("message")
                else:
                    message = match.group(0)
                message = " ".join(message.split())
                if message not in messages:
                    messages.append(message)
                break
        return messages

    def classify(self, exit_code: int, output: str) -> Tuple[Outcome, str]:
        """Classify a finished checker run.

        Returns:
            Tuple of (outcome, message)
        """
        messages = self.find(output)

        if exit_code == 0 and not messages:
            return Outcome.OK, ""

        if exit_code > 0 and messages:
            return Outcome.SYNTAX_ERROR, "\n".join(messages)

        if exit_code < 0:
            return Outcome.PROCESS_ERROR, f"Checker terminated by signal {-exit_code}"

        if exit_code == 0:
            return (
                Outcome.PROCESS_ERROR,
                "Checker exited with code 0 but reported: " + "\n".join(messages),
            )

        last_line = next(
            (line.strip() for line in reversed(output.splitlines()) if line.strip()),
            "",
        )
        message = f"Checker exited with code {exit_code}"
        if last_line:
            message += f": {last_line}"
        return Outcome.PROCESS_ERROR, message


class JobProcess:
    """One running checker process.

    Example:
        process = JobProcess(job, matcher)
        process.start()
        while not process.is_ready():
            time.sleep(0.05)
        result = process.collect_result()
    """

    def __init__(
        self,
        job: Job,
        matcher: Optional[ErrorMatcher] = None,
        synchronous: bool = False,
    ) -> None:
        """Initialize the process wrapper.

        Args:
            job: The job to run
            matcher: Error matcher used for classification
            synchronous: Block in start() until the process exits
        """
        self.job = job
        self.synchronous = synchronous
        self._matcher = matcher or ErrorMatcher()
        self._process: Optional[subprocess.Popen] = None
        self._buffer: Optional[IO[bytes]] = None
        self._started_at: float = 0.0
        self._result: Optional[LintResult] = None

    @property
    def started(self) -> bool:
        return self._process is not None

    def start(self) -> None:
        """Spawn the checker.

        Returns immediately unless the process was created in synchronous
        mode, in which case it waits for the checker to exit.

        Raises:
            RuntimeError: If the process was already started
            OSError: If the checker cannot be spawned
        """
        if self._process is not None:
            raise RuntimeError(f"Process for {self.job.file_path} already started")

        self._buffer = tempfile.TemporaryFile()
        self._started_at = time.monotonic()
        try:
            self._process = subprocess.Popen(
                list(self.job.command),
                stdout=self._buffer,
                stderr=subprocess.STDOUT,
                stdin=subprocess.DEVNULL,
            )
        except OSError:
            self._buffer.close()
            self._buffer = None
            raise

        logger.debug(
            f"Started pid {self._process.pid} for {self.job.file_path}"
            f"{' (synchronous)' if self.synchronous else ''}"
        )

        if self.synchronous:
            self._process.wait()

    def is_ready(self) -> bool:
        """Whether the checker has exited. Never blocks."""
        if self._process is None:
            return False
        return self._process.poll() is not None

    def wait(self) -> None:
        """Block until the checker exits."""
        if self._process is None:
            raise RuntimeError(f"Process for {self.job.file_path} not started")
        self._process.wait()

    def collect_result(self) -> LintResult:
        """Read exit code and output, and classify the run.

        Calling it again returns the same result.

        Raises:
            RuntimeError: If the process has not exited yet
        """
        if self._result is not None:
            return self._result

        if not self.is_ready():
            raise RuntimeError(f"Process for {self.job.file_path} is still running")

        assert self._process is not None and self._buffer is not None
        exit_code = self._process.returncode
        self._buffer.seek(0)
        output = self._buffer.read().decode(errors="replace")
        self._buffer.close()

        outcome, message = self._matcher.classify(exit_code, output)
        self._result = LintResult(
            file_path=self.job.file_path,
            exit_code=exit_code,
            output=output,
            outcome=outcome,
            message=message,
            duration=time.monotonic() - self._started_at,
        )
        logger.debug(
            f"{self.job.file_path}: {outcome.value} (exit code {exit_code})"
        )
        return self._result

    def kill(self) -> None:
        """Kill the checker if it is still running and release its buffer."""
        if self._process is not None and self._process.poll() is None:
            logger.debug(f"Killing pid {self._process.pid} for {self.job.file_path}")
            self._process.kill()
            self._process.wait()
        if self._buffer is not None and not self._buffer.closed:
            self._buffer.close()
