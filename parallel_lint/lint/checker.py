"""Checker command construction and preflight probe.

The checker is an external program (``php`` by default) that validates a
single file. It is only ever consumed through its exit code and output.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from typing import List, Tuple

from parallel_lint.cli.error_handler import CheckerInvocationError

logger = logging.getLogger(__name__)

# `php -v` exits with 255 on some builds even though the binary works
PREFLIGHT_ACCEPTED_CODES = (0, 255)


def _on_off(flag: bool) -> str:
    return "On" if flag else "Off"


@dataclass(frozen=True)
class CheckerCommand:
    """Builds the argument list used to check one file.

    Attributes:
        executable: Checker executable name or path
        short_open_tag: Pass ``short_open_tag=On`` to the checker
        asp_tags: Pass ``asp_tags=On`` to the checker
    """

    executable: str = "php"
    short_open_tag: bool = False
    asp_tags: bool = False

    def __post_init__(self) -> None:
        if not self.executable or not self.executable.strip():
            raise ValueError("Checker executable must not be empty")

    def base_args(self) -> List[str]:
        """Arguments shared by every per-file invocation."""
        return [
            self.executable,
            "-d", f"asp_tags={_on_off(self.asp_tags)}",
            "-d", f"short_open_tag={_on_off(self.short_open_tag)}",
            "-n",
            "-l",
        ]

    def for_file(self, file_path: str) -> Tuple[str, ...]:
        """Full argv for checking ``file_path``."""
        return tuple(self.base_args() + [str(file_path)])

    def preflight(self) -> str:
        """Verify the checker can be invoked at all.

        Runs ``<executable> -v`` synchronously and returns its first output
        line (the version banner).

        Raises:
            CheckerInvocationError: If the executable cannot be spawned or
                exits with an unexpected code
        """
        argv = [self.executable, "-v"]
        logger.debug(f"Preflight: {argv}")

        try:
            completed = subprocess.run(
                argv,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                stdin=subprocess.DEVNULL,
                check=False,
            )
        except OSError as e:
            raise CheckerInvocationError(self.executable, e.strerror or str(e)) from e

        if completed.returncode not in PREFLIGHT_ACCEPTED_CODES:
            raise CheckerInvocationError(
                self.executable,
                f"exit code {completed.returncode}",
                details={"output": completed.stdout.decode(errors="replace").strip()[:200]},
            )

        banner = completed.stdout.decode(errors="replace").strip().splitlines()
        version = banner[0] if banner else ""
        logger.info(f"Using checker {self.executable}: {version}")
        return version
