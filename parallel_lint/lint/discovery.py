"""File discovery for lint runs."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Sequence, Set

from parallel_lint.cli.error_handler import PathError

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS: List[str] = ["php", "php3", "php4", "php5", "phtml"]


def parse_extensions(value: str) -> List[str]:
    """Split a comma separated extension list.

    Leading dots and surrounding whitespace are dropped, empty items are
    ignored: ``" php, .inc ,"`` gives ``["php", "inc"]``.
    """
    extensions = []
    for item in value.split(","):
        item = item.strip().lstrip(".")
        if item and item not in extensions:
            extensions.append(item)
    return extensions


class PathResolver:
    """Expands the paths given on the command line into files to check.

    Files named explicitly are always checked, whatever their extension.
    Directories are walked recursively in sorted order and only files whose
    extension is in ``extensions`` are kept. Directories listed in
    ``exclude`` are not descended into. A file reachable through several
    paths is returned once, at its first position.
    """

    def __init__(
        self,
        extensions: Optional[Sequence[str]] = None,
        exclude: Optional[Iterable[str]] = None,
    ) -> None:
        self.extensions = list(extensions) if extensions is not None else list(DEFAULT_EXTENSIONS)
        self.exclude: Set[Path] = {Path(p).resolve() for p in (exclude or [])}

    def resolve(self, paths: Sequence[str]) -> List[str]:
        """Return the ordered, de-duplicated list of files to check.

        Raises:
            PathError: If a path is neither a file nor a directory
        """
        files: List[str] = []
        seen: Set[Path] = set()

        for path in paths:
            for file_path in self._expand(path):
                key = Path(file_path).resolve()
                if key in seen:
                    continue
                seen.add(key)
                files.append(file_path)

        logger.info(f"Discovered {len(files)} files in {len(paths)} paths")
        return files

    def _expand(self, path: str) -> Iterator[str]:
        if os.path.isfile(path):
            yield path
        elif os.path.isdir(path):
            yield from self._walk(path)
        else:
            raise PathError(path)

    def _walk(self, directory: str) -> Iterator[str]:
        for root, dirs, names in os.walk(directory):
            dirs[:] = sorted(
                d for d in dirs if not self._is_excluded(os.path.join(root, d))
            )
            for name in sorted(names):
                if self._has_extension(name):
                    yield os.path.join(root, name)

    def _is_excluded(self, directory: str) -> bool:
        if Path(directory).resolve() in self.exclude:
            logger.debug(f"Excluding directory {directory}")
            return True
        return False

    def _has_extension(self, name: str) -> bool:
        _, dot, extension = name.rpartition(".")
        return bool(dot) and extension in self.extensions
