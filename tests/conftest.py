"""Shared fixtures: a stand-in for the php executable."""

import stat
import sys
from pathlib import Path

import pytest


FAKE_CHECKER = '''#!{python}
import sys

args = sys.argv[1:]
if args == ["-v"]:
    print("PHP 8.2.0 (cli) (fake checker)")
    sys.exit(0)

path = args[-1]
with open(path) as f:
    text = f.read()

broken = "SYNTAX_ERROR" in text or ("ASP_ONLY" in text and "asp_tags=On" not in args)
if "PROCESS_FAIL" in text:
    print("Segmentation fault", file=sys.stderr)
    sys.exit(139)
if broken:
    print("PHP Parse error:  syntax error, unexpected end of file in %s on line 3" % path, file=sys.stderr)
    print("Parse error: syntax error, unexpected end of file in %s on line 3" % path)
    print("Errors parsing %s" % path)
    sys.exit(255)
print("No syntax errors detected in %s" % path)
'''


def _write_executable(path: Path, content: str) -> Path:
    path.write_text(content)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def fake_checker(tmp_path) -> str:
    """Path of an executable that answers like `php -v` and `php -l`.

    Files containing SYNTAX_ERROR fail with a parse error, files containing
    PROCESS_FAIL make the checker exit 139 without a diagnostic, and files
    containing ASP_ONLY only pass when asp_tags=On is given.
    """
    checker = _write_executable(
        tmp_path / "fake-php",
        FAKE_CHECKER.format(python=sys.executable),
    )
    return str(checker)


@pytest.fixture
def broken_checker(tmp_path) -> str:
    """An executable whose version probe exits with code 3."""
    checker = _write_executable(tmp_path / "broken-php", "#!/bin/sh\necho broken\nexit 3\n")
    return str(checker)


@pytest.fixture
def php_tree(tmp_path) -> Path:
    """A small source tree with passing and failing files."""
    root = tmp_path / "src"
    (root / "lib").mkdir(parents=True)
    (root / "vendor").mkdir()
    (root / "a.php").write_text("<?php echo 'a';\n")
    (root / "lib" / "b.php").write_text("<?php echo 'b';\n")
    (root / "lib" / "bad.php").write_text("<?php SYNTAX_ERROR\n")
    (root / "vendor" / "c.php").write_text("<?php echo 'c';\n")
    (root / "notes.txt").write_text("SYNTAX_ERROR but not php\n")
    return root


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep the user's config file and PARALLEL_LINT_* variables out of tests."""
    import os

    for key in list(os.environ):
        if key.startswith("PARALLEL_LINT_"):
            monkeypatch.delenv(key, raising=False)
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    monkeypatch.setenv("PARALLEL_LINT_CONFIG_DIR", str(config_dir))
    return config_dir
