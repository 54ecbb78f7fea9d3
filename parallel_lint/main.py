"""Main CLI entry point for parallel-lint."""

import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

import typer
from rich.console import Console
from rich.syntax import Syntax

from parallel_lint import __app_name__, __version__
from parallel_lint.cli.error_handler import (
    ArgumentError,
    ConfigurationError,
    handle_errors,
)
from parallel_lint.cli.exit_codes import ExitCode
from parallel_lint.cli.output import ConsoleReport, JsonReport
from parallel_lint.config import (
    export_config_json,
    export_config_yaml,
    load_config,
    validate_config,
)
from parallel_lint.lint.checker import CheckerCommand
from parallel_lint.lint.discovery import PathResolver, parse_extensions
from parallel_lint.lint.process import ErrorMatcher
from parallel_lint.lint.scheduler import Scheduler

app = typer.Typer(
    name=__app_name__,
    help="Check syntax of PHP files in parallel.",
    add_completion=False,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)

console = Console()

logger = logging.getLogger(__name__)

# Exit code click uses for usage errors (unknown option, missing value)
USAGE_ERROR_EXIT_CODE = 2


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"{__app_name__} v{__version__}")
        raise typer.Exit(code=ExitCode.SUCCESS)


def _setup_logging(
    verbose: bool = False,
    debug: bool = False,
    quiet: bool = False,
    log_file: Optional[Path] = None,
    default_level: str = "WARNING",
    format_str: Optional[str] = None,
) -> None:
    """Set up logging configuration based on CLI options.

    Log records go to stderr so the report on stdout stays clean.

    Args:
        verbose: Enable INFO level logging
        debug: Enable DEBUG level logging
        quiet: Only log errors
        log_file: Optional log file path, always written at DEBUG level
        default_level: Level used when no verbosity flag is given
        format_str: Log record format
    """
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.getLevelName(default_level.upper())
        if not isinstance(level, int):
            level = logging.WARNING

    if format_str is None:
        if debug:
            format_str = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
        else:
            format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    handlers: list[logging.Handler] = []

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)  # Always log debug to file
        handlers.append(file_handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    handlers.append(console_handler)

    logging.basicConfig(
        level=logging.DEBUG if log_file else level,
        format=format_str,
        handlers=handlers,
        force=True,  # Override any existing configuration
    )

    logger.debug(f"Logging configured: level={logging.getLevelName(level)}, debug={debug}")


@app.command()
@handle_errors
def lint(
    ctx: typer.Context,
    paths: Optional[List[str]] = typer.Argument(
        None,
        help="Files or directories to check.",
        show_default=False,
    ),
    php: Optional[str] = typer.Option(
        None,
        "-p",
        "--php",
        help="Checker executable to run. [default: php]",
        show_default=False,
    ),
    short_open_tag: bool = typer.Option(
        False,
        "-s",
        "--short",
        help="Set short_open_tag to On.",
    ),
    asp_tags: bool = typer.Option(
        False,
        "-a",
        "--asp",
        help="Set asp_tags to On.",
    ),
    extensions: Optional[str] = typer.Option(
        None,
        "-e",
        "--extensions",
        help="Check only files with these comma separated extensions. [default: php,php3,php4,php5,phtml]",
        show_default=False,
    ),
    exclude: Optional[List[str]] = typer.Option(
        None,
        "--exclude",
        help="Exclude a directory. Repeat to exclude several.",
        show_default=False,
    ),
    jobs: Optional[int] = typer.Option(
        None,
        "-j",
        "--jobs",
        help="Run this many checks in parallel. [default: 10]",
        min=1,
        clamp=True,
        show_default=False,
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Print the report as JSON.",
    ),
    show_config: bool = typer.Option(
        False,
        "--show-config",
        help="Print the effective configuration and exit.",
    ),
    config_format: str = typer.Option(
        "yaml",
        "--config-format",
        help="Format used by --show-config (yaml, json).",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to configuration file.",
        dir_okay=False,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-V",
        help="Enable verbose output (INFO level logging).",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug mode (DEBUG level logging).",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Only log errors.",
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Log to file (logs DEBUG level regardless of console settings).",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """Check syntax of PHP files in parallel.

    Every file is checked with [cyan]php -l[/cyan] in its own process, with
    at most [cyan]--jobs[/cyan] processes running at once.

    [bold]Exit codes:[/bold] 0 no errors, 1 errors found, 255 fatal error.

    [bold]Examples:[/bold]

        parallel-lint src/ tests/
        parallel-lint -j 4 -e php,inc --exclude vendor .
        parallel-lint -p /usr/bin/php8.2 --json index.php
        parallel-lint --show-config
    """
    if quiet and (verbose or debug):
        raise ArgumentError(
            "--quiet cannot be combined with --verbose or --debug", usage=ctx.get_usage()
        )

    config = load_config(config_file)

    # Command-line options take precedence over file and environment
    if php:
        config.checker.executable = php
    config.checker.short_open_tag = short_open_tag or config.checker.short_open_tag
    config.checker.asp_tags = asp_tags or config.checker.asp_tags
    if extensions is not None:
        config.discovery.extensions = parse_extensions(extensions)
        if not config.discovery.extensions:
            raise ArgumentError(
                f"Invalid extension list '{extensions}'", usage=ctx.get_usage()
            )
    if exclude:
        config.discovery.exclude = list(config.discovery.exclude) + list(exclude)
    if jobs is not None:
        config.scheduler.parallel_jobs = max(jobs, 1)
    if log_file is not None:
        config.logging.file = log_file

    _setup_logging(
        verbose=verbose,
        debug=debug,
        quiet=quiet,
        log_file=config.logging.file,
        default_level=config.logging.level,
        format_str=config.logging.format,
    )
    logger.debug(f"{__app_name__} v{__version__} starting")

    if show_config:
        if config_format == "yaml":
            console.print(Syntax(export_config_yaml(config), "yaml", theme="monokai"))
        elif config_format == "json":
            console.print(Syntax(export_config_json(config), "json", theme="monokai"))
        else:
            raise ArgumentError(
                f"Unknown config format '{config_format}', expected yaml or json",
                usage=ctx.get_usage(),
            )
        raise typer.Exit(code=ExitCode.SUCCESS)
    if not paths:
        raise ArgumentError("Missing argument 'PATHS...'", usage=ctx.get_usage())

    problems = validate_config(config)
    for problem in problems:
        if problem.severity == "warning":
            logger.warning(str(problem))
    errors = {p.field: p.message for p in problems if p.severity == "error"}
    if errors:
        raise ConfigurationError("Invalid configuration", details=errors)

    checker = CheckerCommand(
        executable=config.checker.executable,
        short_open_tag=config.checker.short_open_tag,
        asp_tags=config.checker.asp_tags,
    )
    scheduler = Scheduler(
        checker=checker,
        sink=JsonReport() if json_output else ConsoleReport(),
        resolver=PathResolver(
            extensions=config.discovery.extensions,
            exclude=config.discovery.exclude,
        ),
        parallel_jobs=config.scheduler.parallel_jobs,
        poll_interval=config.scheduler.poll_interval,
        matcher=ErrorMatcher(config.checker.syntax_error_patterns),
    )

    report = scheduler.run(paths)

    raise typer.Exit(code=ExitCode.SUCCESS if report.success else ExitCode.WITH_ERRORS)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the command line and return the process exit code.

    Click reports usage errors itself, with the usage line, and exits with
    code 2. That code is mapped to 255, the exit code of every fatal error.
    Without arguments the help is shown.
    """
    args = list(sys.argv[1:] if argv is None else argv)
    command = typer.main.get_command(app)

    if not args:
        args = ["--help"]

    try:
        command.main(args=args, prog_name=__app_name__, standalone_mode=True)
        code = ExitCode.SUCCESS
    except SystemExit as e:
        if e.code is None:
            code = ExitCode.SUCCESS
        elif isinstance(e.code, int):
            code = e.code
        else:
            code = ExitCode.FAILED

    if code == USAGE_ERROR_EXIT_CODE:
        code = ExitCode.FAILED

    logger.debug(f"Exiting with {ExitCode.get_name(code)}: {ExitCode.get_description(code)}")
    return code


def run() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
