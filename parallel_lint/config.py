"""
parallel-lint configuration management.

Settings are resolved from, lowest to highest priority:
- Default values
- Configuration file (TOML)
- Environment variables
- Command-line arguments (applied by the CLI on top of the loaded config)
"""

from __future__ import annotations

import json
import logging
import os
import re
import shutil
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional

import yaml

from parallel_lint.cli.error_handler import ConfigurationError
from parallel_lint.lint.discovery import DEFAULT_EXTENSIONS, parse_extensions
from parallel_lint.lint.process import DEFAULT_SYNTAX_ERROR_PATTERNS
from parallel_lint.lint.scheduler import DEFAULT_PARALLEL_JOBS, DEFAULT_POLL_INTERVAL

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path.home() / ".config" / "parallel-lint"
DEFAULT_CONFIG_FILE = "config.toml"

ENV_PREFIX = "PARALLEL_LINT_"


@dataclass
class ValidationError:
    """Validation problem found in a configuration."""
    field: str
    message: str
    severity: str  # "error" or "warning"

    def __str__(self) -> str:
        return f"[{self.severity.upper()}] {self.field}: {self.message}"


@dataclass
class CheckerConfig:
    """How the checker executable is invoked and how its output is read."""

    executable: str = "php"
    short_open_tag: bool = False
    asp_tags: bool = False

    # Regular expressions recognising a syntax error in checker output.
    # A named group "message" selects the diagnostic text.
    syntax_error_patterns: List[str] = field(
        default_factory=lambda: list(DEFAULT_SYNTAX_ERROR_PATTERNS)
    )


@dataclass
class SchedulerConfig:
    """Configuration for the process scheduler."""

    parallel_jobs: int = DEFAULT_PARALLEL_JOBS
    poll_interval: float = DEFAULT_POLL_INTERVAL  # seconds


@dataclass
class DiscoveryConfig:
    """Which files are picked up from directories."""

    extensions: List[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    exclude: List[str] = field(default_factory=list)


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "WARNING"
    format: Optional[str] = None  # chosen from the verbosity when unset
    file: Optional[Path] = None


@dataclass
class LintConfig:
    """Main configuration container for parallel-lint."""

    checker: CheckerConfig = field(default_factory=CheckerConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    discovery: DiscoveryConfig = field(default_factory=DiscoveryConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def __post_init__(self) -> None:
        self.scheduler.parallel_jobs = max(int(self.scheduler.parallel_jobs), 1)


def load_config(
    config_path: Optional[Path] = None,
    env_prefix: str = ENV_PREFIX,
) -> LintConfig:
    """
    Load configuration from file and environment variables.

    A missing default config file is not an error. A config file passed
    explicitly must exist.

    Args:
        config_path: Path to config file (default: ~/.config/parallel-lint/config.toml)
        env_prefix: Prefix for environment variables

    Returns:
        Loaded configuration

    Raises:
        ConfigurationError: If the file cannot be read or parsed
    """
    config = LintConfig()
    explicit = config_path is not None

    if config_path is None:
        env_config_dir = os.environ.get(f"{env_prefix}CONFIG_DIR")
        if env_config_dir:
            config_path = Path(env_config_dir) / DEFAULT_CONFIG_FILE
        else:
            config_path = DEFAULT_CONFIG_DIR / DEFAULT_CONFIG_FILE

    if config_path.exists():
        config = _load_from_file(config_path, config)
    elif explicit:
        raise ConfigurationError(
            "Configuration file not found", details={"path": str(config_path)}
        )

    config = _load_from_env(config, env_prefix)
    config.__post_init__()

    return config


# Expected TOML value type for every known configuration key
FIELD_TYPES: dict[str, dict[str, type]] = {
    "checker": {
        "executable": str,
        "short_open_tag": bool,
        "asp_tags": bool,
        "syntax_error_patterns": list,
    },
    "scheduler": {
        "parallel_jobs": int,
        "poll_interval": float,
    },
    "discovery": {
        "extensions": list,
        "exclude": list,
    },
    "logging": {
        "level": str,
        "format": str,
        "file": str,
    },
}


def _check_type(value: Any, expected: type) -> Optional[str]:
    """Return a problem description when value does not have the expected type."""
    if expected is list:
        if isinstance(value, list) and all(isinstance(item, str) for item in value):
            return None
        return f"expected a list of strings, got {value!r}"
    if expected is float:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return None
        return f"expected a number, got {value!r}"
    if expected is int and isinstance(value, bool):
        return f"expected an integer, got {value!r}"
    if isinstance(value, expected):
        return None
    names = {str: "a string", bool: "true or false", int: "an integer"}
    return f"expected {names[expected]}, got {value!r}"


def _load_from_file(path: Path, config: LintConfig) -> LintConfig:
    """Load configuration from a TOML file.

    Raises:
        ConfigurationError: If the file cannot be parsed or a value has the
            wrong type
    """
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigurationError(
            f"Failed to load config: {e}", details={"path": str(path)}
        ) from e

    logger.debug(f"Loading configuration from {path}")

    problems: dict[str, str] = {}
    for section, fields in FIELD_TYPES.items():
        values = data.get(section, {})
        if not isinstance(values, dict):
            problems[section] = f"expected a table, got {values!r}"
            continue
        section_obj = getattr(config, section)
        for key, value in values.items():
            if key not in fields:
                logger.warning(f"Ignoring unknown configuration key {section}.{key}")
                continue
            problem = _check_type(value, fields[key])
            if problem:
                problems[f"{section}.{key}"] = problem
                continue
            if fields[key] is float:
                value = float(value)
            elif fields[key] is list:
                value = list(value)
            setattr(section_obj, key, value)

    if problems:
        raise ConfigurationError("Invalid configuration", details={"path": str(path), **problems})

    if isinstance(config.logging.file, str):
        config.logging.file = Path(config.logging.file)

    return config


def _env_bool(value: str) -> bool:
    return value.lower() in ("true", "1", "yes", "on")


def _load_from_env(config: LintConfig, prefix: str) -> LintConfig:
    """Load configuration from environment variables."""

    # Checker settings
    if env_val := os.environ.get(f"{prefix}PHP"):
        config.checker.executable = env_val
    if env_val := os.environ.get(f"{prefix}SHORT_OPEN_TAG"):
        config.checker.short_open_tag = _env_bool(env_val)
    if env_val := os.environ.get(f"{prefix}ASP_TAGS"):
        config.checker.asp_tags = _env_bool(env_val)

    # Scheduler settings
    if env_val := os.environ.get(f"{prefix}JOBS"):
        try:
            config.scheduler.parallel_jobs = int(env_val)
        except ValueError as e:
            raise ConfigurationError(
                f"{prefix}JOBS must be an integer", details={"value": env_val}
            ) from e
    if env_val := os.environ.get(f"{prefix}POLL_INTERVAL"):
        try:
            config.scheduler.poll_interval = float(env_val)
        except ValueError as e:
            raise ConfigurationError(
                f"{prefix}POLL_INTERVAL must be a number", details={"value": env_val}
            ) from e

    # Discovery settings
    if env_val := os.environ.get(f"{prefix}EXTENSIONS"):
        config.discovery.extensions = parse_extensions(env_val)

    # Logging settings
    if env_val := os.environ.get(f"{prefix}LOG_LEVEL"):
        config.logging.level = env_val.upper()
    if env_val := os.environ.get(f"{prefix}LOG_FILE"):
        config.logging.file = Path(env_val)

    return config


def validate_config(config: LintConfig) -> List[ValidationError]:
    """
    Validate configuration and return list of problems.

    Args:
        config: Configuration to validate

    Returns:
        List of validation errors (empty if valid)
    """
    errors: List[ValidationError] = []

    if not config.checker.executable.strip():
        errors.append(ValidationError(
            field="checker.executable",
            message="Checker executable must not be empty.",
            severity="error"
        ))
    elif shutil.which(config.checker.executable) is None:
        errors.append(ValidationError(
            field="checker.executable",
            message=f"'{config.checker.executable}' not found on PATH.",
            severity="warning"
        ))

    if not config.checker.syntax_error_patterns:
        errors.append(ValidationError(
            field="checker.syntax_error_patterns",
            message="At least one syntax error pattern is required.",
            severity="error"
        ))
    for pattern in config.checker.syntax_error_patterns:
        try:
            re.compile(pattern)
        except re.error as e:
            errors.append(ValidationError(
                field="checker.syntax_error_patterns",
                message=f"Invalid regular expression {pattern!r}: {e}",
                severity="error"
            ))

    if config.scheduler.poll_interval <= 0:
        errors.append(ValidationError(
            field="scheduler.poll_interval",
            message=f"Poll interval must be positive, got {config.scheduler.poll_interval}.",
            severity="error"
        ))

    if not config.discovery.extensions:
        errors.append(ValidationError(
            field="discovery.extensions",
            message="No file extensions configured; directories will yield no files.",
            severity="warning"
        ))

    if config.logging.level.upper() not in logging.getLevelNamesMapping():
        errors.append(ValidationError(
            field="logging.level",
            message=f"Unknown log level: {config.logging.level}",
            severity="error"
        ))

    return errors


def _config_to_dict(config: LintConfig) -> dict[str, Any]:
    """Convert configuration to a JSON-serializable dictionary."""
    return {
        "checker": {
            "executable": config.checker.executable,
            "short_open_tag": config.checker.short_open_tag,
            "asp_tags": config.checker.asp_tags,
            "syntax_error_patterns": list(config.checker.syntax_error_patterns),
        },
        "scheduler": {
            "parallel_jobs": config.scheduler.parallel_jobs,
            "poll_interval": config.scheduler.poll_interval,
        },
        "discovery": {
            "extensions": list(config.discovery.extensions),
            "exclude": list(config.discovery.exclude),
        },
        "logging": {
            "level": config.logging.level,
            "format": config.logging.format,
            "file": str(config.logging.file) if config.logging.file else None,
        },
    }


def export_config_json(config: LintConfig) -> str:
    """
    Export configuration as JSON string.

    Args:
        config: Configuration to export

    Returns:
        JSON string representation of config
    """
    return json.dumps(_config_to_dict(config), indent=2)


def export_config_yaml(config: LintConfig) -> str:
    """
    Export configuration as YAML string.

    Args:
        config: Configuration to export

    Returns:
        YAML string representation of config
    """
    return yaml.dump(_config_to_dict(config), default_flow_style=False, sort_keys=False, allow_unicode=True)
