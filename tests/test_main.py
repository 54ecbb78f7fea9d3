"""Tests for the parallel-lint command line."""

import json
import logging

import pytest
from typer.testing import CliRunner

from parallel_lint import __version__
from parallel_lint.cli.exit_codes import ExitCode
from parallel_lint.main import _setup_logging, app, main


runner = CliRunner()


@pytest.fixture
def clean_file(tmp_path):
    path = tmp_path / "clean.php"
    path.write_text("<?php echo 'hello';\n")
    return path


class TestSetupLogging:
    """Tests for _setup_logging function."""

    def test_verbose_sets_info(self):
        _setup_logging(verbose=True)
        assert logging.getLogger().level == logging.INFO

    def test_debug_sets_debug(self):
        _setup_logging(debug=True)
        assert logging.getLogger().level == logging.DEBUG

    def test_default_level_from_config(self):
        _setup_logging(default_level="error")
        assert logging.getLogger().level == logging.ERROR

    def test_unknown_default_level_falls_back_to_warning(self):
        _setup_logging(default_level="LOUD")
        assert logging.getLogger().level == logging.WARNING

    def test_creates_log_directory(self, tmp_path):
        log_file = tmp_path / "logs" / "lint.log"
        _setup_logging(log_file=log_file)
        assert log_file.parent.exists()


class TestLintCommand:
    """Tests for the lint command."""

    def test_help(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "--jobs" in result.output
        assert "--exclude" in result.output
        assert "--short" in result.output

    def test_short_help_option(self):
        result = runner.invoke(app, ["-h"])
        assert result.exit_code == 0
        assert "--php" in result.output

    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"v{__version__}" in result.output

    def test_clean_file_succeeds(self, fake_checker, clean_file):
        result = runner.invoke(app, ["-p", fake_checker, str(clean_file)])
        assert result.exit_code == ExitCode.SUCCESS
        assert "Checked 1 files, no syntax error found" in result.output

    def test_syntax_error_exits_with_errors(self, fake_checker, php_tree):
        result = runner.invoke(app, ["-p", fake_checker, "-j", "3", str(php_tree)])
        assert result.exit_code == ExitCode.WITH_ERRORS
        assert "Checked 4 files, syntax error found in 1 files" in result.output
        assert "Syntax error:" in result.output
        assert "bad.php" in result.output
        assert "Parse error: syntax error, unexpected end of file" in result.output

    def test_exclude(self, fake_checker, php_tree):
        result = runner.invoke(
            app,
            ["-p", fake_checker, "--exclude", str(php_tree / "vendor"), str(php_tree)],
        )
        assert "Checked 3 files" in result.output

    def test_extensions(self, fake_checker, php_tree):
        result = runner.invoke(app, ["-p", fake_checker, "-e", "txt", str(php_tree)])
        assert result.exit_code == ExitCode.WITH_ERRORS
        assert "Checked 1 files" in result.output

    def test_empty_extension_list(self, fake_checker, php_tree):
        result = runner.invoke(app, ["-p", fake_checker, "-e", " , ", str(php_tree)])
        assert result.exit_code == ExitCode.FAILED

    def test_asp_tags_passed_to_checker(self, fake_checker, tmp_path):
        source = tmp_path / "asp.php"
        source.write_text("<% ASP_ONLY %>\n")

        without = runner.invoke(app, ["-p", fake_checker, str(source)])
        with_flag = runner.invoke(app, ["-p", fake_checker, "-a", str(source)])

        assert without.exit_code == ExitCode.WITH_ERRORS
        assert with_flag.exit_code == ExitCode.SUCCESS

    def test_jobs_clamped_to_one(self, fake_checker, clean_file):
        result = runner.invoke(app, ["-p", fake_checker, "-j", "0", str(clean_file)])
        assert result.exit_code == ExitCode.SUCCESS

    def test_json_output(self, fake_checker, php_tree):
        result = runner.invoke(app, ["-p", fake_checker, "--json", str(php_tree)])
        assert result.exit_code == ExitCode.WITH_ERRORS
        data = json.loads(result.stdout)
        assert data["checked_files"] == 4
        assert data["syntax_error_count"] == 1
        assert data["errors"][0]["file"].endswith("bad.php")

    def test_json_output_with_long_paths(self, fake_checker, tmp_path):
        nested = tmp_path / "a_rather_long_directory_name" / "and_another_long_one"
        nested.mkdir(parents=True)
        source = nested / "bad_file_with_a_long_name_that_overflows_the_terminal.php"
        source.write_text("<?php SYNTAX_ERROR\n")

        result = runner.invoke(app, ["-p", fake_checker, "--json", str(source)])

        data = json.loads(result.stdout)
        assert data["errors"][0]["message"].endswith(f"{source} on line 3")

    def test_wrong_type_in_config_is_fatal(self, fake_checker, clean_file, tmp_path):
        config_path = tmp_path / "lint.toml"
        config_path.write_text('[scheduler]\npoll_interval = "fast"\n')

        result = runner.invoke(app, ["-p", fake_checker, "-c", str(config_path), str(clean_file)])

        assert result.exit_code == ExitCode.FAILED
        assert "Invalid configuration" in result.output
        assert "scheduler.poll_interval" in result.output
        assert "Unexpected error" not in result.output

    def test_log_format_from_config(self, fake_checker, clean_file, tmp_path):
        config_path = tmp_path / "lint.toml"
        config_path.write_text("[logging]\nformat = '%(levelname)s|%(message)s'\n")
        log_file = tmp_path / "lint.log"

        result = runner.invoke(
            app,
            ["-p", fake_checker, "-c", str(config_path), "--log-file", str(log_file), str(clean_file)],
        )

        assert result.exit_code == ExitCode.SUCCESS
        assert "INFO|Checking 1 files" in log_file.read_text()

    def test_show_config_as_json(self):
        result = runner.invoke(app, ["--show-config", "--config-format", "json", "-j", "4"])
        assert result.exit_code == ExitCode.SUCCESS
        assert '"parallel_jobs": 4' in result.output

    def test_unknown_config_format(self):
        result = runner.invoke(app, ["--show-config", "--config-format", "ini"])
        assert result.exit_code == ExitCode.FAILED
        assert "Unknown config format" in result.output

    def test_missing_checker_is_fatal(self, tmp_path, clean_file):
        result = runner.invoke(app, ["-p", str(tmp_path / "no-php"), str(clean_file)])
        assert result.exit_code == ExitCode.FAILED
        assert "Unable to execute" in result.output
        assert "Checked" not in result.output

    def test_missing_path_is_fatal(self, fake_checker, tmp_path, clean_file):
        result = runner.invoke(
            app, ["-p", fake_checker, str(clean_file), str(tmp_path / "missing")]
        )
        assert result.exit_code == ExitCode.FAILED
        assert "does not exist" in result.output
        assert "Checked" not in result.output

    def test_show_config(self):
        result = runner.invoke(app, ["--show-config", "-j", "4", "-e", "php,inc"])
        assert result.exit_code == ExitCode.SUCCESS
        assert "parallel_jobs: 4" in result.output
        assert "- inc" in result.output

    def test_options_without_paths(self, fake_checker):
        result = runner.invoke(app, ["-p", fake_checker])
        assert result.exit_code == ExitCode.FAILED
        assert "Missing argument" in result.output
        assert "Usage:" in result.output

    def test_quiet_and_verbose_conflict(self, fake_checker, clean_file):
        result = runner.invoke(app, ["-p", fake_checker, "-q", "-V", str(clean_file)])
        assert result.exit_code == ExitCode.FAILED
        assert "cannot be combined" in result.output
        assert "Usage:" in result.output

    def test_config_file(self, fake_checker, clean_file, tmp_path):
        config_path = tmp_path / "lint.toml"
        config_path.write_text(f'[checker]\nexecutable = "{fake_checker}"\n')

        result = runner.invoke(app, ["-c", str(config_path), str(clean_file)])

        assert result.exit_code == ExitCode.SUCCESS

    def test_invalid_config_is_fatal(self, fake_checker, clean_file, tmp_path):
        config_path = tmp_path / "lint.toml"
        config_path.write_text("[scheduler]\npoll_interval = -1\n")

        result = runner.invoke(app, ["-p", fake_checker, "-c", str(config_path), str(clean_file)])

        assert result.exit_code == ExitCode.FAILED
        assert "Invalid configuration" in result.output

    def test_log_file(self, fake_checker, clean_file, tmp_path):
        log_file = tmp_path / "lint.log"

        result = runner.invoke(
            app, ["-p", fake_checker, "--log-file", str(log_file), str(clean_file)]
        )

        assert result.exit_code == ExitCode.SUCCESS
        assert "Checking 1 files" in log_file.read_text()


class TestMain:
    """Tests for the main() entry point."""

    def test_no_arguments_shows_help(self, capsys):
        assert main([]) == ExitCode.SUCCESS
        assert "Usage" in capsys.readouterr().out

    def test_unknown_option_is_fatal(self, capsys):
        assert main(["--bogus", "a.php"]) == ExitCode.FAILED
        err = capsys.readouterr().err
        assert "--bogus" in err
        assert "Usage" in err

    def test_missing_option_value_is_fatal(self):
        assert main(["a.php", "-j"]) == ExitCode.FAILED

    def test_success(self, fake_checker, clean_file):
        assert main(["-p", fake_checker, str(clean_file)]) == ExitCode.SUCCESS

    def test_errors_found(self, fake_checker, php_tree):
        assert main(["-p", fake_checker, str(php_tree)]) == ExitCode.WITH_ERRORS

    def test_missing_path(self, fake_checker, tmp_path):
        assert main(["-p", fake_checker, str(tmp_path / "missing")]) == ExitCode.FAILED
