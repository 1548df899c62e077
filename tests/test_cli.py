"""Tests for the plz command line."""

import sys

import pytest
from click.testing import CliRunner

from plz.cli import cli

CONFIG = f"""
description: Test project
variables:
  py: {sys.executable!r}
  name: World
commands:
  greet:
    description: Say hello
    action: $py -c 'print("hi")'
  fail:
    action: $py -c 'import sys; sys.exit(7)'
  missing:
    action: echo $nobody
  group:
    description: A group
    commands:
      inner:
        action: $py -c 'pass'
  secret:
    hidden: true
    action: $py -c 'pass'
"""


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "plz.yaml"
    path.write_text(CONFIG)
    return path


def invoke(config_file, *args):
    return CliRunner().invoke(cli, ["--config", str(config_file), "--quiet", *args])


class TestListing:
    """Tests for listing commands."""

    def test_no_arguments_lists_commands(self, config_file):
        """Test plz without a command prints the tree."""
        result = invoke(config_file)
        assert result.exit_code == 0
        assert "Test project" in result.output
        assert "greet" in result.output
        assert "Say hello" in result.output
        assert "inner" in result.output
        assert "secret" not in result.output

    def test_list_flag(self, config_file):
        """Test --list prints the tree even with a command."""
        result = invoke(config_file, "--list")
        assert result.exit_code == 0
        assert "group" in result.output

    def test_top_level_help(self):
        """Test plz --help shows the usage summary in plain ASCII."""
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "plz: run the commands defined in plz.yaml." in result.output
        assert "—" not in result.output

    def test_group_help(self, config_file):
        """Test --help on a group lists its subcommands."""
        result = invoke(config_file, "group", "--help")
        assert result.exit_code == 0
        assert "inner" in result.output

    def test_command_help(self, config_file):
        """Test --help on a command shows its description."""
        result = invoke(config_file, "greet", "--help")
        assert result.exit_code == 0
        assert "Say hello" in result.output


class TestExitCodes:
    """Tests for the process exit code."""

    def test_success(self, config_file):
        """Test a successful run exits 0."""
        assert invoke(config_file, "greet").exit_code == 0

    def test_child_exit_code_is_propagated(self, config_file):
        """Test the failing action's exit code becomes plz's."""
        result = invoke(config_file, "fail")
        assert result.exit_code == 7
        assert "Action failed" in result.output

    def test_unknown_command(self, config_file):
        """Test an unknown command exits 2 and names the segment."""
        result = invoke(config_file, "group", "nope")
        assert result.exit_code == 2
        assert "Unknown command" in result.output
        assert "'group' has no command named 'nope'" in result.output

    def test_missing_subcommand(self, config_file):
        """Test running a group exits 2."""
        result = invoke(config_file, "group")
        assert result.exit_code == 2
        assert "needs a subcommand" in result.output

    def test_undefined_variable(self, config_file):
        """Test undefined variables exit 2 before anything runs."""
        result = invoke(config_file, "missing")
        assert result.exit_code == 2
        assert "variable 'nobody' is not defined" in result.output

    def test_override(self, config_file):
        """Test -- name=value overrides are accepted."""
        result = invoke(config_file, "missing", "--", "nobody=someone")
        assert result.exit_code == 0

    def test_bad_config(self, tmp_path):
        """Test an invalid config exits 2."""
        path = tmp_path / "plz.yaml"
        path.write_text("commands:\n  x:\n    action: a\n    actions: [b]\n")
        result = invoke(path, "x")
        assert result.exit_code == 2
        assert "Invalid configuration" in result.output

    def test_config_from_environment(self, config_file, monkeypatch, tmp_path):
        """Test PLZ_CONFIG selects the config file."""
        monkeypatch.chdir(tmp_path)
        result = CliRunner().invoke(cli, ["-q", "greet"], env={"PLZ_CONFIG": str(config_file)})
        assert result.exit_code == 0
