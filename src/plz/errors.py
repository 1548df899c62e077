# errors.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2
EXIT_SPAWN_FAILED = 127
EXIT_CANCELLED = 130


class PlzError(Exception):
    """Base class for every error the runner reports to the user."""

    exit_code: int = EXIT_FAILURE
    title: str = "plz failed"

    def details(self) -> list[str]:
        return []

    def suggestion(self) -> str | None:
        return None


# ----------------------------------------------------------------------
# Configuration
# ----------------------------------------------------------------------

@dataclass
class ConfigError(PlzError):
    message: str
    source: str | None = None
    problems: list[str] = field(default_factory=list)

    exit_code = EXIT_USAGE
    title = "Invalid configuration"

    def __str__(self) -> str:
        if self.source:
            return f"{self.source}: {self.message}"
        return self.message

    def details(self) -> list[str]:
        return list(self.problems)


@dataclass
class TemplateSyntaxError(ConfigError):
    """A malformed action or variable template (bad quoting, `${` without `}`)."""
    template: str = ""

    title = "Invalid template"

    def details(self) -> list[str]:
        return [f"template: {self.template}"] if self.template else []


# ----------------------------------------------------------------------
# Resolution
# ----------------------------------------------------------------------

class ResolutionError(PlzError):
    exit_code = EXIT_USAGE
    title = "Cannot resolve command"


@dataclass
class UnknownCommand(ResolutionError):
    prefix: Sequence[str]
    segment: str
    available: Sequence[str] = ()

    title = "Unknown command"

    def __str__(self) -> str:
        if self.prefix:
            return f"'{' '.join(self.prefix)}' has no command named '{self.segment}'"
        return f"no command named '{self.segment}'"

    def details(self) -> list[str]:
        if not self.available:
            return []
        return ["Available commands:"] + [f"  {name}" for name in self.available]

    def suggestion(self) -> str | None:
        return "Run `plz --list` to see every command."


@dataclass
class MissingSubcommand(ResolutionError):
    path: Sequence[str]
    available: Sequence[str] = ()

    title = "Missing subcommand"

    def __str__(self) -> str:
        if not self.path:
            return "no command given"
        return f"'{' '.join(self.path)}' needs a subcommand"

    def details(self) -> list[str]:
        if not self.available:
            return []
        return ["Available commands:"] + [f"  {name}" for name in self.available]


@dataclass
class ArgumentError(ResolutionError):
    command: str
    message: str

    title = "Invalid arguments"

    def __str__(self) -> str:
        return f"{self.command}: {self.message}"


@dataclass
class UndefinedVariable(PlzError):
    name: str
    template: str | None = None

    exit_code = EXIT_USAGE
    title = "Undefined variable"

    def __str__(self) -> str:
        return f"variable '{self.name}' is not defined"

    def details(self) -> list[str]:
        return [f"template: {self.template}"] if self.template else []

    def suggestion(self) -> str | None:
        return (
            f"Define '{self.name}' under `variables:` or pass it on the command line:\n"
            f"  plz <command> -- {self.name}=<value>"
        )


# ----------------------------------------------------------------------
# Execution
# ----------------------------------------------------------------------

class ExecutionError(PlzError):
    title = "Action failed"


@dataclass
class SpawnError(ExecutionError):
    command: str
    argv: list[str]
    reason: str
    working_directory: str | None = None

    exit_code = EXIT_SPAWN_FAILED
    title = "Could not start process"

    def __str__(self) -> str:
        if self.working_directory:
            return f"[{self.command}] {self.reason}: {self.working_directory}"
        return f"[{self.command}] could not start '{self.argv[0]}': {self.reason}"

    def suggestion(self) -> str | None:
        if self.working_directory:
            return "Create the directory or fix `working_directory` in the config."
        return f"Make sure '{self.argv[0]}' is installed and on your PATH."


@dataclass
class ActionFailed(ExecutionError):
    command: str
    argv: list[str]
    returncode: int

    def __post_init__(self) -> None:
        self.exit_code = exit_code_for(self.returncode)

    def __str__(self) -> str:
        return f"[{self.command}] action failed (exit={self.exit_code}): {' '.join(self.argv)}"


@dataclass
class ExecutionCancelled(ExecutionError):
    command: str
    argv: list[str]

    exit_code = EXIT_CANCELLED
    title = "Interrupted"

    def __str__(self) -> str:
        return f"[{self.command}] interrupted while running: {' '.join(self.argv)}"


def exit_code_for(returncode: int) -> int:
    """Map a Popen returncode to a process exit code (signals become 128+N)."""
    if returncode < 0:
        return 128 - returncode
    return returncode
