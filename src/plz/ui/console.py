"""Console output formatting utilities for plz."""

from __future__ import annotations

import shlex
import sys
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ..errors import ExecutionError, PlzError
    from ..model import CommandNode


class Console:
    """Centralized console output formatting."""

    def __init__(self, debug: bool = False, quiet: bool = False):
        """
        Initialize console formatter.

        Args:
            debug: If True, show detailed output including stack traces
            quiet: If True, do not echo actions before running them
        """
        self.debug = debug
        self.quiet = quiet

    def print_action(self, argv: list[str]) -> None:
        """Echo an action before it is spawned (stderr, so stdout stays the child's)."""
        if self.quiet:
            return
        print(f"▶ {shlex.join(argv)}", file=sys.stderr, flush=True)

    def print_action_failed(self, error: "ExecutionError") -> None:
        """
        Print why an invocation was aborted. Spawn failures and non-zero exits
        are worded differently even though both stop the run.
        """
        self.print_error(
            error.title,
            str(error),
            details=[f"Exit code: {error.exit_code}"] + error.details(),
            suggestion=error.suggestion(),
        )

    def print_commands(self, root: "CommandNode", description: Optional[str] = None) -> None:
        """Print the command tree (hidden commands are left out)."""
        if description:
            print(description)
            print()
        print("Commands:")
        rows = [
            ("  " * (len(path) - 1) + path[-1], node.description or "")
            for path, node in root.walk()
            if not node.hidden
        ]
        width = max((len(name) for name, _ in rows), default=0)
        for name, desc in rows:
            line = f"  {name.ljust(width)}  {desc}".rstrip()
            print(line)

    def print_error(
        self,
        title: str,
        message: str,
        details: Optional[list[str]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        """
        Print structured error message.

        Args:
            title: Error title
            message: Main error message
            details: Optional list of detail lines
            suggestion: Optional suggestion for user
        """
        print(f"\nERROR: {title}", file=sys.stderr)
        print(f"{message}", file=sys.stderr)
        if details:
            for detail in details:
                print(f"  {detail}", file=sys.stderr)
        if suggestion:
            print(f"\n{suggestion}", file=sys.stderr)

    def print_plz_error(self, error: "PlzError") -> None:
        self.print_error(error.title, str(error), details=error.details(), suggestion=error.suggestion())

    def print_exception(self, exc: Exception) -> None:
        """Print exception, with full traceback only in debug mode."""
        if self.debug:
            import traceback
            traceback.print_exc()
        else:
            print(f"Error: {exc}", file=sys.stderr)

    def print_info(self, message: str) -> None:
        """Print informational message."""
        print(message)

    def print_debug(self, message: str) -> None:
        """Print debug message (only if debug mode enabled)."""
        if self.debug:
            print(f"[DEBUG] {message}", file=sys.stderr)


# Global console instance (will be initialized by CLI)
_console: Optional[Console] = None


def get_console() -> Console:
    """Get the global console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console) -> None:
    """Set the global console instance."""
    global _console
    _console = console
