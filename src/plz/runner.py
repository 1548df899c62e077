# runner.py
from __future__ import annotations

import os
from dataclasses import dataclass
from functools import partial
from typing import Dict, List, Mapping, Optional, Tuple

from . import process
from .errors import ActionFailed, ConfigError, ExecutionError, PlzError, SpawnError
from .model import ALIAS, COMMAND, Action
from .resolver import CommandTree, ResolvedCommand
from .substitution import Ask, Expander
from .ui.console import Console, get_console

# Invocation states
PENDING = "pending"
RUNNING = "running"
ABORTED = "aborted"
COMPLETED = "completed"


@dataclass
class ExecutionOutcome:
    """The result of one spawned action."""
    command: str
    action: str
    argv: List[str]
    exit_code: int
    spawned: bool = True

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class Executor:
    """
    Runs one invocation: the resolved command's actions strictly in order,
    one process at a time. The first failure aborts everything still
    pending, including actions of the commands that invoked this one.
    """

    def __init__(
        self,
        tree: CommandTree,
        *,
        console: Optional[Console] = None,
        env: Optional[Mapping[str, str]] = None,
        ask: Optional[Ask] = None,
    ):
        self.tree = tree
        self.console = console or get_console()
        self.base_env: Dict[str, str] = dict(os.environ if env is None else env)
        self.ask = ask
        self.state = PENDING
        self.outcomes: List[ExecutionOutcome] = []
        self.failure: Optional[ExecutionError] = None

    @property
    def exit_code(self) -> int:
        if self.failure is not None:
            return self.failure.exit_code
        return 0

    def run(self, resolved: ResolvedCommand) -> int:
        """
        Run `resolved` and return the invocation's exit code.

        Execution failures (spawn errors, non-zero exits, interrupts) are
        reported and turned into the exit code. Configuration problems found
        on the way (undefined variables, bad templates) are raised.
        """
        if self.state != PENDING:
            raise RuntimeError("an Executor runs a single invocation")

        self.state = RUNNING
        try:
            self._run_command(resolved, stack=())
        except ExecutionError as e:
            self.state = ABORTED
            self.failure = e
            self.console.print_action_failed(e)
            return e.exit_code
        except PlzError:
            self.state = ABORTED
            raise

        self.state = COMPLETED
        return 0

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _run_command(self, resolved: ResolvedCommand, stack: Tuple[Tuple[str, ...], ...]) -> None:
        stack = stack + (resolved.path,)
        expander = Expander(
            resolved.scope,
            capture=partial(self._capture, resolved),
            ask=self.ask,
        )
        env: Optional[Dict[str, str]] = None

        self.console.print_debug(f"running '{resolved.display_name}' in {resolved.working_directory}")
        for action in resolved.node.actions:
            if action.kind == COMMAND:
                self._invoke(action, resolved, expander, stack)
                continue

            argv = expander.expand(action.template)
            if action.kind == ALIAS:
                argv = argv + list(resolved.arguments)
            if env is None:
                env = self._environment(resolved, expander)
            self._spawn(resolved, action, argv, env)

    def _invoke(
        self,
        action: Action,
        resolved: ResolvedCommand,
        expander: Expander,
        stack: Tuple[Tuple[str, ...], ...],
    ) -> None:
        path = tuple(expander.expand(action.template))
        if path in stack:
            chain = " -> ".join(" ".join(p) for p in stack + (path,))
            raise ConfigError(f"recursive command invocation: {chain}")

        nested = self.tree.resolve(path, overrides=resolved.overrides)
        self.console.print_debug(f"'{resolved.display_name}' invokes '{nested.display_name}'")
        self._run_command(nested, stack)

    def _environment(self, resolved: ResolvedCommand, expander: Expander) -> Dict[str, str]:
        """Base environment plus every exported variable visible to the command."""
        exported: Dict[str, str] = {}
        for frame in reversed(resolved.scope.frames):
            for name, variable in frame.items():
                if variable.environment_variable_name:
                    exported[name] = variable.environment_variable_name

        env = dict(self.base_env)
        for name, env_name in exported.items():
            env[env_name] = expander.value(name)
        return env

    def _spawn(self, resolved: ResolvedCommand, action: Action, argv: List[str], env: Dict[str, str]) -> None:
        command = resolved.display_name
        self.console.print_action(argv)
        try:
            returncode = process.run(argv, command=command, cwd=resolved.working_directory, env=env)
        except SpawnError as e:
            self.outcomes.append(
                ExecutionOutcome(command=command, action=action.template, argv=argv, exit_code=e.exit_code, spawned=False)
            )
            raise

        failure = None
        if returncode != 0:
            failure = ActionFailed(command=command, argv=argv, returncode=returncode)
        self.outcomes.append(
            ExecutionOutcome(
                command=command,
                action=action.template,
                argv=argv,
                exit_code=failure.exit_code if failure else 0,
            )
        )
        if failure is not None:
            raise failure

    def _capture(self, resolved: ResolvedCommand, argv: List[str]) -> str:
        self.console.print_debug(f"evaluating: {' '.join(argv)}")
        return process.capture(
            argv,
            command=resolved.display_name,
            cwd=resolved.working_directory,
            env=self.base_env,
        )


def run(resolved: ResolvedCommand, tree: CommandTree, **kwargs) -> int:
    """Run one resolved command and return its exit code."""
    return Executor(tree, **kwargs).run(resolved)
