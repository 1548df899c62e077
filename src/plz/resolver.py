# resolver.py
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import click

from .config import Config
from .errors import ArgumentError, MissingSubcommand, UnknownCommand
from .model import Argument, CommandNode, Variable
from .scope import Scope

OVERRIDE_SEPARATOR = "--"


@dataclass(frozen=True)
class ResolvedCommand:
    """
    A command node plus its fully chained scope, for one invocation.

    `overrides` holds every command-line binding (overrides and argument
    values) so nested command invocations see them too. `arguments` are the
    trailing arguments left after declared arguments were parsed.
    """
    node: CommandNode
    path: Tuple[str, ...]
    scope: Scope
    overrides: Mapping[str, str] = field(default_factory=dict)
    arguments: Tuple[str, ...] = ()
    working_directory: Optional[Path] = None

    @property
    def display_name(self) -> str:
        return " ".join(self.path)


def parse_overrides(tokens: Sequence[str]) -> Dict[str, str]:
    """Parse `name=value` override tokens."""
    overrides: Dict[str, str] = {}
    for token in tokens:
        name, sep, value = token.partition("=")
        if not sep or not name:
            raise ArgumentError(
                command="plz",
                message=f"overrides must look like name=value, got {token!r}",
            )
        overrides[name] = value
    return overrides


def split_request(tokens: Sequence[str]) -> Tuple[List[str], Dict[str, str]]:
    """Split raw CLI tokens into (command tokens, overrides) at the first `--`."""
    tokens = list(tokens)
    if OVERRIDE_SEPARATOR in tokens:
        index = tokens.index(OVERRIDE_SEPARATOR)
        return tokens[:index], parse_overrides(tokens[index + 1:])
    return tokens, {}


def _visible_names(node: CommandNode) -> List[str]:
    return [name for name, child in node.children.items() if not child.hidden]


class CommandTree:
    """
    The command tree built from the configuration. Read-only once built, so
    one tree can serve any number of invocations.
    """

    def __init__(self, config: Config):
        self.config = config
        self.root = config.root

    # ------------------------------------------------------------------
    # Path resolution
    # ------------------------------------------------------------------

    def locate(self, path: Sequence[str]) -> List[CommandNode]:
        """Return the chain of nodes from the root to the node named by `path`."""
        chain = [self.root]
        for depth, segment in enumerate(path):
            node = chain[-1].child(segment)
            if node is None:
                raise UnknownCommand(
                    prefix=tuple(path[:depth]),
                    segment=segment,
                    available=_visible_names(chain[-1]),
                )
            chain.append(node)
        return chain

    def split_path(self, tokens: Sequence[str]) -> Tuple[List[str], List[str]]:
        """
        Split command tokens into (path, arguments). Walking stops at a leaf
        or at the first token that looks like an option.
        """
        node = self.root
        path: List[str] = []
        for index, token in enumerate(tokens):
            if not node.children or token.startswith("-"):
                return path, list(tokens[index:])
            child = node.child(token)
            if child is None:
                raise UnknownCommand(prefix=tuple(path), segment=token, available=_visible_names(node))
            path.append(token)
            node = child
        return path, []

    def resolve(
        self,
        path: Sequence[str],
        overrides: Optional[Mapping[str, str]] = None,
        arguments: Sequence[str] = (),
    ) -> ResolvedCommand:
        chain = self.locate(path)
        node = chain[-1]
        if not node.runnable:
            raise MissingSubcommand(path=tuple(path), available=_visible_names(node))

        scope = Scope()
        for member in chain:
            scope = scope.push(member.variables)

        bound: Dict[str, str] = dict(overrides or {})
        extras: Tuple[str, ...] = tuple(arguments)
        if not node.is_alias:
            parsed, extras = self._parse_arguments(path, node, scope, arguments)
            bound.update(parsed)

        frame = {name: Variable.override(name, value) for name, value in bound.items()}
        for position, value in enumerate(extras, start=1):
            frame[str(position)] = Variable.override(str(position), value)
        scope = scope.push(frame)

        return ResolvedCommand(
            node=node,
            path=tuple(path),
            scope=scope,
            overrides=bound,
            arguments=extras,
            working_directory=self._working_directory(chain),
        )

    def resolve_request(self, tokens: Sequence[str]) -> ResolvedCommand:
        """Resolve raw CLI tokens: `<segment>... [args...] [-- name=value...]`."""
        command_tokens, overrides = split_request(tokens)
        path, arguments = self.split_path(command_tokens)
        return self.resolve(path, overrides, arguments)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _working_directory(self, chain: Sequence[CommandNode]) -> Path:
        for member in reversed(chain):
            if member.working_directory:
                return (self.config.base_dir / member.working_directory).resolve()
        return self.config.base_dir

    def _argument_for(self, variable: Variable) -> Optional[Argument]:
        if variable.argument is not None:
            return variable.argument
        if self.config.auto_args:
            return Argument(long=variable.name)
        return None

    def command_for(self, path: Sequence[str], node: CommandNode, scope: Scope) -> Tuple[click.Command, Dict[str, str]]:
        """
        Build a click command describing the arguments available to `node`.
        Returns the command and a map from click parameter name to variable name.
        """
        options: List[click.Parameter] = []
        positionals: List[Tuple[int, click.Parameter]] = []
        names: Dict[str, str] = {}

        for index, (name, variable) in enumerate(sorted(scope.visible().items())):
            argument = self._argument_for(variable)
            if argument is None:
                continue
            dest = f"var_{index}"
            names[dest] = name
            help_text = argument.description
            if variable.value is not None:
                help_text = f"{help_text or ''} [default: {variable.value}]".strip()

            if argument.positional:
                positionals.append((argument.position, click.Argument([dest], required=False, metavar=name.upper())))
            else:
                decls = [f"--{argument.long}"]
                if argument.short:
                    decls.append(f"-{argument.short}")
                options.append(click.Option(decls + [dest], help=help_text, metavar="VALUE"))

        params = [p for _, p in sorted(positionals, key=lambda item: item[0])] + options
        command = click.Command(
            name=path[-1] if path else "plz",
            params=params,
            help=node.description,
            context_settings={"ignore_unknown_options": True, "allow_extra_args": True},
        )
        return command, names

    def _parse_arguments(
        self,
        path: Sequence[str],
        node: CommandNode,
        scope: Scope,
        arguments: Sequence[str],
    ) -> Tuple[Dict[str, str], Tuple[str, ...]]:
        command, names = self.command_for(path, node, scope)
        info_name = " ".join(["plz", *path])
        try:
            ctx = command.make_context(info_name, list(arguments))
        except click.UsageError as e:
            raise ArgumentError(command=info_name, message=e.format_message()) from e

        parsed = {names[dest]: value for dest, value in ctx.params.items() if value is not None}
        return parsed, tuple(ctx.args)
