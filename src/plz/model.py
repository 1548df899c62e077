# model.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

# Action kinds
RUN = "run"          # action template, expanded and spawned directly
COMMAND = "command"  # invoke another command of the tree
ALIAS = "alias"      # template + the command's trailing arguments


@dataclass(frozen=True)
class Action:
    """A single action template owned by one command."""
    template: str
    kind: str = RUN


@dataclass(frozen=True)
class Argument:
    """How a variable is exposed on the command line."""
    long: Optional[str] = None
    short: Optional[str] = None
    position: Optional[int] = None
    description: Optional[str] = None

    @property
    def positional(self) -> bool:
        return self.position is not None


@dataclass(frozen=True)
class Prompt:
    message: str
    options: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Variable:
    """
    A variable binding. Exactly one source is set:
      - value: a literal template (expanded on use)
      - execution: an action template whose stdout is the value
      - prompt: asked interactively on first use
    A variable with only `argument` must be supplied on the command line.

    `verbatim` marks values coming from the command line; they are never
    expanded.
    """
    name: str
    value: Optional[str] = None
    execution: Optional[str] = None
    prompt: Optional[Prompt] = None
    argument: Optional[Argument] = None
    environment_variable_name: Optional[str] = None
    verbatim: bool = False

    @classmethod
    def literal(cls, name: str, value: str) -> "Variable":
        return cls(name=name, value=value)

    @classmethod
    def override(cls, name: str, value: str) -> "Variable":
        return cls(name=name, value=value, verbatim=True)


@dataclass
class CommandNode:
    """
    A named command: its own variables, ordered actions and child commands.

    Children are owned exclusively by their parent, keyed by name.
    """
    name: str
    variables: Dict[str, Variable] = field(default_factory=dict)
    actions: Tuple[Action, ...] = ()
    children: Dict[str, "CommandNode"] = field(default_factory=dict)
    description: Optional[str] = None
    hidden: bool = False
    working_directory: Optional[str] = None

    @property
    def runnable(self) -> bool:
        return bool(self.actions)

    @property
    def is_alias(self) -> bool:
        return len(self.actions) == 1 and self.actions[0].kind == ALIAS

    def child(self, name: str) -> Optional["CommandNode"]:
        return self.children.get(name)

    def walk(self, prefix: Tuple[str, ...] = ()):
        """Yield (path, node) for every descendant, depth first, in declared order."""
        for name, node in self.children.items():
            path = prefix + (name,)
            yield path, node
            yield from node.walk(path)
