# scope.py
"""
Variable scope chain.

A scope is an immutable chain of frames, innermost first. Lookups walk
the chain from the innermost frame outwards and the first frame holding
the name wins, so a child command's variable shadows a parent's variable
of the same name.

Values are returned as stored (raw templates); expansion happens in
`plz.substitution`.
"""
from __future__ import annotations

from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

from .errors import UndefinedVariable
from .model import Variable


class _Undefined:
    _instance: Optional["_Undefined"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "Undefined"


Undefined = _Undefined()

Frame = Mapping[str, Variable]


def _freeze(frame: Mapping[str, Variable]) -> Frame:
    return MappingProxyType(dict(frame))


class Scope:
    def __init__(self, frames: Tuple[Frame, ...] = ()):
        self._frames = tuple(_freeze(f) for f in frames)

    @classmethod
    def root(cls, frame: Mapping[str, Variable] | None = None) -> "Scope":
        return cls((frame or {},))

    @property
    def frames(self) -> Tuple[Frame, ...]:
        return self._frames

    def __len__(self) -> int:
        return len(self._frames)

    def push(self, frame: Mapping[str, Variable]) -> "Scope":
        """Return a new scope with `frame` as the innermost frame."""
        return Scope((frame,) + self._frames)

    def bind(self, name: str, variable: Variable) -> "Scope":
        """Create or replace `name` in the innermost frame only."""
        if not self._frames:
            return Scope(({name: variable},))
        inner = dict(self._frames[0])
        inner[name] = variable
        return Scope((inner,) + self._frames[1:])

    def find(self, name: str, start: int = 0) -> Tuple[int, Variable]:
        """
        Return (frame index, variable) for the innermost binding of `name`,
        searching frames from index `start` outwards.

        Raises UndefinedVariable if no frame binds it.
        """
        for index in range(start, len(self._frames)):
            frame = self._frames[index]
            if name in frame:
                return index, frame[name]
        raise UndefinedVariable(name)

    def lookup(self, name: str):
        """Return the variable bound to `name`, or `Undefined`."""
        try:
            return self.find(name)[1]
        except UndefinedVariable:
            return Undefined

    def __contains__(self, name: str) -> bool:
        return any(name in frame for frame in self._frames)

    def visible(self) -> Dict[str, Variable]:
        """All names visible from the innermost frame, shadowing applied."""
        out: Dict[str, Variable] = {}
        for frame in reversed(self._frames):
            out.update(frame)
        return out

    def __repr__(self) -> str:
        return f"Scope({[list(f) for f in self._frames]})"


def resolve(scope: Scope, name: str):
    """Module-level shortcut: the raw variable for `name` or `Undefined`."""
    return scope.lookup(name)
