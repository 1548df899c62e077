# substitution.py
"""
Action templates -> argument vectors.

Templates use POSIX-style quoting so a command line reads the way it would
in a shell, but no shell is ever started:

    whitespace            separates words (outside quotes)
    '...'                 literal text, no interpolation or escapes
    "..."                 interpolation, no word splitting
    \\x                   escapes x (outside single quotes)
    $name / ${name}       variable reference

Interpolated values are never word-split: `echo $greeting` with
greeting="Hello, World!" yields ["echo", "Hello, World!"].

Variable values are themselves templates but are only interpolated,
never split or unquoted. They are expanded lazily against the full scope
of the invocation, so a value defined at the root can refer to a name
that a command (or the command line) overrides.
"""
from __future__ import annotations

import re
from typing import Callable, Dict, List, Optional, Tuple

import click

from .errors import TemplateSyntaxError, UndefinedVariable
from .model import Prompt, Variable
from .scope import Scope

# Positional references are a single digit, as in POSIX: `$10` is `$1` then "0".
NAME_RE = re.compile(r"[0-9]|[A-Za-z_][A-Za-z0-9_]*")
BRACED_NAME_RE = re.compile(r"[A-Za-z0-9_][A-Za-z0-9_.\-]*")

WHITESPACE = " \t\r\n"
# Characters a backslash escapes inside double quotes (POSIX).
DQUOTE_ESCAPABLE = '$`"\\\n'

Capture = Callable[[List[str]], str]
Ask = Callable[[Prompt], str]


def ask_user(prompt: Prompt) -> str:
    """Ask for a prompt variable's value on the controlling terminal."""
    if prompt.options:
        return click.prompt(prompt.message, type=click.Choice(list(prompt.options)))
    return click.prompt(prompt.message)


def _no_capture(argv: List[str]) -> str:
    raise RuntimeError("execution variables need a process runner")


class Expander:
    """
    Expansion context for one invocation.

    Holds the resolved scope and remembers the values of execution and
    prompt variables, so each of them runs (or asks) at most once.
    """

    def __init__(
        self,
        scope: Scope,
        *,
        capture: Optional[Capture] = None,
        ask: Optional[Ask] = None,
    ):
        self.scope = scope
        self._capture = capture or _no_capture
        self._ask = ask or ask_user
        self._cache: Dict[Tuple[int, str], str] = {}
        # name -> index of the frame whose binding is being expanded
        self._active: Dict[str, int] = {}
        self._template: Optional[str] = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def expand(self, template: str) -> List[str]:
        """Split and substitute an action template into an argv."""
        outer, self._template = self._template, template
        try:
            argv = self._split(template)
        finally:
            self._template = outer
        if not argv:
            raise TemplateSyntaxError("action expands to an empty command", template=template)
        return argv

    def interpolate(self, template: str) -> str:
        """Substitute variable references in a value template."""
        outer, self._template = self._template, template
        try:
            return self._interpolate(template)
        finally:
            self._template = outer

    def value(self, name: str) -> str:
        """The fully expanded value of `name` in this scope."""
        start = 0
        if name in self._active:
            # Self reference: look outside the frame being expanded.
            start = self._active[name] + 1
        try:
            index, variable = self.scope.find(name, start)
        except UndefinedVariable:
            raise UndefinedVariable(name, template=self._template) from None

        previous = self._active.get(name)
        self._active[name] = index
        try:
            return self._evaluate(index, variable)
        finally:
            if previous is None:
                del self._active[name]
            else:
                self._active[name] = previous

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def _evaluate(self, index: int, variable: Variable) -> str:
        if variable.verbatim:
            return variable.value or ""
        if variable.value is not None:
            return self.interpolate(variable.value)

        key = (index, variable.name)
        if key in self._cache:
            return self._cache[key]

        if variable.execution is not None:
            text = self._capture(self.expand(variable.execution))
        elif variable.prompt is not None:
            text = self._ask(variable.prompt)
        else:
            # Argument-only variable that was not given on the command line.
            raise UndefinedVariable(variable.name, template=self._template)

        self._cache[key] = text
        return text

    # ------------------------------------------------------------------
    # Scanning
    # ------------------------------------------------------------------

    def _reference(self, text: str, i: int) -> Tuple[str, int]:
        """Expand the reference starting at text[i] == '$'. Returns (value, next index)."""
        n = len(text)
        if i + 1 < n and text[i + 1] == "{":
            end = text.find("}", i + 2)
            if end < 0:
                raise TemplateSyntaxError("unterminated '${'", template=text)
            name = text[i + 2:end]
            if not BRACED_NAME_RE.fullmatch(name):
                raise TemplateSyntaxError(f"invalid variable name {name!r}", template=text)
            return self.value(name), end + 1

        m = NAME_RE.match(text, i + 1)
        if not m:
            # A lone '$' is literal.
            return "$", i + 1
        return self.value(m.group()), m.end()

    def _interpolate(self, text: str) -> str:
        out: List[str] = []
        i, n = 0, len(text)
        while i < n:
            c = text[i]
            if c == "\\" and i + 1 < n and text[i + 1] == "$":
                out.append("$")
                i += 2
            elif c == "$":
                value, i = self._reference(text, i)
                out.append(value)
            else:
                out.append(c)
                i += 1
        return "".join(out)

    def _split(self, text: str) -> List[str]:
        words: List[str] = []
        buf: List[str] = []
        in_word = False
        i, n = 0, len(text)

        while i < n:
            c = text[i]
            if c in WHITESPACE:
                if in_word:
                    words.append("".join(buf))
                    buf, in_word = [], False
                i += 1
            elif c == "'":
                end = text.find("'", i + 1)
                if end < 0:
                    raise TemplateSyntaxError("unterminated single quote", template=text)
                buf.append(text[i + 1:end])
                in_word = True
                i = end + 1
            elif c == '"':
                i = self._double_quoted(text, i + 1, buf)
                in_word = True
            elif c == "\\":
                if i + 1 >= n:
                    raise TemplateSyntaxError("trailing backslash", template=text)
                if text[i + 1] != "\n":  # line continuation
                    buf.append(text[i + 1])
                    in_word = True
                i += 2
            elif c == "$":
                value, i = self._reference(text, i)
                buf.append(value)
                in_word = True
            else:
                buf.append(c)
                in_word = True
                i += 1

        if in_word:
            words.append("".join(buf))
        return words

    def _double_quoted(self, text: str, i: int, buf: List[str]) -> int:
        n = len(text)
        while i < n:
            c = text[i]
            if c == '"':
                return i + 1
            if c == "\\" and i + 1 < n and text[i + 1] in DQUOTE_ESCAPABLE:
                if text[i + 1] != "\n":
                    buf.append(text[i + 1])
                i += 2
            elif c == "$":
                value, i = self._reference(text, i)
                buf.append(value)
            else:
                buf.append(c)
                i += 1
        raise TemplateSyntaxError("unterminated double quote", template=text)


def expand(template: str, scope: Scope, **kwargs) -> List[str]:
    """Expand a single action template against `scope`."""
    return Expander(scope, **kwargs).expand(template)


def interpolate(template: str, scope: Scope, **kwargs) -> str:
    return Expander(scope, **kwargs).interpolate(template)
