# config.py
"""
Configuration loading.

The raw document (YAML) is validated with pydantic and turned into the
command tree used by the resolver:

    description: Project tasks
    options:
      auto_args: false
    variables:
      name: World
    commands:
      greet:
        description: Say hello
        action: echo Hello, $name!
      build:
        commands:
          release:
            actions:
              - cargo build --release
              - command: greet
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .errors import ConfigError
from .model import ALIAS, COMMAND, RUN, Action, Argument, CommandNode, Prompt, Variable
from .platform import PLATFORMS, current_platform, is_current_platform
from .scope import Scope
from .substitution import expand

CONFIG_ENV_VAR = "PLZ_CONFIG"
CONFIG_FILE_NAMES = ("plz.yaml", "plz.yml", ".plz.yaml", ".plz.yml")


# ----------------------------------------------------------------------
# Raw document schema
# ----------------------------------------------------------------------

class _Spec(BaseModel):
    model_config = ConfigDict(extra="forbid")


class NamedArgumentSpec(_Spec):
    long: str
    short: Optional[str] = None
    description: Optional[str] = None

    @field_validator("short")
    @classmethod
    def single_char(cls, v):
        if v is not None and len(v) != 1:
            raise ValueError("short argument names must be a single character")
        return v


class PositionalArgumentSpec(_Spec):
    position: int = Field(ge=1)
    description: Optional[str] = None


class PromptSpec(_Spec):
    message: str
    options: List[str] = Field(default_factory=list)


class VariableSpec(_Spec):
    value: Optional[str] = None
    execution: Optional[str] = None
    prompt: Optional[PromptSpec] = None
    argument: Optional[Union[str, NamedArgumentSpec, PositionalArgumentSpec]] = None
    environment_variable_name: Optional[str] = None

    @field_validator("value", mode="before")
    @classmethod
    def scalar_to_text(cls, v):
        return _text(v)

    @model_validator(mode="after")
    def one_source(self):
        sources = [s for s in ("value", "execution", "prompt") if getattr(self, s) is not None]
        if len(sources) > 1:
            raise ValueError(f"a variable takes only one of value/execution/prompt, got {sources}")
        if not sources and self.argument is None:
            raise ValueError("a variable needs one of value, execution, prompt or argument")
        return self


class CommandActionSpec(_Spec):
    command: str


class AliasActionSpec(_Spec):
    alias: str


ActionSpec = Union[str, CommandActionSpec, AliasActionSpec]


class CommandSpec(_Spec):
    name: Optional[str] = None
    description: Optional[str] = None
    hidden: bool = False
    platform: Optional[Union[str, List[str]]] = None
    working_directory: Optional[str] = None
    variables: Dict[str, Union[str, VariableSpec]] = Field(default_factory=dict)
    action: Optional[ActionSpec] = None
    actions: Optional[List[ActionSpec]] = None
    commands: Dict[str, "CommandSpec"] = Field(default_factory=dict)

    @field_validator("variables", mode="before")
    @classmethod
    def scalar_variables(cls, v):
        return _text_variables(v)

    @field_validator("platform")
    @classmethod
    def known_platform(cls, v):
        for p in _as_list(v):
            if p not in PLATFORMS:
                raise ValueError(f"unknown platform {p!r} (expected one of {', '.join(PLATFORMS)})")
        return v

    @model_validator(mode="after")
    def one_of_action_or_actions(self):
        if self.action is not None and self.actions is not None:
            raise ValueError("only one of 'action' or 'actions' may be set")
        if self.action is None and self.actions is None and not self.commands:
            raise ValueError("a command needs 'action', 'actions' or nested 'commands'")
        if self.actions is not None:
            if not self.actions:
                raise ValueError("'actions' must not be empty")
            if any(isinstance(a, AliasActionSpec) for a in self.actions):
                raise ValueError("an alias must be the command's only 'action'")
        return self


class OptionsSpec(_Spec):
    auto_args: bool = False


class DocumentSpec(_Spec):
    description: Optional[str] = None
    options: OptionsSpec = Field(default_factory=OptionsSpec)
    variables: Dict[str, Union[str, VariableSpec]] = Field(default_factory=dict)
    commands: Dict[str, CommandSpec] = Field(default_factory=dict)

    @field_validator("variables", mode="before")
    @classmethod
    def scalar_variables(cls, v):
        return _text_variables(v)


CommandSpec.model_rebuild()


def _text(v: Any) -> Any:
    if isinstance(v, bool):
        return "true" if v else "false"
    if isinstance(v, (int, float)):
        return str(v)
    return v


def _text_variables(v: Any) -> Any:
    if isinstance(v, dict):
        return {k: _text(val) for k, val in v.items()}
    return v


def _as_list(v: Union[str, List[str], None]) -> List[str]:
    if v is None:
        return []
    if isinstance(v, str):
        return [v]
    return list(v)


# ----------------------------------------------------------------------
# Tree building
# ----------------------------------------------------------------------

@dataclass
class Config:
    root: CommandNode
    description: Optional[str] = None
    auto_args: bool = False
    base_dir: Path = field(default_factory=Path.cwd)
    source: Optional[Path] = None


def _variable(name: str, spec: Union[str, VariableSpec]) -> Variable:
    if isinstance(spec, str):
        return Variable.literal(name, spec)

    argument: Optional[Argument] = None
    if isinstance(spec.argument, str):
        argument = Argument(long=spec.argument)
    elif isinstance(spec.argument, NamedArgumentSpec):
        argument = Argument(
            long=spec.argument.long,
            short=spec.argument.short,
            description=spec.argument.description,
        )
    elif isinstance(spec.argument, PositionalArgumentSpec):
        argument = Argument(position=spec.argument.position, description=spec.argument.description)

    prompt = None
    if spec.prompt is not None:
        prompt = Prompt(message=spec.prompt.message, options=tuple(spec.prompt.options))

    return Variable(
        name=name,
        value=spec.value,
        execution=spec.execution,
        prompt=prompt,
        argument=argument,
        environment_variable_name=spec.environment_variable_name,
    )


def _variables(specs: Dict[str, Union[str, VariableSpec]]) -> Dict[str, Variable]:
    return {name: _variable(name, spec) for name, spec in specs.items()}


def _action(spec: ActionSpec) -> Action:
    if isinstance(spec, CommandActionSpec):
        return Action(template=spec.command, kind=COMMAND)
    if isinstance(spec, AliasActionSpec):
        return Action(template=spec.alias, kind=ALIAS)
    return Action(template=spec, kind=RUN)


def _build_children(
    commands: Dict[str, CommandSpec],
    *,
    platform: str,
    parent_path: tuple[str, ...],
) -> Dict[str, CommandNode]:
    children: Dict[str, CommandNode] = {}
    for key, spec in commands.items():
        platforms = _as_list(spec.platform)
        if platforms and not is_current_platform(platforms, platform):
            continue

        name = spec.name or key
        path = parent_path + (name,)
        if name in children:
            raise ConfigError(f"duplicate command name '{' '.join(path)}'")

        if spec.action is not None:
            actions = (_action(spec.action),)
        else:
            actions = tuple(_action(a) for a in spec.actions or [])

        children[name] = CommandNode(
            name=name,
            variables=_variables(spec.variables),
            actions=actions,
            children=_build_children(spec.commands, platform=platform, parent_path=path),
            description=spec.description,
            hidden=spec.hidden,
            working_directory=spec.working_directory,
        )
    return children


def _format_validation_error(e: ValidationError) -> List[str]:
    problems = []
    for err in e.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "<document>"
        problems.append(f"{loc}: {err['msg']}")
    return problems


def build_config(
    document: Any,
    *,
    platform: str | None = None,
    base_dir: str | Path | None = None,
    source: str | Path | None = None,
) -> Config:
    """Validate a raw document (as loaded from YAML) and build the command tree."""
    source_label = str(source) if source else None
    if document is None:
        document = {}
    if not isinstance(document, dict):
        raise ConfigError("the configuration must be a mapping", source=source_label)

    try:
        spec = DocumentSpec.model_validate(document)
    except ValidationError as e:
        raise ConfigError(
            "the configuration is not valid",
            source=source_label,
            problems=_format_validation_error(e),
        ) from e

    if not spec.commands:
        raise ConfigError("no commands are defined", source=source_label)

    root = CommandNode(
        name="plz",
        variables=_variables(spec.variables),
        children=_build_children(spec.commands, platform=platform or current_platform(), parent_path=()),
        description=spec.description,
    )
    _check_command_targets(root, _declared_paths(spec.commands), source_label)
    return Config(
        root=root,
        description=spec.description,
        auto_args=spec.options.auto_args,
        base_dir=Path(base_dir) if base_dir else Path.cwd(),
        source=Path(source) if source else None,
    )


def _declared_paths(commands: Dict[str, CommandSpec], prefix: tuple[str, ...] = ()) -> set:
    """Every command path in the document, on any platform."""
    paths = set()
    for key, spec in commands.items():
        path = prefix + (spec.name or key,)
        paths.add(path)
        paths |= _declared_paths(spec.commands, path)
    return paths


def _check_command_targets(root: CommandNode, declared: set, source: Optional[str]) -> None:
    """Reject `command:` actions naming a command that does not exist or cannot run.

    Targets built from variables are only known at run time and are skipped,
    as are targets declared for another platform.
    """
    problems: List[str] = []
    for path, node in root.walk():
        for action in node.actions:
            if action.kind != COMMAND or "$" in action.template:
                continue
            target_path = tuple(expand(action.template, Scope()))
            target = root
            for segment in target_path:
                target = target.child(segment)
                if target is None:
                    break
            if target is None:
                if target_path not in declared:
                    problems.append(f"{' '.join(path)}: unknown command '{action.template}'")
            elif not target.runnable:
                problems.append(f"{' '.join(path)}: command '{action.template}' has no actions")
    if problems:
        raise ConfigError("invalid command actions", source=source, problems=problems)


# ----------------------------------------------------------------------
# Files
# ----------------------------------------------------------------------

def find_config_file(start: str | Path | None = None) -> Optional[Path]:
    """Look for a config file in `start` (default: cwd) and its parents."""
    current = Path(start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        for file_name in CONFIG_FILE_NAMES:
            candidate = directory / file_name
            if candidate.is_file():
                return candidate
    return None


def load_config(path: str | Path, *, platform: str | None = None) -> Config:
    config_path = Path(path).expanduser().resolve()
    if not config_path.exists():
        raise ConfigError(f"config file not found: {config_path}")

    try:
        document = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError("the configuration is not valid YAML", source=str(config_path), problems=[str(e)]) from e
    except OSError as e:
        raise ConfigError(f"cannot read config file: {e}", source=str(config_path)) from e

    return build_config(
        document,
        platform=platform,
        base_dir=config_path.parent,
        source=config_path,
    )


def discover_config(explicit: str | None = None) -> Path:
    """
    Pick the config file to use: an explicit path (or $PLZ_CONFIG), else the
    nearest plz.yaml walking up from the current directory.
    """
    explicit = explicit or os.environ.get(CONFIG_ENV_VAR)
    if explicit:
        return Path(explicit)

    found = find_config_file()
    if found is None:
        raise ConfigError(
            "no configuration file found",
            problems=["Looked for:"] + [f"  {n}" for n in CONFIG_FILE_NAMES] + ["in the current directory and its parents."],
        )
    return found
