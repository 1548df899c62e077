from .config import Config, build_config, load_config
from .model import Action, CommandNode, Variable
from .resolver import CommandTree, ResolvedCommand
from .runner import Executor, ExecutionOutcome, run
from .scope import Scope, Undefined
from .substitution import Expander, expand

__version__ = "0.1.0"

__all__ = [
    "Action",
    "CommandNode",
    "CommandTree",
    "Config",
    "ExecutionOutcome",
    "Executor",
    "Expander",
    "ResolvedCommand",
    "Scope",
    "Undefined",
    "Variable",
    "build_config",
    "expand",
    "load_config",
    "run",
]
