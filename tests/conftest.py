import sys

import pytest

from plz.config import build_config
from plz.resolver import CommandTree
from plz.ui.console import Console

PYTHON = sys.executable


def py(code: str) -> str:
    """An action template running `code` with the test interpreter."""
    return f"$py -c '{code}'"


def make_tree(document, tmp_path=None, platform="linux") -> CommandTree:
    document = dict(document)
    variables = dict(document.get("variables", {}))
    variables.setdefault("py", PYTHON)
    document["variables"] = variables
    return CommandTree(build_config(document, platform=platform, base_dir=tmp_path))


@pytest.fixture
def console():
    return Console(quiet=True)
