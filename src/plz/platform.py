# platform.py
from __future__ import annotations

import sys
from typing import Iterable

LINUX = "linux"
MACOS = "macos"
WINDOWS = "windows"
PLATFORMS = (LINUX, MACOS, WINDOWS)


def current_platform() -> str:
    if sys.platform.startswith("win"):
        return WINDOWS
    if sys.platform == "darwin":
        return MACOS
    return LINUX


def is_current_platform(platforms: Iterable[str], current: str | None = None) -> bool:
    current = current or current_platform()
    return current in set(platforms)
