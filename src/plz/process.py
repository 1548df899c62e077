# process.py
# Every process plz starts goes through this module: actions are spawned
# with inherited stdio, execution variables are captured. No shell is used.

from __future__ import annotations

import signal
import subprocess
import sys
from pathlib import Path
from typing import List, Mapping, Optional

from .errors import ActionFailed, ExecutionCancelled, SpawnError


def _popen(argv: List[str], *, command: str, cwd: Optional[Path], env: Optional[Mapping[str, str]], **kwargs) -> subprocess.Popen:
    if cwd and not Path(cwd).is_dir():
        raise SpawnError(command=command, argv=argv, reason="working directory not found", working_directory=str(cwd))
    try:
        return subprocess.Popen(
            argv,
            cwd=str(cwd) if cwd else None,
            env=dict(env) if env is not None else None,
            **kwargs,
        )
    except FileNotFoundError as e:
        if cwd and e.filename == str(cwd):
            raise SpawnError(
                command=command, argv=argv, reason="working directory not found", working_directory=str(cwd)
            ) from None
        raise SpawnError(command=command, argv=argv, reason="executable not found") from None
    except PermissionError:
        raise SpawnError(command=command, argv=argv, reason="permission denied") from None
    except OSError as e:
        raise SpawnError(command=command, argv=argv, reason=e.strerror or str(e)) from None


def _interrupt(proc: subprocess.Popen) -> None:
    """Forward an interrupt to the child and wait for it to go away."""
    if proc.poll() is not None:
        return
    if sys.platform.startswith("win"):
        proc.terminate()
    else:
        proc.send_signal(signal.SIGINT)
    try:
        proc.wait()
    except KeyboardInterrupt:
        # Second interrupt: stop waiting politely.
        proc.kill()
        proc.wait()


def run(
    argv: List[str],
    *,
    command: str,
    cwd: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
) -> int:
    """
    Run `argv` to completion with stdin/stdout/stderr inherited.
    Returns the raw returncode (negative when killed by a signal).
    """
    proc = _popen(argv, command=command, cwd=cwd, env=env)
    try:
        return proc.wait()
    except KeyboardInterrupt:
        _interrupt(proc)
        raise ExecutionCancelled(command=command, argv=argv) from None


def capture(
    argv: List[str],
    *,
    command: str,
    cwd: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
) -> str:
    """
    Run `argv` and return its stdout with trailing newlines removed.

    Output is opaque: bytes that do not decode are kept as surrogates, so
    they reach later argv entries unchanged.
    """
    proc = _popen(
        argv,
        command=command,
        cwd=cwd,
        env=env,
        stdout=subprocess.PIPE,
        text=True,
        errors="surrogateescape",
    )
    try:
        out, _ = proc.communicate()
    except KeyboardInterrupt:
        _interrupt(proc)
        raise ExecutionCancelled(command=command, argv=argv) from None

    if proc.returncode != 0:
        raise ActionFailed(command=command, argv=argv, returncode=proc.returncode)
    return out.rstrip("\r\n")
