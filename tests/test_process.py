"""Tests for spawning and capturing processes."""

import os
import signal
import sys
import threading

import pytest

from conftest import PYTHON
from plz import process
from plz.errors import ActionFailed, ExecutionCancelled, SpawnError, exit_code_for


class TestCapture:
    """Tests for capturing a process's stdout."""

    def test_trailing_newlines_are_stripped(self):
        """Test only trailing line breaks are removed."""
        out = process.capture([PYTHON, "-c", "print('  a\\nb  '); print(); print()"], command="x")
        assert out == "  a\nb  "

    def test_failure_raises(self):
        """Test a non-zero exit is an ActionFailed with that code."""
        with pytest.raises(ActionFailed) as exc:
            process.capture([PYTHON, "-c", "import sys; sys.exit(9)"], command="x")
        assert exc.value.exit_code == 9

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX signals")
    def test_interrupt_cancels_capture(self):
        """Test Ctrl-C while capturing stops the child."""
        timer = threading.Timer(1.0, os.kill, (os.getpid(), signal.SIGINT))
        timer.start()
        try:
            with pytest.raises(ExecutionCancelled):
                process.capture([PYTHON, "-c", "import time; time.sleep(30)"], command="x")
        finally:
            timer.cancel()


class TestSpawn:
    """Tests for processes that cannot start."""

    def test_missing_executable(self):
        """Test an unknown program is a SpawnError naming the program."""
        with pytest.raises(SpawnError) as exc:
            process.run(["plz-no-such-program-xyz"], command="x")
        assert exc.value.exit_code == 127
        assert exc.value.working_directory is None
        assert "plz-no-such-program-xyz" in exc.value.suggestion()

    def test_missing_working_directory(self, tmp_path):
        """Test a missing cwd is a SpawnError naming the directory."""
        missing = tmp_path / "gone"
        with pytest.raises(SpawnError) as exc:
            process.run([PYTHON, "-c", "pass"], command="x", cwd=missing)
        assert exc.value.working_directory == str(missing)
        assert str(missing) in str(exc.value)


class TestExitCodes:
    """Tests for mapping returncodes to exit codes."""

    @pytest.mark.parametrize("returncode, expected", [(0, 0), (3, 3), (-2, 130), (-9, 137), (-15, 143)])
    def test_exit_code_for(self, returncode, expected):
        """Test signal deaths map to 128 + N."""
        assert exit_code_for(returncode) == expected
