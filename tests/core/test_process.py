"""
Tests for subprocess helpers.
"""

import os
import subprocess
import sys
import threading
import time
from pathlib import Path

import pytest
from unittest.mock import patch

from roslynkit.core.exceptions import LivenessCheckError
from roslynkit.core import process
from roslynkit.core.process import (
    WARMUP_TIMEOUT,
    combined_output,
    run_command,
    spawn_detached,
    try_exec,
    warm_up,
)


def test_run_command_captures_output():
    result = run_command([sys.executable, "-c", "import sys; print('out'); print('err', file=sys.stderr)"])

    assert result.returncode == 0
    assert result.stdout.strip() == "out"
    assert result.stderr.strip() == "err"


def test_run_command_missing_program():
    with pytest.raises(FileNotFoundError):
        run_command(["roslynkit-definitely-missing-program"])


def test_combined_output(completed):
    assert combined_output(completed(stdout="a", stderr="b")) == "ab"
    assert combined_output(completed(stdout=None, stderr=None)) == ""


class TestTryExec:
    def test_success(self, completed):
        with patch.object(process, "run_command", return_value=completed(0, "1.0")) as run:
            result = try_exec(Path("/opt/server"))

        assert result.stdout == "1.0"
        assert run.call_args.args[0] == [Path("/opt/server"), "--version"]

    def test_non_zero_exit(self, completed):
        with patch.object(process, "run_command", return_value=completed(1, "", "boom")):
            with pytest.raises(LivenessCheckError, match="boom"):
                try_exec(Path("/opt/server"))

    def test_cannot_start(self):
        with patch.object(process, "run_command", side_effect=FileNotFoundError("nope")):
            with pytest.raises(LivenessCheckError, match="Unable to run"):
                try_exec(Path("/opt/server"))

    def test_timeout(self):
        with patch.object(
            process,
            "run_command",
            side_effect=subprocess.TimeoutExpired(cmd="server", timeout=1),
        ):
            with pytest.raises(LivenessCheckError):
                try_exec(Path("/opt/server"), timeout=1)


class TestWarmUp:
    def test_failures_are_swallowed(self):
        with patch.object(process, "run_command", side_effect=OSError("gone")):
            warm_up(Path("/opt/server"))

    def test_runs_download(self, completed):
        with patch.object(process, "run_command", return_value=completed()) as run:
            warm_up(Path("/opt/server"))

        assert run.call_args.args[0] == [Path("/opt/server"), "--download"]
        assert run.call_args.kwargs["timeout"] == WARMUP_TIMEOUT


class TestSpawnDetached:
    def test_runs_job_on_daemon_thread(self):
        done = threading.Event()

        thread = spawn_detached(done.set)

        assert thread.daemon
        assert done.wait(timeout=5)

    def test_returns_before_job_finishes(self):
        release = threading.Event()

        thread = spawn_detached(lambda: release.wait(timeout=5))

        assert thread.is_alive()
        release.set()
        thread.join(timeout=5)

    def test_pending_job_does_not_delay_interpreter_exit(self):
        repo_root = Path(__file__).resolve().parents[2]
        env = dict(os.environ)
        env["PYTHONPATH"] = os.pathsep.join(
            p for p in (str(repo_root), env.get("PYTHONPATH")) if p
        )
        script = (
            "import time\n"
            "from roslynkit.core.process import spawn_detached\n"
            "spawn_detached(lambda: time.sleep(30))\n"
        )

        start = time.monotonic()
        result = subprocess.run(
            [sys.executable, "-c", script], env=env, capture_output=True, timeout=25
        )

        assert result.returncode == 0, result.stderr
        assert time.monotonic() - start < 10
