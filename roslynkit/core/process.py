"""
Subprocess helpers for roslynkit.

Wraps the external processes the pipeline runs: package search, restore,
msbuild property queries, the cached-binary liveness check and the detached
post-install warm-up.
"""

import logging
import subprocess
import threading
from pathlib import Path
from typing import Callable, Mapping, Optional, Sequence, Union

from roslynkit.core.exceptions import LivenessCheckError

logger = logging.getLogger(__name__)

LIVENESS_TIMEOUT = 30
WARMUP_TIMEOUT = 600


def run_command(
    args: Sequence[Union[str, Path]],
    cwd: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
    timeout: Optional[float] = None,
) -> subprocess.CompletedProcess:
    """
    Run a command to completion, capturing stdout and stderr as text.

    Args:
        args: Program and arguments
        cwd: Working directory
        env: Full environment for the child (inherited if None)
        timeout: Seconds before the child is killed

    Returns:
        The completed process; a non-zero exit status is not an error here

    Raises:
        FileNotFoundError: If the program does not exist
        subprocess.TimeoutExpired: If the timeout elapses
    """
    cmd = [str(a) for a in args]
    logger.debug(f"Running: {' '.join(cmd)}")
    return subprocess.run(
        cmd,
        cwd=str(cwd) if cwd else None,
        env=dict(env) if env is not None else None,
        capture_output=True,
        text=True,
        errors="replace",
        timeout=timeout,
    )


def combined_output(result: subprocess.CompletedProcess) -> str:
    """Concatenate stdout and stderr of a completed process."""
    return f"{result.stdout or ''}{result.stderr or ''}"


def try_exec(
    path: Path,
    args: Sequence[str] = ("--version",),
    timeout: float = LIVENESS_TIMEOUT,
) -> subprocess.CompletedProcess:
    """
    Run a binary once to confirm it still executes.

    Raises:
        LivenessCheckError: If it cannot be started, times out or exits non-zero
    """
    try:
        result = run_command([path, *args], timeout=timeout)
    except (OSError, subprocess.SubprocessError) as e:
        raise LivenessCheckError(f"Unable to run {path}: {e}") from e

    if result.returncode != 0:
        raise LivenessCheckError(
            f"{path} exited with status {result.returncode}: "
            f"{combined_output(result).strip()}"
        )
    return result


def spawn_detached(fn: Callable[[], None], name: str = "roslynkit-bg") -> threading.Thread:
    """
    Run `fn` on a daemon thread and forget about it.

    Nothing joins the thread, so it never delays interpreter exit; `fn` is
    expected to handle its own errors.
    """
    thread = threading.Thread(target=fn, name=name, daemon=True)
    thread.start()
    return thread


def warm_up(
    path: Path,
    args: Sequence[str] = ("--download",),
    timeout: Optional[float] = WARMUP_TIMEOUT,
) -> None:
    """
    Best-effort invocation of a freshly installed binary; failures are logged only.
    """
    try:
        result = run_command([path, *args], timeout=timeout)
        logger.debug(f"Warm-up of {path} finished with status {result.returncode}")
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug(f"Warm-up of {path} failed: {e}")
