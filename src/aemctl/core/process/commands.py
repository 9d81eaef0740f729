"""Running short-lived helper commands (process listers, kill, control port)."""
from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

logger = logging.getLogger(__name__)


def is_windows() -> bool:
    return os.name == "nt"


def popen_kwargs() -> Dict[str, Any]:
    """Detach the child from our process group so it outlives this process."""
    if os.name == "posix":
        return {"start_new_session": True}
    if os.name == "nt":
        creationflags = getattr(subprocess, "CREATE_NEW_PROCESS_GROUP", None)
        if isinstance(creationflags, int):
            return {"creationflags": creationflags}
    return {}


def log_command(command: Sequence[str], cwd: Optional[Path] = None, log: Optional[logging.Logger] = None) -> None:
    log = log or logger
    if log.isEnabledFor(logging.DEBUG):
        if cwd is not None:
            log.debug("Working dir: %s", cwd)
        log.debug("Command: %s", " ".join(str(c) for c in command))


def execute(
    command: List[str],
    *,
    timeout: float,
    cwd: Optional[Path] = None,
    log: Optional[logging.Logger] = None,
) -> Optional[str]:
    """Run ``command`` and return its stdout.

    Returns None when the command cannot be run or does not complete in time;
    stderr lines are logged as errors.
    """
    log = log or logger
    log_command(command, cwd, log)
    try:
        completed = subprocess.run(  # noqa: S603
            command,
            cwd=str(cwd) if cwd else None,
            capture_output=True,
            text=True,
            errors="replace",
            timeout=max(0.1, float(timeout)),
            check=False,
        )
    except subprocess.TimeoutExpired:
        log.warning("%s didn't complete within %ss. AEM instances could still be running.", command[0], timeout)
        return None
    except OSError as exc:
        log.warning("Unable to execute %s: %s", command[0], exc)
        return None

    for line in (completed.stderr or "").splitlines():
        if line.strip():
            log.error("<stderr> %s", line)
    return completed.stdout


def run_for_exit_code(command: List[str], *, timeout: float, log: Optional[logging.Logger] = None) -> int:
    """Run ``command`` to completion and return its exit code (output discarded)."""
    log_command(command, log=log)
    completed = subprocess.run(  # noqa: S603
        command,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        timeout=max(0.1, float(timeout)),
        check=False,
    )
    return completed.returncode


__all__ = ["is_windows", "popen_kwargs", "log_command", "execute", "run_for_exit_code"]
