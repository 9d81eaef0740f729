"""Process supervision: launch, await, enumerate and kill."""
from __future__ import annotations

from .awaitable import AwaitableProcess, ExecutionResult, awaitable
from .commands import execute, is_windows, log_command, popen_kwargs, run_for_exit_code
from .inspector import (
    DEBUG_PORT_ARGUMENT,
    HTTP_PORT_ARGUMENT,
    JPS_LIKE_PATTERN,
    WMIC_PATTERN,
    ConflictingProcess,
    ProcessInspector,
    find_conflicting_pids,
    find_conflicting_processes,
    jps_executable,
)
from .killer import ProcessKiller, kill_command
from .launcher import LaunchedProcess, launch

__all__ = [
    "AwaitableProcess",
    "ExecutionResult",
    "awaitable",
    "execute",
    "is_windows",
    "log_command",
    "popen_kwargs",
    "run_for_exit_code",
    "DEBUG_PORT_ARGUMENT",
    "HTTP_PORT_ARGUMENT",
    "JPS_LIKE_PATTERN",
    "WMIC_PATTERN",
    "ConflictingProcess",
    "ProcessInspector",
    "find_conflicting_pids",
    "find_conflicting_processes",
    "jps_executable",
    "ProcessKiller",
    "kill_command",
    "LaunchedProcess",
    "launch",
]
