"""Bounded waiting for a child process to exit."""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Optional, Protocol

from ..cancellation import CancellationToken

MAX_POLL_SECONDS = 0.2
POLL_SLACK_SECONDS = 0.005


class Pollable(Protocol):
    pid: int

    def poll(self) -> Optional[int]: ...


@dataclass(frozen=True)
class ExecutionResult:
    terminated: bool
    exit_code: int = -1
    """Exit code, or -1 when the process did not terminate."""


class AwaitableProcess:
    def __init__(self, process: Pollable) -> None:
        self.process = process

    @property
    def pid(self) -> int:
        return self.process.pid

    def is_alive(self) -> bool:
        return self.process.poll() is None

    def await_termination(
        self, timeout: float, token: Optional[CancellationToken] = None
    ) -> ExecutionResult:
        """Poll the exit status for up to ``timeout`` seconds.

        Sleeps ``min(remaining + 5ms, 200ms)`` between polls. Cancellation ends
        the wait early and reports the process as not terminated.
        """
        token = token or CancellationToken()
        started = time.monotonic()
        remaining = timeout
        while True:
            code = self.process.poll()
            if code is not None:
                return ExecutionResult(True, code)
            if remaining <= 0:
                break
            if not token.sleep(min(remaining + POLL_SLACK_SECONDS, MAX_POLL_SECONDS)):
                break
            remaining = timeout - (time.monotonic() - started)
        return ExecutionResult(False)


def awaitable(process: Pollable) -> AwaitableProcess:
    return AwaitableProcess(process)


__all__ = ["ExecutionResult", "AwaitableProcess", "awaitable"]
