"""Starting a long-running child process and detaching from it."""
from __future__ import annotations

import logging
import subprocess
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from ..cancellation import CancellationToken
from ..exceptions import SupervisionFailure
from ..streams import FollowerPool, LineConsumer, ProcessStreamFollower
from .awaitable import AwaitableProcess, ExecutionResult
from .commands import log_command, popen_kwargs

logger = logging.getLogger(__name__)

DEFAULT_GRACE_PERIOD_SECONDS = 5.0
# Lets the followers pick up failure output of a process that died early.
OUTPUT_SETTLE_SECONDS = 2.0


@dataclass
class LaunchedProcess:
    process: subprocess.Popen
    command: List[str]
    followers: List[threading.Thread] = field(default_factory=list)

    @property
    def pid(self) -> int:
        return self.process.pid

    def is_alive(self) -> bool:
        return self.process.poll() is None

    def await_termination(self, timeout: float, token: Optional[CancellationToken] = None) -> ExecutionResult:
        return AwaitableProcess(self.process).await_termination(timeout, token)

    def destroy(self) -> None:
        if self.is_alive():
            self.process.kill()


class _Recorder:
    def __init__(self) -> None:
        self.lines: List[str] = []
        self._lock = threading.Lock()

    def __call__(self, line: str) -> None:
        with self._lock:
            self.lines.append(line)

    def replay(self, consumer: LineConsumer) -> None:
        with self._lock:
            lines = list(self.lines)
        for line in lines:
            consumer(line)


def launch(
    command: List[str],
    *,
    cwd: Path,
    pool: FollowerPool,
    on_stdout: LineConsumer,
    on_stderr: LineConsumer,
    silent: bool = False,
    grace_period: float = DEFAULT_GRACE_PERIOD_SECONDS,
    settle: float = OUTPUT_SETTLE_SECONDS,
    token: Optional[CancellationToken] = None,
    log: Optional[logging.Logger] = None,
) -> LaunchedProcess:
    """Start ``command`` with both output pipes followed on ``pool``.

    A process still alive after ``grace_period`` seconds is considered
    started and left running. An early exit raises
    :class:`SupervisionFailure` carrying the exit code. With ``silent``, output
    is recorded instead of forwarded and only replayed when the launch fails.
    """
    log = log or logger
    token = token or CancellationToken()
    recorded_out, recorded_err = _Recorder(), _Recorder()

    def replay() -> None:
        if silent:
            recorded_err.replay(on_stderr)
            recorded_out.replay(on_stdout)

    log_command(command, cwd, log)
    try:
        process = subprocess.Popen(  # noqa: S603
            command,
            cwd=str(cwd),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            **popen_kwargs(),
        )
    except OSError as exc:
        raise SupervisionFailure(f"Unable to start AEM: {exc}", context={"command": command}) from exc

    launched = LaunchedProcess(process, list(command))
    launched.followers.append(
        pool.submit(
            ProcessStreamFollower(
                process.stderr, process, recorded_err if silent else on_stderr, name=f"stderr of {process.pid}", log=log
            )
        )
    )
    launched.followers.append(
        pool.submit(
            ProcessStreamFollower(
                process.stdout, process, recorded_out if silent else on_stdout, name=f"stdout of {process.pid}", log=log
            )
        )
    )

    result = launched.await_termination(grace_period, token)
    token.sleep(settle)

    if result.terminated:
        for thread in launched.followers:
            thread.join(settle)
        replay()
        raise SupervisionFailure(
            f"Unable to start AEM - the quickstart process terminated with exit code: {result.exit_code}",
            exit_code=result.exit_code,
            context={"command": command},
        )
    log.debug("Process %d is running, detaching.", process.pid)
    return launched


__all__ = ["LaunchedProcess", "launch", "DEFAULT_GRACE_PERIOD_SECONDS", "OUTPUT_SETTLE_SECONDS"]
