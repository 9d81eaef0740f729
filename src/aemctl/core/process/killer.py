"""Forced termination of conflicting processes."""
from __future__ import annotations

import logging
import subprocess
from typing import Callable, List, Optional

from ..cancellation import CancellationToken
from ..exceptions import SupervisionFailure
from ..expectation import ProcessesTerminated
from .commands import is_windows, run_for_exit_code

logger = logging.getLogger(__name__)

KILL_COMMAND_TIMEOUT_SECONDS = 30.0

CommandRunner = Callable[[List[str]], int]


def kill_command(pid: int) -> List[str]:
    if is_windows():
        return ["taskkill", "/F", "/PID", str(pid)]
    return ["kill", "-s", "SIGKILL", str(pid)]


class ProcessKiller:
    """Kills every process ``find_pids()`` reports, then confirms they are gone.

    ``run_command`` executes one kill command vector and returns its exit code.
    """

    def __init__(
        self,
        find_pids: Callable[[], List[int]],
        *,
        grace_period: float = 5.0,
        token: Optional[CancellationToken] = None,
        run_command: Optional[CommandRunner] = None,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self.find_pids = find_pids
        self.grace_period = grace_period
        self.token = token or CancellationToken()
        self.log = log or logger
        self.run_command = run_command or self._run_kill_command

    def _run_kill_command(self, command: List[str]) -> int:
        return run_for_exit_code(command, timeout=KILL_COMMAND_TIMEOUT_SECONDS, log=self.log)

    def kill_conflicting(self) -> bool:
        """Kill conflicting processes. True if there were none or every kill command succeeded."""
        self.log.info("Looking for running AEM instances to end...")
        pids = self.find_pids()

        if not pids:
            self.log.info("No running AEM instances found - the processes may have already terminated.")
            return True

        for pid in pids:
            self.log.info("Ending AEM instance with PID %d...", pid)
            try:
                exit_code = self.run_command(kill_command(pid))
            except (OSError, subprocess.SubprocessError) as exc:
                raise SupervisionFailure(f"Unable to end AEM instance with PID {pid}.", pids=[pid]) from exc
            if exit_code != 0:
                self.log.info("Ending AEM instance with PID %d failed with exit code %d", pid, exit_code)
                return False

        # Let the OS release files and sockets held by the killed processes.
        self.token.sleep(self.grace_period)
        return True

    def processes_terminated(self) -> ProcessesTerminated:
        return ProcessesTerminated(self.find_pids)

    def kill(self, confirm_within: float = 5.0) -> List[int]:
        """Kill conflicting processes or raise :class:`SupervisionFailure` listing survivors."""
        pids = self.find_pids()
        if self.kill_conflicting() or self.processes_terminated().wait_up_to(confirm_within, token=self.token):
            self.log.info("AEM processes %s successfully terminated", pids)
            return pids
        survivors = self.find_pids()
        raise SupervisionFailure(
            f"Unable to terminate all AEM instances: The process(es) {survivors} are still running.",
            pids=survivors,
        )


__all__ = ["ProcessKiller", "kill_command", "CommandRunner", "KILL_COMMAND_TIMEOUT_SECONDS"]
