"""Graceful, then forceful, shutdown of the local instance."""
from __future__ import annotations

import os
import subprocess
import time
from typing import Optional

import requests

from ..cancellation import CancellationToken
from ..exceptions import SupervisionFailure
from ..expectation import system_console_is_available
from ..process import AwaitableProcess, ProcessKiller, log_command, popen_kwargs
from ..utils.errors import root_cause_message
from .kill import process_killer
from .settings import InstanceSettings, quickstart_jar

CONTROL_PORT_STOP_TIMEOUT_SECONDS = 60.0
CONSOLE_AVAILABILITY_SECONDS = 20.0


def _await_processes_terminated(settings: InstanceSettings, killer: ProcessKiller, token: CancellationToken) -> bool:
    if killer.processes_terminated().wait_up_to(settings.shutdown_wait_minutes, "minutes", token=token):
        return True
    settings.log.info("Unable to gracefully shutdown AEM within %g minutes.", settings.shutdown_wait_minutes)
    return False


def shutdown_using_control_port(
    settings: InstanceSettings, killer: ProcessKiller, token: CancellationToken
) -> bool:
    """``java -jar app/<quickstart>.jar stop -c .`` in crx-quickstart, then wait for the processes to go."""
    crx_quickstart = settings.crx_quickstart_dir
    jar = quickstart_jar(crx_quickstart / "app")
    command = [settings.java_executable, "-jar", f"app{os.sep}{jar}", "stop", "-c", "."]
    log_command(command, crx_quickstart, settings.log)
    try:
        process = subprocess.Popen(command, cwd=str(crx_quickstart), **popen_kwargs())  # noqa: S603
    except OSError as exc:
        raise SupervisionFailure(f"Unable to stop AEM: {exc}") from exc

    exit_code = AwaitableProcess(process).await_termination(CONTROL_PORT_STOP_TIMEOUT_SECONDS, token).exit_code
    if exit_code > 0:
        settings.log.info("Stopping AEM using the quickstart stop command failed with error code %d", exit_code)
        return False

    settings.log.info("Waiting up to %g minutes for AEM to stop...", settings.shutdown_wait_minutes)
    return _await_processes_terminated(settings, killer, token)


def shutdown_using_system_console(
    settings: InstanceSettings,
    killer: ProcessKiller,
    token: CancellationToken,
    session: requests.Session,
) -> bool:
    log = settings.log
    log.info("Checking whether system/console is available...")
    if not system_console_is_available(settings.server_uri, session).wait_up_to(
        CONSOLE_AVAILABILITY_SECONDS, token=token
    ):
        log.info("Unable to gracefully shutdown AEM: the system/console is not available.")
        return False

    log.info("Attempting to gracefully shutdown AEM via system/console...")
    try:
        response = session.post(settings.url("/system/console/vmstat"), data={"shutdown_type": "stop"})
    except requests.RequestException as exc:
        log.info("Unable to send graceful shutdown command to AEM: %s", root_cause_message(exc))
        return False
    if response.status_code != 200:
        log.info("Unable to gracefully shutdown AEM, the AEM server responded: %s.", response.reason)
        return False

    return _await_processes_terminated(settings, killer, token)


def stop(
    settings: InstanceSettings,
    *,
    token: Optional[CancellationToken] = None,
    session: Optional[requests.Session] = None,
    killer: Optional[ProcessKiller] = None,
) -> None:
    """Stop the instance, falling back to killing it.

    Raises:
        SupervisionFailure: neither graceful nor forced termination succeeded.
    """
    log = settings.log
    token = token or CancellationToken()
    killer = killer or process_killer(settings, token=token)
    started = time.monotonic()
    log.info("Stopping AEM...")

    if not settings.is_installed():
        log.info("AEM is not installed.")
        killer.kill_conflicting()
        return

    if settings.use_control_port:
        complete = shutdown_using_control_port(settings, killer, token)
    else:
        complete = shutdown_using_system_console(settings, killer, token, session or settings.session())
    if not complete:
        complete = killer.kill_conflicting()

    if not complete:
        raise SupervisionFailure(
            "Unable to stop AEM - neither graceful nor forceful shutdown succeeded.",
            pids=killer.find_pids(),
        )
    token.sleep(settings.shutdown_grace_seconds)
    log.info("AEM shutdown completed after %d seconds.", int(time.monotonic() - started))


__all__ = [
    "stop",
    "shutdown_using_control_port",
    "shutdown_using_system_console",
    "CONTROL_PORT_STOP_TIMEOUT_SECONDS",
    "CONSOLE_AVAILABILITY_SECONDS",
]
