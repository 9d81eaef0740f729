"""Starting the local instance from its quickstart jar."""
from __future__ import annotations

import time
from typing import List, Optional

import requests

from ..cancellation import CancellationToken
from ..exceptions import SupervisionFailure
from ..expectation import HttpExpectation
from ..process import LaunchedProcess, launch
from ..streams import FollowerPool
from .initialization import InstanceStatus, await_initialization
from .settings import InstanceSettings, quickstart_jar

STARTED_MARKER = '<status code="200">ok</status>'
FIRST_START_FACTOR = 3


def run_modes(settings: InstanceSettings) -> List[str]:
    """Configured run modes plus the instance type, without duplicates."""
    modes: List[str] = []
    for mode in (*settings.run_modes, settings.type):
        if mode not in modes:
            modes.append(mode)
    return modes


def build_command(settings: InstanceSettings, jar: str) -> List[str]:
    command = [settings.java_executable]
    if settings.debug_enabled:
        command.append(f"-agentlib:jdwp=transport=dt_socket,server=y,suspend=n,address={settings.debug_port}")
    command += ["-server", f"-Xmx{settings.heap_size}", "-Djava.awt.headless=true"]
    command += list(settings.vm_options)
    # -jar comes last, followed by the quickstart's own arguments.
    command += [
        "-jar", jar,
        "-nofork",
        "-nobrowser",
        "-verbose",
        "-r", ",".join(run_modes(settings)),
        "-port", str(settings.http_port),
    ]
    if settings.use_control_port:
        command.append("-use-control-port")
    if settings.context_path.strip("/"):
        command += ["-contextpath", settings.context_path]
    return command


def start(
    settings: InstanceSettings,
    *,
    token: Optional[CancellationToken] = None,
    pool: Optional[FollowerPool] = None,
    session: Optional[requests.Session] = None,
) -> LaunchedProcess:
    """Start the instance and wait until it is up and initialized.

    The process keeps running after this returns. Its output keeps being
    logged when ``keep_following_output`` is set.

    Raises:
        SupervisionFailure: the process died or did not come up in time.
        InitializationError: it came up but did not finish initializing.
    """
    log = settings.log
    token = token or CancellationToken()
    pool = pool or FollowerPool(token, keep_following=settings.keep_following_output)
    session = session or settings.session()
    started = time.monotonic()

    try:
        log.info("Starting AEM ...")
        instance_dir = settings.require_instance_dir()

        maximum = settings.startup_wait_minutes
        if not settings.is_installed():
            log.info(
                "AEM is started for the first time, increasing the maximum startup duration from %g to %g minutes.",
                maximum,
                maximum * FIRST_START_FACTOR,
            )
            maximum *= FIRST_START_FACTOR

        launched = launch(
            build_command(settings, quickstart_jar(instance_dir)),
            cwd=instance_dir,
            pool=pool,
            on_stdout=lambda line: log.info("<stdout> %s", line),
            on_stderr=lambda line: log.error("<stderr> %s", line),
            silent=settings.silent,
            grace_period=settings.startup_grace_seconds,
            token=token,
            log=log,
        )

        is_started = (
            HttpExpectation.expect_content(STARTED_MARKER)
            .from_url(settings.url("/crx/packmgr/service.jsp?cmd=ls"))
            .with_credentials(*settings.credentials)
        )
        if not is_started.wait_up_to(maximum, "minutes", token=token):
            launched.destroy()
            raise SupervisionFailure(
                f"Unable to start AEM - the instance was not started within {maximum:g} minutes. Aborting startup.",
                context={"pid": launched.pid},
            )

        log.info("AEM is running, awaiting complete initialization...")
        await_initialization(settings, token=token, status=InstanceStatus(settings, session))
        log.info("AEM startup completed after %d seconds.", int(time.monotonic() - started))
        return launched
    finally:
        pool.close()


__all__ = ["start", "build_command", "run_modes", "STARTED_MARKER"]
