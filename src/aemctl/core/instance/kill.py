"""Forced termination of AEM instances bound to the configured ports."""
from __future__ import annotations

from typing import List, Optional

from ..cancellation import CancellationToken
from ..process import ProcessInspector, ProcessKiller
from .settings import InstanceSettings

KILL_CONFIRMATION_SECONDS = 5.0


def conflict_inspector(settings: InstanceSettings) -> ProcessInspector:
    return ProcessInspector(
        settings.http_port,
        settings.debug_port,
        java_home=settings.java_home,
        listers=settings.listers,
        timeout=settings.listing_timeout_seconds,
        log=settings.log,
    )


def process_killer(
    settings: InstanceSettings,
    *,
    token: Optional[CancellationToken] = None,
    inspector: Optional[ProcessInspector] = None,
) -> ProcessKiller:
    inspector = inspector or conflict_inspector(settings)
    return ProcessKiller(
        inspector.conflicting_pids,
        grace_period=settings.kill_grace_seconds,
        token=token,
        log=settings.log,
    )


def kill(
    settings: InstanceSettings,
    *,
    token: Optional[CancellationToken] = None,
    killer: Optional[ProcessKiller] = None,
) -> List[int]:
    """Kill every conflicting instance. Returns the PIDs that were found.

    Raises:
        SupervisionFailure: some processes are still running.
    """
    killer = killer or process_killer(settings, token=token)
    return killer.kill(confirm_within=KILL_CONFIRMATION_SECONDS)


__all__ = ["conflict_inspector", "process_killer", "kill", "KILL_CONFIRMATION_SECONDS"]
