from __future__ import annotations

from typing import Optional

import requests

from ..cancellation import CancellationToken
from ..process import LaunchedProcess, ProcessKiller
from ..streams import FollowerPool
from .settings import InstanceSettings
from .start import start
from .stop import stop


def restart(
    settings: InstanceSettings,
    *,
    token: Optional[CancellationToken] = None,
    session: Optional[requests.Session] = None,
    killer: Optional[ProcessKiller] = None,
    pool: Optional[FollowerPool] = None,
) -> LaunchedProcess:
    """Stop the instance (killing it if needed), then start it again."""
    token = token or CancellationToken()
    stop(settings, token=token, session=session, killer=killer)
    return start(settings, token=token, pool=pool, session=session)


__all__ = ["restart"]
