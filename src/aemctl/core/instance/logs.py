"""Spooling instance log files to the aemctl log."""
from __future__ import annotations

import os
from typing import Optional

from ..cancellation import CancellationToken
from ..streams import FileFollower, FollowerPool
from .settings import InstanceSettings


def follow_logs(
    settings: InstanceSettings,
    *,
    token: Optional[CancellationToken] = None,
    pool: Optional[FollowerPool] = None,
) -> FollowerPool:
    """Follow each configured log file, relative to crx-quickstart.

    With ``keep_following_logs`` the followers run in the background and the
    pool is returned at once. Otherwise this blocks until ``token`` is
    cancelled.
    """
    log = settings.log
    pool = pool or FollowerPool(token, keep_following=settings.keep_following_logs)
    log.info("Following %s...", list(settings.logfiles))

    for name in settings.logfiles:
        path = settings.crx_quickstart_dir / name
        if not path.exists():
            log.error("Unable to follow the log file %s, the file does not exist.", path)
            continue
        if not os.access(path, os.R_OK):
            log.error("Unable to follow the log file %s, the file cannot be read by this process.", path)
            continue

        def emit(line: str, _label: str = f"<{path.name}>") -> None:
            log.info("%s %s", _label, line)

        pool.submit(FileFollower(path, emit, log=log))

    if not settings.keep_following_logs:
        try:
            pool.join()
        finally:
            pool.close()
    return pool


__all__ = ["follow_logs"]
