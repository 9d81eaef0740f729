"""Authenticated :mod:`requests` sessions for the instance's HTTP control surface."""
from __future__ import annotations

from typing import Any, Optional, Tuple

import requests
from requests.auth import HTTPBasicAuth

Timeouts = Tuple[float, float]

DEFAULT_TIMEOUTS: Timeouts = (2.0, 600.0)


class TimeoutSession(requests.Session):
    """A :class:`requests.Session` applying default (connect, read) timeouts."""

    def __init__(self, timeouts: Timeouts = DEFAULT_TIMEOUTS) -> None:
        super().__init__()
        self.timeouts = timeouts

    def request(self, method: str, url: str, **kwargs: Any) -> requests.Response:  # type: ignore[override]
        kwargs.setdefault("timeout", self.timeouts)
        return super().request(method, url, **kwargs)


def create_session(
    credentials: Optional[Tuple[str, str]] = None,
    timeouts: Timeouts = DEFAULT_TIMEOUTS,
) -> requests.Session:
    """Build a session sending basic auth (when given) with default timeouts."""
    session = TimeoutSession(timeouts)
    if credentials is not None:
        user, password = credentials
        session.auth = HTTPBasicAuth(user, password)
    return session


__all__ = ["TimeoutSession", "create_session", "DEFAULT_TIMEOUTS", "Timeouts"]
