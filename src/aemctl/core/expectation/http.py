"""HTTP-backed expectations: status and content probes of the instance."""
from __future__ import annotations

import copy
import logging
from typing import Optional
from urllib.parse import urlparse

import requests

from ..http import create_session
from .base import Expectation, Outcome

logger = logging.getLogger(__name__)

PROBE_TIMEOUTS = (2.0, 2.0)


class HttpExpectation(Expectation[Exception]):
    """Expects an endpoint to answer with a status code and, optionally, content.

    Built fluently; every builder step returns a modified copy::

        HttpExpectation.expect_content('<status code="200">ok</status>') \\
            .from_url(base + "/crx/packmgr/service.jsp?cmd=ls") \\
            .with_credentials("admin", "admin")
    """

    def __init__(self) -> None:
        super().__init__()
        self.url: Optional[str] = None
        self.method = "GET"
        self.user: Optional[str] = None
        self.password: Optional[str] = None
        self.expected_status = 200
        self.expected_content: Optional[str] = None
        self.session: Optional[requests.Session] = None
        self._last_failure: Optional[Exception] = None

    @classmethod
    def expect_status(cls, status: int) -> "HttpExpectation":
        expectation = cls()
        expectation.expected_status = status
        return expectation

    @classmethod
    def expect_content(cls, content: str) -> "HttpExpectation":
        expectation = cls()
        expectation.expected_content = content
        return expectation

    def _copy(self) -> "HttpExpectation":
        clone = copy.copy(self)
        clone._failure_callbacks = list(self._failure_callbacks)
        return clone

    def from_url(self, url: str) -> "HttpExpectation":
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"Not an absolute HTTP URL: {url!r}")
        clone = self._copy()
        clone.url = url
        return clone

    def with_credentials(self, user: str, password: str) -> "HttpExpectation":
        clone = self._copy()
        clone.user = user
        clone.password = password
        return clone

    def using_method(self, method: str) -> "HttpExpectation":
        clone = self._copy()
        clone.method = method.upper()
        return clone

    def using_session(self, session: requests.Session) -> "HttpExpectation":
        clone = self._copy()
        clone.session = session
        return clone

    def _session(self) -> requests.Session:
        if self.session is None:
            credentials = (self.user, self.password or "") if self.user else None
            self.session = create_session(credentials, PROBE_TIMEOUTS)
        return self.session

    def fulfill(self) -> Outcome:
        if self.url is None:
            raise ValueError("No URL to probe, call from_url() first")
        try:
            response = self._session().request(self.method, self.url, timeout=PROBE_TIMEOUTS)
        except requests.RequestException as exc:
            self._last_failure = exc
            return Outcome.RETRY

        if response.status_code == self.expected_status:
            if self.expected_content is None or self.expected_content in (response.text or ""):
                return Outcome.FULFILLED
        return Outcome.RETRY

    def failure_context(self) -> Optional[Exception]:
        return self._last_failure


class PackageManagerApiAvailable(Expectation[Exception]):
    """The package manager service answers GET with 405 only once it is up.

    Connection-level errors are expected while the instance restarts its HTTP
    stack during deployment, so they only mean "not yet".
    """

    def __init__(self, server_uri: str, session: requests.Session, log: Optional[logging.Logger] = None) -> None:
        super().__init__()
        self.url = server_uri.rstrip("/") + "/crx/packmgr/service"
        self.session = session
        self.log = log or logger
        self._last_failure: Optional[Exception] = None

    def fulfill(self) -> Outcome:
        try:
            response = self.session.get(self.url, timeout=PROBE_TIMEOUTS)
        except requests.RequestException as exc:
            self._last_failure = exc
            return Outcome.RETRY
        return Outcome.FULFILLED if response.status_code == 405 else Outcome.RETRY

    def first_failure(self) -> None:
        self.log.info("Waiting for the package manager API to become available again...")

    def failure_context(self) -> Optional[Exception]:
        return self._last_failure


class SystemConsoleAvailable(Expectation[Exception]):
    """The system console answers 200. A connection failure means nothing is listening."""

    def __init__(self, server_uri: str, session: requests.Session) -> None:
        super().__init__()
        self.url = server_uri.rstrip("/") + "/system/console/vmstat"
        self.session = session
        self._last_failure: Optional[Exception] = None

    def fulfill(self) -> Outcome:
        try:
            response = self.session.get(self.url, timeout=PROBE_TIMEOUTS)
        except requests.RequestException as exc:
            self._last_failure = exc
            return Outcome.UNSATISFIABLE
        return Outcome.FULFILLED if response.status_code == 200 else Outcome.RETRY

    def failure_context(self) -> Optional[Exception]:
        return self._last_failure


def package_manager_api_is_available(
    server_uri: str, session: requests.Session, log: Optional[logging.Logger] = None
) -> PackageManagerApiAvailable:
    return PackageManagerApiAvailable(server_uri, session, log)


def system_console_is_available(server_uri: str, session: requests.Session) -> SystemConsoleAvailable:
    return SystemConsoleAvailable(server_uri, session)


__all__ = [
    "HttpExpectation",
    "PackageManagerApiAvailable",
    "SystemConsoleAvailable",
    "package_manager_api_is_available",
    "system_console_is_available",
    "PROBE_TIMEOUTS",
]
