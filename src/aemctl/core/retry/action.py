"""Bounded, exponentially backed-off execution of one remote action.

A concrete action is any object satisfying :class:`HttpAction`: it performs
one request and knows how to classify and describe the response. The
:class:`RetryableAction` drives it::

    Start -> Attempting -> Success
                        -> Retrying -> Attempting
                        -> Fatal

Transport failures and recoverable responses are re-tried until the attempt
counter exceeds ``configuration.retries``; unrecoverable responses fail
immediately.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Protocol, Tuple, runtime_checkable

import requests

from ..cancellation import CancellationToken
from ..exceptions import (
    OperationCancelled,
    RetryBudgetExhausted,
    TransportFailure,
    UnrecoverableRemoteError,
)
from ..utils.errors import root_cause_message
from .backoff import backoff_delay, total_backoff_bound
from .outcome import Outcome, ProtocolError, RecoverableError, Success, UnrecoverableError, is_retryable

logger = logging.getLogger(__name__)

DEFAULT_RETRIES = 3
DEFAULT_BASIC_BACKOFF_SECONDS = 10.0

# Connections must open quickly; an installation may take up to ten minutes.
DEFAULT_TIMEOUTS: Tuple[float, float] = (2.0, 600.0)

TRANSPORT_ERRORS = (requests.RequestException, OSError, TransportFailure)


@dataclass(frozen=True)
class ActionConfiguration:
    """Immutable settings shared by every action of one deployment run."""

    server_uri: str
    password: str
    user: str = "admin"
    retries: int = DEFAULT_RETRIES
    log: logging.Logger = field(default_factory=lambda: logging.getLogger("aemctl.actions"))
    timeouts: Tuple[float, float] = DEFAULT_TIMEOUTS

    def __post_init__(self) -> None:
        if self.retries < 0:
            raise ValueError(f"retries must be >= 0, got {self.retries}")
        object.__setattr__(self, "server_uri", self.server_uri.rstrip("/"))

    @property
    def credentials(self) -> Tuple[str, str]:
        return (self.user, self.password)

    def url(self, path: str) -> str:
        return self.server_uri + path

    def __repr__(self) -> str:
        return (
            f"ActionConfiguration(server_uri={self.server_uri!r}, user={self.user!r}, "
            f"retries={self.retries}, log={self.log.name!r})"
        )

    @classmethod
    def from_config(cls, repo_root: Optional[Path] = None) -> "ActionConfiguration":
        """Build from the ``instance`` and ``deploy`` configuration sections."""
        from ..config import DeployConfig, InstanceConfig

        instance = InstanceConfig(repo_root)
        deploy = DeployConfig(repo_root)
        return cls(
            server_uri=instance.server_uri,
            password=instance.admin_password,
            user=instance.admin_user,
            retries=deploy.retries,
            timeouts=(deploy.connect_timeout_seconds, deploy.read_timeout_seconds),
        )


@runtime_checkable
class HttpAction(Protocol):
    """Capabilities a concrete remote action supplies to :class:`RetryableAction`."""

    basic_backoff_seconds: float

    def perform(self) -> Any:
        """Execute one attempt. May raise a transport error."""
        ...

    def is_recoverable(self, response: Any) -> bool: ...

    def is_unrecoverable(self, response: Any) -> bool: ...

    def status_text(self, response: Any) -> str: ...

    def result(self, response: Any) -> Any: ...

    def start_message(self) -> Optional[str]: ...

    def success_message(self, response: Any) -> Optional[str]: ...

    def failure_message(self, cause: str) -> str: ...

    def failure_message_for(self, response: Any) -> str: ...


class BaseHttpAction:
    """Default classification of :class:`requests.Response` objects.

    Subclasses implement ``perform`` and the message formatters, overriding the
    predicates where the remote endpoint has its own notion of failure.
    """

    basic_backoff_seconds: float = DEFAULT_BASIC_BACKOFF_SECONDS

    def __init__(self, configuration: ActionConfiguration, session: Optional[requests.Session] = None) -> None:
        self.configuration = configuration
        self._session = session

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            from ..http import create_session

            self._session = create_session(self.configuration.credentials, self.configuration.timeouts)
        return self._session

    @property
    def total_backoff_seconds(self) -> float:
        return total_backoff_bound(self.basic_backoff_seconds, self.configuration.retries)

    def is_recoverable(self, response: requests.Response) -> bool:
        return response.status_code < 200 or response.status_code >= 300

    def is_unrecoverable(self, response: requests.Response) -> bool:
        return response.status_code != 200

    def status_text(self, response: requests.Response) -> str:
        reason = response.reason or ""
        return f"{response.status_code} {reason}".strip()

    def result(self, response: requests.Response) -> Any:
        return None

    def start_message(self) -> Optional[str]:
        return None

    def success_message(self, response: requests.Response) -> Optional[str]:
        return None

    def failure_message(self, cause: str) -> str:
        return cause

    def failure_message_for(self, response: requests.Response) -> str:
        return self.status_text(response)


class RetryableAction:
    """Runs an :class:`HttpAction` with classification, retries and backoff.

    The attempt counter belongs to this instance; construct a new one per run.
    """

    def __init__(
        self,
        action: HttpAction,
        configuration: ActionConfiguration,
        token: Optional[CancellationToken] = None,
    ) -> None:
        self.action = action
        self.configuration = configuration
        self.token = token or CancellationToken()
        self.attempts = 0

    @property
    def log(self) -> logging.Logger:
        return self.configuration.log

    def _info(self, message: Optional[str]) -> None:
        if message is not None:
            self.log.info(message)

    def classify(self) -> Outcome:
        """Perform one attempt and classify its result."""
        try:
            response = self.action.perform()
        except TRANSPORT_ERRORS as exc:
            return ProtocolError(root_cause_message(exc))

        if self.action.is_recoverable(response):
            return RecoverableError(self.action.status_text(response))
        if self.action.is_unrecoverable(response):
            return UnrecoverableError(self.action.failure_message_for(response))
        return Success(self.action.result(response), response)

    def run(self) -> Any:
        self._info(self.action.start_message())

        while True:
            if self.token.cancelled:
                raise OperationCancelled(
                    "Cancelled before attempt %d" % (self.attempts + 1),
                    context={"attempts": self.attempts},
                )
            self.attempts += 1
            outcome = self.classify()

            if isinstance(outcome, Success):
                self._info(self.action.success_message(outcome.response))
                return outcome.result
            if not is_retryable(outcome):
                raise UnrecoverableRemoteError(self.action.failure_message(outcome.cause), attempts=self.attempts)
            self._handle_failure(outcome.cause)

    def _handle_failure(self, cause: str) -> None:
        retries = self.configuration.retries
        if self.attempts > retries:
            raise RetryBudgetExhausted(self.action.failure_message(cause), attempts=self.attempts)
        self.log.info("%s, re-trying (%d / %d) ...", self.action.failure_message(cause), self.attempts, retries)
        delay = backoff_delay(self.attempts, self.action.basic_backoff_seconds)
        if not self.token.sleep(delay):
            logger.debug("Backoff of %.1fs interrupted", delay)


__all__ = [
    "ActionConfiguration",
    "HttpAction",
    "BaseHttpAction",
    "RetryableAction",
    "DEFAULT_RETRIES",
    "DEFAULT_BASIC_BACKOFF_SECONDS",
    "DEFAULT_TIMEOUTS",
    "TRANSPORT_ERRORS",
]
