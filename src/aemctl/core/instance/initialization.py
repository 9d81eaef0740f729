"""Waiting for bundles and services of a running instance to settle."""
from __future__ import annotations

import logging
import re
import time
from typing import Any, Callable, Dict, List, Optional, Pattern, Sequence

import requests

from ..cancellation import CancellationToken
from ..exceptions import InitializationError, OperationCancelled
from ..expectation import Expectation, Outcome
from .settings import InstanceSettings

logger = logging.getLogger(__name__)

# OSGi bundle states.
BUNDLE_ACTIVE = 32
BUNDLE_RESOLVED = 4

# Event admin topics of service changes start with this namespace.
SERVICE_EVENT_TOPIC = "org/osgi/framework/ServiceEvent/"

STABILITY_CHECK_SECONDS = 2.0


def is_pending(bundle: Dict[str, Any], ignore: Sequence[Pattern[str]] = ()) -> bool:
    """A bundle is pending unless it is ignored, active, or a resolved fragment."""
    name = str(bundle["symbolicName"])
    if any(p.fullmatch(name) for p in ignore):
        logger.debug("Ignoring inactive bundle %s for initialization check.", name)
        return False
    state = int(bundle["stateRaw"])
    if bundle.get("fragment"):
        return state != BUNDLE_RESOLVED
    return state != BUNDLE_ACTIVE


def pending_bundles(bundles: Dict[str, Any], ignore: Sequence[Pattern[str]] = ()) -> List[str]:
    """``"<symbolic name>, state: <state>"`` for each pending bundle of a bundles.json payload."""
    return [
        f"{bundle['symbolicName']}, state: {bundle.get('state')}"
        for bundle in bundles["data"]
        if is_pending(bundle, ignore)
    ]


def service_events_since(events: Dict[str, Any], since_millis: float) -> List[str]:
    """Info of service events received at or after ``since_millis`` in an events.json payload."""
    return [
        str(event.get("info", ""))
        for event in events["data"]
        if int(event["received"]) >= since_millis and str(event["topic"]).startswith(SERVICE_EVENT_TOPIC)
    ]


class InstanceStatus:
    """Reads bundle and event state from the web console."""

    def __init__(
        self,
        settings: InstanceSettings,
        session: Optional[requests.Session] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.settings = settings
        self.session = session or settings.session()
        self.clock = clock
        self.ignore = [re.compile(p) for p in settings.ignore_bundles]

    def _json(self, path: str) -> Dict[str, Any]:
        response = self.session.get(self.settings.url(path))
        response.raise_for_status()
        body = response.json()
        if not isinstance(body, dict):
            raise ValueError(f"Unexpected JSON from {path}")
        return body

    def since_millis(self) -> float:
        return (self.clock() - self.settings.init_grace_seconds) * 1000

    def pending_bundles(self) -> List[str]:
        found = pending_bundles(self._json("/system/console/bundles.json"), self.ignore)
        for info in found:
            logger.debug("Pending bundle info: %s", info)
        return found

    def recent_service_events(self) -> List[str]:
        return service_events_since(self._json("/system/console/events.json"), self.since_millis())


# Malformed payloads surface as one of these while the console is still starting.
STATUS_ERRORS = (requests.RequestException, ValueError, KeyError, TypeError)


class InstanceInitialized(Expectation[Exception]):
    """No pending bundles and no service changes within the grace period."""

    def __init__(self, status: InstanceStatus) -> None:
        super().__init__()
        self.status = status
        self._last_failure: Optional[Exception] = None

    def fulfill(self) -> Outcome:
        try:
            if self.status.pending_bundles() or self.status.recent_service_events():
                return Outcome.RETRY
            return Outcome.FULFILLED
        except STATUS_ERRORS as exc:
            self._last_failure = exc
            return Outcome.RETRY

    def failure_context(self) -> Optional[Exception]:
        return self._last_failure


def _pending_initializations_error(status: InstanceStatus) -> InitializationError:
    settings = status.settings
    try:
        bundles = status.pending_bundles()
    except STATUS_ERRORS as exc:
        return InitializationError(f"Unable to retrieve the bundle states: {exc}")
    try:
        events = status.recent_service_events()
    except STATUS_ERRORS as exc:
        return InitializationError(f"Unable to retrieve the recent events: {exc}")

    message = ""
    if bundles:
        message += f"The following bundles failed to initialize within {settings.init_wait_minutes:g} minutes:\n"
        message += "".join(f"{info}\n" for info in bundles)
    if events:
        message += (
            f"The following service changes have been detected in the last "
            f"{settings.init_grace_seconds:g} seconds:\n"
        )
        message += "".join(f"{info}\n" for info in events)
    if not message:
        message = f"AEM did not initialize within {settings.init_wait_minutes:g} minutes."
    return InitializationError(message, pending_bundles=bundles, service_events=events)


def expect_initialized(
    status: InstanceStatus, *, token: Optional[CancellationToken] = None, log: Optional[logging.Logger] = None
) -> bool:
    log = log or logger

    def report(amount: float, unit: str, last_failure: Optional[Exception]) -> None:
        last = f" Last issue: {last_failure}." if last_failure is not None else ""
        log.info("AEM did not initialize within %g %s.%s", amount, unit, last)

    return (
        InstanceInitialized(status)
        .on_failure(report)
        .wait_up_to(status.settings.init_wait_minutes, "minutes", token=token)
    )


def await_initialization(
    settings: InstanceSettings,
    *,
    session: Optional[requests.Session] = None,
    token: Optional[CancellationToken] = None,
    status: Optional[InstanceStatus] = None,
) -> None:
    """Wait until all bundles are active and services have settled.

    Raises:
        InitializationError: listing pending bundles and recent service changes.
    """
    log = settings.log
    status = status or InstanceStatus(settings, session)
    log.info(
        "Waiting up to %g minutes for all bundles and components to finish initialization...",
        settings.init_wait_minutes,
    )
    if settings.ignore_bundles:
        log.info("Ignoring bundles with symbolic names matching: ")
        for pattern in settings.ignore_bundles:
            log.info("- %s", pattern)

    if not expect_initialized(status, token=token, log=log):
        raise _pending_initializations_error(status)
    log.info("All bundles and components are initialized.")


def ensure_stable(
    settings: InstanceSettings,
    *,
    session: Optional[requests.Session] = None,
    token: Optional[CancellationToken] = None,
    status: Optional[InstanceStatus] = None,
    clock: Callable[[], float] = time.monotonic,
) -> None:
    """Require ``stable_seconds`` of uninterrupted initialized state.

    Shares the initialization wait time with :func:`await_initialization`.
    """
    log = settings.log
    token = token or CancellationToken()
    status = status or InstanceStatus(settings, session)
    deadline = clock() + settings.init_wait_minutes * 60

    await_initialization(settings, token=token, status=status)

    stable_since: Optional[float] = clock()
    while True:
        now = clock()
        if deadline - now < STABILITY_CHECK_SECONDS:
            raise InitializationError(
                f"Exceeded the initialization wait time of {settings.init_wait_minutes:g} minutes when waiting "
                f"for AEM to be stable for {settings.stable_seconds:g} seconds."
            )
        if stable_since is not None and now - stable_since >= settings.stable_seconds:
            log.info("AEM has been stable for %g seconds, continuing.", settings.stable_seconds)
            return

        if InstanceInitialized(status).wait_up_to(STABILITY_CHECK_SECONDS, token=token):
            if stable_since is None:
                stable_since = clock()
            if not token.sleep(STABILITY_CHECK_SECONDS):
                raise OperationCancelled("Cancelled while waiting for AEM to be stable")
        else:
            if token.cancelled:
                raise OperationCancelled("Cancelled while waiting for AEM to be stable")
            stable_since = None


__all__ = [
    "BUNDLE_ACTIVE",
    "BUNDLE_RESOLVED",
    "SERVICE_EVENT_TOPIC",
    "InstanceStatus",
    "InstanceInitialized",
    "is_pending",
    "pending_bundles",
    "service_events_since",
    "expect_initialized",
    "await_initialization",
    "ensure_stable",
]
