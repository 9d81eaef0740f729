from __future__ import annotations

import logging
import re
from dataclasses import replace

import pytest

from aemctl.core.exceptions import InitializationError
from aemctl.core.instance import (
    InstanceSettings,
    InstanceStatus,
    await_initialization,
    ensure_stable,
    pending_bundles,
    service_events_since,
)
from helpers.clock import RecordingToken
from helpers.http import ScriptedSession, make_response

NOW = 1_700_000_000.0

BUNDLES = {
    "data": [
        {"symbolicName": "org.apache.sling.api", "state": "Active", "stateRaw": 32, "fragment": False},
        {"symbolicName": "com.adobe.granite.crypto.file", "state": "Installed", "stateRaw": 2, "fragment": False},
        {"symbolicName": "org.apache.sling.fragment.ws", "state": "Fragment", "stateRaw": 4, "fragment": True},
        {"symbolicName": "com.example.broken.fragment", "state": "Installed", "stateRaw": 2, "fragment": True},
    ]
}

ALL_ACTIVE = {"data": [BUNDLES["data"][0], BUNDLES["data"][2]]}

EVENTS = {
    "data": [
        {
            "received": int((NOW - 2) * 1000),
            "topic": "org/osgi/framework/ServiceEvent/REGISTERED",
            "info": "Service [com.example.Service] registered",
        },
        {
            "received": int((NOW - 60) * 1000),
            "topic": "org/osgi/framework/ServiceEvent/UNREGISTERING",
            "info": "Service [com.example.Old] unregistering",
        },
        {
            "received": int((NOW - 1) * 1000),
            "topic": "org/osgi/framework/BundleEvent/STARTED",
            "info": "Bundle started",
        },
    ]
}

NO_EVENTS = {"data": []}


class Clock:
    """Monotonic time that only moves when the token sleeps."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class ClockedToken(RecordingToken):
    def __init__(self, clock: Clock) -> None:
        super().__init__()
        self.clock = clock

    def sleep(self, seconds: float) -> bool:
        self.clock.now += seconds
        return super().sleep(seconds)


@pytest.fixture
def settings() -> InstanceSettings:
    return InstanceSettings(
        init_wait_minutes=0.1,
        init_grace_seconds=5,
        stable_seconds=4,
        log=logging.getLogger("aemctl.tests.instance"),
    )


def _status(settings: InstanceSettings, bundles, events) -> InstanceStatus:
    session = ScriptedSession()
    session.script("GET", "/system/console/bundles.json", *bundles[:-1], default=bundles[-1])
    session.script("GET", "/system/console/events.json", default=events)
    return InstanceStatus(settings, session, clock=lambda: NOW)


def test_pending_bundles_ignore_active_bundles_and_resolved_fragments() -> None:
    assert pending_bundles(BUNDLES) == [
        "com.adobe.granite.crypto.file, state: Installed",
        "com.example.broken.fragment, state: Installed",
    ]


def test_ignored_bundles_match_the_whole_symbolic_name() -> None:
    ignore = [re.compile(r"com\.adobe\.granite\..*"), re.compile(r"broken")]

    assert pending_bundles(BUNDLES, ignore) == ["com.example.broken.fragment, state: Installed"]


def test_only_recent_service_events_count() -> None:
    assert service_events_since(EVENTS, (NOW - 5) * 1000) == ["Service [com.example.Service] registered"]


def test_initialized_once_bundles_are_active_and_services_settled(settings: InstanceSettings) -> None:
    token = RecordingToken()
    status = _status(
        settings,
        [make_response(json_body=BUNDLES), make_response(json_body=ALL_ACTIVE)],
        make_response(json_body=NO_EVENTS),
    )

    await_initialization(settings, token=token, status=status)

    assert token.sleeps == [2.0]


def test_failed_initialization_lists_bundles_and_services(settings: InstanceSettings) -> None:
    status = _status(settings, [make_response(json_body=BUNDLES)], make_response(json_body=EVENTS))

    with pytest.raises(InitializationError) as excinfo:
        await_initialization(settings, token=RecordingToken(), status=status)

    error = excinfo.value
    assert str(error) == (
        "The following bundles failed to initialize within 0.1 minutes:\n"
        "com.adobe.granite.crypto.file, state: Installed\n"
        "com.example.broken.fragment, state: Installed\n"
        "The following service changes have been detected in the last 5 seconds:\n"
        "Service [com.example.Service] registered\n"
    )
    assert error.pending_bundles == [
        "com.adobe.granite.crypto.file, state: Installed",
        "com.example.broken.fragment, state: Installed",
    ]
    assert error.service_events == ["Service [com.example.Service] registered"]


def test_unreachable_console_is_reported(settings: InstanceSettings) -> None:
    status = _status(settings, [make_response(503, reason="Service Unavailable")], make_response(json_body=NO_EVENTS))

    with pytest.raises(InitializationError, match="Unable to retrieve the bundle states"):
        await_initialization(settings, token=RecordingToken(), status=status)


def test_ignore_patterns_are_logged(settings: InstanceSettings, caplog: pytest.LogCaptureFixture) -> None:
    settings = replace(settings, ignore_bundles=("com\\.adobe\\..*",))
    status = _status(settings, [make_response(json_body=BUNDLES)], make_response(json_body=NO_EVENTS))

    with caplog.at_level(logging.INFO, logger="aemctl.tests.instance"), pytest.raises(InitializationError):
        await_initialization(settings, token=RecordingToken(), status=status)

    assert "- com\\.adobe\\..*" in caplog.messages


def test_ensure_stable_requires_uninterrupted_initialized_state(settings: InstanceSettings) -> None:
    clock = Clock()
    token = ClockedToken(clock)
    status = _status(settings, [make_response(json_body=ALL_ACTIVE)], make_response(json_body=NO_EVENTS))

    ensure_stable(settings, token=token, status=status, clock=clock)

    assert clock.now == 4.0


def test_ensure_stable_gives_up_at_the_initialization_deadline(settings: InstanceSettings) -> None:
    clock = Clock()
    token = ClockedToken(clock)
    status = _status(
        settings,
        [make_response(json_body=ALL_ACTIVE), make_response(json_body=BUNDLES)],
        make_response(json_body=NO_EVENTS),
    )

    with pytest.raises(InitializationError, match="stable for 4 seconds"):
        ensure_stable(settings, token=token, status=status, clock=clock)

    assert clock.now <= settings.init_wait_minutes * 60
