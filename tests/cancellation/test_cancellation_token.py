from __future__ import annotations

import threading
import time

from aemctl.core.cancellation import CancellationToken, never_cancelled


def test_sleep_runs_to_completion() -> None:
    started = time.monotonic()

    assert CancellationToken().sleep(0.05) is True
    assert time.monotonic() - started >= 0.04


def test_cancel_wakes_sleepers() -> None:
    token = CancellationToken()
    results = []
    thread = threading.Thread(target=lambda: results.append(token.sleep(30)))
    thread.start()

    time.sleep(0.05)
    token.cancel()
    thread.join(timeout=5)

    assert results == [False]
    assert token.cancelled


def test_cancellation_cascades_to_children_only() -> None:
    parent = CancellationToken()
    child = parent.child()
    grandchild = child.child()

    child.cancel()

    assert grandchild.cancelled
    assert not parent.cancelled

    parent.cancel()
    assert parent.child().cancelled


def test_zero_sleep_reports_state() -> None:
    token = CancellationToken()
    assert token.sleep(0) is True
    token.cancel()
    assert token.sleep(0) is False


def test_never_cancelled() -> None:
    assert never_cancelled().cancelled is False
