from __future__ import annotations

from typing import List, Optional

import pytest

from aemctl.core.cancellation import CancellationToken
from aemctl.core.expectation import (
    Expectation,
    Outcome,
    ProcessesTerminated,
    expect,
)
from helpers.clock import RecordingToken


class Counting(Expectation[str]):
    """Answers a scripted sequence of outcomes, repeating the last one."""

    poll_interval_seconds = 1.0

    def __init__(self, *outcomes: Outcome, context: Optional[str] = None) -> None:
        super().__init__()
        self.outcomes = list(outcomes)
        self.evaluations = 0
        self.first_failures = 0
        self.context = context

    def fulfill(self) -> Outcome:
        index = min(self.evaluations, len(self.outcomes) - 1)
        self.evaluations += 1
        return self.outcomes[index]

    def first_failure(self) -> None:
        self.first_failures += 1

    def failure_context(self) -> Optional[str]:
        return self.context


def test_fulfilled_after_some_retries() -> None:
    token = RecordingToken()
    expectation = Counting(Outcome.RETRY, Outcome.RETRY, Outcome.FULFILLED)

    assert expectation.wait_up_to(10, token=token) is True
    assert expectation.evaluations == 3
    assert token.sleeps == [1.0, 1.0]
    assert expectation.first_failures == 1


def test_timeout_invokes_failure_callbacks_once() -> None:
    calls: List[tuple] = []
    expectation = Counting(Outcome.RETRY, context="still busy").on_failure(
        lambda amount, unit, ctx: calls.append((amount, unit, ctx))
    )

    assert expectation.wait_up_to(5, token=RecordingToken()) is False

    assert calls == [(5, "seconds", "still busy")]
    assert expectation.evaluations == 5
    assert expectation.first_failures == 1


def test_minutes_are_converted_to_poll_rounds() -> None:
    token = RecordingToken()
    expectation = Counting(Outcome.RETRY)

    assert expectation.within(1, "minutes", token=token) is False
    assert expectation.evaluations == 60
    assert token.total_slept == 60


def test_unknown_unit_is_rejected() -> None:
    with pytest.raises(ValueError):
        Counting(Outcome.FULFILLED).wait_up_to(1, "hours")


def test_unsatisfiable_aborts_immediately() -> None:
    token = RecordingToken()
    failures: List[str] = []
    expectation = Counting(Outcome.UNSATISFIABLE).on_failure(lambda *_: failures.append("x"))

    assert expectation.wait_up_to(30, token=token) is False
    assert expectation.evaluations == 1
    assert token.sleeps == []
    assert failures == ["x"]


def test_unsatisfiable_is_terminal_for_the_instance() -> None:
    expectation = Counting(Outcome.UNSATISFIABLE, Outcome.FULFILLED)

    assert expectation.wait_up_to(3, token=RecordingToken()) is False
    assert expectation.wait_up_to(3, token=RecordingToken()) is False
    assert expectation.evaluations == 1


def test_conjunction_evaluates_both_sides_and_fails_on_first_poll() -> None:
    fulfilled = Counting(Outcome.FULFILLED)
    unsatisfiable = Counting(Outcome.UNSATISFIABLE)
    token = RecordingToken()

    assert (fulfilled & unsatisfiable).wait_up_to(10, token=token) is False

    assert fulfilled.evaluations == 1
    assert unsatisfiable.evaluations == 1
    assert token.sleeps == []


def test_conjunction_does_not_short_circuit_a_failing_first_side() -> None:
    unsatisfiable = Counting(Outcome.UNSATISFIABLE)
    retrying = Counting(Outcome.RETRY)

    assert unsatisfiable.and_(retrying).wait_up_to(10, token=RecordingToken()) is False

    assert unsatisfiable.evaluations == 1
    assert retrying.evaluations == 1


def test_conjunction_needs_both_sides_fulfilled() -> None:
    first = Counting(Outcome.RETRY, Outcome.FULFILLED)
    second = Counting(Outcome.RETRY, Outcome.RETRY, Outcome.FULFILLED)

    assert (first & second).wait_up_to(10, token=RecordingToken()) is True
    assert second.evaluations == 3


def test_zero_wait_never_evaluates() -> None:
    expectation = Counting(Outcome.FULFILLED)

    assert expectation.wait_up_to(0, token=RecordingToken()) is False
    assert expectation.evaluations == 0


def test_cancellation_ends_the_wait() -> None:
    token = RecordingToken(cancel_after=2)
    expectation = Counting(Outcome.RETRY)

    assert expectation.wait_up_to(100, token=token) is False
    assert expectation.evaluations == 2


def test_already_cancelled_token_returns_promptly() -> None:
    token = CancellationToken()
    token.cancel()
    expectation = Counting(Outcome.RETRY)

    assert expectation.wait_up_to(100, token=token) is False
    assert expectation.evaluations == 1


def test_condition_callables_accept_booleans() -> None:
    answers = iter([False, False, True])

    assert expect(lambda: next(answers), "the answer").wait_up_to(5, token=RecordingToken()) is True


def test_processes_terminated_reports_survivors() -> None:
    seen: List[object] = []
    listings = iter([[4711, 4712], [4712], [4712]])
    expectation = ProcessesTerminated(lambda: next(listings)).on_failure(lambda a, u, ctx: seen.append(ctx))
    expectation.poll_interval_seconds = 1.0

    assert expectation.wait_up_to(3, token=RecordingToken()) is False
    assert seen == [[4712]]


def test_processes_terminated_fulfilled_when_none_remain() -> None:
    expectation = ProcessesTerminated(lambda: [])

    assert expectation.wait_up_to(1, token=RecordingToken()) is True
    assert expectation.failure_context() is None
