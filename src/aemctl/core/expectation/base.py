"""Condition polling with a deadline.

An :class:`Expectation` wraps a three-valued check (``fulfill()``) and polls it
every :attr:`Expectation.poll_interval_seconds` until it is fulfilled, becomes
unsatisfiable, or the allotted time has been waited::

    if not process_terminated.wait_up_to(5):
        ...

Two expectations are joined with ``a & b`` (or ``a.and_(b)``). The joined
check evaluates both sides on every poll.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable, Generic, List, Optional, TypeVar

from ..cancellation import CancellationToken

logger = logging.getLogger(__name__)

T = TypeVar("T")

UNITS = {"seconds": 1.0, "minutes": 60.0}

FailureCallback = Callable[[float, str, Optional[T]], None]


class Outcome(Enum):
    RETRY = "retry"
    """Try to fulfill the expectation again."""

    UNSATISFIABLE = "unsatisfiable"
    """The expectation can no longer become fulfilled. Abort."""

    FULFILLED = "fulfilled"


class Expectation(ABC, Generic[T]):
    """A condition that is polled until fulfilled, unsatisfiable or timed out.

    Subclasses implement :meth:`fulfill` and may override :meth:`first_failure`
    (progress logging) and :meth:`failure_context` (diagnostic handed to
    failure callbacks).
    """

    poll_interval_seconds: float = 2.0

    def __init__(self) -> None:
        self._failure_callbacks: List[FailureCallback] = []
        self._unsatisfiable = False

    @abstractmethod
    def fulfill(self) -> Outcome:
        ...

    def first_failure(self) -> None:
        """Called once per wait, on the first RETRY outcome."""

    def failure_context(self) -> Optional[T]:
        return None

    def on_failure(self, callback: FailureCallback) -> "Expectation[T]":
        """Register ``callback(amount, unit, failure_context)`` for unsuccessful waits."""
        self._failure_callbacks.append(callback)
        return self

    def failed(self, amount: float, unit: str) -> None:
        context = self.failure_context()
        for callback in self._failure_callbacks:
            callback(amount, unit, context)

    def evaluate(self) -> Outcome:
        """Evaluate once. UNSATISFIABLE is terminal for this instance."""
        if self._unsatisfiable:
            return Outcome.UNSATISFIABLE
        outcome = self.fulfill()
        if outcome is Outcome.UNSATISFIABLE:
            self._unsatisfiable = True
        return outcome

    def wait_up_to(
        self,
        amount: float,
        unit: str = "seconds",
        *,
        token: Optional[CancellationToken] = None,
    ) -> bool:
        """Poll until fulfilled. Returns False on timeout, unsatisfiability or cancellation."""
        try:
            limit = amount * UNITS[unit]
        except KeyError:
            raise ValueError(f"Unsupported time unit {unit!r}, expected one of {sorted(UNITS)}") from None
        token = token or CancellationToken()

        waited = 0.0
        outcome: Optional[Outcome] = None
        while waited < limit:
            outcome = self.evaluate()
            if outcome is not Outcome.RETRY:
                break
            if waited == 0:
                self.first_failure()
            if not token.sleep(self.poll_interval_seconds):
                logger.debug("Stopped waiting after %.1fs: cancelled", waited)
                break
            waited += self.poll_interval_seconds

        succeeded = outcome is Outcome.FULFILLED
        if not succeeded:
            self.failed(amount, unit)
        return succeeded

    within = wait_up_to

    def and_(self, other: "Expectation") -> "Expectation":
        return Conjunction(self, other)

    def __and__(self, other: "Expectation") -> "Expectation":
        return self.and_(other)


class Conjunction(Expectation[T]):
    """Both expectations must be fulfilled. Neither side is short-circuited."""

    def __init__(self, first: Expectation, second: Expectation) -> None:
        super().__init__()
        self.first = first
        self.second = second

    def fulfill(self) -> Outcome:
        first, second = self.first.evaluate(), self.second.evaluate()
        if first is Outcome.FULFILLED and second is Outcome.FULFILLED:
            return Outcome.FULFILLED
        if Outcome.UNSATISFIABLE in (first, second):
            return Outcome.UNSATISFIABLE
        return Outcome.RETRY

    def first_failure(self) -> None:
        self.first.first_failure()
        self.second.first_failure()

    def failure_context(self) -> Optional[T]:
        context = self.first.failure_context()
        return context if context is not None else self.second.failure_context()


class ConditionExpectation(Expectation[T]):
    """Adapts a plain callable returning an :class:`Outcome` (or a bool)."""

    def __init__(self, condition: Callable[[], object], description: str = "") -> None:
        super().__init__()
        self.condition = condition
        self.description = description

    def fulfill(self) -> Outcome:
        result = self.condition()
        if isinstance(result, Outcome):
            return result
        return Outcome.FULFILLED if result else Outcome.RETRY

    def first_failure(self) -> None:
        if self.description:
            logger.info("Waiting for %s...", self.description)


def expect(condition: Callable[[], object], description: str = "") -> Expectation:
    return ConditionExpectation(condition, description)


__all__ = ["Outcome", "Expectation", "Conjunction", "ConditionExpectation", "expect", "UNITS"]
