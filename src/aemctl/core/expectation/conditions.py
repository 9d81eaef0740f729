"""Process-table expectations."""
from __future__ import annotations

from typing import Callable, List, Optional

from .base import Expectation, Outcome


class ProcessesTerminated(Expectation[List[int]]):
    """Fulfilled once ``find_pids()`` reports no matching process."""

    def __init__(self, find_pids: Callable[[], List[int]]) -> None:
        super().__init__()
        self.find_pids = find_pids
        self._remaining: List[int] = []

    def fulfill(self) -> Outcome:
        self._remaining = list(self.find_pids())
        return Outcome.FULFILLED if not self._remaining else Outcome.RETRY

    def failure_context(self) -> Optional[List[int]]:
        return list(self._remaining) or None


__all__ = ["ProcessesTerminated"]
