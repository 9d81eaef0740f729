from __future__ import annotations

from typing import List, Optional

from aemctl.core.cancellation import CancellationToken


class RecordingToken(CancellationToken):
    """Mockable clock: records requested sleeps and returns immediately.

    With ``cancel_after=n`` the token cancels itself on the n-th sleep.
    """

    def __init__(self, parent: Optional[CancellationToken] = None, *, cancel_after: Optional[int] = None) -> None:
        super().__init__(parent)
        self.sleeps: List[float] = []
        self.cancel_after = cancel_after

    def sleep(self, seconds: float) -> bool:
        self.sleeps.append(seconds)
        if self.cancel_after is not None and len(self.sleeps) >= self.cancel_after:
            self.cancel()
        return not self.cancelled

    @property
    def total_slept(self) -> float:
        return sum(self.sleeps)
