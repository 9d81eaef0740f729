"""Cooperative cancellation for retry loops, pollers and stream followers.

Every suspension point in aemctl (retry backoff, expectation poll interval,
follower idle wait) sleeps through a :class:`CancellationToken`. Cancelling a
token wakes all of its sleepers and every token derived from it via
:meth:`CancellationToken.child`, so a whole operation tree can be stopped at
once.
"""
from __future__ import annotations

import threading
import weakref


class CancellationToken:
    """A cancellable, shareable sleep primitive backed by :class:`threading.Event`."""

    def __init__(self, parent: CancellationToken | None = None) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._children: weakref.WeakSet[CancellationToken] = weakref.WeakSet()
        if parent is not None:
            parent._adopt(self)

    def _adopt(self, child: CancellationToken) -> None:
        with self._lock:
            self._children.add(child)
            cancelled = self._event.is_set()
        if cancelled:
            child.cancel()

    def child(self) -> CancellationToken:
        """Derive a token that is cancelled together with this one."""
        return type(self)(parent=self)

    def cancel(self) -> None:
        with self._lock:
            self._event.set()
            children = list(self._children)
        for child in children:
            child.cancel()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def sleep(self, seconds: float) -> bool:
        """Sleep up to ``seconds``.

        Returns:
            True if the full duration elapsed, False if woken by cancellation.
        """
        if seconds <= 0:
            return not self._event.is_set()
        return not self._event.wait(seconds)


def never_cancelled() -> CancellationToken:
    """Return a fresh token nobody else holds a reference to."""
    return CancellationToken()


__all__ = ["CancellationToken", "never_cancelled"]
