"""A shared, unbounded pool of follower threads."""
from __future__ import annotations

import atexit
import logging
import threading
from typing import List, Optional

from ..cancellation import CancellationToken
from .follower import Follower

logger = logging.getLogger(__name__)


class FollowerPool:
    """Runs each follower on its own daemon thread.

    ``shutdown_now()`` cancels every follower. With ``keep_following``, the
    followers outlive the calling operation and are only cancelled when the
    interpreter exits (or on an explicit ``shutdown_now()``). The exit hook is
    registered with the first follower and released once none is left.
    """

    def __init__(self, token: Optional[CancellationToken] = None, *, keep_following: bool = False) -> None:
        self.token = token.child() if token is not None else CancellationToken()
        self.keep_following = keep_following
        self._threads: List[threading.Thread] = []
        self._lock = threading.Lock()
        self._exit_hook = False

    def submit(self, follower: Follower) -> threading.Thread:
        thread = threading.Thread(
            target=follower.run,
            args=(self.token.child(),),
            name=f"aemctl-follow-{follower.name}",
            daemon=True,
        )
        with self._lock:
            self._threads = [t for t in self._threads if t.is_alive()]
            self._threads.append(thread)
            if self.keep_following and not self._exit_hook:
                atexit.register(self._cancel_at_exit)
                self._exit_hook = True
        thread.start()
        return thread

    @property
    def active(self) -> int:
        with self._lock:
            return sum(1 for t in self._threads if t.is_alive())

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for every follower to finish. Returns True if all did."""
        with self._lock:
            threads = list(self._threads)
        for thread in threads:
            thread.join(timeout)
        finished = all(not t.is_alive() for t in threads)
        if finished:
            self._release_exit_hook()
        return finished

    def shutdown_now(self) -> None:
        if not self.token.cancelled:
            logger.debug("Stopping %d follower(s)", self.active)
        self.token.cancel()
        self._release_exit_hook()

    def close(self) -> None:
        """End of the owning operation: stop followers unless they should keep following."""
        if not self.keep_following:
            self.shutdown_now()

    def _cancel_at_exit(self) -> None:
        self.token.cancel()

    def _release_exit_hook(self) -> None:
        with self._lock:
            if self._exit_hook:
                atexit.unregister(self._cancel_at_exit)
                self._exit_hook = False

    def __enter__(self) -> "FollowerPool":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


__all__ = ["FollowerPool"]
