"""HTTP client plumbing."""
from __future__ import annotations

from .session import DEFAULT_TIMEOUTS, TimeoutSession, Timeouts, create_session

__all__ = ["DEFAULT_TIMEOUTS", "TimeoutSession", "Timeouts", "create_session"]
