"""Retryable remote actions: backoff, outcome classification, the retry loop."""
from __future__ import annotations

from .action import (
    DEFAULT_BASIC_BACKOFF_SECONDS,
    DEFAULT_RETRIES,
    DEFAULT_TIMEOUTS,
    TRANSPORT_ERRORS,
    ActionConfiguration,
    BaseHttpAction,
    HttpAction,
    RetryableAction,
)
from .backoff import backoff_delay, total_backoff_bound
from .outcome import Outcome, ProtocolError, RecoverableError, Success, UnrecoverableError, is_retryable

__all__ = [
    "ActionConfiguration",
    "BaseHttpAction",
    "HttpAction",
    "RetryableAction",
    "DEFAULT_BASIC_BACKOFF_SECONDS",
    "DEFAULT_RETRIES",
    "DEFAULT_TIMEOUTS",
    "TRANSPORT_ERRORS",
    "backoff_delay",
    "total_backoff_bound",
    "Outcome",
    "Success",
    "RecoverableError",
    "UnrecoverableError",
    "ProtocolError",
    "is_retryable",
]
