"""Per-attempt classification of a remote action."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union


@dataclass(frozen=True)
class Success:
    result: Any = None
    response: Any = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class RecoverableError:
    """The remote side answered, but in a way worth re-trying."""

    cause: str


@dataclass(frozen=True)
class UnrecoverableError:
    """The remote side definitively rejected the request."""

    cause: str


@dataclass(frozen=True)
class ProtocolError:
    """Network, IO or interruption failure during ``perform()``; retried like RecoverableError."""

    cause: str


Outcome = Union[Success, RecoverableError, UnrecoverableError, ProtocolError]


def is_retryable(outcome: Outcome) -> bool:
    return isinstance(outcome, (RecoverableError, ProtocolError))


__all__ = [
    "Success",
    "RecoverableError",
    "UnrecoverableError",
    "ProtocolError",
    "Outcome",
    "is_retryable",
]
