from __future__ import annotations

from typing import Any, Dict, Mapping


class AemctlError(Exception):
    """Base exception for aemctl."""

    context: Dict[str, Any]

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        if context is not None:
            # Store a shallow copy to avoid accidental mutation.
            self.context = dict(context)
        else:
            self.context = {}

    def to_json_error(self) -> Dict[str, Any]:
        """Return a JSON-serializable error payload."""
        return {
            "message": str(self),
            "code": self.__class__.__name__,
            "context": self.context,
        }


class ConfigurationError(AemctlError, ValueError):
    """Raised when the layered configuration is invalid."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        AemctlError.__init__(self, message, context=context)
        ValueError.__init__(self, message)


class TransportFailure(AemctlError):
    """A network, IO or interruption error while performing one attempt."""

    def __init__(self, cause: str, *, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(cause, context=context)
        self.cause = cause


class RemoteActionError(AemctlError, RuntimeError):
    """Terminal failure of a remote action. The message is the action's diagnostic."""

    def __init__(
        self,
        message: str,
        *,
        attempts: int | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        ctx = dict(context or {})
        if attempts is not None:
            ctx["attempts"] = attempts
        AemctlError.__init__(self, message, context=ctx)
        RuntimeError.__init__(self, message)
        self.attempts = attempts


class UnrecoverableRemoteError(RemoteActionError):
    """The remote side definitively rejected the request; retrying cannot help."""


class RetryBudgetExhausted(RemoteActionError):
    """A recoverable error persisted past the configured number of retries."""


class SupervisionFailure(AemctlError, RuntimeError):
    """A process could not be started, or could neither be stopped nor killed."""

    def __init__(
        self,
        message: str,
        *,
        pids: list[int] | None = None,
        exit_code: int | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        ctx = dict(context or {})
        if pids:
            ctx["pids"] = list(pids)
        if exit_code is not None:
            ctx["exit_code"] = exit_code
        AemctlError.__init__(self, message, context=ctx)
        RuntimeError.__init__(self, message)
        self.pids = list(pids or [])
        self.exit_code = exit_code


class InitializationError(AemctlError, RuntimeError):
    """The instance did not finish initializing, or did not stay stable, in time."""

    def __init__(
        self,
        message: str,
        *,
        pending_bundles: list[str] | None = None,
        service_events: list[str] | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        ctx = dict(context or {})
        if pending_bundles:
            ctx["pending_bundles"] = list(pending_bundles)
        if service_events:
            ctx["service_events"] = list(service_events)
        AemctlError.__init__(self, message, context=ctx)
        RuntimeError.__init__(self, message)
        self.pending_bundles = list(pending_bundles or [])
        self.service_events = list(service_events or [])


class OperationCancelled(AemctlError):
    """Raised when a cancellation token fires before new work could begin."""


__all__ = [
    "AemctlError",
    "ConfigurationError",
    "TransportFailure",
    "RemoteActionError",
    "UnrecoverableRemoteError",
    "RetryBudgetExhausted",
    "SupervisionFailure",
    "InitializationError",
    "OperationCancelled",
]
