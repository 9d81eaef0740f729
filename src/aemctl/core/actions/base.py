"""Shared plumbing for package manager actions."""
from __future__ import annotations

from typing import Optional

import requests

from ..cancellation import CancellationToken
from ..exceptions import RemoteActionError, TransportFailure
from ..expectation import package_manager_api_is_available
from ..retry import ActionConfiguration, BaseHttpAction


class PackageManagerAction(BaseHttpAction):
    """An action that first waits for the package manager API to answer.

    Installing packages may restart the framework, during which the API is
    unavailable; the wait is bounded by the total backoff time.
    """

    verb = "use"

    def __init__(
        self,
        configuration: ActionConfiguration,
        session: Optional[requests.Session] = None,
        token: Optional[CancellationToken] = None,
    ) -> None:
        super().__init__(configuration, session)
        self.token = token or CancellationToken()

    def subject(self) -> str:
        raise NotImplementedError

    def await_package_manager(self) -> None:
        seconds = self.total_backoff_seconds
        available = package_manager_api_is_available(
            self.configuration.server_uri, self.session, self.configuration.log
        ).wait_up_to(seconds, token=self.token)
        if self.token.cancelled:
            raise TransportFailure(
                f"Interrupted while waiting for the package manager API to {self.verb} {self.subject()}"
            )
        if not available:
            raise RemoteActionError(
                f"Unable to {self.verb} {self.subject()} - the package manager API was unavailable for {seconds:g} seconds."
            )


__all__ = ["PackageManagerAction"]
