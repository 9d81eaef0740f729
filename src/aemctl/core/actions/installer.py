"""Pausing and resuming the JCR installer around a deployment (AEM 6.1+)."""
from __future__ import annotations

import json

import requests

from ..retry import BaseHttpAction

PAUSE_SIGNAL = {
    "installer": {
        "jcr:primaryType": "nt:folder",
        "jcr": {
            "jcr:primaryType": "nt:folder",
            "pauseInstallation": {
                "jcr:primaryType": "nt:folder",
                "paused": {"jcr:primaryType": "nt:folder"},
            },
        },
    }
}


class PauseInstaller(BaseHttpAction):
    """Creates the installer's pause signal folder. A 404 means the feature is unsupported."""

    def perform(self) -> requests.Response:
        return self.session.post(
            self.configuration.url("/system/sling"),
            data={
                ":operation": "import",
                ":contentType": "json",
                ":content": json.dumps(PAUSE_SIGNAL, indent=2),
            },
        )

    def is_recoverable(self, response: requests.Response) -> bool:
        return response.status_code not in (200, 201, 404)

    def is_unrecoverable(self, response: requests.Response) -> bool:
        return False

    def start_message(self) -> str:
        return "Trying to pause the JCR installer..."

    def success_message(self, response: requests.Response) -> str:
        if response.status_code == 404:
            return "Pausing the JCR installer is not supported in this AEM version, continuing."
        return "Successfully paused the JCR installer."

    def failure_message(self, cause: str) -> str:
        return f"Unable to pause the JCR installer: {cause}"

    def failure_message_for(self, response: requests.Response) -> str:
        return f"Unable to pause the JCR installer. AEM responded {self.status_text(response)}."


class ResumeInstaller(BaseHttpAction):
    """Deletes the installer's pause signal.

    Removing the signal restarts the installer synchronously, so even a
    successful deletion often answers 500. The longer base backoff gives the
    installer time to settle before the next attempt.
    """

    basic_backoff_seconds = 20.0

    def perform(self) -> requests.Response:
        return self.session.post(
            self.configuration.url("/system/sling/installer"),
            data={":operation": "delete"},
        )

    def start_message(self) -> str:
        return "Resuming the JCR installer..."

    def success_message(self, response: requests.Response) -> str:
        return "Successfully resumed the JCR installer."

    def failure_message(self, cause: str) -> str:
        return f"Unable to resume the JCR installer: {cause}"

    def failure_message_for(self, response: requests.Response) -> str:
        return f"Unable to resume the JCR installer. AEM responded {self.status_text(response)}."


__all__ = ["PauseInstaller", "ResumeInstaller", "PAUSE_SIGNAL"]
