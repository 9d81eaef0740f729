from __future__ import annotations

import re
from pathlib import Path
from typing import List, Optional, Tuple

import requests

from ..cancellation import CancellationToken
from ..retry import ActionConfiguration
from .base import PackageManagerAction

ERROR_ENTRY_PATTERN = re.compile(r"<b>E</b>&nbsp;([^ ]+) \((.+)\)</span>")
INSTALLATION_FINISHED_MARKER = "Package imported"
INSTALLATION_ERRORS_MARKER = "with errors"


def extract_error_entries(body: str) -> List[Tuple[str, str]]:
    """``(path, message)`` pairs of the error lines in a package manager console response."""
    return ERROR_ENTRY_PATTERN.findall(body or "")


class InstallPackage(PackageManagerAction):
    """Installs an uploaded package, optionally with its subpackages."""

    verb = "install"

    def __init__(
        self,
        configuration: ActionConfiguration,
        file: Path,
        package_path: str,
        *,
        subpackages: bool = True,
        save_threshold: int = 100000,
        session: Optional[requests.Session] = None,
        token: Optional[CancellationToken] = None,
    ) -> None:
        super().__init__(configuration, session, token)
        self.file = Path(file)
        self.package_path = package_path
        self.subpackages = subpackages
        self.save_threshold = save_threshold

    def subject(self) -> str:
        return str(self.file)

    def perform(self) -> requests.Response:
        self.await_package_manager()
        return self.session.post(
            self.configuration.url("/crx/packmgr/service/console.html" + self.package_path),
            params={"cmd": "install"},
            data={
                "autosave": str(self.save_threshold),
                "recursive": "true" if self.subpackages else "false",
            },
        )

    def is_unrecoverable(self, response: requests.Response) -> bool:
        body = response.text
        return not body or INSTALLATION_ERRORS_MARKER in body or INSTALLATION_FINISHED_MARKER not in body

    def start_message(self) -> str:
        return f"Installing {self.file}" + (" and its subpackages, if any..." if self.subpackages else "...")

    def success_message(self, response: requests.Response) -> str:
        return f"Successfully installed {self.file}."

    def failure_message(self, cause: str) -> str:
        return f"Failed to install {self.file}, AEM responded: {cause}"

    def failure_message_for(self, response: requests.Response) -> str:
        entries = extract_error_entries(response.text)
        if not entries:
            return f"HTTP status and body: {self.status_text(response)}:\n{response.text}"
        return "\n".join(f"{path}: {message}" for path, message in entries)


__all__ = ["InstallPackage", "extract_error_entries", "ERROR_ENTRY_PATTERN"]
