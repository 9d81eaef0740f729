from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

import requests

from ..cancellation import CancellationToken
from ..retry import ActionConfiguration
from .base import PackageManagerAction


def _json_body(response: requests.Response) -> Dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


class UploadPackage(PackageManagerAction):
    """Uploads a content package. The result is the package path on the instance."""

    verb = "upload"

    def __init__(
        self,
        configuration: ActionConfiguration,
        file: Path,
        session: Optional[requests.Session] = None,
        token: Optional[CancellationToken] = None,
    ) -> None:
        super().__init__(configuration, session, token)
        self.file = Path(file)
        if not self.file.is_file():
            raise FileNotFoundError(f"No package file at {self.file}")

    def subject(self) -> str:
        return str(self.file)

    def perform(self) -> requests.Response:
        self.await_package_manager()
        with open(self.file, "rb") as package:
            return self.session.post(
                self.configuration.url("/crx/packmgr/service/.json/?cmd=upload"),
                data={"force": "true"},
                files={"package": (self.file.name, package, "application/zip")},
            )

    def is_unrecoverable(self, response: requests.Response) -> bool:
        body = _json_body(response)
        return body.get("success") is not True or not body.get("path")

    def result(self, response: requests.Response) -> str:
        return str(_json_body(response)["path"])

    def start_message(self) -> str:
        return f"Uploading {self.file}..."

    def success_message(self, response: requests.Response) -> str:
        return f"Successfully uploaded {self.file.resolve()}"

    def failure_message(self, cause: str) -> str:
        return f"Failed to upload {self.file}, AEM responded: {cause}"

    def failure_message_for(self, response: requests.Response) -> str:
        msg = _json_body(response).get("msg")
        return str(msg) if msg else response.text


__all__ = ["UploadPackage"]
