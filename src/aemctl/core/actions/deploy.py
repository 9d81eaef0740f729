"""Deploying content packages: optional installer pause, upload + install, resume."""
from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Sequence

import requests

from ..cancellation import CancellationToken
from ..http import create_session
from ..retry import ActionConfiguration, HttpAction, RetryableAction
from .install import InstallPackage
from .installer import PauseInstaller, ResumeInstaller
from .upload import UploadPackage


class DeployCommand:
    """Deploys packages one after another.

    When ``pause_installer`` is set, the JCR installer is paused first and
    resumed afterwards, also after a failed deployment.
    """

    def __init__(
        self,
        configuration: ActionConfiguration,
        files: Sequence[Path],
        *,
        save_threshold: int = 100000,
        subpackages: bool = True,
        pause_installer: bool = False,
        session: Optional[requests.Session] = None,
        token: Optional[CancellationToken] = None,
    ) -> None:
        self.configuration = configuration
        self.files: List[Path] = [Path(f) for f in files]
        self.save_threshold = save_threshold
        self.subpackages = subpackages
        self.pause_installer = pause_installer
        self.session = session or create_session(configuration.credentials, configuration.timeouts)
        self.token = token or CancellationToken()

    @classmethod
    def from_config(cls, files: Sequence[Path], repo_root: Optional[Path] = None, **kwargs) -> "DeployCommand":
        from ..config import DeployConfig

        deploy = DeployConfig(repo_root)
        return cls(
            ActionConfiguration.from_config(repo_root),
            files,
            save_threshold=deploy.save_threshold,
            subpackages=deploy.subpackages,
            pause_installer=deploy.pause_installer,
            **kwargs,
        )

    def _run(self, action: HttpAction):
        return RetryableAction(action, self.configuration, self.token).run()

    def execute(self) -> List[str]:
        """Deploy every file. Returns the package paths reported by the instance."""
        if self.pause_installer:
            self._run(PauseInstaller(self.configuration, self.session))

        installed: List[str] = []
        try:
            for file in self.files:
                package_path = self._run(UploadPackage(self.configuration, file, self.session, self.token))
                self._run(
                    InstallPackage(
                        self.configuration,
                        file,
                        package_path,
                        subpackages=self.subpackages,
                        save_threshold=self.save_threshold,
                        session=self.session,
                        token=self.token,
                    )
                )
                installed.append(package_path)
        except Exception as exc:
            try:
                self._resume_installer()
            except Exception:
                self.configuration.log.exception(
                    "In addition to the failed deployment, resuming the JCR installer failed as well: %s", exc
                )
            raise

        self._resume_installer()
        return installed

    def _resume_installer(self) -> None:
        if self.pause_installer:
            self._run(ResumeInstaller(self.configuration, self.session))


__all__ = ["DeployCommand"]
