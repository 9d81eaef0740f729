"""Remote package manager actions and the deploy command."""
from __future__ import annotations

from .base import PackageManagerAction
from .deploy import DeployCommand
from .install import ERROR_ENTRY_PATTERN, InstallPackage, extract_error_entries
from .installer import PAUSE_SIGNAL, PauseInstaller, ResumeInstaller
from .upload import UploadPackage

__all__ = [
    "PackageManagerAction",
    "DeployCommand",
    "ERROR_ENTRY_PATTERN",
    "InstallPackage",
    "extract_error_entries",
    "PAUSE_SIGNAL",
    "PauseInstaller",
    "ResumeInstaller",
    "UploadPackage",
]
