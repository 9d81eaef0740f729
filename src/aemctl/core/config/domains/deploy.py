"""Domain-specific configuration for package deployment."""
from __future__ import annotations

from functools import cached_property

from ..base import BaseDomainConfig


class DeployConfig(BaseDomainConfig):
    def _config_section(self) -> str:
        return "deploy"

    @cached_property
    def retries(self) -> int:
        return int(self.section.get("retries", 3))

    @cached_property
    def save_threshold(self) -> int:
        return int(self.section.get("save_threshold", 100000))

    @cached_property
    def subpackages(self) -> bool:
        return bool(self.section.get("subpackages", True))

    @cached_property
    def pause_installer(self) -> bool:
        return bool(self.section.get("pause_installer", False))

    @cached_property
    def connect_timeout_seconds(self) -> float:
        return float(self.section.get("connect_timeout_seconds", 2))

    @cached_property
    def read_timeout_seconds(self) -> float:
        return float(self.section.get("read_timeout_seconds", 600))


__all__ = ["DeployConfig"]
