"""Domain-specific configuration for instance start, stop, kill and initialization."""
from __future__ import annotations

from functools import cached_property
from typing import List

from ..base import BaseDomainConfig


class StartupConfig(BaseDomainConfig):
    def _config_section(self) -> str:
        return "startup"

    @cached_property
    def wait_minutes(self) -> float:
        return float(self.section.get("wait_minutes", 2))

    @cached_property
    def heap_size(self) -> str:
        return str(self.section.get("heap_size", "2048M"))

    @cached_property
    def run_modes(self) -> List[str]:
        return [str(m) for m in self.section.get("run_modes") or []]

    @cached_property
    def vm_options(self) -> List[str]:
        return [str(o) for o in self.section.get("vm_options") or []]

    @cached_property
    def keep_following_output(self) -> bool:
        return bool(self.section.get("keep_following_output", True))

    @cached_property
    def silent(self) -> bool:
        return bool(self.section.get("silent", False))

    @cached_property
    def grace_period_seconds(self) -> float:
        return float(self.section.get("grace_period_seconds", 5))


class ShutdownConfig(BaseDomainConfig):
    def _config_section(self) -> str:
        return "shutdown"

    @cached_property
    def wait_minutes(self) -> float:
        return float(self.section.get("wait_minutes", 2))

    @cached_property
    def grace_period_seconds(self) -> float:
        return float(self.section.get("grace_period_seconds", 5))


class KillConfig(BaseDomainConfig):
    def _config_section(self) -> str:
        return "kill"

    @cached_property
    def grace_period_seconds(self) -> float:
        return float(self.section.get("grace_period_seconds", 5))

    @cached_property
    def listing_timeout_seconds(self) -> float:
        return float(self.section.get("listing_timeout_seconds", 10))

    @cached_property
    def listers(self) -> List[str]:
        return [str(n) for n in self.section.get("listers") or ["jps", "psutil", "native"]]


class InitializationConfig(BaseDomainConfig):
    def _config_section(self) -> str:
        return "initialization"

    @cached_property
    def wait_minutes(self) -> float:
        return float(self.section.get("wait_minutes", 2))

    @cached_property
    def grace_period_seconds(self) -> float:
        """Service events younger than this keep the instance 'initializing'."""
        return float(self.section.get("grace_period_seconds", 5))

    @cached_property
    def ignore_bundles(self) -> List[str]:
        return [str(p) for p in self.section.get("ignore_bundles") or []]

    @cached_property
    def stable_seconds(self) -> float:
        return float(self.section.get("stable_seconds", 16))


class FollowConfig(BaseDomainConfig):
    def _config_section(self) -> str:
        return "follow"

    @cached_property
    def logfiles(self) -> List[str]:
        return [str(f) for f in self.section.get("logfiles") or []]

    @cached_property
    def keep_following(self) -> bool:
        return bool(self.section.get("keep_following", True))


__all__ = [
    "StartupConfig",
    "ShutdownConfig",
    "KillConfig",
    "InitializationConfig",
    "FollowConfig",
]
