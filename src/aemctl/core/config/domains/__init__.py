"""Typed accessors for each configuration section."""
from __future__ import annotations

from .deploy import DeployConfig
from .instance import DEFAULT_PORTS, InstanceConfig
from .lifecycle import FollowConfig, InitializationConfig, KillConfig, ShutdownConfig, StartupConfig
from .logging import LoggingConfig

__all__ = [
    "DEFAULT_PORTS",
    "InstanceConfig",
    "DeployConfig",
    "StartupConfig",
    "ShutdownConfig",
    "KillConfig",
    "InitializationConfig",
    "FollowConfig",
    "LoggingConfig",
]
