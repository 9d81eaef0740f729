"""Layered configuration: bundled defaults, project YAML, environment overrides."""
from __future__ import annotations

from .base import BaseDomainConfig
from .cache import clear_config_cache, get_cached_config, resolve_project_root
from .domains import (
    DEFAULT_PORTS,
    DeployConfig,
    FollowConfig,
    InitializationConfig,
    InstanceConfig,
    KillConfig,
    LoggingConfig,
    ShutdownConfig,
    StartupConfig,
)
from .manager import ConfigManager, deep_merge

__all__ = [
    "BaseDomainConfig",
    "ConfigManager",
    "deep_merge",
    "get_cached_config",
    "clear_config_cache",
    "resolve_project_root",
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
