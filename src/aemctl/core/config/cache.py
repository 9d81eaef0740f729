"""Centralized configuration caching.

Provides a single source of truth for loaded configuration across all domain
configs. Keys include a fingerprint of ``AEMCTL_*`` environment variables and
project config file mtimes so long-running processes and tests never see stale
configuration.
"""
from __future__ import annotations

import hashlib
import os
from pathlib import Path
from typing import Any, Dict, Optional

from ..utils.yaml import iter_yaml_files

ENV_PREFIX = "AEMCTL_"
PROJECT_ROOT_ENV = "AEMCTL_PROJECT_ROOT"

_config_cache: Dict[str, Dict[str, Any]] = {}


def resolve_project_root(repo_root: Optional[Path] = None) -> Path:
    """Resolve the project root: explicit argument, ``AEMCTL_PROJECT_ROOT``, then cwd."""
    if repo_root is not None:
        return Path(repo_root).expanduser().resolve()
    env_root = os.environ.get(PROJECT_ROOT_ENV)
    if env_root:
        return Path(env_root).expanduser().resolve()
    return Path.cwd().resolve()


def project_config_dir(repo_root: Path) -> Path:
    return repo_root / ".aemctl" / "config"


def _cache_key(repo_root: Path, validate: bool = True) -> str:
    env_items = sorted(
        (k, os.environ.get(k, ""))
        for k in os.environ.keys()
        if k.startswith(ENV_PREFIX)
    )
    env_fp = hashlib.sha256(repr(env_items).encode("utf-8")).hexdigest()[:12]

    files: list[tuple[str, int, int]] = []
    for p in iter_yaml_files(project_config_dir(repo_root)):
        try:
            st = p.stat()
            files.append((p.name, int(st.st_mtime_ns), int(st.st_size)))
        except OSError:
            files.append((p.name, 0, 0))
    cfg_fp = hashlib.sha256(repr(files).encode("utf-8")).hexdigest()[:12]

    return f"{repo_root}:env={env_fp}:cfg={cfg_fp}:validated={validate}"


def get_cached_config(repo_root: Optional[Path] = None, validate: bool = True) -> Dict[str, Any]:
    """Get configuration with caching.

    Returns the same config dict instance for the same project state. Treat the
    result as immutable.
    """
    root = resolve_project_root(repo_root)
    key = _cache_key(root, validate)
    if key not in _config_cache:
        from .manager import ConfigManager

        _config_cache[key] = ConfigManager(repo_root=root).load_uncached(validate=validate)
    return _config_cache[key]


def clear_config_cache() -> None:
    """Drop every cached configuration. Call after changing config files."""
    _config_cache.clear()


def is_cached(repo_root: Optional[Path] = None, validate: bool = True) -> bool:
    return _cache_key(resolve_project_root(repo_root), validate) in _config_cache


__all__ = [
    "ENV_PREFIX",
    "PROJECT_ROOT_ENV",
    "resolve_project_root",
    "project_config_dir",
    "get_cached_config",
    "clear_config_cache",
    "is_cached",
]
