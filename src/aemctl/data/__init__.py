"""
aemctl data resource helpers.

Provides access to the bundled configuration defaults and JSON schemas using
importlib.resources.
"""

from __future__ import annotations

import json
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any


def get_data_path(subpackage: str, filename: str = "") -> Path:
    """
    Get absolute path to a data file or directory.

    Args:
        subpackage: Name of the data subpackage (e.g., "config", "schemas")
        filename: Optional filename within the subpackage

    Example:
        >>> get_data_path("config", "defaults.yaml")
        PosixPath('/path/to/aemctl/data/config/defaults.yaml')
    """
    pkg = resources.files("aemctl.data")
    base = Path(str(pkg / subpackage))
    return base / filename if filename else base


@lru_cache(maxsize=16)
def read_json_schema(name: str) -> dict[str, Any]:
    """Read a bundled JSON schema (cached)."""
    path = get_data_path("schemas", name)
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


__all__ = ["get_data_path", "read_json_schema"]
