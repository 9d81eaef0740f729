"""
aemctl configuration management (layered YAML, env overrides, schema validation).
"""
from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

import jsonschema
import yaml

from aemctl.data import get_data_path, read_json_schema

from ..exceptions import ConfigurationError
from ..utils.yaml import iter_yaml_files, read_yaml
from .cache import ENV_PREFIX, PROJECT_ROOT_ENV, get_cached_config, project_config_dir, resolve_project_root

logger = logging.getLogger(__name__)


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge ``override`` into a copy of ``base``. Lists are replaced."""
    result = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


class ConfigManager:
    """Load, merge, and validate aemctl configuration.

    Configuration sources (highest to lowest priority):
    1. Environment variables: AEMCTL_<section>__<key>
    2. Project config: <project>/.aemctl/config/*.yaml (alphabetical order)
    3. Bundled defaults: aemctl.data/config/*.yaml (alphabetical order)
    """

    SCHEMA_NAME = "config.schema.json"

    def __init__(self, repo_root: Optional[Path] = None) -> None:
        self.repo_root = resolve_project_root(repo_root)
        self.core_config_dir = get_data_path("config")
        self.project_config_dir = project_config_dir(self.repo_root)

    # ---------- env overrides ----------

    def _as_bool(self, v: str) -> Optional[bool]:
        low = v.strip().lower()
        if low in {"true", "false"}:
            return low == "true"
        return None

    def _as_int(self, v: str) -> Optional[int]:
        if re.fullmatch(r"[-+]?\d+", v.strip() or " "):
            return int(v)
        return None

    def _as_float(self, v: str) -> Optional[float]:
        s = v.strip()
        if re.fullmatch(r"[-+]?\d*\.\d+", s) or re.fullmatch(r"[-+]?\d+\.\d*", s):
            return float(s)
        return None

    def _as_json(self, v: str) -> Optional[Any]:
        s = v.strip()
        if (s.startswith("{") and s.endswith("}")) or (s.startswith("[") and s.endswith("]")):
            try:
                return json.loads(s)
            except ValueError:
                return None
        return None

    def _coerce_type(self, value: str) -> Any:
        for caster in (self._as_bool, self._as_int, self._as_float, self._as_json):
            result = caster(value)
            if result is not None:
                return result
        return value.strip()

    def _is_string_key(self, schema: Dict[str, Any], path: List[str]) -> bool:
        node: Any = schema
        for part in path:
            if not isinstance(node, dict):
                return False
            node = (node.get("properties") or {}).get(part)
        declared = node.get("type") if isinstance(node, dict) else None
        if isinstance(declared, list):
            return "string" in declared
        return declared == "string"

    def _iter_env_overrides(self) -> Iterator[Tuple[List[str], Any]]:
        schema = read_json_schema(self.SCHEMA_NAME)
        for key in sorted(os.environ.keys()):
            if not key.startswith(ENV_PREFIX) or key == PROJECT_ROOT_ENV:
                continue
            raw = key[len(ENV_PREFIX):]
            segs = raw.split("__")
            if len(segs) < 2 or any(seg == "" for seg in segs):
                raise ConfigurationError(
                    f"Malformed {ENV_PREFIX}* key: '{key}' (expected {ENV_PREFIX}<section>__<key>)",
                    context={"variable": key},
                )
            path = [seg.lower() for seg in segs]
            value = os.environ[key]
            # Keys typed as strings keep their text, e.g. a numeric password.
            yield path, value.strip() if self._is_string_key(schema, path) else self._coerce_type(value)

    def apply_env_overrides(self, cfg: Dict[str, Any]) -> None:
        for path, value in self._iter_env_overrides():
            cur = cfg
            for part in path[:-1]:
                nxt = cur.get(part)
                if not isinstance(nxt, dict):
                    nxt = {}
                    cur[part] = nxt
                cur = nxt
            cur[path[-1]] = value

    # ---------- loading ----------

    def _load_directory(self, directory: Path, cfg: Dict[str, Any]) -> Dict[str, Any]:
        for path in iter_yaml_files(directory):
            try:
                data = read_yaml(path, default={}, raise_on_error=True)
            except (OSError, yaml.YAMLError) as exc:
                raise ConfigurationError(
                    f"Invalid configuration file {path}: {exc}", context={"path": str(path)}
                ) from exc
            if not isinstance(data, dict):
                raise ConfigurationError(
                    f"Configuration file {path} must contain a mapping", context={"path": str(path)}
                )
            logger.debug("Loaded config layer %s", path)
            cfg = deep_merge(cfg, data)
        return cfg

    def validate_schema(self, cfg: Dict[str, Any]) -> None:
        try:
            jsonschema.validate(instance=cfg, schema=read_json_schema(self.SCHEMA_NAME))
        except jsonschema.ValidationError as exc:
            location = ".".join(str(p) for p in exc.absolute_path) or "<root>"
            raise ConfigurationError(
                f"Invalid configuration at {location}: {exc.message}",
                context={"path": location},
            ) from exc

    def load_uncached(self, validate: bool = True) -> Dict[str, Any]:
        """Load and merge configuration from every layer (UNCACHED)."""
        cfg: Dict[str, Any] = {}
        cfg = self._load_directory(self.core_config_dir, cfg)
        cfg = self._load_directory(self.project_config_dir, cfg)
        self.apply_env_overrides(cfg)
        if validate:
            self.validate_schema(cfg)
        return cfg

    def load_config(self, validate: bool = True) -> Dict[str, Any]:
        """Load configuration using the centralized cache."""
        return get_cached_config(repo_root=self.repo_root, validate=validate)

    def get(self, key: str, default: Any = None) -> Any:
        """Get a config value by dot-notation key.

        Example:
            >>> manager.get('instance.debug_port')
            30303
        """
        current: Any = self.load_config()
        for part in key.split("."):
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default
        return current


__all__ = ["ConfigManager", "deep_merge"]
