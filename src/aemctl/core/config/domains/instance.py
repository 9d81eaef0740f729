"""Domain-specific configuration for the target AEM instance."""
from __future__ import annotations

import os
from functools import cached_property
from pathlib import Path
from typing import Optional

from ..base import BaseDomainConfig

DEFAULT_PORTS = {"author": 4502, "publish": 4503}


class InstanceConfig(BaseDomainConfig):
    """Typed access to ``instance.*`` settings."""

    def _config_section(self) -> str:
        return "instance"

    @cached_property
    def type(self) -> str:
        return str(self.section.get("type", "author"))

    @cached_property
    def http_port(self) -> int:
        """Configured port, or 4502/4503 by instance type when unset (-1)."""
        port = int(self.section.get("http_port", -1))
        if port < 0:
            return DEFAULT_PORTS.get(self.type, 4502)
        return port

    @cached_property
    def debug_port(self) -> int:
        return int(self.section.get("debug_port", 30303))

    @cached_property
    def debug_enabled(self) -> bool:
        return bool(self.section.get("debug_enabled", True))

    @cached_property
    def base_url(self) -> str:
        return str(self.section.get("base_url", "http://localhost")).rstrip("/")

    @cached_property
    def context_path(self) -> str:
        ctx = str(self.section.get("context_path") or "").strip("/")
        return f"/{ctx}" if ctx else ""

    @cached_property
    def server_uri(self) -> str:
        """Base URI of the instance, e.g. ``http://localhost:4502``."""
        return f"{self.base_url}:{self.http_port}{self.context_path}"

    @cached_property
    def admin_user(self) -> str:
        return str(self.section.get("admin_user", "admin"))

    @cached_property
    def admin_password(self) -> str:
        return str(self.section.get("admin_password", "admin"))

    @cached_property
    def java_home(self) -> Optional[Path]:
        raw = self.section.get("java_home") or os.environ.get("JAVA_HOME")
        return Path(raw).expanduser() if raw else None

    @cached_property
    def work_dir(self) -> Path:
        path = Path(str(self.section.get("work_dir", "target/aem"))).expanduser()
        return path if path.is_absolute() else self.repo_root / path

    @cached_property
    def instance_dir(self) -> Path:
        return self.work_dir / self.type

    @cached_property
    def use_control_port(self) -> bool:
        return bool(self.section.get("use_control_port", True))


__all__ = ["InstanceConfig", "DEFAULT_PORTS"]
