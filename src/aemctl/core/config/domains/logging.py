"""Domain-specific configuration for log output."""
from __future__ import annotations

from functools import cached_property
from pathlib import Path
from typing import Optional

from ..base import BaseDomainConfig


class LoggingConfig(BaseDomainConfig):
    def _config_section(self) -> str:
        return "logging"

    @cached_property
    def level(self) -> str:
        return str(self.section.get("level", "INFO")).upper()

    @cached_property
    def file(self) -> Optional[Path]:
        raw = self.section.get("file")
        if not raw:
            return None
        path = Path(str(raw)).expanduser()
        return path if path.is_absolute() else self.repo_root / path

    def apply(self) -> None:
        """Configure the ``aemctl`` logger hierarchy from these settings."""
        from ...utils.logging import configure_logging

        configure_logging(level=self.level, log_path=self.file)


__all__ = ["LoggingConfig"]
