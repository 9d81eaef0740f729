"""Shared helpers: logging setup, YAML reading, exception inspection."""
from __future__ import annotations

from .errors import root_cause, root_cause_message
from .logging import configure_logging, reset_logging_for_tests
from .yaml import read_yaml

__all__ = [
    "root_cause",
    "root_cause_message",
    "configure_logging",
    "reset_logging_for_tests",
    "read_yaml",
]
