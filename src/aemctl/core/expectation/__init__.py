"""Condition pollers ("expectations") with timeout and conjunction."""
from __future__ import annotations

from .base import UNITS, ConditionExpectation, Conjunction, Expectation, Outcome, expect
from .conditions import ProcessesTerminated
from .http import (
    PROBE_TIMEOUTS,
    HttpExpectation,
    PackageManagerApiAvailable,
    SystemConsoleAvailable,
    package_manager_api_is_available,
    system_console_is_available,
)

__all__ = [
    "UNITS",
    "Outcome",
    "Expectation",
    "Conjunction",
    "ConditionExpectation",
    "expect",
    "ProcessesTerminated",
    "PROBE_TIMEOUTS",
    "HttpExpectation",
    "PackageManagerApiAvailable",
    "SystemConsoleAvailable",
    "package_manager_api_is_available",
    "system_console_is_available",
]
