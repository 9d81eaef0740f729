"""Lifecycle operations on a local AEM instance."""
from __future__ import annotations

from .initialization import (
    BUNDLE_ACTIVE,
    BUNDLE_RESOLVED,
    SERVICE_EVENT_TOPIC,
    InstanceInitialized,
    InstanceStatus,
    await_initialization,
    ensure_stable,
    pending_bundles,
    service_events_since,
)
from .kill import conflict_inspector, kill, process_killer
from .logs import follow_logs
from .restart import restart
from .settings import InstanceSettings, quickstart_jar
from .start import build_command, run_modes, start
from .stop import stop

__all__ = [
    "BUNDLE_ACTIVE",
    "BUNDLE_RESOLVED",
    "SERVICE_EVENT_TOPIC",
    "InstanceInitialized",
    "InstanceStatus",
    "InstanceSettings",
    "await_initialization",
    "build_command",
    "conflict_inspector",
    "ensure_stable",
    "follow_logs",
    "kill",
    "pending_bundles",
    "process_killer",
    "quickstart_jar",
    "restart",
    "run_modes",
    "service_events_since",
    "start",
    "stop",
]
