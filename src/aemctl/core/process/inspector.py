"""Finding running AEM instances that conflict with the configured ports.

Process listings differ between tools and platforms, so lines are matched
with deliberately fuzzy patterns. A process that cannot be recognized is
missed rather than mis-parsed.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Pattern, Sequence

import psutil

from .commands import execute, is_windows

logger = logging.getLogger(__name__)

# "<pid> <command line>", as printed by jps -mlv and ps x.
JPS_LIKE_PATTERN = re.compile(
    r"^[\s]*(?P<pid>[0-9]+)[\s]+.*(?P<process>(cq.?|aem.?)-.*\.jar .*)$", re.MULTILINE
)
# "<node>,<command line>,<pid>", as printed by wmic ... /Format:csv.
WMIC_PATTERN = re.compile(r"^.*(?P<process>(cq.?|aem.?)-.*\.jar .*),(?P<pid>[0-9]+)$", re.MULTILINE)
HTTP_PORT_ARGUMENT = re.compile(r"(-quickstart\.server\.port|-p|-port)[\s]+(?P<port>[0-9]+)")
DEBUG_PORT_ARGUMENT = re.compile(r"address[\s]*=[\s]*(?P<port>[0-9]+)")

WMIC_COMMAND = [
    "wmic",
    "PROCESS",
    "WHERE",
    "\"name like 'java%' and commandline like '%-jar %'\"",
    "GET",
    "ProcessID,CommandLine",
    "/Format:csv",
]


@dataclass(frozen=True)
class ConflictingProcess:
    pid: int
    command_line: str


def _normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def find_conflicting_processes(
    listing: Optional[str],
    pattern: Pattern[str],
    http_port: int,
    debug_port: int,
) -> List[ConflictingProcess]:
    """Parse ``listing`` and keep processes bound to ``http_port`` or ``debug_port``."""
    if not listing:
        return []
    found: List[ConflictingProcess] = []
    for match in pattern.finditer(_normalize_newlines(listing)):
        arguments = match.group("process")

        http = HTTP_PORT_ARGUMENT.search(arguments)
        if http and http.group("port") == str(http_port):
            found.append(ConflictingProcess(int(match.group("pid")), arguments))
            continue

        debug = DEBUG_PORT_ARGUMENT.search(arguments)
        if debug and debug.group("port") == str(debug_port):
            found.append(ConflictingProcess(int(match.group("pid")), arguments))
    return found


def find_conflicting_pids(listing: Optional[str], pattern: Pattern[str], http_port: int, debug_port: int) -> List[int]:
    return [p.pid for p in find_conflicting_processes(listing, pattern, http_port, debug_port)]


@dataclass(frozen=True)
class Listing:
    source: str
    text: Optional[str]
    pattern: Pattern[str]


def jps_executable(java_home: Optional[Path]) -> Optional[Path]:
    """``jps`` of the JDK owning ``java_home`` (a JDK root or its ``jre`` directory)."""
    if java_home is None:
        return None
    name = "jps.exe" if is_windows() else "jps"
    for root in (java_home.parent, java_home):
        candidate = root / "bin" / name
        if candidate.exists():
            return candidate
    return None


def render_psutil_listing() -> str:
    """``"<pid> <command line>"`` for every visible process, one per line."""
    lines: List[str] = []
    for proc in psutil.process_iter(["pid", "cmdline"]):
        # Inaccessible attributes come back as None rather than raising.
        cmdline = proc.info.get("cmdline") or []
        if cmdline:
            lines.append(f"{proc.info['pid']} {' '.join(cmdline)}")
    return "\n".join(lines)


class ProcessInspector:
    """Lists processes with the first lister that yields output and finds conflicts.

    Listers are tried in ``listers`` order: ``jps`` (when a JDK is found),
    ``psutil`` and ``native`` (``wmic`` on Windows, ``ps x`` elsewhere).
    """

    def __init__(
        self,
        http_port: int,
        debug_port: int,
        *,
        java_home: Optional[Path] = None,
        listers: Sequence[str] = ("jps", "psutil", "native"),
        timeout: float = 10.0,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self.http_port = http_port
        self.debug_port = debug_port
        self.java_home = java_home
        self.listers = list(listers)
        self.timeout = timeout
        self.log = log or logger
        self._sources: Dict[str, Callable[[], Optional[Listing]]] = {
            "jps": self._list_with_jps,
            "psutil": self._list_with_psutil,
            "native": self._list_natively,
        }
        unknown = [name for name in self.listers if name not in self._sources]
        if unknown:
            raise ValueError(f"Unknown process lister(s): {', '.join(unknown)}")

    def _list_with_jps(self) -> Optional[Listing]:
        jps = jps_executable(self.java_home)
        if jps is None:
            return None
        # -mlv: main class / jar, program arguments and JVM arguments (debug port).
        return Listing("jps", execute([str(jps), "-mlv"], timeout=self.timeout, log=self.log), JPS_LIKE_PATTERN)

    def _list_with_psutil(self) -> Optional[Listing]:
        try:
            text = render_psutil_listing()
        except psutil.Error as exc:
            self.log.warning("Unable to list processes with psutil: %s", exc)
            return None
        return Listing("psutil", text, JPS_LIKE_PATTERN)

    def _list_natively(self) -> Optional[Listing]:
        if is_windows():
            return Listing("wmic", execute(list(WMIC_COMMAND), timeout=self.timeout, log=self.log), WMIC_PATTERN)
        # x: processes of the current user, including those without a tty.
        return Listing("ps", execute(["ps", "x"], timeout=self.timeout, log=self.log), JPS_LIKE_PATTERN)

    def listing(self) -> Optional[Listing]:
        for name in self.listers:
            result = self._sources[name]()
            if result is not None and result.text and result.text.strip():
                return result
        return None

    def conflicting_processes(self) -> List[ConflictingProcess]:
        """Never raises for missing or garbled listings; returns an empty list instead."""
        result = self.listing()
        if result is None:
            return []
        if self.log.isEnabledFor(logging.DEBUG):
            self.log.debug(
                "Looking for AEM processes with conflicting HTTP port %d or debug port %d in %s output:\n%s",
                self.http_port,
                self.debug_port,
                result.source,
                result.text,
            )
        return find_conflicting_processes(result.text, result.pattern, self.http_port, self.debug_port)

    def conflicting_pids(self) -> List[int]:
        return [p.pid for p in self.conflicting_processes()]


__all__ = [
    "JPS_LIKE_PATTERN",
    "WMIC_PATTERN",
    "HTTP_PORT_ARGUMENT",
    "DEBUG_PORT_ARGUMENT",
    "WMIC_COMMAND",
    "ConflictingProcess",
    "Listing",
    "ProcessInspector",
    "find_conflicting_processes",
    "find_conflicting_pids",
    "jps_executable",
    "render_psutil_listing",
]
