from __future__ import annotations

import logging
import sys
from pathlib import Path

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_CONFIGURED_LOG_PATH: str | None = None
_AEMCTL_FILE_HANDLER: logging.Handler | None = None
_AEMCTL_STREAM_HANDLER: logging.Handler | None = None


def _level_from_name(name: str) -> int:
    level = logging.getLevelName(str(name).upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging(*, level: str = "INFO", log_path: Path | None = None) -> None:
    """Configure stdlib logging for the ``aemctl`` logger hierarchy.

    Installs a single stderr handler and, when ``log_path`` is given, a file
    handler. Idempotent per-process: repeated calls only adjust the level and
    swap the file handler when the path changes.
    """
    global _CONFIGURED_LOG_PATH, _AEMCTL_FILE_HANDLER, _AEMCTL_STREAM_HANDLER

    root = logging.getLogger("aemctl")
    root.setLevel(_level_from_name(level))

    if _AEMCTL_STREAM_HANDLER is None:
        sh = logging.StreamHandler(sys.stderr)
        sh.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(sh)
        _AEMCTL_STREAM_HANDLER = sh
    _AEMCTL_STREAM_HANDLER.setLevel(_level_from_name(level))

    if log_path is None:
        return

    resolved = str(Path(log_path).resolve())
    if _CONFIGURED_LOG_PATH == resolved and _AEMCTL_FILE_HANDLER is not None:
        _AEMCTL_FILE_HANDLER.setLevel(_level_from_name(level))
        return

    # Replace the aemctl-installed file handler when switching paths.
    if _AEMCTL_FILE_HANDLER is not None:
        root.removeHandler(_AEMCTL_FILE_HANDLER)
        _AEMCTL_FILE_HANDLER.close()
        _AEMCTL_FILE_HANDLER = None

    Path(resolved).parent.mkdir(parents=True, exist_ok=True)
    fh = logging.FileHandler(resolved, encoding="utf-8")
    fh.setLevel(_level_from_name(level))
    fh.setFormatter(logging.Formatter(_FORMAT))
    root.addHandler(fh)

    _AEMCTL_FILE_HANDLER = fh
    _CONFIGURED_LOG_PATH = resolved


def reset_logging_for_tests() -> None:
    """Test-only: remove the handlers installed by :func:`configure_logging`."""
    global _CONFIGURED_LOG_PATH, _AEMCTL_FILE_HANDLER, _AEMCTL_STREAM_HANDLER
    root = logging.getLogger("aemctl")
    for h in (_AEMCTL_FILE_HANDLER, _AEMCTL_STREAM_HANDLER):
        if h is None:
            continue
        root.removeHandler(h)
        h.close()
    _CONFIGURED_LOG_PATH = None
    _AEMCTL_FILE_HANDLER = None
    _AEMCTL_STREAM_HANDLER = None


__all__ = ["configure_logging", "reset_logging_for_tests"]
