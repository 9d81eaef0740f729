from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

# Keep the repository free of Python bytecode and __pycache__ artifacts during tests.
sys.dont_write_bytecode = True

TESTS_ROOT = Path(__file__).resolve().parent
REPO_ROOT = TESTS_ROOT.parent
SRC_ROOT = REPO_ROOT / "src"

# Make src/ importable as 'aemctl' and tests/ as 'helpers'
for p in (SRC_ROOT, TESTS_ROOT):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))

from aemctl.core.config import clear_config_cache  # noqa: E402
from helpers.clock import RecordingToken  # noqa: E402
from helpers.http import LocalServer  # noqa: E402


@pytest.fixture
def isolated_project_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """A throwaway project root with no AEMCTL_* environment leaking in."""
    for key in list(os.environ):
        if key.startswith("AEMCTL_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("AEMCTL_PROJECT_ROOT", str(tmp_path))
    (tmp_path / ".aemctl" / "config").mkdir(parents=True)
    clear_config_cache()
    yield tmp_path
    clear_config_cache()


@pytest.fixture
def recording_token() -> RecordingToken:
    return RecordingToken()


@pytest.fixture
def local_server():
    server = LocalServer()
    server.start()
    try:
        yield server
    finally:
        server.stop()
