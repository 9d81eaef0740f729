from __future__ import annotations

import logging
from pathlib import Path

import pytest

from aemctl.core.config import LoggingConfig
from aemctl.core.exceptions import InitializationError, SupervisionFailure
from aemctl.core.utils.errors import root_cause, root_cause_message
from aemctl.core.utils.logging import configure_logging, reset_logging_for_tests


@pytest.fixture
def clean_logging():
    reset_logging_for_tests()
    yield
    reset_logging_for_tests()
    logging.getLogger("aemctl").setLevel(logging.NOTSET)


def test_configure_logging_writes_to_file(tmp_path: Path, clean_logging) -> None:
    log_file = tmp_path / "logs" / "aemctl.log"

    configure_logging(level="DEBUG", log_path=log_file)
    logging.getLogger("aemctl.core.process").debug("Command: ps x")
    for handler in logging.getLogger("aemctl").handlers:
        handler.flush()

    assert "DEBUG aemctl.core.process: Command: ps x" in log_file.read_text(encoding="utf-8")


def test_configure_logging_is_idempotent(tmp_path: Path, clean_logging) -> None:
    configure_logging(level="INFO")
    configure_logging(level="WARNING")

    root = logging.getLogger("aemctl")
    assert len(root.handlers) == 1
    assert root.level == logging.WARNING


def test_unknown_level_falls_back_to_info(clean_logging) -> None:
    configure_logging(level="chatty")

    assert logging.getLogger("aemctl").level == logging.INFO


def test_logging_config_applies_project_settings(isolated_project_env: Path, clean_logging) -> None:
    (isolated_project_env / ".aemctl" / "config" / "logging.yaml").write_text(
        "logging:\n  level: debug\n  file: target/aemctl.log\n", encoding="utf-8"
    )

    config = LoggingConfig()
    config.apply()

    assert config.file == isolated_project_env.resolve() / "target" / "aemctl.log"
    assert logging.getLogger("aemctl").level == logging.DEBUG


def test_root_cause_follows_the_chain() -> None:
    try:
        try:
            raise ConnectionRefusedError("Connection refused")
        except OSError as exc:
            raise RuntimeError("wrapped") from exc
    except RuntimeError as outer:
        assert isinstance(root_cause(outer), ConnectionRefusedError)
        assert root_cause_message(outer) == "Connection refused"


def test_root_cause_message_falls_back_to_type_name() -> None:
    assert root_cause_message(TimeoutError()) == "TimeoutError"


def test_errors_serialize_their_context() -> None:
    error = SupervisionFailure("Unable to stop AEM", pids=[4711], exit_code=1)

    assert error.to_json_error() == {
        "message": "Unable to stop AEM",
        "code": "SupervisionFailure",
        "context": {"pids": [4711], "exit_code": 1},
    }
    assert InitializationError("x", pending_bundles=["a"]).context == {"pending_bundles": ["a"]}
