from __future__ import annotations

import logging
from pathlib import Path

import pytest
import requests

from aemctl.core.actions import InstallPackage, PauseInstaller, ResumeInstaller, UploadPackage, extract_error_entries
from aemctl.core.exceptions import OperationCancelled, RemoteActionError, RetryBudgetExhausted, UnrecoverableRemoteError
from aemctl.core.retry import ActionConfiguration, ProtocolError, RetryableAction
from helpers.clock import RecordingToken
from helpers.http import ScriptedSession, make_response

PACKAGE_PATH = "/etc/packages/my_packages/site-content-1.0.zip"

INSTALL_OK = """<html><body><pre>
<span class="A"><b>A</b>&nbsp;/content/site (nt:unstructured)</span>
Package imported.
</pre></body></html>"""

INSTALL_WITH_ERRORS = """<html><body><pre>
<span class="E"><b>E</b>&nbsp;/apps/site/components (javax.jcr.nodetype.ConstraintViolationException: no matching child node definition)</span>
<span class="E"><b>E</b>&nbsp;/conf/site (javax.jcr.AccessDeniedException: denied)</span>
Package imported (with errors, check logs!)
</pre></body></html>"""


@pytest.fixture
def configuration() -> ActionConfiguration:
    return ActionConfiguration(
        server_uri="http://localhost:4502",
        password="admin",
        retries=2,
        log=logging.getLogger("aemctl.tests.deploy"),
    )


@pytest.fixture
def package(tmp_path: Path) -> Path:
    file = tmp_path / "site-content-1.0.zip"
    file.write_bytes(b"PK\x03\x04 not really a zip")
    return file


def _package_manager_up(session: ScriptedSession) -> ScriptedSession:
    return session.script("GET", "/crx/packmgr/service", default=make_response(405))


def test_upload_returns_package_path(configuration: ActionConfiguration, package: Path) -> None:
    session = _package_manager_up(ScriptedSession()).script(
        "POST",
        "/crx/packmgr/service/.json/?cmd=upload",
        make_response(json_body={"success": True, "msg": "Package uploaded", "path": PACKAGE_PATH}),
    )
    token = RecordingToken()

    upload = UploadPackage(configuration, package, session, token)
    assert RetryableAction(upload, configuration, token).run() == PACKAGE_PATH

    _, _, kwargs = session.calls[-1]
    assert kwargs["data"] == {"force": "true"}
    assert kwargs["files"]["package"][0] == "site-content-1.0.zip"


def test_rejected_upload_is_unrecoverable(configuration: ActionConfiguration, package: Path) -> None:
    session = _package_manager_up(ScriptedSession()).script(
        "POST",
        "/crx/packmgr/service/.json/?cmd=upload",
        make_response(json_body={"success": False, "msg": "Package already exists and is locked"}),
    )
    token = RecordingToken()

    with pytest.raises(UnrecoverableRemoteError) as excinfo:
        RetryableAction(UploadPackage(configuration, package, session, token), configuration, token).run()

    assert str(excinfo.value) == (
        f"Failed to upload {package}, AEM responded: Package already exists and is locked"
    )
    assert session.calls_to("POST", "/crx/packmgr/service/.json/?cmd=upload") == 1


def test_upload_retries_server_errors(configuration: ActionConfiguration, package: Path) -> None:
    session = _package_manager_up(ScriptedSession()).script(
        "POST",
        "/crx/packmgr/service/.json/?cmd=upload",
        make_response(500, "boom", reason="Server Error"),
        make_response(json_body={"success": True, "path": PACKAGE_PATH}),
    )
    token = RecordingToken()

    assert RetryableAction(UploadPackage(configuration, package, session, token), configuration, token).run()
    assert token.sleeps == [10]


def test_upload_requires_an_existing_file(configuration: ActionConfiguration, tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        UploadPackage(configuration, tmp_path / "missing.zip", ScriptedSession())


def test_unavailable_package_manager_aborts_the_action(configuration: ActionConfiguration, package: Path) -> None:
    session = ScriptedSession().script(
        "GET", "/crx/packmgr/service", default=requests.ConnectionError("Connection refused")
    )
    token = RecordingToken()

    with pytest.raises(RemoteActionError) as excinfo:
        RetryableAction(UploadPackage(configuration, package, session, token), configuration, token).run()

    # Bounded by the total backoff of 10 * 2^2 - 1 seconds.
    assert "unavailable for 39 seconds" in str(excinfo.value)
    assert session.calls_to("POST", "/crx/packmgr/service/.json") == 0


def test_install_succeeds_on_package_imported(configuration: ActionConfiguration, package: Path) -> None:
    session = _package_manager_up(ScriptedSession()).script(
        "POST", "/crx/packmgr/service/console.html" + PACKAGE_PATH, make_response(200, INSTALL_OK)
    )
    token = RecordingToken()

    install = InstallPackage(configuration, package, PACKAGE_PATH, subpackages=False, save_threshold=500, session=session, token=token)
    RetryableAction(install, configuration, token).run()

    _, _, kwargs = session.calls[-1]
    assert kwargs["params"] == {"cmd": "install"}
    assert kwargs["data"] == {"autosave": "500", "recursive": "false"}


def test_install_with_errors_reports_error_entries(configuration: ActionConfiguration, package: Path) -> None:
    session = _package_manager_up(ScriptedSession()).script(
        "POST", "/crx/packmgr/service/console.html", make_response(200, INSTALL_WITH_ERRORS)
    )
    token = RecordingToken()

    with pytest.raises(UnrecoverableRemoteError) as excinfo:
        RetryableAction(
            InstallPackage(configuration, package, PACKAGE_PATH, session=session, token=token), configuration, token
        ).run()

    message = str(excinfo.value)
    assert message.startswith(f"Failed to install {package}, AEM responded: ")
    assert "/apps/site/components: javax.jcr.nodetype.ConstraintViolationException" in message
    assert "/conf/site: javax.jcr.AccessDeniedException: denied" in message


def test_install_without_completion_marker_includes_body(configuration: ActionConfiguration, package: Path) -> None:
    session = _package_manager_up(ScriptedSession()).script(
        "POST", "/crx/packmgr/service/console.html", make_response(200, "<html>half done</html>", reason="OK")
    )
    token = RecordingToken()

    with pytest.raises(UnrecoverableRemoteError) as excinfo:
        RetryableAction(
            InstallPackage(configuration, package, PACKAGE_PATH, session=session, token=token), configuration, token
        ).run()

    assert "HTTP status and body: 200 OK:\n<html>half done</html>" in str(excinfo.value)


def test_extract_error_entries() -> None:
    assert extract_error_entries(INSTALL_WITH_ERRORS)[1] == ("/conf/site", "javax.jcr.AccessDeniedException: denied")
    assert extract_error_entries(INSTALL_OK) == []
    assert extract_error_entries("") == []


@pytest.mark.parametrize("status", [200, 201])
def test_pause_installer_accepts_created(configuration: ActionConfiguration, status: int) -> None:
    session = ScriptedSession().script("POST", "/system/sling", make_response(status))

    RetryableAction(PauseInstaller(configuration, session), configuration, RecordingToken()).run()

    _, _, kwargs = session.calls[0]
    assert kwargs["data"][":operation"] == "import"
    assert '"pauseInstallation"' in kwargs["data"][":content"]


def test_pause_installer_unsupported_is_not_an_error(
    configuration: ActionConfiguration, caplog: pytest.LogCaptureFixture
) -> None:
    session = ScriptedSession().script("POST", "/system/sling", make_response(404))

    with caplog.at_level(logging.INFO, logger="aemctl.tests.deploy"):
        RetryableAction(PauseInstaller(configuration, session), configuration, RecordingToken()).run()

    assert "not supported" in caplog.messages[-1]


def test_resume_installer_uses_longer_backoff(configuration: ActionConfiguration) -> None:
    session = ScriptedSession().script("POST", "/system/sling/installer", default=make_response(500))
    token = RecordingToken()

    with pytest.raises(RetryBudgetExhausted) as excinfo:
        RetryableAction(ResumeInstaller(configuration, session), configuration, token).run()

    assert token.sleeps == [20, 40]
    assert str(excinfo.value) == "Unable to resume the JCR installer: 500"


def test_cancelled_wait_for_package_manager_is_an_interruption(
    configuration: ActionConfiguration, package: Path
) -> None:
    session = ScriptedSession().script("GET", "/crx/packmgr/service", default=make_response(503))
    token = RecordingToken(cancel_after=1)
    upload = UploadPackage(configuration, package, session, token)

    outcome = RetryableAction(upload, configuration).classify()

    assert outcome == ProtocolError(f"Interrupted while waiting for the package manager API to upload {package}")


def test_cancellation_during_package_manager_wait_stops_the_upload(
    configuration: ActionConfiguration, package: Path
) -> None:
    session = ScriptedSession().script("GET", "/crx/packmgr/service", default=make_response(503))
    token = RecordingToken(cancel_after=1)

    with pytest.raises(OperationCancelled):
        RetryableAction(UploadPackage(configuration, package, session, token), configuration, token).run()

    assert session.calls_to("POST", "/crx/packmgr/service/.json/?cmd=upload") == 0
