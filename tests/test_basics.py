"""Basic unit tests for the issue-dispatch package."""

from issue_dispatch import (
    AsyncIssueDispatch,
    IssueDispatch,
    DispatchError,
    ConfigError,
    HttpError,
    ConnectionError,
    SessionError,
    IssueError,
    SessionKind,
    __version__,
)


def test_version():
    assert __version__ == "0.1.0"


def test_public_exports():
    assert AsyncIssueDispatch is not None
    assert IssueDispatch is not None


def test_error_hierarchy():
    for cls in (ConfigError, HttpError, ConnectionError, SessionError, IssueError):
        assert issubclass(cls, DispatchError)


def test_error_attributes():
    err = DispatchError(code="test_code", message="something broke")
    assert err.code == "test_code"
    assert str(err) == "something broke"
    assert err.details is None

    err_with_details = SessionError("bad session", details={"id": "123"})
    assert err_with_details.code == "session_error"
    assert err_with_details.details == {"id": "123"}

    http = HttpError(503, "HTTP 503: busy")
    assert http.status_code == 503
    assert http.code == "http_error"


def test_session_kinds():
    assert SessionKind("scope") is SessionKind.SCOPE
    assert SessionKind.EXECUTE.value == "execute"
