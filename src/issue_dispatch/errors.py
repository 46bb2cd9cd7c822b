"""
issue-dispatch error types.

Every failure raised by the package derives from DispatchError so callers
can catch one type. HttpError carries the upstream status code the poller
classifies on.
"""

from typing import Any, Optional


class DispatchError(Exception):
    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details


class ConfigError(DispatchError):
    def __init__(self, message: str):
        super().__init__("config_error", message)


class HttpError(DispatchError):
    def __init__(self, status_code: int, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__("http_error", message, details)
        self.status_code = status_code


class ConnectionError(DispatchError):
    """No response was received (DNS, refused connection, timeout)."""

    def __init__(self, message: str):
        super().__init__("connection_error", message)


class SessionError(DispatchError):
    def __init__(self, message: str, code: str = "session_error", details: Optional[dict[str, Any]] = None):
        super().__init__(code, message, details)


class IssueError(DispatchError):
    def __init__(self, message: str, code: str = "issue_error", details: Optional[dict[str, Any]] = None):
        super().__init__(code, message, details)
