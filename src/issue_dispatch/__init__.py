"""
issue-dispatch: scope and execute GitHub issues with agent sessions.

Lists issues of one repository, launches scope/execute sessions on the
agent session platform and polls them with adaptive backoff.
"""

from issue_dispatch.client import AsyncIssueDispatch, IssueDispatch
from issue_dispatch.config import Settings
from issue_dispatch.sessions import SessionsAPI
from issue_dispatch.issues import IssuesAPI
from issue_dispatch.errors import (
    DispatchError,
    ConfigError,
    HttpError,
    ConnectionError,
    SessionError,
    IssueError,
)
from issue_dispatch.workflow import WorkflowKind, WorkflowStatus, derive_workflow_status
from issue_dispatch.backoff import BackoffPolicy, next_delay
from issue_dispatch.poller import PollerPhase, PollerSnapshot, PollingMode, SessionPoller
from issue_dispatch.aggregator import IssueSummary, SessionAggregator
from issue_dispatch.models.session import Session, SessionKind

__version__ = "0.1.0"
__all__ = [
    "AsyncIssueDispatch",
    "IssueDispatch",
    "Settings",
    "SessionsAPI",
    "IssuesAPI",
    "DispatchError",
    "ConfigError",
    "HttpError",
    "ConnectionError",
    "SessionError",
    "IssueError",
    "WorkflowKind",
    "WorkflowStatus",
    "derive_workflow_status",
    "BackoffPolicy",
    "next_delay",
    "PollerPhase",
    "PollerSnapshot",
    "PollingMode",
    "SessionPoller",
    "IssueSummary",
    "SessionAggregator",
    "Session",
    "SessionKind",
]
