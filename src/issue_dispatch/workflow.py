"""
Workflow status derivation.

Maps a raw session status_enum (plus structured output) to the state shown
to the operator. The platform reports scope sessions as "blocked" once they
finish writing output and wait for the next interaction, so scope+blocked
with output is treated as done, not stuck.
"""

from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel

from issue_dispatch.models.session import SessionKind


class WorkflowKind(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class WorkflowStatus(BaseModel):
    model_config = {"frozen": True}

    label: str
    kind: WorkflowKind
    detail: Optional[str] = None
    is_terminal: bool = False
    needs_attention: bool = False


NOT_STARTED = WorkflowStatus(label="Not started", kind=WorkflowKind.PENDING, is_terminal=True)
QUEUED = WorkflowStatus(label="Queued", kind=WorkflowKind.PENDING)
PAUSED = WorkflowStatus(label="Paused", kind=WorkflowKind.WARNING, needs_attention=True)
CANCELLED = WorkflowStatus(label="Cancelled", kind=WorkflowKind.ERROR, is_terminal=True)
EXPIRED = WorkflowStatus(label="Expired", kind=WorkflowKind.ERROR, is_terminal=True)

# Shared by both session kinds
_COMMON = {
    "pending": QUEUED,
    "queued": QUEUED,
    "paused": PAUSED,
    "cancelled": CANCELLED,
    "expired": EXPIRED,
}


def derive_workflow_status(
    kind: Union[SessionKind, str],
    status_enum: Optional[str],
    structured_output: Optional[dict[str, Any]],
    pull_request_url: Optional[str] = None,
) -> WorkflowStatus:
    """Derive the operator-facing status. Never raises."""
    if not status_enum:
        return NOT_STARTED
    if status_enum in _COMMON:
        return _COMMON[status_enum]
    if SessionKind(kind) is SessionKind.SCOPE:
        status = _derive_scope(status_enum, structured_output)
    else:
        status = _derive_execute(status_enum, structured_output, pull_request_url)
    if status is None:
        return WorkflowStatus(label=status_enum, kind=WorkflowKind.PENDING)
    return status


def _derive_scope(status_enum: str, output: Optional[dict[str, Any]]) -> Optional[WorkflowStatus]:
    if status_enum == "running":
        return WorkflowStatus(label="Scoping…", kind=WorkflowKind.ACTIVE)
    if status_enum == "blocked":
        if output:
            return WorkflowStatus(
                label="Awaiting approval",
                kind=WorkflowKind.SUCCESS,
                detail="Scope complete, ready to execute",
                is_terminal=True,
            )
        return WorkflowStatus(label="Processing…", kind=WorkflowKind.ACTIVE)
    if status_enum == "finished":
        return WorkflowStatus(label="Scoped", kind=WorkflowKind.SUCCESS, is_terminal=True)
    if status_enum == "failed":
        return WorkflowStatus(label="Scope failed", kind=WorkflowKind.ERROR, is_terminal=True, needs_attention=True)
    return None


def _derive_execute(
    status_enum: str, output: Optional[dict[str, Any]], pull_request_url: Optional[str],
) -> Optional[WorkflowStatus]:
    if status_enum == "running":
        return WorkflowStatus(label="Executing…", kind=WorkflowKind.ACTIVE)
    if status_enum == "blocked":
        return WorkflowStatus(
            label="Needs input",
            kind=WorkflowKind.WARNING,
            detail=blocking_reason(output) or "Waiting for user input",
            needs_attention=True,
        )
    if status_enum == "finished":
        if pull_request_url:
            return WorkflowStatus(
                label="PR ready", kind=WorkflowKind.SUCCESS, detail="Pull request created", is_terminal=True,
            )
        return WorkflowStatus(label="Completed", kind=WorkflowKind.SUCCESS, is_terminal=True)
    if status_enum == "failed":
        return WorkflowStatus(label="Execute failed", kind=WorkflowKind.ERROR, is_terminal=True, needs_attention=True)
    return None


def blocking_reason(output: Optional[dict[str, Any]]) -> Optional[str]:
    """Pull a human-readable blocking reason out of structured output."""
    if not output:
        return None
    for key in ("blocking_issue", "needs_input"):
        value = output.get(key)
        if isinstance(value, str) and value:
            return value
    current = output.get("current_task")
    if output.get("needs_human_input") is True and isinstance(current, str) and current:
        return current
    return None
