"""Workflow status derivation for scope and execute sessions."""

import pytest

from issue_dispatch.models.session import SessionKind
from issue_dispatch.workflow import WorkflowKind, blocking_reason, derive_workflow_status

OUTPUT = {"confidence_score": 72}


@pytest.mark.parametrize("status,output,label,kind,terminal,attention", [
    ("pending", None, "Queued", WorkflowKind.PENDING, False, False),
    ("queued", None, "Queued", WorkflowKind.PENDING, False, False),
    ("running", None, "Scoping…", WorkflowKind.ACTIVE, False, False),
    ("blocked", OUTPUT, "Awaiting approval", WorkflowKind.SUCCESS, True, False),
    ("blocked", None, "Processing…", WorkflowKind.ACTIVE, False, False),
    ("paused", None, "Paused", WorkflowKind.WARNING, False, True),
    ("finished", None, "Scoped", WorkflowKind.SUCCESS, True, False),
    ("failed", None, "Scope failed", WorkflowKind.ERROR, True, True),
    ("cancelled", None, "Cancelled", WorkflowKind.ERROR, True, False),
    ("expired", None, "Expired", WorkflowKind.ERROR, True, False),
])
def test_scope_statuses(status, output, label, kind, terminal, attention):
    result = derive_workflow_status(SessionKind.SCOPE, status, output)
    assert (result.label, result.kind, result.is_terminal, result.needs_attention) == (
        label, kind, terminal, attention,
    )


@pytest.mark.parametrize("status,label,kind,terminal,attention", [
    ("pending", "Queued", WorkflowKind.PENDING, False, False),
    ("running", "Executing…", WorkflowKind.ACTIVE, False, False),
    ("paused", "Paused", WorkflowKind.WARNING, False, True),
    ("finished", "Completed", WorkflowKind.SUCCESS, True, False),
    ("failed", "Execute failed", WorkflowKind.ERROR, True, True),
    ("cancelled", "Cancelled", WorkflowKind.ERROR, True, False),
    ("expired", "Expired", WorkflowKind.ERROR, True, False),
])
def test_execute_statuses(status, label, kind, terminal, attention):
    result = derive_workflow_status("execute", status, None)
    assert (result.label, result.kind, result.is_terminal, result.needs_attention) == (
        label, kind, terminal, attention,
    )


def test_execute_finished_with_pull_request():
    result = derive_workflow_status("execute", "finished", None, "https://github.com/o/r/pull/3")
    assert result.label == "PR ready"
    assert result.detail == "Pull request created"
    assert result.is_terminal


@pytest.mark.parametrize("output", [None, {}, {"blocking_issue": "x"}, {"status": "in_progress"}])
def test_execute_blocked_always_needs_attention(output):
    result = derive_workflow_status("execute", "blocked", output)
    assert result.label == "Needs input"
    assert result.kind is WorkflowKind.WARNING
    assert not result.is_terminal
    assert result.needs_attention


def test_execute_blocked_default_detail():
    assert derive_workflow_status("execute", "blocked", None).detail == "Waiting for user input"


@pytest.mark.parametrize("output", [{"a": 1}, {"confidence_score": 0}, {"ready_to_execute": False}])
def test_scope_blocked_with_any_output_is_done(output):
    result = derive_workflow_status("scope", "blocked", output)
    assert result.is_terminal
    assert result.kind is WorkflowKind.SUCCESS


@pytest.mark.parametrize("kind", ["scope", "execute"])
@pytest.mark.parametrize("status", ["archived", "suspend_requested", "RUNNING"])
def test_unknown_status_falls_back(kind, status):
    result = derive_workflow_status(kind, status, {"x": 1})
    assert result.label == status
    assert result.kind is WorkflowKind.PENDING
    assert not result.is_terminal
    assert not result.needs_attention


@pytest.mark.parametrize("status", [None, ""])
def test_missing_status_is_not_started(status):
    result = derive_workflow_status("scope", status, None)
    assert result.label == "Not started"
    assert result.kind is WorkflowKind.PENDING
    assert result.is_terminal
    assert not result.needs_attention


def test_blocking_reason_precedence():
    assert blocking_reason(None) is None
    assert blocking_reason({"blocking_issue": "a", "needs_input": "b"}) == "a"
    assert blocking_reason({"blocking_issue": "", "needs_input": "b"}) == "b"
    assert blocking_reason({"needs_human_input": True, "current_task": "c"}) == "c"
    assert blocking_reason({"needs_human_input": False, "current_task": "c"}) is None
    assert blocking_reason({"needs_human_input": "yes", "current_task": "c"}) is None
    assert blocking_reason({"blocking_issue": 3}) is None


def test_execute_blocked_uses_reason():
    result = derive_workflow_status("execute", "blocked", {"needs_input": "Pick a DB"})
    assert result.detail == "Pick a DB"
