"""Rich renderables for issues, status strips and structured output."""

from typing import Optional

from rich.console import Console, Group
from rich.json import JSON
from rich.panel import Panel
from rich.text import Text

from issue_dispatch.aggregator import IssueSummary, StatusPill
from issue_dispatch.models.issue import Issue
from issue_dispatch.models.output import confidence_band, parse_execute_output, parse_scope_output
from issue_dispatch.models.session import Session, SessionKind
from issue_dispatch.workflow import WorkflowKind

KIND_STYLES = {
    WorkflowKind.PENDING: "dim",
    WorkflowKind.ACTIVE: "cyan",
    WorkflowKind.SUCCESS: "green",
    WorkflowKind.WARNING: "yellow",
    WorkflowKind.ERROR: "red",
}
BAND_STYLES = {"high": "green", "medium": "yellow", "low": "red"}


def render_issue(console: Console, issue: Issue) -> None:
    labels = " ".join(f"[{label.name}]" for label in issue.labels)
    console.print(f"[bold]#{issue.number} {issue.title}[/bold] {labels}")
    console.print(f"[dim]{issue.html_url} · {issue.state} · updated {issue.updated_at}[/dim]")
    console.print(issue.body or "[dim]No description provided.[/dim]")


def _pill(pill: StatusPill) -> Text:
    text = Text()
    text.append(f"{pill.kind.value.capitalize()}: ", style="bold")
    text.append(pill.status.label, style=KIND_STYLES[pill.status.kind])
    if pill.reconnecting and pill.next_retry_in is not None:
        text.append(f" (reconnecting in {pill.next_retry_in}s)", style="yellow")
    if pill.error:
        text.append(f" [{pill.error}]", style="red")
    return text


def status_strip(summary: Optional[IssueSummary]) -> Text:
    if summary is None:
        return Text("No sessions", style="dim")
    line = Text(" | ").join(_pill(p) for p in summary.pills)
    if summary.attention:
        line.append("  ! ", style="bold yellow")
        line.append(summary.attention.text, style="yellow")
    if summary.updated_label:
        line.append(f"  Updated {summary.updated_label}", style="dim")
    return line


def _bullets(title: str, items: list[str]) -> Text:
    text = Text(f"{title}\n", style="bold")
    for item in items:
        text.append(f"  • {item}\n")
    return text


def scope_panel(session: Session) -> Panel:
    parsed = parse_scope_output(session.output_fields)
    if parsed is None:
        return raw_panel(session, "Scope output")
    band = confidence_band(parsed.confidence_score)
    header = Text()
    header.append(f"Confidence {parsed.confidence_score:g}", style=f"bold {BAND_STYLES[band]}")
    header.append(f"  {parsed.confidence_rationale}\n")
    plan = Text("Action plan\n", style="bold")
    for step in parsed.action_plan:
        plan.append(f"  {step.step}. {step.title}: ", style="bold")
        plan.append(f"{step.details}\n")
    body = Group(
        header,
        plan,
        _bullets("Assumptions", parsed.assumptions),
        _bullets("Unknowns", parsed.unknowns),
        _bullets("Risks", parsed.risks),
        Text("Ready to execute" if parsed.ready_to_execute else "Not ready to execute",
             style="green" if parsed.ready_to_execute else "yellow"),
    )
    return Panel(body, title=f"Scope: {parsed.title}")


def execute_panel(session: Session) -> Panel:
    parsed = parse_execute_output(session.output_fields)
    if parsed is None:
        return raw_panel(session, "Execute output")
    text = Text()
    text.append(f"Status: {parsed.status}\n", style="bold")
    text.append(f"Current: {parsed.current_task}\n")
    if parsed.next_task:
        text.append(f"Next: {parsed.next_task}\n")
    if parsed.blocking_issue:
        text.append(f"Blocked: {parsed.blocking_issue}\n", style="yellow")
    tests = parsed.tests_run.summary if parsed.tests_run.ran else "not run"
    text.append(f"Tests: {tests}\n")
    parts = [text, _bullets("Completed", parsed.completed_tasks), _bullets("Files changed", parsed.files_changed)]
    if session.pull_request_url:
        parts.append(Text(f"PR: {session.pull_request_url}", style="green"))
    return Panel(Group(*parts), title="Execute progress")


def raw_panel(session: Session, title: str) -> Panel:
    if session.structured_output is None:
        return Panel(Text("No structured output yet", style="dim"), title=title)
    return Panel(JSON.from_data(session.structured_output), title=f"{title} (raw)")


def output_panel(kind: SessionKind, session: Session) -> Panel:
    if kind is SessionKind.SCOPE:
        return scope_panel(session)
    return execute_panel(session)
