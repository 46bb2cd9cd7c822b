"""
Per-issue status strip: combines the scope and execute pollers of one issue.

The aggregator only sees the snapshots pollers push to it; it never reaches
into a poller.
"""

from datetime import datetime, timezone
from typing import Callable, Optional

from pydantic import BaseModel

from issue_dispatch.models.session import SessionKind
from issue_dispatch.poller import PollerPhase, PollerSnapshot, SessionPoller
from issue_dispatch.workflow import WorkflowKind, WorkflowStatus

ATTENTION_MAX_CHARS = 50

LOADING = WorkflowStatus(label="Loading…", kind=WorkflowKind.PENDING)

_ORDER = (SessionKind.SCOPE, SessionKind.EXECUTE)


class StatusPill(BaseModel):
    kind: SessionKind
    session_id: str
    status: WorkflowStatus
    polling: bool
    reconnecting: bool = False
    next_retry_in: Optional[int] = None
    error: Optional[str] = None


class AttentionMessage(BaseModel):
    kind: SessionKind
    text: str
    full_text: str


class IssueSummary(BaseModel):
    issue_number: int
    pills: list[StatusPill]
    attention: Optional[AttentionMessage] = None
    latest_update: Optional[datetime] = None
    updated_label: Optional[str] = None
    is_settled: bool = False


def truncate(text: str, limit: int = ATTENTION_MAX_CHARS) -> str:
    if len(text) > limit:
        return text[:limit] + "..."
    return text


def relative_time(ts: datetime, now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    minutes = int((now - ts).total_seconds() // 60)
    hours = minutes // 60
    if minutes < 1:
        return "just now"
    if minutes < 60:
        return f"{minutes}m ago"
    if hours < 24:
        return f"{hours}h ago"
    return f"{hours // 24}d ago"


class SessionAggregator:
    def __init__(self, issue_number: int):
        self.issue_number = issue_number
        self._snapshots: dict[SessionKind, PollerSnapshot] = {}
        self._unsubscribe: dict[SessionKind, Callable[[], None]] = {}
        self._listeners: list[Callable[[Optional[IssueSummary]], None]] = []

    @property
    def kinds(self) -> list[SessionKind]:
        return [k for k in _ORDER if k in self._snapshots]

    def attach(self, poller: SessionPoller) -> None:
        self.detach(poller.kind)
        self._snapshots[poller.kind] = poller.snapshot
        self._unsubscribe[poller.kind] = poller.add_listener(self._on_snapshot)

    def detach(self, kind: SessionKind) -> None:
        remove = self._unsubscribe.pop(kind, None)
        if remove is not None:
            remove()
        self._snapshots.pop(kind, None)

    def close(self) -> None:
        for kind in list(self._unsubscribe):
            self.detach(kind)

    def add_listener(self, listener: Callable[[Optional[IssueSummary]], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def remove() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass
        return remove

    def _on_snapshot(self, snapshot: PollerSnapshot) -> None:
        self._snapshots[snapshot.kind] = snapshot
        if self._listeners:
            summary = self.summary()
            for listener in list(self._listeners):
                listener(summary)

    def summary(self, now: Optional[datetime] = None) -> Optional[IssueSummary]:
        if not self._snapshots:
            return None
        snapshots = [self._snapshots[k] for k in self.kinds]

        pills = [
            StatusPill(
                kind=s.kind,
                session_id=s.session_id,
                status=s.workflow or LOADING,
                polling=s.is_polling,
                reconnecting=s.is_reconnecting,
                next_retry_in=s.polling.next_retry_in,
                error=s.error,
            )
            for s in snapshots
        ]

        updates = [s.data.updated_at for s in snapshots if s.data is not None and s.data.updated_at is not None]
        latest = max(updates, key=_aware) if updates else None

        return IssueSummary(
            issue_number=self.issue_number,
            pills=pills,
            attention=self._attention(),
            latest_update=latest,
            updated_label=relative_time(latest, now) if latest else None,
            is_settled=all(s.phase in (PollerPhase.STOPPED, PollerPhase.EXHAUSTED) for s in snapshots),
        )

    def _attention(self) -> Optional[AttentionMessage]:
        # execute outranks scope
        for kind in (SessionKind.EXECUTE, SessionKind.SCOPE):
            snapshot = self._snapshots.get(kind)
            if snapshot is None or snapshot.workflow is None:
                continue
            status = snapshot.workflow
            if status.needs_attention:
                full = status.detail or status.label
                return AttentionMessage(kind=kind, text=truncate(full), full_text=full)
        return None


def _aware(ts: datetime) -> datetime:
    return ts if ts.tzinfo is not None else ts.replace(tzinfo=timezone.utc)
