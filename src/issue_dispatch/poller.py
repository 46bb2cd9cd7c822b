"""
Session poller: keeps a live snapshot of one remote session.

Each poller owns a single asyncio task that fetches, classifies the result
and sleeps until the next fetch, so there is never more than one fetch in
flight per session. While backing off, a second lightweight task counts
down the seconds to the next attempt.

Transitions:
- success, non-terminal status -> normal, next fetch after `interval`
- success, terminal status     -> stopped
- transient failure            -> backing_off (delay from BackoffPolicy),
                                  or exhausted once max_failures is reached
- permanent failure            -> exhausted, backoff not consulted
- retry()                      -> failure count reset, immediate fetch
"""

import asyncio
import contextlib
import logging
import math
from datetime import datetime, timezone
from enum import Enum
from typing import Awaitable, Callable, Optional

from pydantic import BaseModel

from issue_dispatch.backoff import BackoffPolicy
from issue_dispatch.errors import DispatchError
from issue_dispatch.models.session import Session, SessionKind
from issue_dispatch.workflow import WorkflowStatus, derive_workflow_status

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_S = 15.0
DEFAULT_MAX_FAILURES = 5
COUNTDOWN_TICK_S = 1.0

TRANSIENT_STATUS_CODES = frozenset({429, 502, 503, 504})

NOT_FOUND_MESSAGE = "Session not found"
EXHAUSTED_MESSAGE = "Unable to refresh session status. Please retry."


class PollerPhase(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    NORMAL = "normal"
    BACKING_OFF = "backing_off"
    EXHAUSTED = "exhausted"
    STOPPED = "stopped"


class PollingMode(str, Enum):
    NORMAL = "normal"
    BACKING_OFF = "backing-off"
    EXHAUSTED = "exhausted"


class FailureClass(str, Enum):
    TRANSIENT = "transient"
    PERMANENT = "permanent"


def classify_failure(exc: DispatchError) -> FailureClass:
    """Failures without a status code never got a response and are transient."""
    status = getattr(exc, "status_code", None)
    if status is None or status in TRANSIENT_STATUS_CODES:
        return FailureClass.TRANSIENT
    return FailureClass.PERMANENT


def permanent_message(exc: DispatchError) -> str:
    status = getattr(exc, "status_code", None)
    if status == 404:
        return NOT_FOUND_MESSAGE
    return f"Request failed (HTTP {status})"


class PollingState(BaseModel):
    model_config = {"frozen": True}

    failure_count: int = 0
    mode: PollingMode = PollingMode.NORMAL
    next_retry_in: Optional[int] = None


class PollerSnapshot(BaseModel):
    """Immutable view of a poller handed to listeners."""

    model_config = {"frozen": True}

    session_id: str
    kind: SessionKind
    phase: PollerPhase
    data: Optional[Session] = None
    workflow: Optional[WorkflowStatus] = None
    polling: PollingState = PollingState()
    error: Optional[str] = None
    last_success_at: Optional[datetime] = None

    @property
    def is_reconnecting(self) -> bool:
        return self.polling.mode is PollingMode.BACKING_OFF

    @property
    def is_failed(self) -> bool:
        return self.polling.mode is PollingMode.EXHAUSTED

    @property
    def is_polling(self) -> bool:
        return self.phase not in (PollerPhase.STOPPED, PollerPhase.EXHAUSTED)


Fetcher = Callable[[], Awaitable[Session]]
Listener = Callable[[PollerSnapshot], None]
Sleeper = Callable[[float], Awaitable[None]]


class SessionPoller:
    def __init__(
        self,
        session_id: str,
        kind: SessionKind,
        fetch: Fetcher,
        *,
        interval: float = DEFAULT_INTERVAL_S,
        max_failures: int = DEFAULT_MAX_FAILURES,
        backoff: Optional[BackoffPolicy] = None,
        sleep: Sleeper = asyncio.sleep,
    ):
        self._session_id = session_id
        self._kind = SessionKind(kind)
        self._fetch = fetch
        self._interval = interval
        self._max_failures = max_failures
        self._backoff = backoff or BackoffPolicy()
        self._sleep = sleep

        self._task: Optional[asyncio.Task[None]] = None
        self._ticker: Optional[asyncio.Task[None]] = None
        self._listeners: list[Listener] = []

        self._phase = PollerPhase.IDLE
        self._state = PollingState()
        self._data: Optional[Session] = None
        self._error: Optional[str] = None
        self._last_success_at: Optional[datetime] = None
        self._snapshot = self._build_snapshot()

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def kind(self) -> SessionKind:
        return self._kind

    @property
    def snapshot(self) -> PollerSnapshot:
        return self._snapshot

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        """Register a snapshot listener. Returns a function that removes it."""
        self._listeners.append(listener)

        def remove() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass
        return remove

    def start(self) -> None:
        """Begin polling; the first fetch is not delayed.

        Starting an exhausted poller clears its failures, like retry().
        """
        if self.running:
            return
        if self._phase is PollerPhase.EXHAUSTED:
            self._reset()
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run(), name=f"poll:{self._session_id}")

    async def retry(self) -> None:
        """Reset failures and fetch now, bypassing any pending timer."""
        await self._cancel()
        self._reset()
        logger.info("Manual retry for session %s", self._session_id)
        self.start()

    def _reset(self) -> None:
        self._state = PollingState()
        self._error = None
        self._phase = PollerPhase.IDLE

    async def aclose(self) -> None:
        """Cancel the pending fetch timer and countdown."""
        await self._cancel()

    async def __aenter__(self) -> "SessionPoller":
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # -- actor ------------------------------------------------------------

    async def _run(self) -> None:
        while True:
            delay = await self._poll()
            if delay is None:
                return
            if self._phase is PollerPhase.BACKING_OFF:
                self._start_countdown(delay)
            try:
                await self._sleep(delay)
            finally:
                self._stop_countdown()

    async def _poll(self) -> Optional[float]:
        """One fetch. Returns the delay before the next one, or None to stop."""
        self._transition(PollerPhase.FETCHING)
        logger.debug("Fetching session %s", self._session_id)
        try:
            session = await self._fetch()
        except DispatchError as exc:
            return self._on_failure(exc)
        return self._on_success(session)

    def _on_success(self, session: Session) -> Optional[float]:
        self._data = session
        self._error = None
        self._last_success_at = datetime.now(timezone.utc)
        self._state = PollingState()
        if self._workflow().is_terminal:
            logger.info("Session %s reached %s", self._session_id, session.status_enum)
            self._transition(PollerPhase.STOPPED)
            return None
        self._transition(PollerPhase.NORMAL)
        return self._interval

    def _on_failure(self, exc: DispatchError) -> Optional[float]:
        failure_count = self._state.failure_count + 1
        if classify_failure(exc) is FailureClass.PERMANENT:
            logger.error("Session %s: permanent failure: %s", self._session_id, exc)
            return self._exhaust(failure_count, permanent_message(exc))
        if failure_count >= self._max_failures:
            logger.error(
                "Session %s: giving up after %d consecutive failures: %s",
                self._session_id, failure_count, exc,
            )
            return self._exhaust(failure_count, EXHAUSTED_MESSAGE)

        delay = self._backoff.delay(failure_count)
        logger.warning(
            "Session %s: transient failure %d/%d, retrying in %.1fs: %s",
            self._session_id, failure_count, self._max_failures, delay, exc,
        )
        self._state = PollingState(
            failure_count=failure_count,
            mode=PollingMode.BACKING_OFF,
            next_retry_in=math.ceil(delay),
        )
        self._transition(PollerPhase.BACKING_OFF)
        return delay

    def _exhaust(self, failure_count: int, message: str) -> None:
        self._state = PollingState(failure_count=failure_count, mode=PollingMode.EXHAUSTED)
        self._error = message
        self._transition(PollerPhase.EXHAUSTED)
        return None

    # -- countdown --------------------------------------------------------

    def _start_countdown(self, delay: float) -> None:
        self._stop_countdown()
        loop = asyncio.get_running_loop()
        self._ticker = loop.create_task(self._countdown(math.ceil(delay)), name=f"countdown:{self._session_id}")

    def _stop_countdown(self) -> None:
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None

    async def _countdown(self, remaining: int) -> None:
        while remaining > 0:
            await self._sleep(COUNTDOWN_TICK_S)
            remaining -= 1
            self._state = self._state.model_copy(update={"next_retry_in": remaining})
            self._publish()

    async def _cancel(self) -> None:
        tasks = [t for t in (self._task, self._ticker) if t is not None]
        self._task = None
        self._ticker = None
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    # -- snapshots --------------------------------------------------------

    def _workflow(self) -> Optional[WorkflowStatus]:
        if self._data is None:
            return None
        return derive_workflow_status(
            self._kind,
            self._data.status_enum,
            self._data.output_fields,
            self._data.pull_request_url,
        )

    def _build_snapshot(self) -> PollerSnapshot:
        return PollerSnapshot(
            session_id=self._session_id,
            kind=self._kind,
            phase=self._phase,
            data=self._data,
            workflow=self._workflow(),
            polling=self._state,
            error=self._error,
            last_success_at=self._last_success_at,
        )

    def _transition(self, phase: PollerPhase) -> None:
        self._phase = phase
        self._publish()

    def _publish(self) -> None:
        self._snapshot = self._build_snapshot()
        for listener in list(self._listeners):
            try:
                listener(self._snapshot)
            except Exception:
                logger.exception("Snapshot listener failed for session %s", self._session_id)
