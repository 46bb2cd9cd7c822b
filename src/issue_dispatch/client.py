"""
AsyncIssueDispatch / IssueDispatch: main clients.
"""

import asyncio
import logging
from typing import Any, Optional

import httpx

from issue_dispatch.aggregator import SessionAggregator
from issue_dispatch.config import Settings
from issue_dispatch.errors import SessionError
from issue_dispatch.issues import GITHUB_HEADERS, IssuesAPI
from issue_dispatch.models.issue import Issue, IssueState
from issue_dispatch.models.session import CreateSessionParams, Session, SessionKind, SessionSecret
from issue_dispatch.poller import PollerPhase, PollerSnapshot, SessionPoller, Sleeper
from issue_dispatch.prompts import (
    build_execute_prompt,
    build_scope_prompt,
    session_tags,
    session_title,
)
from issue_dispatch.sessions import SessionsAPI
from issue_dispatch.store import SessionStore
from issue_dispatch.transport.http import HttpClient

logger = logging.getLogger(__name__)


class AsyncIssueDispatch:
    """Async client (primary)."""

    def __init__(
        self,
        settings: Settings,
        *,
        store: Optional[SessionStore] = None,
        devin_transport: Optional[httpx.AsyncBaseTransport] = None,
        github_transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Sleeper = asyncio.sleep,
    ):
        self.settings = settings
        self._sleep = sleep

        self.devin_http = HttpClient(settings.devin_api_base, settings.devin_api_key, transport=devin_transport)
        self.github_http = HttpClient(
            settings.github_api_base, settings.github_token,
            headers=GITHUB_HEADERS, transport=github_transport,
        )
        self.sessions = SessionsAPI(self.devin_http)
        self.issues = IssuesAPI(self.github_http, settings.repo)
        self.store = store or SessionStore(settings.sessions_file)

        self._pollers: list[SessionPoller] = []

    @property
    def pollers(self) -> list[SessionPoller]:
        return list(self._pollers)

    async def list_issues(self, state: IssueState = "open") -> list[Issue]:
        return await self.issues.list(state)

    async def start_scope(self, issue_number: int) -> Session:
        """Launch a scope session for an issue and remember its id."""
        issue = await self.issues.get(issue_number)
        repo = self.settings.repo
        session = await self.sessions.create(CreateSessionParams(
            prompt=build_scope_prompt(issue, repo),
            title=session_title("Scope", issue),
            tags=session_tags("scope", issue, repo),
        ))
        self.store.set(issue_number, SessionKind.SCOPE, session.session_id)
        logger.info("Scope session %s started for issue #%d", session.session_id, issue_number)
        return session

    async def start_execute(
        self,
        issue_number: int,
        scope_session_id: Optional[str] = None,
        clarifications: Optional[str] = None,
    ) -> Session:
        """Launch an execute session from a finished scope session."""
        scope_session_id = scope_session_id or self.store.get(issue_number, SessionKind.SCOPE)
        if not scope_session_id:
            raise SessionError(f"Issue #{issue_number} has no scope session", code="missing_scope")

        scope = await self.sessions.get(scope_session_id)
        if not scope.output_fields:
            raise SessionError(
                "Scope session has no structured output yet. Wait for scoping to complete.",
                code="scope_incomplete",
            )

        issue = await self.issues.get(issue_number)
        repo = self.settings.repo
        session = await self.sessions.create(CreateSessionParams(
            prompt=build_execute_prompt(
                issue, repo, scope.output_fields,
                base_branch=self.settings.base_branch,
                clarifications=clarifications,
            ),
            title=session_title("Execute", issue),
            tags=session_tags("execute", issue, repo, scope_session_id=scope_session_id),
            session_secrets=[SessionSecret(key="GITHUB_TOKEN", value=self.settings.github_token)],
        ))
        self.store.set(issue_number, SessionKind.EXECUTE, session.session_id)
        logger.info("Execute session %s started for issue #%d", session.session_id, issue_number)
        return session

    def poller(self, session_id: str, kind: SessionKind) -> SessionPoller:
        """Build an (unstarted) poller for one session."""
        poller = SessionPoller(
            session_id,
            kind,
            lambda: self.sessions.get(session_id),
            interval=self.settings.poll_interval,
            max_failures=self.settings.max_failures,
            backoff=self.settings.backoff,
            sleep=self._sleep,
        )
        self._pollers.append(poller)

        def track(snapshot: PollerSnapshot) -> None:
            # Only pollers with a live task are kept; retry() re-registers
            if snapshot.phase in (PollerPhase.STOPPED, PollerPhase.EXHAUSTED):
                if poller in self._pollers:
                    self._pollers.remove(poller)
            elif poller not in self._pollers:
                self._pollers.append(poller)

        poller.add_listener(track)
        return poller

    def watch(self, issue_number: int) -> SessionAggregator:
        """Attach and start pollers for every stored session of an issue."""
        aggregator = SessionAggregator(issue_number)
        for kind, session_id in self.store.for_issue(issue_number).items():
            poller = self.poller(session_id, kind)
            aggregator.attach(poller)
            poller.start()
        return aggregator

    async def close(self) -> None:
        pollers, self._pollers = self._pollers, []
        for poller in pollers:
            await poller.aclose()
        await self.devin_http.close()
        await self.github_http.close()

    async def __aenter__(self) -> "AsyncIssueDispatch":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


class IssueDispatch:
    """Sync wrapper around AsyncIssueDispatch. Runs the event loop internally."""

    def __init__(self, settings: Settings, **kwargs: Any):
        self._loop = asyncio.new_event_loop()
        self._async = AsyncIssueDispatch(settings, **kwargs)

    def _run(self, coro: Any) -> Any:
        return self._loop.run_until_complete(coro)

    @property
    def store(self) -> SessionStore:
        return self._async.store

    def list_issues(self, state: IssueState = "open") -> list[Issue]:
        return self._run(self._async.list_issues(state))

    def get_issue(self, issue_number: int) -> Issue:
        return self._run(self._async.issues.get(issue_number))

    def get_session(self, session_id: str) -> Session:
        return self._run(self._async.sessions.get(session_id))

    def start_scope(self, issue_number: int) -> Session:
        return self._run(self._async.start_scope(issue_number))

    def start_execute(self, issue_number: int, **kwargs: Any) -> Session:
        return self._run(self._async.start_execute(issue_number, **kwargs))

    def close(self) -> None:
        self._run(self._async.close())
        self._loop.close()
