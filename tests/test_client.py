"""AsyncIssueDispatch against stubbed GitHub and session platform."""

import json

import httpx
import pytest

from conftest import SCOPE_OUTPUT, settle
from issue_dispatch.client import AsyncIssueDispatch
from issue_dispatch.config import Settings
from issue_dispatch.errors import SessionError
from issue_dispatch.models.session import SessionKind
from issue_dispatch.poller import PollerPhase
from issue_dispatch.store import SessionStore

ISSUE = {
    "number": 7,
    "title": "Login redirect loops",
    "body": "Steps to reproduce",
    "html_url": "https://github.com/acme/widgets/issues/7",
    "updated_at": "2026-10-18T09:00:00Z",
    "labels": [],
    "state": "open",
}


def github(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json=ISSUE)


class FakePlatform:
    def __init__(self, sessions=None):
        self.sessions = sessions or {}
        self.created = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            body = json.loads(request.content)
            self.created.append(body)
            session_id = f"new-{len(self.created)}"
            return httpx.Response(200, json={"session_id": session_id, "url": f"https://app/{session_id}"})
        session_id = request.url.path.rsplit("/", 1)[-1]
        if session_id not in self.sessions:
            return httpx.Response(404, text="not found")
        return httpx.Response(200, json={"session_id": session_id, **self.sessions[session_id]})


def make_client(tmp_path, platform, clock=None):
    settings = Settings(
        devin_api_key="dk", github_token="gt", github_owner="acme", github_repo="widgets",
        base_branch="develop", state_dir=tmp_path,
    )
    kwargs = {"sleep": clock.sleep} if clock else {}
    return AsyncIssueDispatch(
        settings,
        store=SessionStore(tmp_path / "sessions.json"),
        devin_transport=httpx.MockTransport(platform),
        github_transport=httpx.MockTransport(github),
        **kwargs,
    )


@pytest.mark.asyncio
async def test_start_scope_records_session(tmp_path):
    platform = FakePlatform()
    async with make_client(tmp_path, platform) as client:
        session = await client.start_scope(7)

        assert session.session_id == "new-1"
        assert client.store.get(7, SessionKind.SCOPE) == "new-1"
    body = platform.created[0]
    assert body["title"] == "Scope: Login redirect loops"
    assert "stage:scope" in body["tags"]
    assert body["prompt"].startswith("# Task: Scope GitHub Issue #7")
    assert body["session_secrets"] == []


@pytest.mark.asyncio
async def test_start_execute_requires_scope_output(tmp_path):
    platform = FakePlatform({"s-1": {"status_enum": "running", "structured_output": None}})
    async with make_client(tmp_path, platform) as client:
        client.store.set(7, "scope", "s-1")
        with pytest.raises(SessionError) as exc_info:
            await client.start_execute(7)
    assert exc_info.value.code == "scope_incomplete"
    assert platform.created == []


@pytest.mark.asyncio
async def test_start_execute_without_scope_session(tmp_path):
    async with make_client(tmp_path, FakePlatform()) as client:
        with pytest.raises(SessionError) as exc_info:
            await client.start_execute(7)
    assert exc_info.value.code == "missing_scope"


@pytest.mark.asyncio
async def test_start_execute_passes_plan_and_token(tmp_path):
    platform = FakePlatform({"s-1": {"status_enum": "blocked", "structured_output": SCOPE_OUTPUT}})
    async with make_client(tmp_path, platform) as client:
        client.store.set(7, "scope", "s-1")
        session = await client.start_execute(7, clarifications="Keep it small")
        assert client.store.get(7, "execute") == session.session_id

    body = platform.created[0]
    assert "1. **Reproduce bug**: Write a failing test" in body["prompt"]
    assert "Keep it small" in body["prompt"]
    assert "from `develop`" in body["prompt"]
    assert "scope:s-1" in body["tags"]
    assert body["session_secrets"] == [{"key": "GITHUB_TOKEN", "value": "gt", "sensitive": True}]


@pytest.mark.asyncio
async def test_watch_reattaches_stored_sessions(tmp_path, clock):
    platform = FakePlatform({
        "s-1": {"status_enum": "blocked", "structured_output": SCOPE_OUTPUT, "updated_at": "2026-10-19T10:00:00Z"},
        "e-1": {"status_enum": "running", "updated_at": "2026-10-19T11:00:00Z"},
    })
    client = make_client(tmp_path, platform, clock)
    client.store.set(7, "scope", "s-1")
    client.store.set(7, "execute", "e-1")

    aggregator = client.watch(7)
    for _ in range(5):
        await settle()

    summary = aggregator.summary()
    assert [p.status.label for p in summary.pills] == ["Awaiting approval", "Executing…"]
    # the stopped scope poller is no longer tracked
    assert [(p.session_id, p.snapshot.phase) for p in client.pollers] == [("e-1", PollerPhase.NORMAL)]
    assert clock.pending == 1

    await client.close()
    assert clock.pending == 0


@pytest.mark.asyncio
async def test_watch_without_sessions(tmp_path):
    async with make_client(tmp_path, FakePlatform()) as client:
        assert client.watch(7).summary() is None


@pytest.mark.asyncio
async def test_exhausted_poller_is_tracked_again_after_retry(tmp_path, clock):
    platform = FakePlatform()
    client = make_client(tmp_path, platform, clock)
    poller = client.poller("gone", SessionKind.EXECUTE)
    poller.start()
    await settle()

    assert poller.snapshot.phase is PollerPhase.EXHAUSTED
    assert client.pollers == []

    platform.sessions["gone"] = {"status_enum": "running"}
    await poller.retry()
    await settle()

    assert client.pollers == [poller]
    await client.close()
    assert clock.pending == 0


@pytest.mark.asyncio
async def test_start_execute_rejects_non_object_scope_output(tmp_path):
    platform = FakePlatform({"s-1": {"status_enum": "blocked", "structured_output": "see the chat"}})
    async with make_client(tmp_path, platform) as client:
        with pytest.raises(SessionError) as exc_info:
            await client.start_execute(7, scope_session_id="s-1")
    assert exc_info.value.code == "scope_incomplete"
    assert platform.created == []
