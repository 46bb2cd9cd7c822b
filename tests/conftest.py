"""Shared fakes: a virtual clock for pollers and scripted session fetches."""

import asyncio
from typing import Any, Optional

import pytest

from issue_dispatch.models.session import Session


async def settle(rounds: int = 50) -> None:
    """Let every ready task run until the loop goes quiet."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class FakeClock:
    """Drop-in for asyncio.sleep driven by advance()."""

    def __init__(self) -> None:
        self.now = 0.0
        self.delays: list[float] = []
        self._pending: list[tuple[float, asyncio.Future]] = []

    async def sleep(self, delay: float) -> None:
        fut = asyncio.get_running_loop().create_future()
        entry = (self.now + delay, fut)
        self._pending.append(entry)
        self.delays.append(delay)
        try:
            await fut
        finally:
            self._pending.remove(entry)

    @property
    def pending(self) -> int:
        return sum(1 for _, fut in self._pending if not fut.done())

    async def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = [(d, f) for d, f in self._pending if d <= target and not f.done()]
            if not due:
                break
            self.now = min(d for d, _ in due)
            for deadline, fut in due:
                if deadline <= self.now:
                    fut.set_result(None)
            await settle()
        self.now = target
        await settle()


class ScriptedFetch:
    """Returns (or raises) scripted results in order; the last one repeats."""

    def __init__(self, *results: Any) -> None:
        self.results = list(results)
        self.calls = 0

    def then(self, *results: Any) -> None:
        self.results = list(results)

    async def __call__(self) -> Session:
        self.calls += 1
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, Exception):
            raise result
        return result


def make_session(
    status: Optional[str] = "running",
    output: Any = None,
    *,
    session_id: str = "abc",
    pr_url: Optional[str] = None,
    updated_at: str = "2026-10-19T12:00:00+00:00",
) -> Session:
    data: dict[str, Any] = {
        "session_id": session_id,
        "url": f"https://app.devin.ai/sessions/{session_id}",
        "status_enum": status,
        "structured_output": output,
        "updated_at": updated_at,
    }
    if pr_url:
        data["pull_request"] = {"url": pr_url}
    return Session.model_validate(data)


SCOPE_OUTPUT = {
    "issue_number": 7,
    "title": "Fix failing auth redirect",
    "confidence_score": 72,
    "confidence_rationale": "Clear repro, thin tests.",
    "assumptions": ["Callback handler is at fault"],
    "unknowns": ["Other providers?"],
    "risks": ["May affect other logins"],
    "action_plan": [
        {"step": 1, "title": "Reproduce bug", "details": "Write a failing test"},
        {"step": 2, "title": "Implement fix", "details": "Correct the redirect target"},
    ],
    "ready_to_execute": True,
}


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
