"""
Session platform REST API (Devin v1).
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from issue_dispatch.errors import SessionError
from issue_dispatch.models.session import CreateSessionParams, Session
from issue_dispatch.transport.http import HttpClient

DEFAULT_API_BASE = "https://api.devin.ai/v1"


class SessionsAPI:
    def __init__(self, http: HttpClient):
        self._http = http

    async def create(self, params: CreateSessionParams) -> Session:
        """Create a session from a prompt."""
        data = await self._http.post("/sessions", params.model_dump(exclude_none=True))
        data = _require_mapping(data, "create")
        if not data.get("status_enum"):
            data["status_enum"] = "pending"
        if not data.get("updated_at"):
            data["updated_at"] = datetime.now(timezone.utc).isoformat()
        return _to_session(data)

    async def get(self, session_id: str) -> Session:
        """Fetch the current state of a session."""
        data = await self._http.get(f"/sessions/{session_id}")
        data = _require_mapping(data, "get")
        messages = data.get("messages")
        if isinstance(messages, list):
            data["messages_count"] = len(messages)
        return _to_session(data)


def _require_mapping(data: Any, op: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise SessionError(f"Unexpected {op} session response: {type(data).__name__}", code="invalid_response")
    return dict(data)


def _to_session(data: dict[str, Any]) -> Session:
    try:
        return Session.model_validate(data)
    except ValidationError as e:
        raise SessionError(f"Malformed session payload: {e.error_count()} errors", code="invalid_response") from e
