"""
Session models for the agent session platform.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, field_validator


class SessionKind(str, Enum):
    SCOPE = "scope"
    EXECUTE = "execute"


KNOWN_STATUSES = (
    "pending", "queued", "running", "blocked", "paused",
    "finished", "failed", "cancelled", "expired",
)


class PullRequest(BaseModel):
    url: str


class Session(BaseModel):
    session_id: str
    url: Optional[str] = None
    status_enum: Optional[str] = None
    # Any JSON value; agents do not always honour the requested object shape
    structured_output: Optional[Any] = None
    pull_request: Optional[PullRequest] = None
    updated_at: Optional[datetime] = None
    title: Optional[str] = None
    messages_count: Optional[int] = None

    @field_validator("structured_output", mode="before")
    @classmethod
    def _empty_output_is_none(cls, value: Any) -> Any:
        # The platform reports {} before the agent writes anything
        if value is None or value == {} or value == [] or value == "":
            return None
        return value

    @property
    def output_fields(self) -> Optional[dict[str, Any]]:
        """structured_output when it is a JSON object, otherwise None."""
        if isinstance(self.structured_output, dict):
            return self.structured_output
        return None

    @property
    def pull_request_url(self) -> Optional[str]:
        return self.pull_request.url if self.pull_request else None


class SessionSecret(BaseModel):
    key: str
    value: str
    sensitive: bool = True


class CreateSessionParams(BaseModel):
    prompt: str
    tags: list[str] = []
    title: Optional[str] = None
    unlisted: bool = True
    session_secrets: list[SessionSecret] = []
