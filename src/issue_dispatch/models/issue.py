"""
GitHub issue models.
"""

from typing import Literal, Optional
from pydantic import BaseModel

IssueState = Literal["open", "closed", "all"]

SNIPPET_LENGTH = 200


class Label(BaseModel):
    name: str
    color: str = "gray"


class Issue(BaseModel):
    number: int
    title: str
    body: Optional[str] = None
    html_url: str
    updated_at: str
    labels: list[Label] = []
    state: str = "open"

    @property
    def body_snippet(self) -> Optional[str]:
        if not self.body:
            return None
        if len(self.body) > SNIPPET_LENGTH:
            return self.body[:SNIPPET_LENGTH] + "..."
        return self.body


class Repo(BaseModel):
    owner: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"
