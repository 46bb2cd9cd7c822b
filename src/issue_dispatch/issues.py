"""
Issue source: GitHub REST issues of one configured repository.
"""

from __future__ import annotations

from typing import Any

from issue_dispatch.errors import HttpError, IssueError
from issue_dispatch.models.issue import Issue, IssueState, Label, Repo
from issue_dispatch.transport.http import HttpClient

DEFAULT_API_BASE = "https://api.github.com"
GITHUB_HEADERS = {
    "Accept": "application/vnd.github+json",
    "X-GitHub-Api-Version": "2022-11-28",
}


class IssuesAPI:
    def __init__(self, http: HttpClient, repo: Repo):
        self._http = http
        self.repo = repo

    async def list(self, state: IssueState = "open", per_page: int = 50) -> list[Issue]:
        """Most recently updated issues first. Pull requests are dropped."""
        params = {"state": state, "per_page": per_page, "sort": "updated", "direction": "desc"}
        data = await self._call(f"/repos/{self.repo.owner}/{self.repo.name}/issues", params)
        return [_to_issue(item) for item in data if not item.get("pull_request")]

    async def get(self, number: int) -> Issue:
        data = await self._call(f"/repos/{self.repo.owner}/{self.repo.name}/issues/{number}")
        return _to_issue(data)

    async def _call(self, path: str, params: dict[str, Any] | None = None) -> Any:
        try:
            return await self._http.get(path, params=params)
        except HttpError as e:
            if e.status_code in (403, 429) and "rate limit" in e.message.lower():
                raise IssueError(
                    "GitHub API rate limit exceeded. Please try again later.", code="rate_limited",
                ) from e
            if e.status_code == 404:
                raise IssueError(f"Not found: {path}", code="not_found") from e
            raise


def _to_issue(item: dict[str, Any]) -> Issue:
    labels = [
        Label(name=label["name"], color=label.get("color") or "gray")
        for label in item.get("labels", [])
        if isinstance(label, dict) and "name" in label
    ]
    return Issue(
        number=item["number"],
        title=item["title"],
        body=item.get("body"),
        html_url=item["html_url"],
        updated_at=item["updated_at"],
        labels=labels,
        state=item.get("state", "open"),
    )
