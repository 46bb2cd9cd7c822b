"""
Settings read from the environment, with an optional JSON overlay written by
the CLI (~/.issue-dispatch/config.json).
"""

import json
import os
from pathlib import Path
from typing import Any, Mapping, Optional

from pydantic import BaseModel

from issue_dispatch.backoff import BackoffPolicy
from issue_dispatch.errors import ConfigError
from issue_dispatch.issues import DEFAULT_API_BASE as GITHUB_API_BASE
from issue_dispatch.models.issue import Repo
from issue_dispatch.poller import DEFAULT_INTERVAL_S, DEFAULT_MAX_FAILURES
from issue_dispatch.sessions import DEFAULT_API_BASE as DEVIN_API_BASE

CONFIG_DIR = Path.home() / ".issue-dispatch"
CONFIG_FILE = CONFIG_DIR / "config.json"

# field -> environment variable
ENV_VARS = {
    "devin_api_key": "DEVIN_API_KEY",
    "github_token": "GITHUB_TOKEN",
    "github_owner": "GITHUB_OWNER",
    "github_repo": "GITHUB_REPO",
    "base_branch": "GITHUB_BASE_BRANCH",
    "devin_api_base": "DEVIN_API_BASE",
    "github_api_base": "GITHUB_API_BASE",
    "poll_interval": "DISPATCH_POLL_INTERVAL",
    "max_failures": "DISPATCH_MAX_FAILURES",
    "state_dir": "DISPATCH_STATE_DIR",
}
REQUIRED = ("devin_api_key", "github_token", "github_owner", "github_repo")


class Settings(BaseModel):
    devin_api_key: str
    github_token: str
    github_owner: str
    github_repo: str
    base_branch: str = "main"
    devin_api_base: str = DEVIN_API_BASE
    github_api_base: str = GITHUB_API_BASE
    poll_interval: float = DEFAULT_INTERVAL_S
    max_failures: int = DEFAULT_MAX_FAILURES
    backoff: BackoffPolicy = BackoffPolicy()
    state_dir: Path = CONFIG_DIR

    @property
    def repo(self) -> Repo:
        return Repo(owner=self.github_owner, name=self.github_repo)

    @property
    def sessions_file(self) -> Path:
        return self.state_dir / "sessions.json"

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> "Settings":
        """Build settings; explicit overrides win over the environment."""
        environ = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        for field, var in ENV_VARS.items():
            if environ.get(var):
                values[field] = environ[var]
        for field, value in (overrides or {}).items():
            if value not in (None, ""):
                values[field] = value
        for field in REQUIRED:
            if not values.get(field):
                raise ConfigError(f"{ENV_VARS[field]} environment variable is required")
        return cls.model_validate(values)


def load_config_file(path: Path = CONFIG_FILE) -> dict[str, Any]:
    try:
        return json.loads(path.read_text())
    except (FileNotFoundError, json.JSONDecodeError):
        return {}


def save_config_file(cfg: dict[str, Any], path: Path = CONFIG_FILE) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(cfg, indent=2))
