"""
Durable mapping of (issue number, session kind) -> session id.

Lets a restarted dashboard reattach pollers to the sessions it launched.
"""

import json
import logging
from pathlib import Path
from typing import Optional, Union

from issue_dispatch.models.session import SessionKind

logger = logging.getLogger(__name__)


def _key(issue_number: int, kind: Union[SessionKind, str]) -> str:
    return f"{issue_number}:{SessionKind(kind).value}"


class SessionStore:
    def __init__(self, path: Path):
        self.path = path

    def _load(self) -> dict[str, str]:
        try:
            data = json.loads(self.path.read_text())
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError:
            logger.warning("Ignoring corrupt session store at %s", self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2, sort_keys=True))

    def get(self, issue_number: int, kind: Union[SessionKind, str]) -> Optional[str]:
        return self._load().get(_key(issue_number, kind))

    def set(self, issue_number: int, kind: Union[SessionKind, str], session_id: str) -> None:
        data = self._load()
        data[_key(issue_number, kind)] = session_id
        self._save(data)

    def for_issue(self, issue_number: int) -> dict[SessionKind, str]:
        data = self._load()
        found = {}
        for kind in SessionKind:
            session_id = data.get(_key(issue_number, kind))
            if session_id:
                found[kind] = session_id
        return found

    def clear(self, issue_number: int, kind: Union[SessionKind, str, None] = None) -> None:
        data = self._load()
        kinds = [SessionKind(kind)] if kind is not None else list(SessionKind)
        for k in kinds:
            data.pop(_key(issue_number, k), None)
        self._save(data)
