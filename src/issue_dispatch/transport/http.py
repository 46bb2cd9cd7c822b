"""
Async REST client shared by the session platform and the issue source.
"""

import logging
from typing import Any, Optional

import httpx

from issue_dispatch.errors import ConnectionError, DispatchError, HttpError

logger = logging.getLogger(__name__)

USER_AGENT = "issue-dispatch/0.1.0"


class HttpClient:
    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        *,
        headers: Optional[dict[str, str]] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"User-Agent": USER_AGENT, "Accept": "application/json", **(headers or {})},
            timeout=timeout,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    def set_token(self, token: str) -> None:
        self._token = token

    def _auth_headers(self) -> dict[str, str]:
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        logger.debug("%s %s%s", method, self._base_url, path)
        try:
            resp = await self._client.request(method, path, headers=self._auth_headers(), **kwargs)
        except httpx.RequestError as e:
            raise ConnectionError(f"{method} {path} failed: {e}") from e
        if not resp.is_success:
            raise HttpError(resp.status_code, f"HTTP {resp.status_code}: {resp.text[:200]}")
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise DispatchError("invalid_response", f"{method} {path} returned non-JSON body") from e

    async def get(self, path: str, params: Optional[dict[str, Any]] = None) -> Any:
        return await self._request("GET", path, params=params)

    async def post(self, path: str, body: Optional[dict[str, Any]] = None) -> Any:
        return await self._request("POST", path, json=body)

    async def close(self) -> None:
        await self._client.aclose()
