"""LINE Messaging API client for replies, link-token issuance and unlink.

The ``httpx.AsyncClient`` is created once per process and injected, so its
connection pool is shared by every request handler. No call is retried.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from typing import Protocol

import httpx

from src.line.messages import Message

logger = logging.getLogger(__name__)

_REPLY_PATH = "/v2/bot/message/reply"
_LINK_TOKEN_PATH = "/v2/bot/user/{user_id}/linkToken"
_UNLINK_PATH = "/v2/bot/user/{user_id}/richmenu"


class LineApiError(Exception):
    """An outbound call to the LINE platform failed."""

    def __init__(self, operation: str, message: str, status_code: int | None = None) -> None:
        self.operation = operation
        self.status_code = status_code
        super().__init__(f"{operation} failed: {message}")


class LineApi(Protocol):
    async def reply_message(self, reply_token: str, messages: Sequence[Message]) -> None: ...

    async def issue_link_token(self, user_id: str) -> str: ...

    async def revoke_link(self, user_id: str) -> None: ...


def build_http_client(base_url: str, timeout: float) -> httpx.AsyncClient:
    return httpx.AsyncClient(base_url=base_url, timeout=timeout, verify=True)


class LineApiClient:
    """Bearer-authenticated calls against the LINE platform."""

    def __init__(self, channel_token: str, http_client: httpx.AsyncClient) -> None:
        self._http = http_client
        self._headers = {"Authorization": f"Bearer {channel_token}"}

    async def reply_message(self, reply_token: str, messages: Sequence[Message]) -> None:
        body = {
            "replyToken": reply_token,
            "messages": [m.to_api() for m in messages],
        }
        await self._request("reply_message", "POST", _REPLY_PATH, json=body)

    async def issue_link_token(self, user_id: str) -> str:
        resp = await self._request(
            "issue_link_token", "POST", _LINK_TOKEN_PATH.format(user_id=user_id),
        )
        try:
            link_token = resp.json()["linkToken"]
        except (json.JSONDecodeError, KeyError, TypeError) as exc:
            raise LineApiError("issue_link_token", f"unexpected response body: {exc}") from exc
        if not isinstance(link_token, str) or not link_token:
            raise LineApiError("issue_link_token", "response carried no linkToken")
        return link_token

    async def revoke_link(self, user_id: str) -> None:
        resp = await self._request(
            "revoke_link", "DELETE", _UNLINK_PATH.format(user_id=user_id),
        )
        logger.debug("revoke_link response for %s: %s", user_id, resp.text)

    async def _request(
        self, operation: str, method: str, path: str, **kwargs: object,
    ) -> httpx.Response:
        try:
            resp = await self._http.request(method, path, headers=self._headers, **kwargs)
        except httpx.HTTPError as exc:
            raise LineApiError(operation, f"{type(exc).__name__}: {exc}") from exc

        if resp.status_code != 200:
            raise LineApiError(
                operation,
                f"HTTP {resp.status_code} {resp.text[:200]}",
                status_code=resp.status_code,
            )
        return resp
