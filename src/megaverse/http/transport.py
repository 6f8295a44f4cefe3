"""Async JSON transport with timeout and exponential-backoff retries."""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from megaverse.api.base import RemoteError
from megaverse.orchestrator.retry import RetryExecutor

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_USER_AGENT = "megaverse/1.0"


class ApiTransport:
    """httpx wrapper that raises ``RemoteError`` for every failed request.

    Each request runs inside the retry executor, which makes this the single
    place where transient failures (429, 5xx, network) are retried.
    """

    def __init__(
        self,
        base_url: str,
        *,
        retry: RetryExecutor | None = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.retry = retry or RetryExecutor()
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_seconds, connect=10.0),
            headers={"User-Agent": DEFAULT_USER_AGENT},
        )

    def url_for(self, path: str) -> str:
        return f"{self.base_url}{path}"

    async def get(self, path: str) -> Any:
        return await self.request("GET", path)

    async def post(self, path: str, payload: object) -> Any:
        return await self.request("POST", path, payload)

    async def delete(self, path: str, payload: object | None = None) -> Any:
        return await self.request("DELETE", path, payload)

    async def request(self, method: str, path: str, payload: object | None = None) -> Any:
        """Send one JSON request, retrying transient failures."""

        url = self.url_for(path)
        return await self.retry.execute(lambda: self._send(method, url, payload))

    async def _send(self, method: str, url: str, payload: object | None) -> Any:
        try:
            response = await self._client.request(
                method,
                url,
                json=payload,
                headers={"Content-Type": "application/json"},
            )
        except httpx.TransportError as exc:
            logger.warning("Transport error on %s %s: %s", method, url, exc)
            raise RemoteError(message=f"Transport error: {exc}") from exc

        if not response.is_success:
            raise RemoteError(
                message=f"HTTP {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )
        if not response.content:
            return None
        try:
            return response.json()
        except json.JSONDecodeError as exc:
            raise RemoteError(
                message=f"Invalid JSON in HTTP {response.status_code} response",
                status_code=response.status_code,
                body=response.text,
            ) from exc

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> ApiTransport:
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.aclose()
