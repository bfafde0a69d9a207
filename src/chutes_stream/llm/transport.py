"""Async transport for the Chutes OpenAI-compatible API.

Thin wrapper over ``httpx.AsyncClient``: SSE parsing for streamed
completions, plain JSON for everything else.  It does not retry; HTTP and
network failures propagate as ``httpx.HTTPError``.
"""

from __future__ import annotations

import json
import logging
from typing import Any, AsyncGenerator

import httpx

from chutes_stream.config import CHUTES_BASE_URL

_logger = logging.getLogger(__name__)

_SSE_PREFIX = "data:"
_SSE_DONE = "[DONE]"


def parse_sse_line(raw_line: str) -> dict[str, Any] | None:
    """Decode one SSE line into a chunk dict.

    Returns ``None`` for comments, keep-alives, non-data fields and lines
    that are not valid JSON objects.
    """
    if not raw_line.startswith(_SSE_PREFIX):
        return None
    data_str = raw_line[len(_SSE_PREFIX):].strip()
    if not data_str or data_str == _SSE_DONE:
        return None
    try:
        data = json.loads(data_str)
    except json.JSONDecodeError:
        _logger.debug("Skipping malformed SSE payload: %.80s", data_str)
        return None
    return data if isinstance(data, dict) else None


class ChutesTransport:
    """HTTP client for chat completions and the model list."""

    def __init__(
        self,
        api_key: str,
        base_url: str = CHUTES_BASE_URL,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
        )

    async def stream_completion(
        self,
        payload: dict[str, Any],
        timeout: float | None = None,
    ) -> AsyncGenerator[dict[str, Any], None]:
        """POST a streaming request and yield each decoded chunk.

        Closing the generator early closes the underlying response.
        """
        async with self._client.stream(
            "POST", "/chat/completions", json=payload, timeout=timeout,
        ) as resp:
            resp.raise_for_status()
            async for raw_line in resp.aiter_lines():
                if raw_line.startswith(_SSE_PREFIX) and raw_line[len(_SSE_PREFIX):].strip() == _SSE_DONE:
                    break
                chunk = parse_sse_line(raw_line)
                if chunk is not None:
                    yield chunk

    async def completion(
        self,
        payload: dict[str, Any],
        timeout: float | None = None,
    ) -> dict[str, Any]:
        """POST a non-streaming request and return the decoded response."""
        resp = await self._client.post(
            "/chat/completions", json=payload, timeout=timeout,
        )
        resp.raise_for_status()
        return resp.json()

    async def list_models(self) -> list[dict[str, Any]]:
        """Return the raw entries of ``GET /models``."""
        resp = await self._client.get("/models")
        resp.raise_for_status()
        data = resp.json()
        if isinstance(data, dict):
            data = data.get("data")
        return list(data) if isinstance(data, list) else []

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()
