"""OpenAI-compatible chat completion client for the decision oracle.

Uses ``urllib.request`` for HTTP calls (no external HTTP library needed)
and runs the blocking request in a worker thread.
"""

from __future__ import annotations

import asyncio
import json
import socket
import urllib.error
import urllib.request
from typing import Any

from domain.errors import OracleTimeoutError, OracleTransportError


class OpenAIChatClient:
    """Implements ``LLMClientPort`` using the OpenAI chat/completions API."""

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        model: str = "gpt-4o-mini",
        timeout: float = 60.0,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._timeout = timeout

    async def complete(
        self,
        prompt: str,
        *,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> str:
        payload: dict[str, Any] = {
            "model": self._model,
            "messages": [{"role": "user", "content": prompt}],
        }
        if max_tokens is not None:
            payload["max_tokens"] = max_tokens
        if temperature is not None:
            payload["temperature"] = temperature

        data = await asyncio.to_thread(self._post_chat_completions, payload)
        try:
            content = data["choices"][0]["message"].get("content")
        except (KeyError, IndexError, TypeError, AttributeError) as exc:
            raise OracleTransportError(f"Malformed oracle response: {exc!r}") from exc
        return content or ""

    # -- internal helpers ---------------------------------------------------

    def _post_chat_completions(self, payload: dict[str, Any]) -> dict[str, Any]:
        url = f"{self._base_url}/chat/completions"
        body = json.dumps(payload).encode("utf-8")
        req = urllib.request.Request(url, data=body, method="POST")
        req.add_header("Authorization", f"Bearer {self._api_key}")
        req.add_header("Content-Type", "application/json")
        try:
            with urllib.request.urlopen(req, timeout=self._timeout) as resp:
                raw = resp.read().decode("utf-8")
        except urllib.error.HTTPError as exc:
            raise OracleTransportError(f"Oracle HTTP {exc.code}: {exc.reason}") from exc
        except urllib.error.URLError as exc:
            if isinstance(exc.reason, (socket.timeout, TimeoutError)):
                raise OracleTimeoutError(f"Oracle timed out after {self._timeout:g}s") from exc
            raise OracleTransportError(f"Oracle unreachable: {exc.reason}") from exc
        except (socket.timeout, TimeoutError) as exc:
            raise OracleTimeoutError(f"Oracle timed out after {self._timeout:g}s") from exc
        try:
            return json.loads(raw)
        except ValueError as exc:
            raise OracleTransportError("Oracle returned non-JSON body") from exc
