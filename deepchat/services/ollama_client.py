"""Adapter for the Ollama chat endpoint."""

from __future__ import annotations

import json
import logging
from typing import Any, AsyncIterator

import httpx
from pydantic import ValidationError

from deepchat.config import Settings
from deepchat.exceptions import BackendError
from deepchat.models import ChatFragment

logger = logging.getLogger(__name__)


class OllamaClient:
    """Wrapper around Ollama's streaming ``/api/chat`` endpoint."""

    def __init__(self, client: httpx.AsyncClient, settings: Settings) -> None:
        self._client = client
        self._settings = settings

    async def chat(
        self,
        model: str,
        messages: list[dict[str, str]],
        stream: bool = True,
    ) -> AsyncIterator[ChatFragment]:
        """Start a chat request and return the stream of generated fragments.

        Failures that happen before the first byte of the body raise
        :class:`BackendError` here; failures while reading the body are raised
        from the returned iterator.
        """

        payload = {"model": model, "messages": messages, "stream": stream}
        request = self._client.build_request(
            "POST",
            self._settings.chat_endpoint,
            json=payload,
            timeout=self._settings.chat_timeout,
        )

        try:
            response = await self._client.send(request, stream=True)
        except httpx.TimeoutException as exc:
            logger.warning("Chat request timed out", exc_info=exc)
            raise BackendError("Chat request timed out") from exc
        except httpx.HTTPError as exc:
            logger.exception("Chat HTTP request failed", extra={"endpoint": str(request.url)})
            raise BackendError(str(exc) or "Chat request failed") from exc

        if response.is_error:
            await response.aread()
            await response.aclose()
            message = _error_message(response)
            logger.error(
                "Chat backend returned an error",
                extra={"status_code": response.status_code, "response_text": response.text},
            )
            raise BackendError(message, status_code=response.status_code)

        return self._iter_fragments(response)

    async def _iter_fragments(self, response: httpx.Response) -> AsyncIterator[ChatFragment]:
        try:
            async for line in response.aiter_lines():
                if not line.strip():
                    continue
                yield _parse_line(line)
        except httpx.HTTPError as exc:
            logger.warning("Chat stream interrupted", exc_info=exc)
            raise BackendError(str(exc) or "Chat stream interrupted") from exc
        finally:
            await response.aclose()


def _parse_line(line: str) -> ChatFragment:
    """Decode one NDJSON line of the chat stream."""

    try:
        data: Any = json.loads(line)
    except ValueError as exc:
        logger.error("Malformed chat stream line", extra={"raw_line": line})
        raise BackendError("Malformed chat stream line") from exc

    if not isinstance(data, dict):
        raise BackendError("Malformed chat stream line")
    if "error" in data:
        raise BackendError(str(data["error"]))

    try:
        return ChatFragment.model_validate(data)
    except ValidationError as exc:
        logger.error("Unexpected chat stream payload", extra={"raw_line": line})
        raise BackendError("Malformed chat stream line") from exc


def _error_message(response: httpx.Response) -> str:
    """Extract the backend's own error text, falling back to the HTTP status."""

    try:
        data = response.json()
    except ValueError:
        data = None

    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return f"Chat backend returned HTTP {response.status_code}"
