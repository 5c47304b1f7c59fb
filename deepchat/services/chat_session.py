"""Chat session driving one streamed exchange with the language-model backend."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from enum import Enum
from typing import Any, AsyncIterator, Protocol

from deepchat.config import Settings
from deepchat.exceptions import InvalidStreamError, ServiceError, SessionBusyError
from deepchat.models import ChatProgress, ChatRequest

logger = logging.getLogger(__name__)


class ChatBackend(Protocol):
    """Anything that can start a streamed chat, e.g. :class:`OllamaClient`."""

    async def chat(
        self, model: str, messages: list[dict[str, str]], stream: bool = True
    ) -> Any:
        ...


class SessionState(str, Enum):
    IDLE = "idle"
    STREAMING = "streaming"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class ChatSession:
    """Turns one prompt into an ordered series of :class:`ChatProgress` values.

    Every exchange ends with exactly one notification whose ``is_final`` flag
    is set, whether the backend stream was exhausted, failed or was cancelled.
    Backend errors never escape :meth:`submit_prompt`; they become the text of
    the final notification, appended to whatever was received before the
    failure.

    Only one prompt may stream at a time. A second :meth:`submit_prompt`
    iterated while the first is still running raises
    :class:`SessionBusyError` and leaves the running exchange untouched.
    """

    def __init__(self, backend: ChatBackend, settings: Settings) -> None:
        self._backend = backend
        self._model = settings.chat_model
        self._state = SessionState.IDLE
        self._cancelled: asyncio.Event | None = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_streaming(self) -> bool:
        return self._state is SessionState.STREAMING

    def cancel(self) -> None:
        """Ask the running exchange to stop before its next fragment."""

        if self._cancelled is not None:
            self._cancelled.set()

    async def submit_prompt(self, prompt: str) -> AsyncIterator[ChatProgress]:
        """Send ``prompt`` to the backend and yield progress as text arrives."""

        if self.is_streaming:
            raise SessionBusyError()

        request = ChatRequest(prompt=prompt)
        cancelled = asyncio.Event()
        self._cancelled = cancelled
        self._state = SessionState.STREAMING
        logger.info(
            "Chat request started",
            extra={"model": self._model, "prompt_length": len(request.prompt)},
        )

        text = ""
        stream: Any = None
        try:
            try:
                stream = await self._backend.chat(
                    model=self._model,
                    messages=[{"role": "user", "content": request.prompt}],
                    stream=True,
                )
                if not hasattr(stream, "__aiter__"):
                    raise InvalidStreamError()
                async for fragment in stream:
                    if cancelled.is_set():
                        break
                    piece = _fragment_content(fragment)
                    text += piece
                    progress = ChatProgress(accumulated_text=text, fragment=piece)
                    yield progress
                    if cancelled.is_set():
                        break
            except Exception as exc:
                self._state = SessionState.FAILED
                # Backend adapters log their own failures with the traceback.
                logger.warning(
                    "Chat request failed",
                    extra={"model": self._model, "received_chars": len(text)},
                    exc_info=None if isinstance(exc, ServiceError) else exc,
                )
                yield ChatProgress(accumulated_text=_error_text(text, exc), is_final=True)
                return

            if cancelled.is_set():
                self._state = SessionState.CANCELLED
                logger.info("Chat request cancelled", extra={"received_chars": len(text)})
            else:
                self._state = SessionState.COMPLETED
                logger.info("Chat request completed", extra={"received_chars": len(text)})
            yield ChatProgress(accumulated_text=text, is_final=True)
        finally:
            if self._state is SessionState.STREAMING:
                # Consumer stopped iterating before the terminal notification.
                self._state = SessionState.CANCELLED
                logger.info("Chat request abandoned", extra={"received_chars": len(text)})
            if self._cancelled is cancelled:
                self._cancelled = None
            await _close_stream(stream)


def _fragment_content(fragment: Any) -> str:
    """Read ``message.content`` from a model or a plain mapping."""

    if isinstance(fragment, Mapping):
        content = fragment["message"]["content"]
    else:
        content = fragment.message.content
    return content or ""


def _error_text(partial: str, exc: BaseException) -> str:
    description = str(exc) or type(exc).__name__
    error = f"Error: {description}"
    if partial:
        return f"{partial}\n\n{error}"
    return error


async def _close_stream(stream: Any) -> None:
    aclose = getattr(stream, "aclose", None)
    if aclose is not None:
        await aclose()
