"""WebSocket handler connecting the chat panel to a chat session."""

from __future__ import annotations

import logging
from contextlib import aclosing, suppress
from typing import Annotated

from fastapi import Depends, WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from deepchat.config import Settings, get_settings
from deepchat.dependencies import get_chat_session
from deepchat.models import ChatProgress, ChatResponseFrame, ChatSubmission, ErrorResponse
from deepchat.rendering import render_markdown
from deepchat.services.chat_session import ChatSession

logger = logging.getLogger(__name__)


async def websocket_endpoint(
    websocket: WebSocket,
    session: Annotated[ChatSession, Depends(get_chat_session)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> None:
    """Panel workflow: prompt frame → streamed response frames → final HTML."""

    await websocket.accept()
    should_close = True
    logger.info("Chat panel opened", extra={"client": _client_repr(websocket)})

    try:
        while True:
            try:
                message = await websocket.receive_text()
            except WebSocketDisconnect:
                should_close = False
                break

            try:
                submission = ChatSubmission.model_validate_json(message)
            except ValueError:
                await _send_error(
                    websocket,
                    ErrorResponse(
                        error="invalid_payload",
                        detail='Expected {"command": "chat", "text": "..."}.',
                    ),
                )
                continue

            delivered = await _stream_response(websocket, session, submission.text, settings)
            if not delivered:
                should_close = False
                break
    finally:
        if should_close and websocket.application_state == WebSocketState.CONNECTED:
            with suppress(RuntimeError, WebSocketDisconnect):
                await websocket.close()
        logger.info("Chat panel closed", extra={"client": _client_repr(websocket)})


async def _stream_response(
    websocket: WebSocket,
    session: ChatSession,
    prompt: str,
    settings: Settings,
) -> bool:
    """Relay one exchange to the panel; ``False`` if the panel went away."""

    incremental = settings.response_mode == "incremental"
    async with aclosing(session.submit_prompt(prompt)) as progress_stream:
        async for progress in progress_stream:
            frame = _to_frame(progress, incremental)
            try:
                await websocket.send_text(frame.model_dump_json())
            except (WebSocketDisconnect, RuntimeError):
                logger.info(
                    "Chat panel gone mid-stream; dropping remaining output",
                    extra={"client": _client_repr(websocket)},
                )
                return False
    return True


def _to_frame(progress: ChatProgress, incremental: bool) -> ChatResponseFrame:
    if progress.is_final:
        try:
            rendered = render_markdown(progress.accumulated_text)
        except Exception:
            # The panel keeps showing the plain text it already has.
            logger.exception(
                "Rendering final response failed",
                extra={"text_length": len(progress.accumulated_text)},
            )
            rendered = None
        return ChatResponseFrame(text=progress.accumulated_text, done=True, html=rendered)
    if incremental:
        return ChatResponseFrame(text=progress.fragment, done=False, incremental=True)
    return ChatResponseFrame(text=progress.accumulated_text, done=False)


async def _send_error(websocket: WebSocket, error: ErrorResponse) -> None:
    """Send a structured error frame."""

    await websocket.send_text(error.model_dump_json())


def _client_repr(websocket: WebSocket) -> str:
    """Render the remote client for logging purposes."""

    client = websocket.client
    if client is None:
        return "unknown"
    return f"{client.host}:{client.port}"
