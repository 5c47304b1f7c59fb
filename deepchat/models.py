"""Pydantic models shared across application layers."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class ChatRequest(BaseModel):
    """A single prompt submitted by the user."""

    model_config = ConfigDict(frozen=True)

    prompt: str = Field(description="Raw prompt text, forwarded unmodified.")


class ChatMessage(BaseModel):
    """A single chat message as exchanged with the backend."""

    role: str = "assistant"
    content: str = ""


class ChatFragment(BaseModel):
    """One incremental slice of generated text from the backend."""

    model: str = ""
    message: ChatMessage = Field(default_factory=ChatMessage)
    done: bool = False


class ChatProgress(BaseModel):
    """Progress notification produced by the chat session."""

    model_config = ConfigDict(frozen=True)

    accumulated_text: str
    is_final: bool = False
    fragment: str = ""


class ChatSubmission(BaseModel):
    """Incoming panel frame carrying a prompt."""

    command: Literal["chat"]
    text: str


class ChatResponseFrame(BaseModel):
    """Outgoing panel frame carrying response text."""

    command: Literal["chatResponse"] = "chatResponse"
    text: str
    done: bool
    incremental: bool = False
    html: str | None = None


class ErrorResponse(BaseModel):
    """Error frame returned to panel clients."""

    error: str
    detail: str | None = None
