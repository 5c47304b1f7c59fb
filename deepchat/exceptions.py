"""Exceptions raised by the backend adapter and the chat session."""

from dataclasses import dataclass


@dataclass(eq=False)
class ServiceError(Exception):
    """Base exception for service layer failures."""

    message: str
    code: str = "service_error"
    status_code: int | None = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.message


@dataclass(eq=False)
class BackendError(ServiceError):
    """Raised when the language-model backend call fails."""

    code: str = "backend_error"


@dataclass(eq=False)
class InvalidStreamError(ServiceError):
    """Raised when the backend hands back something that is not an async stream."""

    message: str = "Invalid response stream"
    code: str = "invalid_stream"


@dataclass(eq=False)
class SessionBusyError(ServiceError):
    """Raised when a prompt is submitted while another one is still streaming."""

    message: str = "A response is already streaming for this session"
    code: str = "session_busy"
