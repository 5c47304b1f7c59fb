"""Shared pytest fixtures."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any, Callable

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("ENVIRONMENT", "test")

from deepchat.main import create_app  # noqa: E402
from deepchat.models import ChatFragment, ChatMessage  # noqa: E402


class StubBackend:
    """Backend double that replays canned fragments or fails on demand."""

    def __init__(
        self,
        fragments: list[str] | None = None,
        *,
        error: Exception | None = None,
        fail_after: Exception | None = None,
        response: Any = None,
    ) -> None:
        self.fragments = fragments or []
        self.error = error
        self.fail_after = fail_after
        self.response = response
        self.calls: list[dict[str, Any]] = []
        self.closed = False

    async def chat(self, model: str, messages: list[dict[str, str]], stream: bool = True) -> Any:
        self.calls.append({"model": model, "messages": messages, "stream": stream})
        if self.error is not None:
            raise self.error
        if self.response is not None:
            return self.response
        return self._stream()

    async def _stream(self):
        try:
            for piece in self.fragments:
                yield ChatFragment(message=ChatMessage(content=piece))
            if self.fail_after is not None:
                raise self.fail_after
        finally:
            self.closed = True


@pytest.fixture(autouse=True)
def configure_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep tests independent of the developer's environment."""

    monkeypatch.setenv("ENVIRONMENT", "test")
    monkeypatch.delenv("CHAT_MODEL", raising=False)
    monkeypatch.delenv("RESPONSE_MODE", raising=False)


@pytest.fixture
def backend_factory() -> Callable[..., StubBackend]:
    return StubBackend


@pytest.fixture
def app():
    return create_app()
