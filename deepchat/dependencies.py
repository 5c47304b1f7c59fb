"""Dependency providers for the FastAPI application."""

import httpx
from fastapi import Depends
from starlette.requests import HTTPConnection

from deepchat.config import Settings, get_settings
from deepchat.services.chat_session import ChatSession
from deepchat.services.ollama_client import OllamaClient


async def get_http_client(connection: HTTPConnection) -> httpx.AsyncClient:
    """Retrieve the shared AsyncClient from application state."""

    return connection.app.state.http_client  # type: ignore[return-value]


async def get_ollama_client(
    client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
) -> OllamaClient:
    """Dependency provider for OllamaClient."""

    return OllamaClient(client=client, settings=settings)


async def get_chat_session(
    backend: OllamaClient = Depends(get_ollama_client),
    settings: Settings = Depends(get_settings),
) -> ChatSession:
    """A fresh session for each panel connection."""

    return ChatSession(backend=backend, settings=settings)
