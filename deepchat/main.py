"""FastAPI application entrypoint."""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

import httpx
from fastapi import Depends, FastAPI
from fastapi.responses import FileResponse

from deepchat import __version__
from deepchat.config import Settings, get_settings
from deepchat.logging import configure_logging
from deepchat.websocket_handlers import websocket_endpoint

PANEL_PAGE = Path(__file__).parent / "static" / "panel.html"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create application resources during startup and clean up on shutdown."""

    async with httpx.AsyncClient() as client:
        app.state.http_client = client
        yield
        del app.state.http_client


def create_app() -> FastAPI:
    """Application factory."""

    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Deep Seek Chat",
        version=__version__,
        lifespan=lifespan,
    )

    @app.get("/", include_in_schema=False)
    async def panel() -> FileResponse:
        return FileResponse(PANEL_PAGE, media_type="text/html")

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/version")
    async def version(settings: Settings = Depends(get_settings)) -> dict[str, str]:
        return {
            "version": __version__,
            "environment": settings.environment,
            "model": settings.chat_model,
        }

    app.add_api_websocket_route("/ws", websocket_endpoint)

    return app


app = create_app()


def run() -> None:
    """Serve the panel with uvicorn on the configured port."""

    import uvicorn

    uvicorn.run(app, host="127.0.0.1", port=get_settings().port)


if __name__ == "__main__":
    run()
