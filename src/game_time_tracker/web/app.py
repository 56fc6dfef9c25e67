"""
FastAPI application for Game Time Tracker.

PURPOSE: Application factory and server runner.
AI CONTEXT: Creates the app with the session store API and summary page.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from ..__version__ import __version__
from ..config import Config
from .routes import router

__all__ = ["create_app", "run_server"]

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:  # noqa: ARG001
    """
    Log server startup and shutdown.

    Args:
        app: The FastAPI application instance (provided by FastAPI).

    Yields:
        None. Control returns to FastAPI to handle requests.
    """
    logger.info(
        "Game Time Tracker server starting (v%s, storage: %s)",
        __version__,
        Config.get_storage_dir(),
    )
    yield
    logger.info("Game Time Tracker server shutting down")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Application factory so tests can build a fresh app per test and uvicorn
    can build one per worker.

    Returns:
        FastAPI instance with:
        - Session store endpoints (/api/sessions/save, /load, /stats, /daily)
        - Summary page and htmx partials (/, /partials/*)
        - Daily trend chart (/charts/daily.png)
        - OpenAPI documentation at /docs

    Example:
        >>> from fastapi.testclient import TestClient
        >>> client = TestClient(create_app())
        >>> client.get('/api/sessions/load').status_code
        200
    """
    app = FastAPI(
        title="Game Time Tracker",
        description="Session store and summary dashboard for gaming time",
        version=__version__,
        lifespan=lifespan,
    )
    app.include_router(router)
    return app


def run_server(
    host: str = Config.DEFAULT_HOST,
    port: int = Config.DEFAULT_PORT,
    reload: bool = False,
    log_level: str = "info",
) -> None:
    """
    Launch the Game Time Tracker server.

    Blocks until the server is stopped (Ctrl+C).

    Args:
        host: Interface to bind. '127.0.0.1' for local-only access (default)
            or '0.0.0.0' to accept tracking clients from the network.
        port: TCP port. Default 3000.
        reload: Auto-reload on code changes, for development.
        log_level: Uvicorn logging verbosity.

    Raises:
        OSError: If the port is already in use or host is invalid.
    """
    uvicorn.run(
        "game_time_tracker.web.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=log_level,
    )


# For direct execution
if __name__ == "__main__":
    run_server()
