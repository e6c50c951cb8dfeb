"""FastAPI application factory for the signal HTTP API."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI

from signalgen.api.routes import signal
from signalgen.config import AppSettings


def create_app(settings: AppSettings | None = None, lifespan: Any = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Application settings; loaded from the environment when omitted.
        lifespan: Optional async context manager for startup/shutdown. Used by
                  main.py to connect and close the market-data clients.

    Returns:
        Configured FastAPI application with the /api routes registered.
    """
    app = FastAPI(
        title="Crypto Signal Engine",
        lifespan=lifespan,
    )

    app.state.settings = settings or AppSettings()

    # Collaborators -- wired by main.py lifespan (or directly by tests)
    app.state.market_data = None
    app.state.catalyst_service = None

    app.include_router(signal.router, prefix="/api")

    return app
