"""
FastAPI application entrypoint for the Converty bridge.
"""

from __future__ import annotations

from fastapi import FastAPI

from converty_bridge.api.routes import router as api_router
from converty_bridge.core.config import get_settings
from converty_bridge.core.logging import configure_logging


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Converty Bridge",
        version="0.1.0",
        description="OAuth token lifecycle and pass-through API for the Converty partner platform.",
    )
    app.include_router(api_router)
    return app


app = create_app()

__all__ = ["app", "create_app"]
