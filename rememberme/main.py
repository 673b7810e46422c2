"""
FastAPI application entrypoint for the remember-me service.
"""

from __future__ import annotations

from fastapi import FastAPI

from rememberme.api.routes import router as api_router
from rememberme.core.config import get_settings
from rememberme.core.logging import configure_logging


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Remember-Me Login Service",
        version="0.1.0",
        description="Persistent login cookies backed by rotating token triplets.",
    )
    app.include_router(api_router, prefix="/api")
    return app


app = create_app()

__all__ = ["app", "create_app"]
