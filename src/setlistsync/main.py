"""FastAPI application factory and server entry point."""

import uvicorn
from fastapi import FastAPI

from setlistsync.api import api_router
from setlistsync.api.exception_handlers import register_exception_handlers
from setlistsync.config import Settings, get_settings
from setlistsync.infrastructure.lifecycle import lifespan
from setlistsync.infrastructure.observability import RequestLoggingMiddleware


# Hey future me - tests call create_app(Settings(...)) with their own database URL and
# secrets. Settings go on app.state BEFORE the lifespan runs so the lifespan and every
# dependency see the same object instead of the env-cached one.
def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()

    app = FastAPI(
        title="SetlistSync",
        description="Multi-source concert catalog sync (Spotify, Ticketmaster, Setlist.fm)",
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(RequestLoggingMiddleware)
    register_exception_handlers(app)
    app.include_router(api_router, prefix="/api")

    return app


def run() -> None:
    """Run the API with uvicorn (``setlistsync`` console script)."""
    uvicorn.run(
        "setlistsync.main:create_app",
        factory=True,
        host="0.0.0.0",  # nosec B104 - container entry point
        port=8000,
    )
