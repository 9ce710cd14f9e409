"""API router initialization."""

# Hey future me, this is the MAIN API router aggregator! main.py mounts it under /api,
# so sync.router's "/sync" prefix becomes /api/sync. search and health declare their
# full paths themselves ("/search", "/health").

from fastapi import APIRouter

from setlistsync.api.routers import artists, health, search, sync

api_router = APIRouter()

api_router.include_router(sync.router)
api_router.include_router(artists.router)
api_router.include_router(search.router)
api_router.include_router(health.router)

__all__ = [
    "api_router",
    "artists",
    "health",
    "search",
    "sync",
]
