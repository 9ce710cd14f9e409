"""HTTP API for SetlistSync.

Structure:
- routers/: endpoints (sync, artists, search, health), aggregated in ``api_router``
- schemas/: pydantic request/response models
- dependencies.py: dependency injection (DB session, clients, services, cron auth)
- exception_handlers.py: domain exceptions → JSON error responses
"""

from setlistsync.api.routers import api_router

__all__ = ["api_router"]
