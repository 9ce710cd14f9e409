"""Dependency injection for API endpoints.

Hey future me - everything long-lived (Database, provider clients, rate limiter,
progress store, settings) is created ONCE in the lifespan and hung on app.state.
These dependencies only read it from there. Per-request things (DB session and the
services built on it) are created here per request.
"""

import hmac
import logging
from collections.abc import AsyncGenerator
from typing import cast

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from setlistsync.application.services import (
    ArtistAutoImportService,
    ConnectivityChecker,
    SearchService,
    SyncProgressTracker,
    UnifiedSyncService,
)
from setlistsync.config import Settings
from setlistsync.domain.exceptions import AuthenticationError, ConfigurationError
from setlistsync.domain.ports import (
    IProgressStore,
    ISetlistFmClient,
    ISpotifyClient,
    ITicketmasterClient,
)
from setlistsync.infrastructure.persistence.database import Database

logger = logging.getLogger(__name__)


def get_app_settings(request: Request) -> Settings:
    """Settings the app was created with (not the env-cached ones, tests pass their own)."""
    return cast(Settings, request.app.state.settings)


# Hey future me - session_scope() commits when the endpoint returns normally and rolls
# back when it raises. The sync services commit per phase on top of that.
async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    db: Database = request.app.state.db
    async with db.session_scope() as session:
        yield session


def get_spotify_client(request: Request) -> ISpotifyClient:
    return cast(ISpotifyClient, request.app.state.spotify_client)


def get_ticketmaster_client(request: Request) -> ITicketmasterClient:
    return cast(ITicketmasterClient, request.app.state.ticketmaster_client)


def get_setlistfm_client(request: Request) -> ISetlistFmClient:
    return cast(ISetlistFmClient, request.app.state.setlistfm_client)


def get_progress_tracker(request: Request) -> SyncProgressTracker:
    store: IProgressStore = request.app.state.progress_store
    return SyncProgressTracker(store)


# Static bearer token for the cron-triggered endpoints. Not a user auth system.
async def verify_cron_secret(
    authorization: str | None = Header(default=None),
    settings: Settings = Depends(get_app_settings),
) -> None:
    """Require ``Authorization: Bearer <CRON_SECRET>``.

    Raises:
        ConfigurationError: CRON_SECRET is not set on the server (503)
        AuthenticationError: Header missing or token wrong (401)
    """
    if not settings.cron_secret:
        raise ConfigurationError("CRON_SECRET is not configured")

    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise AuthenticationError("Missing bearer token")
    if not hmac.compare_digest(token.strip().encode(), settings.cron_secret.encode()):
        raise AuthenticationError("Invalid bearer token")


def get_unified_sync_service(
    session: AsyncSession = Depends(get_db_session),
    spotify: ISpotifyClient = Depends(get_spotify_client),
    ticketmaster: ITicketmasterClient = Depends(get_ticketmaster_client),
    setlistfm: ISetlistFmClient = Depends(get_setlistfm_client),
    settings: Settings = Depends(get_app_settings),
    tracker: SyncProgressTracker = Depends(get_progress_tracker),
) -> UnifiedSyncService:
    return UnifiedSyncService(session, spotify, ticketmaster, setlistfm, settings, tracker)


def get_search_service(
    session: AsyncSession = Depends(get_db_session),
    spotify: ISpotifyClient = Depends(get_spotify_client),
    settings: Settings = Depends(get_app_settings),
) -> SearchService:
    return SearchService(session, spotify if settings.spotify.is_configured else None)


def get_auto_import_service(
    session: AsyncSession = Depends(get_db_session),
    spotify: ISpotifyClient = Depends(get_spotify_client),
    ticketmaster: ITicketmasterClient = Depends(get_ticketmaster_client),
    settings: Settings = Depends(get_app_settings),
) -> ArtistAutoImportService:
    return ArtistAutoImportService(session, spotify, ticketmaster, settings)


def get_connectivity_checker(
    spotify: ISpotifyClient = Depends(get_spotify_client),
    ticketmaster: ITicketmasterClient = Depends(get_ticketmaster_client),
    setlistfm: ISetlistFmClient = Depends(get_setlistfm_client),
    settings: Settings = Depends(get_app_settings),
) -> ConnectivityChecker:
    return ConnectivityChecker(spotify, ticketmaster, setlistfm, settings)
