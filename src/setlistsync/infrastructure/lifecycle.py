"""Application lifecycle management for startup and shutdown tasks.

Startup order:
  logging → SQLite path check → Database → rate limiter → provider clients → progress store
Shutdown runs in reverse and always runs, even if startup failed halfway.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from setlistsync.config import Settings, get_settings
from setlistsync.domain.exceptions import ConfigurationError
from setlistsync.infrastructure.integrations import (
    SetlistFmClient,
    SpotifyClient,
    TicketmasterClient,
)
from setlistsync.infrastructure.observability import configure_logging
from setlistsync.infrastructure.persistence import Database
from setlistsync.infrastructure.progress_store import (
    get_progress_store,
    reset_progress_store,
)
from setlistsync.infrastructure.rate_limiter import get_rate_limiter, reset_rate_limiter

logger = logging.getLogger(__name__)


# Hey future me, this validates SQLite paths BEFORE we try creating the DB engine! SQLite
# needs to create -journal/-wal files next to the .db file, so the directory must exist
# and be writable. We DON'T pre-create the .db file, SQLite does that on first connect.
# Returns early for PostgreSQL and in-memory SQLite.
def _validate_sqlite_path(settings: Settings) -> None:
    """Ensure the SQLite database directory exists and is writable."""
    db_path = settings._get_sqlite_db_path()
    if db_path is None:
        return

    try:
        if db_path.parent and str(db_path.parent) != ".":
            db_path.parent.mkdir(parents=True, exist_ok=True)
            logger.debug("Ensured SQLite parent directory exists: %s", db_path.parent)
    except OSError as exc:
        raise ConfigurationError(
            f"Unable to create SQLite database directory '{db_path.parent}': {exc}. "
            "Update DATABASE_URL or adjust directory permissions."
        ) from exc

    try:
        test_file = db_path.parent / f".{db_path.stem}_write_test"
        test_file.write_bytes(b"test")
        test_file.unlink()
    except OSError as exc:
        raise ConfigurationError(
            f"Unable to write files in database directory '{db_path.parent}': {exc}. "
            "SQLite needs write access for the database and its journal files."
        ) from exc


# Listen future me, everything before `yield` runs at STARTUP, everything after at
# SHUTDOWN. Resources live on app.state so dependencies can reach them. create_app()
# puts the Settings on app.state before this runs; without it we fall back to env.
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings: Settings = getattr(app.state, "settings", None) or get_settings()
    app.state.settings = settings

    configure_logging(
        log_level=settings.logging.level,
        json_format=settings.logging.json_format,
        app_name=settings.app_name,
    )
    logger.info("Starting application: %s %s", settings.app_name, settings.app_version)

    db: Database | None = None
    clients: list[SpotifyClient | TicketmasterClient | SetlistFmClient] = []
    try:
        _validate_sqlite_path(settings)

        db = Database(settings)
        app.state.db = db
        logger.info("Database initialized: %s", settings.database.url.split("@")[-1])

        rate_limiter = get_rate_limiter(settings)
        app.state.rate_limiter = rate_limiter

        spotify = SpotifyClient(settings, rate_limiter)
        ticketmaster = TicketmasterClient(settings, rate_limiter)
        setlistfm = SetlistFmClient(settings, rate_limiter)
        clients = [spotify, ticketmaster, setlistfm]
        app.state.spotify_client = spotify
        app.state.ticketmaster_client = ticketmaster
        app.state.setlistfm_client = setlistfm

        for name, configured in (
            ("Spotify", settings.spotify.is_configured),
            ("Ticketmaster", settings.ticketmaster.is_configured),
            ("Setlist.fm", settings.setlistfm.is_configured),
        ):
            if not configured:
                logger.warning("%s credentials missing, its sync phase will be skipped", name)

        app.state.progress_store = get_progress_store(settings)

        yield

    finally:
        logger.info("Shutting down application")

        for client in clients:
            await client.close()

        progress_store = getattr(app.state, "progress_store", None)
        if progress_store is not None:
            await progress_store.close()
        reset_progress_store()

        rate_limiter = getattr(app.state, "rate_limiter", None)
        if rate_limiter is not None:
            await rate_limiter.close()
        reset_rate_limiter()

        if db is not None:
            await db.close()
            logger.info("Database connections closed")
