"""Shared fixtures.

Hey future me - every test that touches the database gets its OWN SQLite file under
tmp_path, so tests never see each other's rows. The API fixtures run the real
lifespan (logging, Database, limiter, progress store) and then swap the provider
clients on app.state for the in-memory fakes.
"""

from collections.abc import AsyncGenerator
from pathlib import Path

import httpx
import pytest
from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncSession

from setlistsync.application.services import SyncProgressTracker
from setlistsync.config import (
    DatabaseSettings,
    LoggingSettings,
    SetlistFmSettings,
    Settings,
    SpotifySettings,
    SyncSettings,
    TicketmasterSettings,
)
from setlistsync.infrastructure.persistence import ArtistModel, Database
from setlistsync.infrastructure.progress_store import (
    InMemoryProgressStore,
    reset_progress_store,
)
from setlistsync.infrastructure.rate_limiter import reset_rate_limiter
from setlistsync.main import create_app
from tests.fakes import FakeSetlistFmClient, FakeSpotifyClient, FakeTicketmasterClient

CRON_SECRET = "test-cron-secret"


@pytest.fixture(autouse=True)
def _reset_singletons() -> None:
    reset_rate_limiter()
    reset_progress_store()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        cron_secret=CRON_SECRET,
        database=DatabaseSettings(url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"),
        spotify=SpotifySettings(client_id="spotify-id", client_secret="spotify-secret"),
        ticketmaster=TicketmasterSettings(api_key="tm-key", page_delay_seconds=0),
        setlistfm=SetlistFmSettings(api_key="sfm-key", page_delay_seconds=0),
        sync=SyncSettings(bulk_artist_delay_seconds=0, state_backend="memory"),
        logging=LoggingSettings(level="DEBUG", json_format=False),
    )


@pytest.fixture
async def db(settings: Settings) -> AsyncGenerator[Database, None]:
    database = Database(settings)
    await database.create_tables()
    yield database
    await database.close()


@pytest.fixture
async def session(db: Database) -> AsyncGenerator[AsyncSession, None]:
    async with db.session_scope() as s:
        yield s


@pytest.fixture
def tracker() -> SyncProgressTracker:
    return SyncProgressTracker(InMemoryProgressStore())


@pytest.fixture
def spotify() -> FakeSpotifyClient:
    return FakeSpotifyClient()


@pytest.fixture
def ticketmaster() -> FakeTicketmasterClient:
    return FakeTicketmasterClient()


@pytest.fixture
def setlistfm() -> FakeSetlistFmClient:
    return FakeSetlistFmClient()


@pytest.fixture
async def artist(session: AsyncSession) -> ArtistModel:
    """A synced headliner with Spotify and Ticketmaster IDs."""
    model = ArtistModel(
        name="Foo Fighters",
        slug="foo-fighters",
        spotify_id="sp-foo",
        ticketmaster_id="tm-foo",
        verified=True,
    )
    session.add(model)
    await session.commit()
    return model


@pytest.fixture
async def app(
    settings: Settings,
    spotify: FakeSpotifyClient,
    ticketmaster: FakeTicketmasterClient,
    setlistfm: FakeSetlistFmClient,
) -> AsyncGenerator[FastAPI, None]:
    application = create_app(settings)
    async with application.router.lifespan_context(application):
        await application.state.db.create_tables()
        application.state.spotify_client = spotify
        application.state.ticketmaster_client = ticketmaster
        application.state.setlistfm_client = setlistfm
        yield application


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[httpx.AsyncClient, None]:
    # raise_app_exceptions=False: the catch-all 500 handler answers, Starlette still
    # re-raises afterwards and we want the response, not the exception
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {CRON_SECRET}"}
