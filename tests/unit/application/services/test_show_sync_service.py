"""Tests for the Ticketmaster phase (shows, venues, billing)."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from setlistsync.application.services import ShowSyncService
from setlistsync.config import Settings
from setlistsync.domain.exceptions import RateLimitExceededError
from setlistsync.infrastructure.persistence import (
    ArtistModel,
    ArtistRepository,
    ShowRepository,
    VenueRepository,
)
from tests.fakes import FakeTicketmasterClient, tm_event_payload, tm_events_page

NOW = datetime(2026, 6, 15, 12, 0, tzinfo=UTC)


@pytest.fixture
def service(
    session: AsyncSession, ticketmaster: FakeTicketmasterClient, settings: Settings
) -> ShowSyncService:
    return ShowSyncService(session, ticketmaster, settings.ticketmaster)


class TestShowSyncService:
    async def test_stores_shows_venues_and_support_acts(
        self,
        session: AsyncSession,
        artist: ArtistModel,
        ticketmaster: FakeTicketmasterClient,
        service: ShowSyncService,
    ) -> None:
        artist_id = artist.id
        ticketmaster.pages = [
            tm_events_page(
                [
                    tm_event_payload(
                        "ev1",
                        "Foo Fighters",
                        "2026-09-01",
                        attractions=[("tm-foo", "Foo Fighters"), ("tm-sup", "Support Band")],
                    ),
                    tm_event_payload("ev2", "Foo Fighters", "2026-09-02"),
                ]
            )
        ]

        results = await service.sync_artist_shows(artist, now=NOW)

        assert results.shows.synced == 2
        assert results.venues.synced == 1
        assert results.shows.errors == []

        shows = ShowRepository(session)
        show = await shows.get_by_ticketmaster_id("ev1")
        assert show is not None
        assert show.status == "upcoming"
        assert show.headliner_artist_id == artist_id
        billing = await shows.list_show_artists(show.id)
        support = await ArtistRepository(session).get_by_ticketmaster_id("tm-sup")
        assert support is not None
        assert support.verified is False
        assert [(b.artist_id, b.order_index) for b in billing] == [
            (artist_id, 0),
            (support.id, 1),
        ]

    async def test_walks_pages_and_dedupes_events(
        self,
        artist: ArtistModel,
        ticketmaster: FakeTicketmasterClient,
        service: ShowSyncService,
    ) -> None:
        ticketmaster.pages = [
            tm_events_page(
                [tm_event_payload("ev1", "Show 1", "2026-09-01")], number=0, total_pages=2
            ),
            tm_events_page(
                [
                    tm_event_payload("ev1", "Show 1", "2026-09-01"),
                    tm_event_payload("ev2", "Show 2", "2026-09-05"),
                ],
                number=1,
                total_pages=2,
            ),
        ]

        results = await service.sync_artist_shows(artist, now=NOW)

        assert results.shows.synced == 2
        assert ticketmaster.calls == [("search_events", 0), ("search_events", 1)]

    async def test_derives_status(
        self,
        session: AsyncSession,
        artist: ArtistModel,
        ticketmaster: FakeTicketmasterClient,
        service: ShowSyncService,
    ) -> None:
        ticketmaster.pages = [
            tm_events_page(
                [
                    tm_event_payload("past", "Old Show", "2026-06-01"),
                    tm_event_payload("off", "Called Off", "2026-09-01", status_code="cancelled"),
                    tm_event_payload("tm-off", "Scrapped", "2026-10-01", status_code="canceled"),
                ]
            )
        ]

        await service.sync_artist_shows(artist, now=NOW)

        shows = ShowRepository(session)
        past = await shows.get_by_ticketmaster_id("past")
        off = await shows.get_by_ticketmaster_id("off")
        assert past is not None and past.status == "completed"
        assert off is not None and off.status == "cancelled"
        tm_off = await shows.get_by_ticketmaster_id("tm-off")
        assert tm_off is not None and tm_off.status == "cancelled"

    async def test_resync_only_refreshes_prices_and_status(
        self,
        session: AsyncSession,
        artist: ArtistModel,
        ticketmaster: FakeTicketmasterClient,
        service: ShowSyncService,
    ) -> None:
        ticketmaster.pages = [tm_events_page([tm_event_payload("ev1", "Original", "2026-09-01")])]
        await service.sync_artist_shows(artist, now=NOW)

        ticketmaster.pages = [
            tm_events_page(
                [tm_event_payload("ev1", "Renamed", "2026-09-03", min_price=60.0)]
            )
        ]
        results = await service.sync_artist_shows(artist, now=NOW)

        show = await ShowRepository(session).get_by_ticketmaster_id("ev1")
        assert show is not None
        assert show.name == "Original"
        assert show.min_price == 60.0
        assert results.venues.synced == 0

    async def test_invalid_event_is_reported_and_skipped(
        self,
        artist: ArtistModel,
        ticketmaster: FakeTicketmasterClient,
        service: ShowSyncService,
    ) -> None:
        broken = tm_event_payload("ev-bad", "No Date", "2026-09-01")
        broken["dates"]["start"] = {}
        ticketmaster.pages = [
            tm_events_page([broken, tm_event_payload("ev-ok", "Fine", "2026-09-02")])
        ]

        results = await service.sync_artist_shows(artist, now=NOW)

        assert results.shows.synced == 1
        assert results.shows.errors == ["event ev-bad: Ticketmaster event ev-bad has no date"]

    async def test_failed_event_rolls_back_only_itself(
        self,
        session: AsyncSession,
        artist: ArtistModel,
        ticketmaster: FakeTicketmasterClient,
        service: ShowSyncService,
    ) -> None:
        ticketmaster.pages = [
            tm_events_page(
                [
                    tm_event_payload(
                        "ev1",
                        "Breaks",
                        "2026-09-01",
                        venue_id="KovZ-other",
                        venue_name="The Warfield",
                        attractions=[("tm-foo", "Foo Fighters"), ("tm-sup", "Support Band")],
                    ),
                    tm_event_payload("ev2", "Works", "2026-09-02"),
                ]
            )
        ]
        service.artists.get_or_create_support_act = AsyncMock(  # type: ignore[method-assign]
            side_effect=RuntimeError("db hiccup")
        )

        results = await service.sync_artist_shows(artist, now=NOW)

        assert results.shows.synced == 1
        assert results.shows.errors == ["event ev1: RuntimeError: db hiccup"]
        assert await ShowRepository(session).get_by_ticketmaster_id("ev1") is None
        assert await VenueRepository(session).get_by_ticketmaster_id("KovZ-other") is None
        assert await ShowRepository(session).get_by_ticketmaster_id("ev2") is not None

    async def test_page_failure_keeps_earlier_pages(
        self,
        session: AsyncSession,
        artist: ArtistModel,
        ticketmaster: FakeTicketmasterClient,
        service: ShowSyncService,
    ) -> None:
        ticketmaster.pages = [
            tm_events_page([tm_event_payload("ev1", "Show", "2026-09-01")], total_pages=2)
        ]
        ticketmaster.page_errors[1] = RateLimitExceededError(
            "Ticketmaster rate limit exceeded", provider="ticketmaster"
        )

        with pytest.raises(RateLimitExceededError):
            await service.sync_artist_shows(artist, now=NOW)

        assert await ShowRepository(session).get_by_ticketmaster_id("ev1") is not None

    async def test_artist_without_ticketmaster_id_is_skipped(
        self,
        session: AsyncSession,
        ticketmaster: FakeTicketmasterClient,
        service: ShowSyncService,
    ) -> None:
        artist = ArtistModel(name="Spotify Only", slug="spotify-only", spotify_id="sp-x")
        session.add(artist)
        await session.flush()

        results = await service.sync_artist_shows(artist, now=NOW)

        assert results.shows.synced == 0
        assert ticketmaster.calls == []
