"""Tests for predicted setlist seeding."""

from datetime import date

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from setlistsync.application.services import SetlistPreseedService
from setlistsync.infrastructure.persistence import (
    ArtistModel,
    ArtistRepository,
    SetlistRepository,
    ShowModel,
    ShowRepository,
    SongModel,
    SongRepository,
)

TODAY = date(2026, 6, 15)


async def _show(
    session: AsyncSession,
    artist: ArtistModel,
    name: str,
    on: date,
    status: str = "upcoming",
) -> ShowModel:
    return await ShowRepository(session).create(
        {"name": name, "date": on, "headliner_artist_id": artist.id, "status": status}
    )


async def _catalog(
    session: AsyncSession, artist: ArtistModel, songs: list[tuple[str, int | None]]
) -> None:
    repo = SongRepository(session)
    for title, popularity in songs:
        await repo.get_or_create_for_artist(artist, title, {"popularity": popularity})


async def _predicted_titles(session: AsyncSession, show: ShowModel) -> list[str] | None:
    setlists = SetlistRepository(session)
    predicted = await setlists.get_predicted_for_show(show.id)
    if predicted is None:
        return None
    titles = []
    for entry in await setlists.list_songs(predicted.id):
        song = await session.get(SongModel, entry.song_id)
        assert song is not None
        titles.append(song.title)
    return titles


@pytest.fixture
def service(session: AsyncSession) -> SetlistPreseedService:
    return SetlistPreseedService(session)


class TestSetlistPreseedService:
    async def test_opens_one_predicted_setlist_per_upcoming_show(
        self, session: AsyncSession, artist: ArtistModel, service: SetlistPreseedService
    ) -> None:
        await _catalog(session, artist, [("Everlong", 80), ("My Hero", 70)])
        first = await _show(session, artist, "Night One", date(2026, 7, 1))
        second = await _show(session, artist, "Night Two", date(2026, 7, 2))

        results = await service.preseed_artist_setlists(artist, today=TODAY)

        assert results.predictions.synced == 2
        for show in (first, second):
            predicted = await SetlistRepository(session).get_predicted_for_show(show.id)
            assert predicted is not None
            assert predicted.name == "Predicted Setlist"
            assert predicted.is_locked is False
            assert predicted.imported_from == "api"
            assert predicted.external_id is None
        assert await _predicted_titles(session, first) == ["Everlong", "My Hero"]

    async def test_takes_five_most_popular_studio_songs(
        self, session: AsyncSession, artist: ArtistModel, service: SetlistPreseedService
    ) -> None:
        await _catalog(
            session,
            artist,
            [
                ("Everlong - Live", 99),
                ("Best of You", 60),
                ("Everlong", 90),
                ("Walk", 50),
                ("My Hero", 85),
                ("Learn to Fly", 70),
                ("Monkey Wrench", 65),
                ("Rope", None),
            ],
        )
        show = await _show(session, artist, "Arena", date(2026, 8, 1))

        await service.preseed_artist_setlists(artist, today=TODAY)

        assert await _predicted_titles(session, show) == [
            "Everlong",
            "My Hero",
            "Learn to Fly",
            "Monkey Wrench",
            "Best of You",
        ]

    async def test_skips_shows_that_already_have_a_setlist(
        self, session: AsyncSession, artist: ArtistModel, service: SetlistPreseedService
    ) -> None:
        await _catalog(session, artist, [("Everlong", 80)])
        imported = await _show(session, artist, "Imported", date(2026, 7, 1))
        await SetlistRepository(session).create_actual(imported.id, artist.id, "sl1")

        results = await service.preseed_artist_setlists(artist, today=TODAY)

        assert results.predictions.synced == 0
        assert await SetlistRepository(session).get_predicted_for_show(imported.id) is None

    async def test_is_idempotent(
        self, session: AsyncSession, artist: ArtistModel, service: SetlistPreseedService
    ) -> None:
        await _catalog(session, artist, [("Everlong", 80)])
        await _show(session, artist, "Night One", date(2026, 7, 1))

        first = await service.preseed_artist_setlists(artist, today=TODAY)
        again = await service.preseed_artist_setlists(artist, today=TODAY)

        assert first.predictions.synced == 1
        assert again.predictions.synced == 0

    async def test_ignores_past_cancelled_and_foreign_shows(
        self, session: AsyncSession, artist: ArtistModel, service: SetlistPreseedService
    ) -> None:
        await _catalog(session, artist, [("Everlong", 80)])
        past = await _show(session, artist, "Last Year", date(2025, 6, 1), "completed")
        stale = await _show(session, artist, "Yesterday", date(2026, 6, 14))
        called_off = await _show(session, artist, "Called Off", date(2026, 7, 1), "cancelled")
        other = await ArtistRepository(session).create_placeholder("Support Act")
        foreign = await _show(session, other, "Support Headlines", date(2026, 7, 2))

        results = await service.preseed_artist_setlists(artist, today=TODAY)

        assert results.predictions.synced == 0
        for show in (past, stale, called_off, foreign):
            assert await _predicted_titles(session, show) is None

    async def test_empty_catalog_opens_nothing(
        self, session: AsyncSession, artist: ArtistModel, service: SetlistPreseedService
    ) -> None:
        show = await _show(session, artist, "Night One", date(2026, 7, 1))

        results = await service.preseed_artist_setlists(artist, today=TODAY)

        assert results.predictions.synced == 0
        assert await _predicted_titles(session, show) is None

    async def test_size_zero_turns_seeding_off(
        self, session: AsyncSession, artist: ArtistModel
    ) -> None:
        await _catalog(session, artist, [("Everlong", 80)])
        await _show(session, artist, "Night One", date(2026, 7, 1))

        results = await SetlistPreseedService(
            session, songs_per_setlist=0
        ).preseed_artist_setlists(artist, today=TODAY)

        assert results.predictions.synced == 0
