# Hey future me - a predicted setlist is what fans vote on before the show happens.
# Every upcoming headliner show gets one as soon as Ticketmaster brings it in, seeded
# with the artist's most popular studio songs. Shows that already have ANY setlist
# (predicted or a real Setlist.fm import) are left alone, so re-running is harmless.
# No provider calls in here, it only reads what the Spotify phase stored.
"""Predicted setlist seeding for upcoming shows."""

import logging
from datetime import UTC, date, datetime

from sqlalchemy.ext.asyncio import AsyncSession

from setlistsync.application.services.sync_results import SyncResults
from setlistsync.domain.value_objects import is_live_recording
from setlistsync.infrastructure.persistence.models import ArtistModel, SongModel
from setlistsync.infrastructure.persistence.repositories import (
    SetlistRepository,
    ShowRepository,
    SongRepository,
)

logger = logging.getLogger(__name__)

DEFAULT_SONGS_PER_SETLIST = 5


class SetlistPreseedService:
    """Open predicted setlists for an artist's upcoming shows."""

    def __init__(
        self, session: AsyncSession, songs_per_setlist: int = DEFAULT_SONGS_PER_SETLIST
    ) -> None:
        self.session = session
        self.songs_per_setlist = songs_per_setlist
        self.shows = ShowRepository(session)
        self.songs = SongRepository(session)
        self.setlists = SetlistRepository(session)

    async def pick_songs(self, artist_id: str) -> list[SongModel]:
        """Most popular catalog songs, live recordings excluded.

        Deterministic: popularity first, unknown popularity last, then title.
        """
        picked: list[SongModel] = []
        for song in await self.songs.list_catalog(artist_id):
            if is_live_recording(song.title, song.album_name):
                continue
            picked.append(song)
            if len(picked) >= self.songs_per_setlist:
                break
        return picked

    async def preseed_artist_setlists(
        self,
        artist: ArtistModel,
        results: SyncResults | None = None,
        today: date | None = None,
    ) -> SyncResults:
        """Create a predicted setlist for every upcoming show that has none.

        Args:
            artist: Headliner whose shows get seeded
            results: Accumulator to add counts to (a fresh one if None)
            today: First show date that counts as upcoming (defaults to today in UTC)

        Returns:
            The results, ``predictions.synced`` counts the setlists created
        """
        results = results or SyncResults()
        if self.songs_per_setlist <= 0:
            return results

        today = today or datetime.now(UTC).date()
        shows = await self.shows.list_upcoming_without_setlist(artist.id, today)
        if not shows:
            return results

        songs = await self.pick_songs(artist.id)
        if not songs:
            logger.debug(
                "No catalog songs for '%s', %d upcoming shows stay without prediction",
                artist.name,
                len(shows),
            )
            return results

        for show in shows:
            setlist = await self.setlists.create_predicted(show.id, artist.id)
            for position, song in enumerate(songs, start=1):
                await self.setlists.add_song(setlist.id, song.id, position)
            results.predictions.synced += 1

        logger.info(
            "Opened %d predicted setlists for '%s' (%d songs each)",
            results.predictions.synced,
            artist.name,
            len(songs),
        )
        return results
