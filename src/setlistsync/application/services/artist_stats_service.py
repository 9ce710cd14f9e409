"""Artist statistics recomputation.

Everything here is derived. Each call reads the canonical tables and overwrites the
artist_stats row, nothing is maintained incrementally. The cheap counters are mirrored
onto the artists row so list pages don't need a join.
"""

import logging
from datetime import UTC, date, datetime
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from setlistsync.domain.entities import SetlistType, ShowStatus
from setlistsync.domain.exceptions import EntityNotFoundException
from setlistsync.infrastructure.persistence.models import (
    ArtistSongModel,
    ArtistStatsModel,
    SetlistModel,
    SetlistSongModel,
    ShowModel,
    SongModel,
)
from setlistsync.infrastructure.persistence.repositories import (
    ArtistRepository,
    ArtistStatsRepository,
)

logger = logging.getLogger(__name__)


class ArtistStatsService:
    """Recompute artist_stats for one artist."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.artists = ArtistRepository(session)
        self.stats = ArtistStatsRepository(session)

    async def _scalar(self, stmt: Any) -> Any:
        return (await self.session.execute(stmt)).scalar_one_or_none()

    async def recalculate(
        self, artist_id: str, today: date | None = None
    ) -> ArtistStatsModel:
        """Recompute and store all counters for an artist.

        Args:
            artist_id: Artist to recompute
            today: Reference date for "upcoming" (defaults to today in UTC)

        Returns:
            The upserted ArtistStatsModel

        Raises:
            EntityNotFoundException: Artist doesn't exist
        """
        artist = await self.artists.get_by_id(artist_id)
        if artist is None:
            raise EntityNotFoundException("Artist", artist_id)
        today = today or datetime.now(UTC).date()

        total_shows = await self._scalar(
            select(func.count())
            .select_from(ShowModel)
            .where(ShowModel.headliner_artist_id == artist_id)
        )

        # status alone goes stale between syncs, the date check keeps yesterday's
        # show out of "upcoming" until the next Ticketmaster pass flips it
        upcoming_shows = await self._scalar(
            select(func.count())
            .select_from(ShowModel)
            .where(
                ShowModel.headliner_artist_id == artist_id,
                ShowModel.status == ShowStatus.UPCOMING.value,
                ShowModel.date >= today,
            )
        )

        total_setlists = await self._scalar(
            select(func.count())
            .select_from(SetlistModel)
            .where(SetlistModel.artist_id == artist_id)
        )

        lengths = (
            select(func.count(SetlistSongModel.id).label("song_count"))
            .select_from(SetlistModel)
            .join(SetlistSongModel, SetlistSongModel.setlist_id == SetlistModel.id)
            .where(SetlistModel.artist_id == artist_id)
            .group_by(SetlistModel.id)
            .subquery()
        )
        avg_length = await self._scalar(select(func.avg(lengths.c.song_count)))

        total_votes = await self._scalar(
            select(func.coalesce(func.sum(SetlistModel.total_votes), 0)).where(
                SetlistModel.artist_id == artist_id
            )
        )

        play_count = func.count(SetlistSongModel.id).label("play_count")
        most_played = (
            await self.session.execute(
                select(SongModel.title, play_count)
                .select_from(SetlistSongModel)
                .join(SetlistModel, SetlistSongModel.setlist_id == SetlistModel.id)
                .join(SongModel, SetlistSongModel.song_id == SongModel.id)
                .where(
                    SetlistModel.artist_id == artist_id,
                    SetlistModel.type == SetlistType.ACTUAL.value,
                )
                .group_by(SongModel.title)
                .order_by(play_count.desc(), SongModel.title)
                .limit(1)
            )
        ).first()

        last_show_date = await self._scalar(
            select(func.max(ShowModel.date)).where(
                ShowModel.headliner_artist_id == artist_id,
                ShowModel.status == ShowStatus.COMPLETED.value,
            )
        )

        total_songs = await self._scalar(
            select(func.count())
            .select_from(ArtistSongModel)
            .where(ArtistSongModel.artist_id == artist_id)
        )

        values = {
            "total_shows": int(total_shows or 0),
            "upcoming_shows": int(upcoming_shows or 0),
            "total_setlists": int(total_setlists or 0),
            "total_songs": int(total_songs or 0),
            "avg_setlist_length": round(float(avg_length or 0), 1),
            "total_votes": int(total_votes or 0),
            "most_played_song": most_played.title if most_played else None,
            "most_played_song_count": int(most_played.play_count) if most_played else 0,
            "last_show_date": last_show_date,
        }
        stats, _ = await self.stats.upsert(artist_id, values)

        artist.total_shows = values["total_shows"]
        artist.upcoming_shows = values["upcoming_shows"]
        artist.total_setlists = values["total_setlists"]
        artist.total_songs = values["total_songs"]
        await self.session.flush()

        logger.info(
            "Stats for '%s': %d shows (%d upcoming), %d setlists, avg length %.1f",
            artist.name,
            values["total_shows"],
            values["upcoming_shows"],
            values["total_setlists"],
            values["avg_setlist_length"],
        )
        return stats
