# Hey future me - this is the SETLIST.FM phase of an artist sync!
#
# Setlist.fm knows artists by MusicBrainz ID (MBID). If we don't have one yet we look
# it up by name ONCE and store it on the artist, so the next sync skips the search.
#
# Per performed setlist (each in its own SAVEPOINT):
#   venue    Setlist.fm venue ID, else composite name+city identity (fuzzy within city)
#   show     (headliner, date, venue) → existing show, else create "{artist} at {venue}"
#   setlist  same Setlist.fm ID already imported → clear its songs and rebuild
#            another actual setlist already on the show → leave it alone
#            otherwise → new locked "actual" setlist
#   songs    find-or-create in the artist's catalog, appended in performed order
#
# Setlists without songs are skipped (Setlist.fm lists a lot of empty future events).
"""Setlist.fm import for one artist."""

import logging
from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession

from setlistsync.application.services.sync_results import SyncResults
from setlistsync.config import SetlistFmSettings
from setlistsync.domain.dtos import SetlistFmSetlistDTO
from setlistsync.domain.entities import determine_show_status
from setlistsync.domain.exceptions import ValidationError
from setlistsync.domain.ports import ISetlistFmClient
from setlistsync.domain.value_objects import slugify
from setlistsync.infrastructure.integrations.converters import setlistfm_setlist_to_dto
from setlistsync.infrastructure.persistence.identity import VenueIdentityResolver
from setlistsync.infrastructure.persistence.models import ArtistModel, utc_now
from setlistsync.infrastructure.persistence.repositories import (
    ArtistRepository,
    SetlistRepository,
    ShowRepository,
    SongRepository,
    VenueRepository,
)

logger = logging.getLogger(__name__)

IMPORT_SOURCE = "setlist.fm"


class SetlistSyncService:
    """Setlist.fm phase: actual setlists for recent shows."""

    def __init__(
        self,
        session: AsyncSession,
        setlistfm: ISetlistFmClient,
        settings: SetlistFmSettings,
        resolver: VenueIdentityResolver | None = None,
    ) -> None:
        self.session = session
        self.setlistfm = setlistfm
        self.settings = settings
        self.artists = ArtistRepository(session)
        self.venues = VenueRepository(session, resolver)
        self.shows = ShowRepository(session)
        self.songs = SongRepository(session)
        self.setlists = SetlistRepository(session)

    async def resolve_mbid(self, artist: ArtistModel) -> str | None:
        """Return the artist's MBID, searching Setlist.fm by name and persisting it if absent."""
        if artist.musicbrainz_id:
            return artist.musicbrainz_id

        mbid = await self.setlistfm.find_artist_mbid(artist.name)
        if not mbid:
            return None

        owner = await self.artists.get_by_musicbrainz_id(mbid)
        if owner is not None and owner.id != artist.id:
            logger.warning(
                "MBID %s already belongs to artist %s, using it without storing on %s",
                mbid,
                owner.id,
                artist.id,
            )
            return mbid

        artist.musicbrainz_id = mbid
        await self.session.flush()
        logger.info("Resolved MBID for '%s': %s", artist.name, mbid)
        return mbid

    async def sync_artist_setlists(
        self,
        artist: ArtistModel,
        results: SyncResults | None = None,
        days: int | None = None,
        now: datetime | None = None,
    ) -> SyncResults:
        """Run the Setlist.fm phase for one artist.

        Args:
            artist: Artist row
            results: Results object to fill in (a fresh one when None)
            days: Look-back window, defaults to settings.recent_days
            now: Reference time for show status of newly created shows

        Returns:
            The results object with ``setlists`` (and ``venues``) filled in

        Raises:
            UpstreamCredentialError, ExternalServiceError: MBID lookup or a page fetch failed
        """
        results = results or SyncResults()
        artist_id = artist.id
        artist_name = artist.name

        mbid = await self.resolve_mbid(artist)
        if not mbid:
            logger.info("No Setlist.fm match for '%s', skipping Setlist.fm phase", artist_name)
            return results

        raw_setlists = await self.setlistfm.get_recent_setlists(
            mbid,
            days=days if days is not None else self.settings.recent_days,
            max_pages=self.settings.max_pages,
            page_delay=self.settings.page_delay_seconds,
        )

        now = now or datetime.now(UTC)
        for raw in raw_setlists:
            try:
                dto = setlistfm_setlist_to_dto(raw)
            except ValidationError as e:
                results.setlists.add_error(f"setlist {raw.get('id')}: {e.message}")
                continue
            if not dto.songs:
                continue

            try:
                async with self.session.begin_nested():
                    stored, venue_created = await self._store_setlist(
                        artist_id, artist_name, dto, now
                    )
            except Exception as e:
                logger.warning(
                    "Setlist %s failed, rolled back: %s",
                    dto.setlistfm_id,
                    e,
                    extra={"setlist_id": dto.setlistfm_id, "error_type": type(e).__name__},
                )
                results.setlists.add_error(
                    f"setlist {dto.setlistfm_id}: {type(e).__name__}: {e}"
                )
                continue

            if stored:
                results.setlists.synced += 1
            if venue_created:
                results.venues.synced += 1

        artist = await self.artists.get_by_id(artist_id) or artist
        artist.setlists_synced_at = utc_now()
        logger.info(
            "Setlist.fm phase for '%s': %d setlists imported, %d errors (%d fetched)",
            artist_name,
            results.setlists.synced,
            results.setlists.error_count,
            len(raw_setlists),
        )
        return results

    async def _store_setlist(
        self,
        artist_id: str,
        artist_name: str,
        dto: SetlistFmSetlistDTO,
        now: datetime,
    ) -> tuple[bool, bool]:
        """Write one setlist. Returns (stored, venue_created)."""
        venue_id: str | None = None
        venue_name = "Unknown Venue"
        venue_created = False
        if dto.venue is not None:
            venue, venue_created = await self.venues.resolve_or_create(
                dto.venue.name,
                dto.venue.city,
                {
                    "state": dto.venue.state,
                    "country": dto.venue.country,
                    "latitude": dto.venue.latitude,
                    "longitude": dto.venue.longitude,
                },
                setlistfm_id=dto.venue.setlistfm_id,
            )
            venue_id = venue.id
            venue_name = venue.name

        show = await self.shows.find_by_composite(artist_id, dto.event_date, venue_id)
        if show is None:
            show = await self.shows.create(
                {
                    "name": f"{artist_name} at {venue_name}",
                    "date": dto.event_date,
                    "headliner_artist_id": artist_id,
                    "venue_id": venue_id,
                    "status": determine_show_status(dto.event_date, None, now).value,
                    "setlistfm_id": dto.setlistfm_id,
                },
                slug_source=slugify(
                    f"{artist_name}-{venue_name}-{dto.event_date.isoformat()}"
                ),
            )
            await self.shows.ensure_artist_link(show.id, artist_id, order_index=0)
        elif show.setlistfm_id is None:
            show.setlistfm_id = dto.setlistfm_id

        setlist = await self.setlists.get_by_external_id(dto.setlistfm_id)
        if setlist is not None:
            removed = await self.setlists.clear_songs(setlist.id)
            setlist.imported_at = utc_now()
            logger.debug("Rebuilding setlist %s (%d songs cleared)", setlist.id, removed)
        else:
            existing = await self.setlists.get_actual_for_show(show.id)
            if existing is not None:
                logger.debug(
                    "Show %s already has an actual setlist (%s), skipping %s",
                    show.id,
                    existing.imported_from,
                    dto.setlistfm_id,
                )
                return False, venue_created
            setlist = await self.setlists.create_actual(
                show.id, artist_id, dto.setlistfm_id, imported_from=IMPORT_SOURCE
            )

        artist = await self.artists.get_by_id(artist_id)
        if artist is None:
            raise ValidationError(f"Artist {artist_id} vanished during setlist import")

        for position, song_dto in enumerate(dto.songs, start=1):
            song, _ = await self.songs.get_or_create_for_artist(artist, song_dto.title)
            await self.setlists.add_song(
                setlist.id,
                song.id,
                position=position,
                set_name=song_dto.set_name,
                notes=song_dto.notes,
                is_played=True,
            )

        return True, venue_created
