"""Entity upsert layer.

Hey future me, these repositories are the ONLY code that writes catalog rows. Rules:

- Repos never commit. The caller owns the transaction (a phase commit, or a
  savepoint around one event/setlist).
- "upsert" = find by the provider's external key, update mutable fields if found,
  insert with a fresh slug otherwise. Returns (model, created).
- None values never overwrite stored data. A partial provider payload must not wipe
  the image URL we got last week.
- Slug collisions are resolved with a numeric suffix and a warning. Any OTHER unique
  violation bubbles up as IntegrityError and the calling phase counts it as an error.
"""

import json
import logging
from collections.abc import Iterable, Mapping
from datetime import date
from typing import Any, TypeVar

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from setlistsync.domain.entities import SetlistType, ShowStatus
from setlistsync.domain.value_objects import (
    normalize_identity,
    slugify,
    song_title_key,
    venue_match_key,
)
from setlistsync.infrastructure.persistence.identity import VenueIdentityResolver
from setlistsync.infrastructure.persistence.models import (
    ArtistModel,
    ArtistSongModel,
    ArtistStatsModel,
    Base,
    SetlistModel,
    SetlistSongModel,
    ShowArtistModel,
    ShowModel,
    SongModel,
    VenueModel,
    utc_now,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)


def serialize_genres(genres: Iterable[str] | None) -> str | None:
    """Store genre lists as JSON text (SQLite compatible)."""
    values = [g for g in (genres or []) if g]
    return json.dumps(values) if values else None


def _apply(model: Base, attributes: Mapping[str, Any]) -> None:
    for key, value in attributes.items():
        if value is not None:
            setattr(model, key, value)


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


async def unique_slug(
    session: AsyncSession, model: type[ModelT], name: str, fallback: str
) -> str:
    """Return a slug for ``name`` that no row of ``model`` uses yet.

    The first collision gets "-2", the next "-3" and so on. Names without any
    ASCII letters or digits fall back to ``fallback`` (usually a provider ID).
    """
    base = slugify(name) or slugify(fallback) or "item"
    column = model.slug  # type: ignore[attr-defined]
    stmt = select(column).where(
        or_(column == base, column.like(f"{_escape_like(base)}-%", escape="\\"))
    )
    taken = set((await session.execute(stmt)).scalars().all())
    if base not in taken:
        return base

    suffix = 2
    while f"{base}-{suffix}" in taken:
        suffix += 1
    candidate = f"{base}-{suffix}"
    logger.warning(
        "Slug collision in %s: '%s' taken, using '%s'",
        model.__tablename__,
        base,
        candidate,
    )
    return candidate


class ArtistRepository:
    """Artists keyed by Spotify, Ticketmaster and MusicBrainz IDs."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, artist_id: str) -> ArtistModel | None:
        return await self.session.get(ArtistModel, artist_id)

    async def get_by_spotify_id(self, spotify_id: str) -> ArtistModel | None:
        stmt = select(ArtistModel).where(ArtistModel.spotify_id == spotify_id)
        return (await self.session.execute(stmt)).scalar_one_or_none()

    async def get_by_ticketmaster_id(self, ticketmaster_id: str) -> ArtistModel | None:
        stmt = select(ArtistModel).where(ArtistModel.ticketmaster_id == ticketmaster_id)
        return (await self.session.execute(stmt)).scalar_one_or_none()

    async def get_by_musicbrainz_id(self, musicbrainz_id: str) -> ArtistModel | None:
        stmt = select(ArtistModel).where(ArtistModel.musicbrainz_id == musicbrainz_id)
        return (await self.session.execute(stmt)).scalar_one_or_none()

    # Case-insensitive exact name. Verified artists win over minimal support-act rows.
    async def get_by_name(self, name: str) -> ArtistModel | None:
        stmt = (
            select(ArtistModel)
            .where(func.lower(ArtistModel.name) == name.strip().lower())
            .order_by(ArtistModel.verified.desc(), ArtistModel.created_at)
            .limit(1)
        )
        return (await self.session.execute(stmt)).scalar_one_or_none()

    async def search(self, query: str, limit: int = 20) -> list[ArtistModel]:
        pattern = f"%{_escape_like(query.strip())}%"
        stmt = (
            select(ArtistModel)
            .where(ArtistModel.name.ilike(pattern, escape="\\"))
            .order_by(func.coalesce(ArtistModel.popularity, -1).desc(), ArtistModel.name)
            .limit(limit)
        )
        return list((await self.session.execute(stmt)).scalars().all())

    async def list_ids(self) -> list[str]:
        stmt = select(ArtistModel.id).order_by(ArtistModel.name)
        return list((await self.session.execute(stmt)).scalars().all())

    async def upsert_by_spotify_id(
        self, spotify_id: str, name: str, attributes: Mapping[str, Any]
    ) -> tuple[ArtistModel, bool]:
        """Upsert an artist keyed by Spotify ID.

        The stored slug stays as it is when the display name changes, URLs don't move.
        """
        existing = await self.get_by_spotify_id(spotify_id)
        if existing is not None:
            existing.name = name
            _apply(existing, attributes)
            return existing, False

        artist = ArtistModel(
            spotify_id=spotify_id,
            name=name,
            slug=await unique_slug(self.session, ArtistModel, name, spotify_id),
        )
        _apply(artist, attributes)
        self.session.add(artist)
        await self.session.flush()
        return artist, True

    async def upsert_by_ticketmaster_id(
        self, ticketmaster_id: str, name: str, attributes: Mapping[str, Any]
    ) -> tuple[ArtistModel, bool]:
        """Upsert an artist keyed by Ticketmaster attraction ID."""
        existing = await self.get_by_ticketmaster_id(ticketmaster_id)
        if existing is not None:
            _apply(existing, attributes)
            return existing, False

        artist = ArtistModel(
            ticketmaster_id=ticketmaster_id,
            name=name,
            slug=await unique_slug(self.session, ArtistModel, name, ticketmaster_id),
        )
        _apply(artist, attributes)
        self.session.add(artist)
        await self.session.flush()
        return artist, True

    # Hey future me - support acts show up on Ticketmaster events long before anyone syncs
    # them. If we already know an artist of that exact name WITHOUT a Ticketmaster ID, we
    # adopt the ID onto it instead of creating "foo-fighters-2". Otherwise a minimal,
    # unverified row gets created; a later full sync fills in the rest.
    async def get_or_create_support_act(
        self,
        ticketmaster_id: str,
        name: str,
        image_url: str | None = None,
        small_image_url: str | None = None,
    ) -> tuple[ArtistModel, bool]:
        existing = await self.get_by_ticketmaster_id(ticketmaster_id)
        if existing is not None:
            return existing, False

        stmt = (
            select(ArtistModel)
            .where(
                func.lower(ArtistModel.name) == name.strip().lower(),
                ArtistModel.ticketmaster_id.is_(None),
            )
            .limit(1)
        )
        namesake = (await self.session.execute(stmt)).scalar_one_or_none()
        if namesake is not None:
            namesake.ticketmaster_id = ticketmaster_id
            if namesake.image_url is None:
                namesake.image_url = image_url
                namesake.small_image_url = small_image_url
            return namesake, False

        return await self.upsert_by_ticketmaster_id(
            ticketmaster_id,
            name,
            {"image_url": image_url, "small_image_url": small_image_url, "verified": False},
        )

    async def create_placeholder(
        self,
        name: str,
        spotify_id: str | None = None,
        ticketmaster_id: str | None = None,
        musicbrainz_id: str | None = None,
        image_url: str | None = None,
    ) -> ArtistModel:
        """Insert a minimal artist row for auto-import; the sync fills the rest."""
        fallback = spotify_id or ticketmaster_id or musicbrainz_id or name
        artist = ArtistModel(
            name=name,
            slug=await unique_slug(self.session, ArtistModel, name, fallback),
            spotify_id=spotify_id,
            ticketmaster_id=ticketmaster_id,
            musicbrainz_id=musicbrainz_id,
            image_url=image_url,
            verified=False,
        )
        self.session.add(artist)
        await self.session.flush()
        return artist


class VenueRepository:
    """Venues keyed by Ticketmaster ID, Setlist.fm ID or the composite identity key."""

    def __init__(
        self,
        session: AsyncSession,
        resolver: VenueIdentityResolver | None = None,
    ) -> None:
        self.session = session
        self.resolver = resolver or VenueIdentityResolver(session)

    async def get_by_ticketmaster_id(self, ticketmaster_id: str) -> VenueModel | None:
        stmt = select(VenueModel).where(VenueModel.ticketmaster_id == ticketmaster_id)
        return (await self.session.execute(stmt)).scalar_one_or_none()

    async def get_by_setlistfm_id(self, setlistfm_id: str) -> VenueModel | None:
        stmt = select(VenueModel).where(VenueModel.setlistfm_id == setlistfm_id)
        return (await self.session.execute(stmt)).scalar_one_or_none()

    async def search(self, query: str, limit: int = 20) -> list[VenueModel]:
        pattern = f"%{_escape_like(query.strip())}%"
        stmt = (
            select(VenueModel)
            .where(
                or_(
                    VenueModel.name.ilike(pattern, escape="\\"),
                    VenueModel.city.ilike(pattern, escape="\\"),
                )
            )
            .order_by(VenueModel.name)
            .limit(limit)
        )
        return list((await self.session.execute(stmt)).scalars().all())

    async def upsert_by_ticketmaster_id(
        self, ticketmaster_id: str, name: str, attributes: Mapping[str, Any]
    ) -> tuple[VenueModel, bool]:
        """Upsert a Ticketmaster venue.

        Falls back to the composite identity when the ID is new, so a venue first
        seen through Setlist.fm gets the Ticketmaster ID attached instead of duplicated.
        """
        existing = await self.get_by_ticketmaster_id(ticketmaster_id)
        if existing is not None:
            _apply(existing, attributes)
            return existing, False

        match = await self.resolver.resolve(name, attributes.get("city"))
        if match.venue is not None and match.venue.ticketmaster_id is None:
            match.venue.ticketmaster_id = ticketmaster_id
            _apply(match.venue, attributes)
            return match.venue, False

        return await self._create(name, attributes, ticketmaster_id=ticketmaster_id)

    async def resolve_or_create(
        self,
        name: str,
        city: str | None,
        attributes: Mapping[str, Any],
        setlistfm_id: str | None = None,
    ) -> tuple[VenueModel, bool]:
        """Find a venue by Setlist.fm ID or composite identity, else create it."""
        if setlistfm_id:
            existing = await self.get_by_setlistfm_id(setlistfm_id)
            if existing is not None:
                return existing, False

        match = await self.resolver.resolve(name, city)
        if match.venue is not None:
            if setlistfm_id and match.venue.setlistfm_id is None:
                match.venue.setlistfm_id = setlistfm_id
            # only fill gaps, Ticketmaster data is richer than Setlist.fm's
            for key, value in attributes.items():
                if value is not None and getattr(match.venue, key) is None:
                    setattr(match.venue, key, value)
            return match.venue, False

        return await self._create(
            name, {**attributes, "city": city}, setlistfm_id=setlistfm_id
        )

    async def _create(
        self,
        name: str,
        attributes: Mapping[str, Any],
        ticketmaster_id: str | None = None,
        setlistfm_id: str | None = None,
    ) -> tuple[VenueModel, bool]:
        city = attributes.get("city")
        slug_source = f"{name} {city}" if city else name
        venue = VenueModel(
            name=name,
            slug=await unique_slug(
                self.session, VenueModel, slug_source, ticketmaster_id or setlistfm_id or name
            ),
            ticketmaster_id=ticketmaster_id,
            setlistfm_id=setlistfm_id,
            match_key=venue_match_key(name, city),
            city_key=normalize_identity(city),
        )
        _apply(venue, attributes)
        self.session.add(venue)
        await self.session.flush()
        return venue, True


class ShowRepository:
    """Shows and their billing (show_artists)."""

    # Only these change once a Ticketmaster show exists; name/date/venue stay put
    MUTABLE_FIELDS = ("min_price", "max_price", "currency", "status", "ticket_url")

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, show_id: str) -> ShowModel | None:
        return await self.session.get(ShowModel, show_id)

    async def get_by_ticketmaster_id(self, ticketmaster_id: str) -> ShowModel | None:
        stmt = select(ShowModel).where(ShowModel.ticketmaster_id == ticketmaster_id)
        return (await self.session.execute(stmt)).scalar_one_or_none()

    async def find_by_composite(
        self, headliner_artist_id: str, show_date: date, venue_id: str | None
    ) -> ShowModel | None:
        stmt = (
            select(ShowModel)
            .where(
                ShowModel.headliner_artist_id == headliner_artist_id,
                ShowModel.date == show_date,
                ShowModel.venue_id == venue_id
                if venue_id is not None
                else ShowModel.venue_id.is_(None),
            )
            .order_by(ShowModel.created_at)
            .limit(1)
        )
        return (await self.session.execute(stmt)).scalar_one_or_none()

    async def search(self, query: str, limit: int = 20) -> list[ShowModel]:
        pattern = f"%{_escape_like(query.strip())}%"
        stmt = (
            select(ShowModel)
            .where(ShowModel.name.ilike(pattern, escape="\\"))
            .order_by(ShowModel.date.desc())
            .limit(limit)
        )
        return list((await self.session.execute(stmt)).scalars().all())

    async def list_upcoming_without_setlist(
        self, artist_id: str, today: date
    ) -> list[ShowModel]:
        """Upcoming headliner shows from ``today`` on that have no setlist of any type."""
        has_setlist = select(SetlistModel.id).where(SetlistModel.show_id == ShowModel.id)
        stmt = (
            select(ShowModel)
            .where(
                ShowModel.headliner_artist_id == artist_id,
                ShowModel.status == ShowStatus.UPCOMING.value,
                ShowModel.date >= today,
                ~has_setlist.exists(),
            )
            .order_by(ShowModel.date, ShowModel.created_at)
        )
        return list((await self.session.execute(stmt)).scalars().all())

    async def upsert_by_ticketmaster_id(
        self, ticketmaster_id: str, attributes: Mapping[str, Any]
    ) -> tuple[ShowModel, bool]:
        """Upsert a Ticketmaster event.

        Existing shows only get MUTABLE_FIELDS refreshed. New shows need at least
        ``name``, ``date`` and ``headliner_artist_id`` in ``attributes``.
        """
        existing = await self.get_by_ticketmaster_id(ticketmaster_id)
        if existing is not None:
            _apply(existing, {k: attributes.get(k) for k in self.MUTABLE_FIELDS})
            return existing, False

        show = await self.create(attributes, ticketmaster_id=ticketmaster_id)
        return show, True

    async def create(
        self,
        attributes: Mapping[str, Any],
        ticketmaster_id: str | None = None,
        slug_source: str | None = None,
    ) -> ShowModel:
        name = attributes["name"]
        show_date = attributes["date"]
        source = slug_source or f"{name} {show_date.isoformat()}"
        show = ShowModel(
            ticketmaster_id=ticketmaster_id,
            slug=await unique_slug(
                self.session, ShowModel, source, ticketmaster_id or name
            ),
        )
        _apply(show, attributes)
        self.session.add(show)
        await self.session.flush()
        return show

    async def ensure_artist_link(
        self, show_id: str, artist_id: str, order_index: int
    ) -> bool:
        """Put an artist on the bill. Returns True if the link was new."""
        stmt = select(ShowArtistModel).where(
            ShowArtistModel.show_id == show_id,
            ShowArtistModel.artist_id == artist_id,
        )
        if (await self.session.execute(stmt)).scalar_one_or_none() is not None:
            return False

        self.session.add(
            ShowArtistModel(
                show_id=show_id,
                artist_id=artist_id,
                order_index=order_index,
                is_headliner=order_index == 0,
            )
        )
        await self.session.flush()
        return True

    async def list_show_artists(self, show_id: str) -> list[ShowArtistModel]:
        stmt = (
            select(ShowArtistModel)
            .where(ShowArtistModel.show_id == show_id)
            .order_by(ShowArtistModel.order_index)
        )
        return list((await self.session.execute(stmt)).scalars().all())


class SongRepository:
    """Songs and the artist_songs catalog links."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    def _catalog(self, artist_id: str) -> Any:
        return (
            select(SongModel)
            .join(ArtistSongModel, ArtistSongModel.song_id == SongModel.id)
            .where(ArtistSongModel.artist_id == artist_id)
        )

    async def find_by_spotify_id_in_catalog(
        self, artist_id: str, spotify_id: str
    ) -> SongModel | None:
        stmt = (
            self._catalog(artist_id)
            .where(SongModel.spotify_id == spotify_id)
            .order_by(SongModel.created_at)
            .limit(1)
        )
        return (await self.session.execute(stmt)).scalar_one_or_none()

    async def find_in_artist_catalog(self, artist_id: str, title: str) -> SongModel | None:
        """Find a song by normalized title among an artist's linked songs.

        "Don’t Look Back" and "don't look back" share a title key, so both land
        on the same row.
        """
        stmt = (
            self._catalog(artist_id)
            .where(SongModel.title_key == song_title_key(title))
            .order_by(SongModel.created_at)
            .limit(1)
        )
        return (await self.session.execute(stmt)).scalar_one_or_none()

    async def list_catalog(self, artist_id: str) -> list[SongModel]:
        """All songs linked to an artist, most popular first, unknown popularity last."""
        stmt = self._catalog(artist_id).order_by(
            SongModel.popularity.is_(None), SongModel.popularity.desc(), SongModel.title
        )
        return list((await self.session.execute(stmt)).scalars().all())

    async def linked_spotify_ids(self, artist_id: str) -> set[str]:
        stmt = (
            select(SongModel.spotify_id)
            .join(ArtistSongModel, ArtistSongModel.song_id == SongModel.id)
            .where(
                ArtistSongModel.artist_id == artist_id,
                SongModel.spotify_id.is_not(None),
            )
        )
        return {sid for sid in (await self.session.execute(stmt)).scalars().all() if sid}

    async def get_or_create_for_artist(
        self,
        artist: ArtistModel,
        title: str,
        attributes: Mapping[str, Any] | None = None,
    ) -> tuple[SongModel, bool]:
        """Find-or-create a song in the artist's catalog and make sure it is linked.

        Matching order: Spotify track ID, then normalized title. Both only look at
        songs already linked to this artist; another artist's row for the same track
        is never reused. A title match without Spotify ID adopts the ID from
        ``attributes``.
        """
        attributes = dict(attributes or {})
        spotify_id = attributes.get("spotify_id")

        if spotify_id:
            by_spotify = await self.find_by_spotify_id_in_catalog(artist.id, spotify_id)
            if by_spotify is not None:
                return by_spotify, False

        existing = await self.find_in_artist_catalog(artist.id, title)
        if existing is not None:
            if existing.spotify_id is not None:
                attributes.pop("spotify_id", None)
            for key, value in attributes.items():
                if value is not None and getattr(existing, key) is None:
                    setattr(existing, key, value)
            return existing, False

        song = SongModel(
            title=title.strip(), title_key=song_title_key(title), artist_name=artist.name
        )
        _apply(song, attributes)
        self.session.add(song)
        await self.session.flush()
        await self.link(artist.id, song.id)
        return song, True

    async def link(self, artist_id: str, song_id: str) -> bool:
        existing = await self.session.get(ArtistSongModel, (artist_id, song_id))
        if existing is not None:
            return False
        self.session.add(ArtistSongModel(artist_id=artist_id, song_id=song_id))
        await self.session.flush()
        return True

    async def count_for_artist(self, artist_id: str) -> int:
        stmt = select(func.count()).select_from(ArtistSongModel).where(
            ArtistSongModel.artist_id == artist_id
        )
        return int((await self.session.execute(stmt)).scalar_one())


class SetlistRepository:
    """Setlists and their ordered songs."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_external_id(self, external_id: str) -> SetlistModel | None:
        stmt = select(SetlistModel).where(SetlistModel.external_id == external_id)
        return (await self.session.execute(stmt)).scalar_one_or_none()

    async def get_actual_for_show(self, show_id: str) -> SetlistModel | None:
        stmt = (
            select(SetlistModel)
            .where(
                SetlistModel.show_id == show_id,
                SetlistModel.type == SetlistType.ACTUAL.value,
            )
            .limit(1)
        )
        return (await self.session.execute(stmt)).scalar_one_or_none()

    async def create_actual(
        self,
        show_id: str,
        artist_id: str,
        external_id: str,
        imported_from: str = "setlist.fm",
        name: str = "Actual Setlist",
    ) -> SetlistModel:
        setlist = SetlistModel(
            show_id=show_id,
            artist_id=artist_id,
            type=SetlistType.ACTUAL.value,
            name=name,
            is_locked=True,
            imported_from=imported_from,
            external_id=external_id,
            imported_at=utc_now(),
        )
        self.session.add(setlist)
        await self.session.flush()
        return setlist

    async def get_predicted_for_show(self, show_id: str) -> SetlistModel | None:
        stmt = (
            select(SetlistModel)
            .where(
                SetlistModel.show_id == show_id,
                SetlistModel.type == SetlistType.PREDICTED.value,
            )
            .order_by(SetlistModel.created_at)
            .limit(1)
        )
        return (await self.session.execute(stmt)).scalar_one_or_none()

    async def create_predicted(
        self,
        show_id: str,
        artist_id: str,
        imported_from: str = "api",
        name: str = "Predicted Setlist",
    ) -> SetlistModel:
        """Open (unlocked) setlist that fans vote on until the real one arrives."""
        setlist = SetlistModel(
            show_id=show_id,
            artist_id=artist_id,
            type=SetlistType.PREDICTED.value,
            name=name,
            is_locked=False,
            imported_from=imported_from,
        )
        self.session.add(setlist)
        await self.session.flush()
        return setlist

    async def clear_songs(self, setlist_id: str) -> int:
        stmt = delete(SetlistSongModel).where(SetlistSongModel.setlist_id == setlist_id)
        result = await self.session.execute(stmt)
        return int(result.rowcount or 0)  # type: ignore[attr-defined]

    async def add_song(
        self,
        setlist_id: str,
        song_id: str,
        position: int,
        set_name: str | None = None,
        notes: str | None = None,
        is_played: bool = True,
    ) -> SetlistSongModel:
        entry = SetlistSongModel(
            setlist_id=setlist_id,
            song_id=song_id,
            position=position,
            set_name=set_name,
            notes=notes,
            is_played=is_played,
        )
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def list_songs(self, setlist_id: str) -> list[SetlistSongModel]:
        stmt = (
            select(SetlistSongModel)
            .where(SetlistSongModel.setlist_id == setlist_id)
            .order_by(SetlistSongModel.position, SetlistSongModel.created_at)
        )
        return list((await self.session.execute(stmt)).scalars().all())


class ArtistStatsRepository:
    """One artist_stats row per artist."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, artist_id: str) -> ArtistStatsModel | None:
        return await self.session.get(ArtistStatsModel, artist_id)

    async def upsert(
        self, artist_id: str, values: Mapping[str, Any]
    ) -> tuple[ArtistStatsModel, bool]:
        existing = await self.get(artist_id)
        if existing is not None:
            for key, value in values.items():
                setattr(existing, key, value)
            existing.calculated_at = utc_now()
            return existing, False

        stats = ArtistStatsModel(artist_id=artist_id, **values)
        self.session.add(stats)
        await self.session.flush()
        return stats, True


__all__ = [
    "ArtistRepository",
    "VenueRepository",
    "ShowRepository",
    "SongRepository",
    "SetlistRepository",
    "ArtistStatsRepository",
    "serialize_genres",
    "unique_slug",
]
