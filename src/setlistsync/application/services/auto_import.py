"""Auto-import: turn "a user asked for an artist we don't have" into a stored artist.

Hey future me - this is the FAST half of an import. It only finds or creates a
placeholder row so the UI has an ID to navigate to; the slow half (the full catalog
sync) is scheduled by the route as a background task with its own DB session.

Identifier resolution is best-effort. If Spotify or Ticketmaster is down or not
configured we still create the artist with whatever we know, and the sync fills the
gaps later.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from setlistsync.config import Settings
from setlistsync.domain.exceptions import ExternalServiceError, ValidationException
from setlistsync.domain.ports import ISpotifyClient, ITicketmasterClient
from setlistsync.domain.value_objects import is_artist_name_match, normalize_identity
from setlistsync.infrastructure.integrations.converters import ticketmaster_attraction_to_dto
from setlistsync.infrastructure.persistence.models import ArtistModel
from setlistsync.infrastructure.persistence.repositories import ArtistRepository

logger = logging.getLogger(__name__)


@dataclass
class AutoImportResult:
    artist: ArtistModel
    created: bool


@dataclass
class _Identifiers:
    spotify_id: str | None = None
    ticketmaster_id: str | None = None
    name: str | None = None
    image_url: str | None = None


class ArtistAutoImportService:
    """Find-or-create an artist from any one of its identifiers."""

    def __init__(
        self,
        session: AsyncSession,
        spotify: ISpotifyClient,
        ticketmaster: ITicketmasterClient,
        settings: Settings,
    ) -> None:
        self.session = session
        self.spotify = spotify
        self.ticketmaster = ticketmaster
        self.settings = settings
        self.artists = ArtistRepository(session)

    async def _find_existing(self, ids: _Identifiers) -> ArtistModel | None:
        if ids.ticketmaster_id:
            artist = await self.artists.get_by_ticketmaster_id(ids.ticketmaster_id)
            if artist is not None:
                return artist
        if ids.spotify_id:
            artist = await self.artists.get_by_spotify_id(ids.spotify_id)
            if artist is not None:
                return artist
        if ids.name:
            return await self.artists.get_by_name(ids.name)
        return None

    async def import_artist(
        self,
        spotify_id: str | None = None,
        tm_attraction_id: str | None = None,
        artist_name: str | None = None,
    ) -> AutoImportResult:
        """Return the stored artist for these identifiers, creating a placeholder if needed.

        Args:
            spotify_id: Spotify artist ID
            tm_attraction_id: Ticketmaster attraction ID
            artist_name: Display name

        Returns:
            AutoImportResult; ``created`` is True when a new row was inserted

        Raises:
            ValidationException: No identifier given, or no name could be resolved
        """
        ids = _Identifiers(
            spotify_id=(spotify_id or "").strip() or None,
            ticketmaster_id=(tm_attraction_id or "").strip() or None,
            name=(artist_name or "").strip() or None,
        )
        if not (ids.spotify_id or ids.ticketmaster_id or ids.name):
            raise ValidationException(
                "spotifyId, tmAttractionId or artistName is required",
                details=[
                    {"field": f, "message": "one of these is required"}
                    for f in ("spotifyId", "tmAttractionId", "artistName")
                ],
            )

        existing = await self._find_existing(ids)
        if existing is not None:
            logger.info("Auto-import: '%s' already exists (%s)", existing.name, existing.id)
            return AutoImportResult(artist=existing, created=False)

        await self._resolve_spotify(ids)
        await self._resolve_ticketmaster(ids)

        # resolution may have turned up an ID we already store
        existing = await self._find_existing(ids)
        if existing is not None:
            if ids.spotify_id and existing.spotify_id is None:
                if await self.artists.get_by_spotify_id(ids.spotify_id) is None:
                    existing.spotify_id = ids.spotify_id
            if ids.ticketmaster_id and existing.ticketmaster_id is None:
                if await self.artists.get_by_ticketmaster_id(ids.ticketmaster_id) is None:
                    existing.ticketmaster_id = ids.ticketmaster_id
            await self.session.commit()
            return AutoImportResult(artist=existing, created=False)

        if not ids.name:
            raise ValidationException(
                "Could not resolve an artist name from the given identifiers",
                details=[{"field": "artistName", "message": "not found at any provider"}],
            )

        artist = await self.artists.create_placeholder(
            ids.name,
            spotify_id=ids.spotify_id,
            ticketmaster_id=ids.ticketmaster_id,
            image_url=ids.image_url,
        )
        await self.session.commit()
        logger.info(
            "Auto-import: created placeholder '%s' (%s) spotify=%s ticketmaster=%s",
            artist.name,
            artist.id,
            artist.spotify_id,
            artist.ticketmaster_id,
        )
        return AutoImportResult(artist=artist, created=True)

    async def _resolve_spotify(self, ids: _Identifiers) -> None:
        if not self.settings.spotify.is_configured:
            return
        try:
            if ids.spotify_id and not ids.name:
                payload = await self.spotify.get_artist(ids.spotify_id)
                ids.name = payload.get("name") or None
                images = payload.get("images") or []
                ids.image_url = ids.image_url or (images[0].get("url") if images else None)
            elif ids.name and not ids.spotify_id:
                page = await self.spotify.search_artists(ids.name, limit=5)
                for item in (page.get("artists") or {}).get("items") or []:
                    if is_artist_name_match(ids.name, item.get("name")) and item.get("id"):
                        ids.spotify_id = item["id"]
                        images = item.get("images") or []
                        ids.image_url = ids.image_url or (
                            images[0].get("url") if images else None
                        )
                        break
        except ExternalServiceError as e:
            logger.warning("Auto-import: Spotify lookup failed, continuing without: %s", e.message)

    async def _resolve_ticketmaster(self, ids: _Identifiers) -> None:
        if not self.settings.ticketmaster.is_configured:
            return
        try:
            if ids.ticketmaster_id and not ids.name:
                attraction = ticketmaster_attraction_to_dto(
                    await self.ticketmaster.get_attraction(ids.ticketmaster_id)
                )
                ids.name = attraction.name or None
                ids.image_url = ids.image_url or attraction.image_url
            elif ids.name and not ids.ticketmaster_id:
                wanted = normalize_identity(ids.name)
                page = await self.ticketmaster.search_attractions(ids.name, size=10)
                for item in (page.get("_embedded") or {}).get("attractions") or []:
                    # exact normalized name only, "Foo Fighters Tribute" is not Foo Fighters
                    if item.get("id") and normalize_identity(item.get("name")) == wanted:
                        ids.ticketmaster_id = item["id"]
                        break
        except ExternalServiceError as e:
            logger.warning(
                "Auto-import: Ticketmaster lookup failed, continuing without: %s", e.message
            )
