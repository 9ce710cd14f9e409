"""Search over the local catalog, with Spotify as a fallback for artists.

Hey future me - search must NEVER turn into an error page. A query shorter than two
characters returns nothing without touching the DB or any provider, and a Spotify
outage only means the response is local-only.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Literal

from sqlalchemy.ext.asyncio import AsyncSession

from setlistsync.domain.exceptions import ExternalServiceError
from setlistsync.domain.ports import ISpotifyClient
from setlistsync.infrastructure.integrations.converters import spotify_artist_to_dto
from setlistsync.infrastructure.persistence.models import ArtistModel
from setlistsync.infrastructure.persistence.repositories import (
    ArtistRepository,
    ShowRepository,
    VenueRepository,
)

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2


@dataclass
class SearchHit:
    id: str | None
    type: Literal["artist", "show", "venue"]
    title: str
    subtitle: str | None = None
    slug: str | None = None
    image_url: str | None = None
    source: Literal["database", "spotify"] = "database"
    spotify_id: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)


def _artist_hit(artist: ArtistModel) -> SearchHit:
    genres = artist.genre_list
    return SearchHit(
        id=artist.id,
        type="artist",
        title=artist.name,
        subtitle=", ".join(genres[:2]) if genres else "Artist",
        slug=artist.slug,
        image_url=artist.image_url,
        spotify_id=artist.spotify_id,
        extra={"verified": artist.verified, "popularity": artist.popularity},
    )


def is_searchable(query: str | None) -> bool:
    return query is not None and len(query.strip()) >= MIN_QUERY_LENGTH


class SearchService:
    """Catalog search (artists, shows, venues) plus Spotify artist lookup."""

    def __init__(self, session: AsyncSession, spotify: ISpotifyClient | None = None) -> None:
        self.session = session
        self.spotify = spotify
        self.artists = ArtistRepository(session)
        self.shows = ShowRepository(session)
        self.venues = VenueRepository(session)

    async def search(self, query: str, limit: int = 10) -> list[SearchHit]:
        """Search the local catalog. Artists first, then shows, then venues."""
        if not is_searchable(query):
            return []
        query = query.strip()

        hits = [_artist_hit(a) for a in await self.artists.search(query, limit)]
        for show in await self.shows.search(query, limit):
            hits.append(
                SearchHit(
                    id=show.id,
                    type="show",
                    title=show.name,
                    subtitle=show.date.isoformat(),
                    slug=show.slug,
                    extra={"status": show.status, "date": show.date.isoformat()},
                )
            )
        for venue in await self.venues.search(query, limit):
            location = ", ".join(p for p in (venue.city, venue.state, venue.country) if p)
            hits.append(
                SearchHit(
                    id=venue.id,
                    type="venue",
                    title=venue.name,
                    subtitle=location or None,
                    slug=venue.slug,
                    extra={"capacity": venue.capacity},
                )
            )
        return hits[:limit]

    async def search_artists(self, query: str, limit: int = 10) -> list[SearchHit]:
        """Local artists, topped up with Spotify artists we don't have yet."""
        if not is_searchable(query):
            return []
        query = query.strip()

        local = await self.artists.search(query, limit)
        hits = [_artist_hit(a) for a in local]
        if self.spotify is None or len(hits) >= limit:
            return hits

        known_spotify_ids = {a.spotify_id for a in local if a.spotify_id}
        try:
            page = await self.spotify.search_artists(query, limit=limit)
        except ExternalServiceError as e:
            logger.warning("Spotify artist search failed, returning local results: %s", e.message)
            return hits

        for item in (page.get("artists") or {}).get("items") or []:
            if len(hits) >= limit:
                break
            if not item.get("id") or not item.get("name") or item["id"] in known_spotify_ids:
                continue
            # stored under a name the query didn't hit
            if await self.artists.get_by_spotify_id(item["id"]) is not None:
                continue
            dto = spotify_artist_to_dto(item)
            hits.append(
                SearchHit(
                    id=None,
                    type="artist",
                    title=dto.name,
                    subtitle=", ".join(dto.genres[:2]) if dto.genres else "Artist",
                    image_url=dto.image_url,
                    source="spotify",
                    spotify_id=dto.spotify_id,
                    extra={"popularity": dto.popularity, "followers": dto.followers},
                )
            )
        return hits
