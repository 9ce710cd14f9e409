# Hey future me - this is the SPOTIFY phase of an artist sync!
# It does two things:
# 1. Refresh the artist row from Spotify (name, genres, images, popularity, followers)
# 2. Pull songs into the artist's catalog: top tracks by default, the whole album
#    discography when full_discography=True (studio versions only, live cuts skipped)
#
# Dedup rules: a Spotify track ID that is already linked is skipped without a DB write,
# a title that already exists in the artist's catalog (e.g. created from a setlist)
# gets the Spotify ID attached instead of a second song row.
"""Spotify catalog sync for one artist."""

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from setlistsync.application.services.sync_results import SyncResults
from setlistsync.domain.dtos import SpotifyArtistDTO, SpotifyTrackDTO
from setlistsync.domain.exceptions import ValidationError
from setlistsync.domain.ports import ISpotifyClient
from setlistsync.domain.value_objects import (
    is_artist_name_match,
    is_live_recording,
    normalize_identity,
)
from setlistsync.infrastructure.integrations.converters import (
    spotify_artist_to_dto,
    spotify_track_to_dto,
)
from setlistsync.infrastructure.persistence.models import ArtistModel, utc_now
from setlistsync.infrastructure.persistence.repositories import (
    ArtistRepository,
    SongRepository,
    serialize_genres,
)

logger = logging.getLogger(__name__)

# Safety caps for the discography walk
MAX_ALBUM_PAGES = 10
MAX_TRACK_PAGES = 5
PAGE_SIZE = 50


class SongSyncService:
    """Spotify phase: artist metadata and song catalog."""

    def __init__(self, session: AsyncSession, spotify: ISpotifyClient) -> None:
        self.session = session
        self.spotify = spotify
        self.artists = ArtistRepository(session)
        self.songs = SongRepository(session)

    async def resolve_spotify_id(self, artist: ArtistModel) -> str | None:
        """Find and store a Spotify ID for an artist that has none yet.

        Only a loose name match counts; otherwise we leave the artist alone
        rather than attach someone else's catalog.
        """
        if artist.spotify_id:
            return artist.spotify_id

        page = await self.spotify.search_artists(artist.name, limit=5)
        for item in (page.get("artists") or {}).get("items") or []:
            if not is_artist_name_match(artist.name, item.get("name")):
                continue
            candidate = item.get("id")
            if not candidate:
                continue
            owner = await self.artists.get_by_spotify_id(candidate)
            if owner is not None and owner.id != artist.id:
                logger.warning(
                    "Spotify ID %s already belongs to artist %s, not attaching to %s",
                    candidate,
                    owner.id,
                    artist.id,
                )
                return None
            artist.spotify_id = candidate
            logger.info("Resolved Spotify ID for '%s': %s", artist.name, candidate)
            return candidate
        return None

    async def sync_artist_songs(
        self,
        artist: ArtistModel,
        results: SyncResults | None = None,
        full_discography: bool = False,
    ) -> SyncResults:
        """Run the Spotify phase for one artist.

        Args:
            artist: Artist row (attached to this service's session)
            results: Results object to fill in (a fresh one when None)
            full_discography: Walk all albums/singles instead of top tracks

        Returns:
            The results object with ``artist`` and ``songs`` filled in

        Raises:
            UpstreamCredentialError: Spotify not configured (phase-level)
            ExternalServiceError: Spotify failed on the artist lookup (phase-level)
        """
        results = results or SyncResults()

        spotify_id = await self.resolve_spotify_id(artist)
        if not spotify_id:
            logger.info("Artist '%s' has no Spotify ID, skipping Spotify phase", artist.name)
            return results

        dto = spotify_artist_to_dto(await self.spotify.get_artist(spotify_id))
        self._apply_artist_metadata(artist, dto)
        results.artist.updated = True
        results.artist.data = {
            "name": dto.name,
            "genres": dto.genres,
            "popularity": dto.popularity,
            "followers": dto.followers,
            "imageUrl": dto.image_url,
        }

        if full_discography:
            tracks = await self._fetch_discography(spotify_id, artist.name, results)
        else:
            payload = await self.spotify.get_artist_top_tracks(spotify_id)
            tracks = self._convert_tracks(payload.get("tracks") or [], results)

        linked = await self.songs.linked_spotify_ids(artist.id)
        for track in tracks:
            if track.spotify_id in linked:
                continue
            try:
                async with self.session.begin_nested():
                    _, created = await self.songs.get_or_create_for_artist(
                        artist,
                        track.title,
                        {
                            "spotify_id": track.spotify_id,
                            "album_name": track.album_name,
                            "album_art_url": track.album_art_url,
                            "release_date": track.release_date,
                            "duration_ms": track.duration_ms,
                            "popularity": track.popularity,
                            "preview_url": track.preview_url,
                            "is_explicit": track.is_explicit,
                            "isrc": track.isrc,
                        },
                    )
            except Exception as e:
                logger.warning(
                    "Failed to store track '%s' for %s: %s", track.title, artist.name, e
                )
                results.songs.add_error(f"track {track.spotify_id}: {e}")
                continue

            linked.add(track.spotify_id)
            if created:
                results.songs.synced += 1

        artist.total_songs = await self.songs.count_for_artist(artist.id)
        artist.songs_synced_at = utc_now()
        logger.info(
            "Spotify phase for '%s': %d new songs, %d in catalog, %d errors",
            artist.name,
            results.songs.synced,
            artist.total_songs,
            results.songs.error_count,
        )
        return results

    def _apply_artist_metadata(self, artist: ArtistModel, dto: SpotifyArtistDTO) -> None:
        artist.name = dto.name
        artist.genres = serialize_genres(dto.genres) or artist.genres
        artist.popularity = dto.popularity if dto.popularity is not None else artist.popularity
        artist.followers = dto.followers if dto.followers is not None else artist.followers
        artist.image_url = dto.image_url or artist.image_url
        artist.small_image_url = dto.small_image_url or artist.small_image_url
        artist.external_url = dto.external_url or artist.external_url
        artist.verified = True
        artist.last_synced_at = utc_now()

    def _convert_tracks(
        self,
        payloads: list[dict[str, Any]],
        results: SyncResults,
        album: dict[str, Any] | None = None,
    ) -> list[SpotifyTrackDTO]:
        tracks: list[SpotifyTrackDTO] = []
        for payload in payloads:
            try:
                track = spotify_track_to_dto(payload, album=album)
            except ValidationError as e:
                results.songs.add_error(f"track {payload.get('id')}: {e.message}")
                continue
            if track.spotify_id:
                tracks.append(track)
        return tracks

    async def _fetch_discography(
        self, spotify_id: str, artist_name: str, results: SyncResults
    ) -> list[SpotifyTrackDTO]:
        """Walk albums and singles, keeping one studio version per title."""
        seen_titles: set[str] = set()
        tracks: list[SpotifyTrackDTO] = []

        for page_index in range(MAX_ALBUM_PAGES):
            page = await self.spotify.get_artist_albums(
                spotify_id, offset=page_index * PAGE_SIZE, limit=PAGE_SIZE
            )
            for album in page.get("items") or []:
                if is_live_recording("", album.get("name")):
                    continue
                for album_page in range(MAX_TRACK_PAGES):
                    track_page = await self.spotify.get_album_tracks(
                        album["id"], offset=album_page * PAGE_SIZE, limit=PAGE_SIZE
                    )
                    items = [
                        item
                        for item in track_page.get("items") or []
                        if any(a.get("id") == spotify_id for a in item.get("artists") or [])
                    ]
                    for track in self._convert_tracks(items, results, album=album):
                        key = normalize_identity(track.title)
                        if key in seen_titles or is_live_recording(track.title):
                            continue
                        seen_titles.add(key)
                        tracks.append(track)
                    if not track_page.get("next"):
                        break
            if not page.get("next"):
                break

        logger.debug(
            "Discography for '%s': %d distinct studio tracks", artist_name, len(tracks)
        )
        return tracks
