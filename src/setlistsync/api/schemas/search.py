"""API schemas for search and artist auto-import."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from setlistsync.application.services.search_service import SearchHit


class SearchResultItem(BaseModel):
    """One search hit. ``id`` is None for Spotify artists we haven't stored yet."""

    model_config = ConfigDict(populate_by_name=True)

    id: str | None = Field(default=None, description="Internal ID")
    type: Literal["artist", "show", "venue"]
    title: str
    subtitle: str | None = None
    slug: str | None = None
    image_url: str | None = Field(default=None, alias="imageUrl")
    source: Literal["database", "spotify"] = "database"
    spotify_id: str | None = Field(default=None, alias="spotifyId")
    extra: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_hit(cls, hit: SearchHit) -> "SearchResultItem":
        return cls(
            id=hit.id,
            type=hit.type,
            title=hit.title,
            subtitle=hit.subtitle,
            slug=hit.slug,
            image_url=hit.image_url,
            source=hit.source,
            spotify_id=hit.spotify_id,
            extra=hit.extra,
        )


class SearchResponse(BaseModel):
    results: list[SearchResultItem] = Field(default_factory=list)


class ArtistSearchResponse(BaseModel):
    artists: list[SearchResultItem] = Field(default_factory=list)


class AutoImportRequest(BaseModel):
    """Body of POST /api/artists/auto-import."""

    model_config = ConfigDict(populate_by_name=True)

    spotify_id: str | None = Field(default=None, alias="spotifyId")
    tm_attraction_id: str | None = Field(default=None, alias="tmAttractionId")
    artist_name: str | None = Field(default=None, alias="artistName", max_length=255)


class AutoImportResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    artist_id: str = Field(..., alias="artistId")
    slug: str
    name: str
    already_exists: bool = Field(..., alias="alreadyExists")
    sync_scheduled: bool = Field(default=False, alias="syncScheduled")
    progress_endpoint: str = Field(..., alias="progressEndpoint")
