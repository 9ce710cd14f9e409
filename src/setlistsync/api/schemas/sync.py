"""API schemas for the sync endpoints.

Request bodies use camelCase keys (``artistId``, ``fullDiscography``) because the
cron jobs and the web client send them that way. Python code uses snake_case.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

MAX_LOOKBACK_DAYS = 3650


class SyncRequest(BaseModel):
    """Body of POST /api/sync."""

    model_config = ConfigDict(populate_by_name=True)

    type: Literal["artist", "artists", "shows"] = Field(
        ..., description="artist = full catalog, artists = bulk, shows = Ticketmaster only"
    )
    artist_id: str | None = Field(default=None, alias="artistId")
    artist_ids: list[str] | None = Field(default=None, alias="artistIds", max_length=100)
    days: int | None = Field(
        default=None, ge=1, le=MAX_LOOKBACK_DAYS, description="Setlist.fm look-back"
    )
    full_discography: bool = Field(default=False, alias="fullDiscography")

    @model_validator(mode="after")
    def _check_targets(self) -> "SyncRequest":
        if self.type in ("artist", "shows") and not self.artist_id:
            raise ValueError(f"artistId is required for type '{self.type}'")
        if self.type == "artists" and not self.artist_ids:
            raise ValueError("artistIds must be a non-empty list for type 'artists'")
        return self


class SongSyncRequest(BaseModel):
    """Body of POST /api/sync/songs."""

    model_config = ConfigDict(populate_by_name=True)

    artist_id: str = Field(..., alias="artistId", min_length=1)
    full_discography: bool = Field(default=False, alias="fullDiscography")


class SetlistFmSyncRequest(BaseModel):
    """Body of POST /api/sync/setlistfm. One of the three identifiers is required."""

    model_config = ConfigDict(populate_by_name=True)

    artist_id: str | None = Field(default=None, alias="artistId")
    artist_name: str | None = Field(default=None, alias="artistName")
    artist_mbid: str | None = Field(default=None, alias="artistMbid")
    days: int | None = Field(default=None, ge=1, le=MAX_LOOKBACK_DAYS)

    @model_validator(mode="after")
    def _check_identifier(self) -> "SetlistFmSyncRequest":
        if not (self.artist_id or self.artist_name or self.artist_mbid):
            raise ValueError("One of artistId, artistName or artistMbid is required")
        return self
