"""Infrastructure persistence layer."""

from .database import Database
from .identity import VenueIdentityResolver, VenueMatch
from .models import (
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
    ensure_utc_aware,
    utc_now,
)
from .repositories import (
    ArtistRepository,
    ArtistStatsRepository,
    SetlistRepository,
    ShowRepository,
    SongRepository,
    VenueRepository,
    serialize_genres,
    unique_slug,
)

__all__ = [
    "Database",
    "VenueIdentityResolver",
    "VenueMatch",
    "Base",
    "ArtistModel",
    "ArtistSongModel",
    "ArtistStatsModel",
    "SetlistModel",
    "SetlistSongModel",
    "ShowArtistModel",
    "ShowModel",
    "SongModel",
    "VenueModel",
    "ensure_utc_aware",
    "utc_now",
    "ArtistRepository",
    "ArtistStatsRepository",
    "SetlistRepository",
    "ShowRepository",
    "SongRepository",
    "VenueRepository",
    "serialize_genres",
    "unique_slug",
]
