"""
Data Transfer Objects between the provider clients and the sync phases.

Hey future me - the clients return provider-native JSON (dicts), the converters in
``setlistsync.infrastructure.integrations.converters`` turn that JSON into these DTOs,
and the sync phases only ever see DTOs. When Ticketmaster renames a field, fix the
converter, not three services.

DTOs are dumb carriers: no database IDs, no business rules beyond "a name must exist".
"""

from dataclasses import dataclass, field
from datetime import date, datetime

from setlistsync.domain.exceptions import ValidationError


@dataclass
class SpotifyArtistDTO:
    """Artist metadata from the Spotify Web API."""

    spotify_id: str
    name: str
    genres: list[str] = field(default_factory=list)
    popularity: int | None = None
    followers: int | None = None
    image_url: str | None = None
    small_image_url: str | None = None
    external_url: str | None = None

    def __post_init__(self) -> None:
        if not self.spotify_id:
            raise ValidationError("Spotify artist without id")
        if not self.name or not self.name.strip():
            raise ValidationError("Artist name cannot be empty")


@dataclass
class SpotifyTrackDTO:
    """A track from top-tracks or an album listing."""

    spotify_id: str
    title: str
    artist_name: str
    album_name: str | None = None
    album_art_url: str | None = None
    release_date: str | None = None  # "YYYY", "YYYY-MM" or "YYYY-MM-DD"
    duration_ms: int | None = None
    popularity: int | None = None
    preview_url: str | None = None
    is_explicit: bool = False
    isrc: str | None = None

    def __post_init__(self) -> None:
        if not self.title or not self.title.strip():
            raise ValidationError("Track title cannot be empty")


@dataclass
class TicketmasterAttractionDTO:
    """A performer ("attraction") listed on an event."""

    ticketmaster_id: str
    name: str
    image_url: str | None = None
    small_image_url: str | None = None


@dataclass
class TicketmasterVenueDTO:
    """Venue block embedded in a Ticketmaster event."""

    ticketmaster_id: str
    name: str
    address: str | None = None
    city: str | None = None
    state: str | None = None
    country: str | None = None
    postal_code: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    timezone: str | None = None
    capacity: int | None = None
    website: str | None = None


@dataclass
class TicketmasterEventDTO:
    """A single Ticketmaster event.

    ``attractions`` keeps provider order: index 0 is the headliner, the rest are
    support acts in billing order.
    """

    ticketmaster_id: str
    name: str
    local_date: date | None = None
    local_time: str | None = None
    starts_at: datetime | None = None
    doors_time: str | None = None
    status_code: str | None = None
    ticket_url: str | None = None
    description: str | None = None
    min_price: float | None = None
    max_price: float | None = None
    currency: str = "USD"
    venue: TicketmasterVenueDTO | None = None
    attractions: list[TicketmasterAttractionDTO] = field(default_factory=list)


@dataclass
class SetlistFmVenueDTO:
    """Venue as described by Setlist.fm (no shared ID with Ticketmaster)."""

    setlistfm_id: str | None
    name: str
    city: str | None = None
    state: str | None = None
    country: str | None = None
    latitude: float | None = None
    longitude: float | None = None


@dataclass
class SetlistFmSongDTO:
    """One performed song, flattened out of the set structure."""

    title: str
    set_name: str
    is_encore: bool = False
    info: str | None = None
    cover_artist: str | None = None
    is_tape: bool = False

    @property
    def notes(self) -> str | None:
        """Note stored on the setlist song: "Encore" or a named non-main set."""
        if self.is_encore:
            return "Encore"
        if self.set_name and self.set_name != "Main Set":
            return self.set_name
        return None


@dataclass
class SetlistFmSetlistDTO:
    """A performed setlist from Setlist.fm."""

    setlistfm_id: str
    event_date: date
    artist_name: str
    artist_mbid: str | None = None
    venue: SetlistFmVenueDTO | None = None
    tour_name: str | None = None
    url: str | None = None
    songs: list[SetlistFmSongDTO] = field(default_factory=list)


__all__ = [
    "SpotifyArtistDTO",
    "SpotifyTrackDTO",
    "TicketmasterAttractionDTO",
    "TicketmasterVenueDTO",
    "TicketmasterEventDTO",
    "SetlistFmVenueDTO",
    "SetlistFmSongDTO",
    "SetlistFmSetlistDTO",
]
