"""Provider JSON → DTO converters.

Hey future me - provider payloads are messy: numbers arrive as strings, lists go
missing when empty, images come in random order. All of that gets cleaned up HERE,
so the sync services can trust the DTOs.
"""

import logging
from datetime import date, datetime
from typing import Any

from setlistsync.domain.dtos import (
    SetlistFmSetlistDTO,
    SetlistFmSongDTO,
    SetlistFmVenueDTO,
    SpotifyArtistDTO,
    SpotifyTrackDTO,
    TicketmasterAttractionDTO,
    TicketmasterEventDTO,
    TicketmasterVenueDTO,
)
from setlistsync.domain.exceptions import ValidationError
from setlistsync.infrastructure.integrations.setlistfm_client import parse_event_date

logger = logging.getLogger(__name__)


def _to_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _to_int(value: Any) -> int | None:
    number = _to_float(value)
    return int(number) if number is not None else None


def _image_at(images: list[dict[str, Any]] | None, index: int) -> str | None:
    if not images or len(images) <= index:
        return None
    return images[index].get("url")


# ---------------------------------------------------------------------------
# Spotify
# ---------------------------------------------------------------------------


def spotify_artist_to_dto(payload: dict[str, Any]) -> SpotifyArtistDTO:
    """Convert a Spotify artist object.

    Spotify orders ``images`` largest first, so [0] is the hero image and the last
    one is the thumbnail.
    """
    images = payload.get("images") or []
    return SpotifyArtistDTO(
        spotify_id=payload.get("id", ""),
        name=payload.get("name", ""),
        genres=list(payload.get("genres") or []),
        popularity=payload.get("popularity"),
        followers=(payload.get("followers") or {}).get("total"),
        image_url=_image_at(images, 0),
        small_image_url=_image_at(images, len(images) - 1) if images else None,
        external_url=(payload.get("external_urls") or {}).get("spotify"),
    )


def spotify_track_to_dto(
    payload: dict[str, Any], album: dict[str, Any] | None = None
) -> SpotifyTrackDTO:
    """Convert a (full or simplified) Spotify track object.

    Args:
        payload: Track object
        album: Album object, for simplified tracks from /albums/{id}/tracks which
            don't embed their album
    """
    album_data = payload.get("album") or album or {}
    artists = payload.get("artists") or []
    return SpotifyTrackDTO(
        spotify_id=payload.get("id", ""),
        title=payload.get("name", ""),
        artist_name=artists[0].get("name", "") if artists else "",
        album_name=album_data.get("name"),
        album_art_url=_image_at(album_data.get("images"), 0),
        release_date=album_data.get("release_date"),
        duration_ms=payload.get("duration_ms"),
        popularity=payload.get("popularity"),
        preview_url=payload.get("preview_url"),
        is_explicit=bool(payload.get("explicit", False)),
        isrc=(payload.get("external_ids") or {}).get("isrc"),
    )


# ---------------------------------------------------------------------------
# Ticketmaster
# ---------------------------------------------------------------------------


def ticketmaster_venue_to_dto(payload: dict[str, Any]) -> TicketmasterVenueDTO:
    location = payload.get("location") or {}
    state = payload.get("state") or {}
    return TicketmasterVenueDTO(
        ticketmaster_id=payload.get("id", ""),
        name=payload.get("name", ""),
        address=(payload.get("address") or {}).get("line1"),
        city=(payload.get("city") or {}).get("name"),
        state=state.get("stateCode") or state.get("name"),
        country=(payload.get("country") or {}).get("countryCode"),
        postal_code=payload.get("postalCode"),
        latitude=_to_float(location.get("latitude")),
        longitude=_to_float(location.get("longitude")),
        timezone=payload.get("timezone"),
        capacity=_to_int(payload.get("capacity")),
        website=payload.get("url"),
    )


def ticketmaster_attraction_to_dto(payload: dict[str, Any]) -> TicketmasterAttractionDTO:
    images = payload.get("images") or []
    return TicketmasterAttractionDTO(
        ticketmaster_id=payload.get("id", ""),
        name=payload.get("name", ""),
        image_url=_image_at(images, 0),
        small_image_url=_image_at(images, 2),
    )


def _parse_local_date(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def _parse_datetime(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def ticketmaster_event_to_dto(payload: dict[str, Any]) -> TicketmasterEventDTO:
    """Convert a Ticketmaster event.

    Raises:
        ValidationError: Event without ID or without any usable date
    """
    event_id = payload.get("id")
    if not event_id:
        raise ValidationError("Ticketmaster event without id")

    dates = payload.get("dates") or {}
    start = dates.get("start") or {}
    starts_at = _parse_datetime(start.get("dateTime"))
    local_date = _parse_local_date(start.get("localDate")) or (
        starts_at.date() if starts_at else None
    )
    if local_date is None:
        raise ValidationError(f"Ticketmaster event {event_id} has no date")

    embedded = payload.get("_embedded") or {}
    venues = embedded.get("venues") or []
    price_ranges = payload.get("priceRanges") or []
    price = price_ranges[0] if price_ranges else {}
    doors = (dates.get("access") or {}).get("startDateTime")

    return TicketmasterEventDTO(
        ticketmaster_id=event_id,
        name=payload.get("name", ""),
        local_date=local_date,
        local_time=start.get("localTime"),
        starts_at=starts_at,
        doors_time=doors[11:16] if doors and len(doors) >= 16 else None,
        status_code=(dates.get("status") or {}).get("code"),
        ticket_url=payload.get("url"),
        description=payload.get("info") or payload.get("pleaseNote"),
        min_price=_to_float(price.get("min")),
        max_price=_to_float(price.get("max")),
        currency=price.get("currency") or "USD",
        venue=ticketmaster_venue_to_dto(venues[0]) if venues and venues[0].get("id") else None,
        attractions=[
            ticketmaster_attraction_to_dto(a)
            for a in (embedded.get("attractions") or [])
            if a.get("id") and a.get("name")
        ],
    )


# ---------------------------------------------------------------------------
# Setlist.fm
# ---------------------------------------------------------------------------


def _set_name(raw_set: dict[str, Any]) -> tuple[str, bool]:
    encore = _to_int(raw_set.get("encore")) or 0
    name = raw_set.get("name")
    if name:
        return name, bool(encore) or "encore" in name.lower()
    if encore:
        return f"Encore {encore}" if encore > 1 else "Encore", True
    return "Main Set", False


def setlistfm_setlist_to_dto(payload: dict[str, Any]) -> SetlistFmSetlistDTO:
    """Convert a Setlist.fm setlist, flattening ``sets.set[].song[]`` in order.

    Raises:
        ValidationError: Setlist without ID or with an unparseable eventDate
    """
    setlist_id = payload.get("id")
    if not setlist_id:
        raise ValidationError("Setlist.fm setlist without id")
    event_date = parse_event_date(payload.get("eventDate"))
    if event_date is None:
        raise ValidationError(
            f"Setlist.fm setlist {setlist_id} has invalid eventDate "
            f"{payload.get('eventDate')!r}"
        )

    venue_data = payload.get("venue") or {}
    city = venue_data.get("city") or {}
    coords = city.get("coords") or {}
    venue = (
        SetlistFmVenueDTO(
            setlistfm_id=venue_data.get("id"),
            name=venue_data["name"],
            city=city.get("name"),
            state=city.get("stateCode") or city.get("state"),
            country=(city.get("country") or {}).get("code"),
            latitude=_to_float(coords.get("lat")),
            longitude=_to_float(coords.get("long")),
        )
        if venue_data.get("name")
        else None
    )

    songs: list[SetlistFmSongDTO] = []
    for raw_set in (payload.get("sets") or {}).get("set") or []:
        set_name, is_encore = _set_name(raw_set)
        for raw_song in raw_set.get("song") or []:
            title = (raw_song.get("name") or "").strip()
            if not title:
                # Setlist.fm uses nameless entries for "unknown song" placeholders
                continue
            songs.append(
                SetlistFmSongDTO(
                    title=title,
                    set_name=set_name,
                    is_encore=is_encore,
                    info=raw_song.get("info"),
                    cover_artist=(raw_song.get("cover") or {}).get("name"),
                    is_tape=bool(raw_song.get("tape", False)),
                )
            )

    artist = payload.get("artist") or {}
    return SetlistFmSetlistDTO(
        setlistfm_id=setlist_id,
        event_date=event_date,
        artist_name=artist.get("name", ""),
        artist_mbid=artist.get("mbid"),
        venue=venue,
        tour_name=(payload.get("tour") or {}).get("name"),
        url=payload.get("url"),
        songs=songs,
    )
