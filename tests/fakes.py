"""In-memory provider fakes and payload builders shared by the tests.

Hey future me - the fakes implement the domain ports, so services can't tell them
from the httpx clients. Payload builders produce the provider JSON shapes the
converters expect; keep them in sync with infrastructure/integrations/converters.py.
"""

from typing import Any

from setlistsync.domain.exceptions import ExternalServiceError
from setlistsync.domain.ports import ISetlistFmClient, ISpotifyClient, ITicketmasterClient

# ---------------------------------------------------------------------------
# Payload builders
# ---------------------------------------------------------------------------


def spotify_artist_payload(
    spotify_id: str,
    name: str,
    genres: list[str] | None = None,
    popularity: int = 70,
    followers: int = 1000,
) -> dict[str, Any]:
    return {
        "id": spotify_id,
        "name": name,
        "genres": genres if genres is not None else ["rock"],
        "popularity": popularity,
        "followers": {"total": followers},
        "images": [
            {"url": f"https://img.example/{spotify_id}/640.jpg"},
            {"url": f"https://img.example/{spotify_id}/160.jpg"},
        ],
        "external_urls": {"spotify": f"https://open.spotify.com/artist/{spotify_id}"},
    }


def spotify_track_payload(
    track_id: str,
    title: str,
    artist_id: str,
    artist_name: str,
    album_name: str = "Studio Album",
) -> dict[str, Any]:
    return {
        "id": track_id,
        "name": title,
        "artists": [{"id": artist_id, "name": artist_name}],
        "album": {
            "name": album_name,
            "release_date": "2020-01-01",
            "images": [{"url": f"https://img.example/{track_id}.jpg"}],
        },
        "duration_ms": 200000,
        "popularity": 50,
        "preview_url": None,
        "explicit": False,
        "external_ids": {"isrc": f"ISRC{track_id}"},
    }


def tm_event_payload(
    event_id: str,
    name: str,
    local_date: str,
    venue_id: str | None = "KovZ-fillmore",
    venue_name: str = "The Fillmore",
    city: str = "San Francisco",
    attractions: list[tuple[str, str]] | None = None,
    status_code: str = "onsale",
    min_price: float | None = 45.0,
) -> dict[str, Any]:
    embedded: dict[str, Any] = {
        "attractions": [{"id": a_id, "name": a_name} for a_id, a_name in attractions or []]
    }
    if venue_id:
        embedded["venues"] = [
            {
                "id": venue_id,
                "name": venue_name,
                "city": {"name": city},
                "state": {"stateCode": "CA"},
                "country": {"countryCode": "US"},
                "location": {"latitude": "37.78", "longitude": "-122.43"},
                "postalCode": "94115",
            }
        ]
    payload: dict[str, Any] = {
        "id": event_id,
        "name": name,
        "url": f"https://tickets.example/{event_id}",
        "dates": {
            "start": {"localDate": local_date, "localTime": "20:00:00"},
            "status": {"code": status_code},
        },
        "_embedded": embedded,
    }
    if min_price is not None:
        payload["priceRanges"] = [
            {"min": min_price, "max": min_price + 30, "currency": "USD"}
        ]
    return payload


def tm_events_page(
    events: list[dict[str, Any]], number: int = 0, total_pages: int = 1
) -> dict[str, Any]:
    return {
        "_embedded": {"events": events},
        "page": {
            "size": len(events),
            "totalElements": len(events) * total_pages,
            "totalPages": total_pages,
            "number": number,
        },
    }


def setlistfm_setlist_payload(
    setlist_id: str,
    event_date: str,
    artist_name: str,
    mbid: str,
    songs: list[str],
    encore: list[str] | None = None,
    venue_id: str | None = "sfm-fillmore",
    venue_name: str = "The Fillmore",
    city: str = "San Francisco",
) -> dict[str, Any]:
    sets: list[dict[str, Any]] = [{"song": [{"name": s} for s in songs]}]
    if encore:
        sets.append({"encore": 1, "song": [{"name": s} for s in encore]})
    return {
        "id": setlist_id,
        "eventDate": event_date,
        "artist": {"mbid": mbid, "name": artist_name},
        "venue": {
            "id": venue_id,
            "name": venue_name,
            "city": {
                "name": city,
                "stateCode": "CA",
                "coords": {"lat": 37.78, "long": -122.43},
                "country": {"code": "US"},
            },
        },
        "sets": {"set": sets},
        "url": f"https://www.setlist.fm/setlist/{setlist_id}.html",
    }


# ---------------------------------------------------------------------------
# Provider fakes
# ---------------------------------------------------------------------------


class FakeSpotifyClient(ISpotifyClient):
    def __init__(self) -> None:
        self.artists: dict[str, dict[str, Any]] = {}
        self.top_tracks: dict[str, list[dict[str, Any]]] = {}
        self.search_results: list[dict[str, Any]] = []
        self.albums: dict[str, list[dict[str, Any]]] = {}
        self.album_tracks: dict[str, list[dict[str, Any]]] = {}
        self.error: Exception | None = None
        self.calls: list[tuple[str, Any]] = []

    def _check(self, name: str, arg: Any) -> None:
        self.calls.append((name, arg))
        if self.error is not None:
            raise self.error

    async def get_artist(self, artist_id: str) -> dict[str, Any]:
        self._check("get_artist", artist_id)
        if artist_id not in self.artists:
            raise ExternalServiceError(
                "Spotify API error: 404 Not Found", provider="spotify", status_code=404
            )
        return self.artists[artist_id]

    async def get_artist_top_tracks(
        self, artist_id: str, market: str | None = None
    ) -> dict[str, Any]:
        self._check("get_artist_top_tracks", artist_id)
        return {"tracks": list(self.top_tracks.get(artist_id, []))}

    async def search_artists(self, query: str, limit: int = 10) -> dict[str, Any]:
        self._check("search_artists", query)
        return {"artists": {"items": self.search_results[:limit]}}

    async def get_artist_albums(
        self,
        artist_id: str,
        offset: int = 0,
        limit: int = 50,
        include_groups: str = "album,single",
    ) -> dict[str, Any]:
        self._check("get_artist_albums", artist_id)
        items = self.albums.get(artist_id, [])
        page = items[offset : offset + limit]
        return {"items": page, "next": "more" if offset + limit < len(items) else None}

    async def get_album_tracks(
        self, album_id: str, offset: int = 0, limit: int = 50
    ) -> dict[str, Any]:
        self._check("get_album_tracks", album_id)
        items = self.album_tracks.get(album_id, [])
        page = items[offset : offset + limit]
        return {"items": page, "next": "more" if offset + limit < len(items) else None}

    async def close(self) -> None:
        return None


class FakeTicketmasterClient(ITicketmasterClient):
    def __init__(self) -> None:
        self.pages: list[dict[str, Any]] = []
        self.page_errors: dict[int, Exception] = {}
        self.attractions: dict[str, dict[str, Any]] = {}
        self.attraction_search: list[dict[str, Any]] = []
        self.error: Exception | None = None
        self.calls: list[tuple[str, Any]] = []

    async def search_events(
        self,
        attraction_id: str | None = None,
        keyword: str | None = None,
        page: int = 0,
        size: int = 100,
        start_date_time: str | None = None,
        end_date_time: str | None = None,
        classification_name: str | None = "Music",
    ) -> dict[str, Any]:
        self.calls.append(("search_events", page))
        if self.error is not None:
            raise self.error
        if page in self.page_errors:
            raise self.page_errors[page]
        return self.pages[page] if page < len(self.pages) else {}

    async def search_attractions(self, keyword: str, size: int = 20) -> dict[str, Any]:
        self.calls.append(("search_attractions", keyword))
        if self.error is not None:
            raise self.error
        return {"_embedded": {"attractions": self.attraction_search[:size]}}

    async def get_attraction(self, attraction_id: str) -> dict[str, Any]:
        self.calls.append(("get_attraction", attraction_id))
        if self.error is not None:
            raise self.error
        return self.attractions[attraction_id]

    async def close(self) -> None:
        return None


class FakeSetlistFmClient(ISetlistFmClient):
    def __init__(self) -> None:
        self.mbids: dict[str, str] = {}
        self.setlists: list[dict[str, Any]] = []
        self.error: Exception | None = None
        self.calls: list[tuple[str, Any]] = []

    async def search_artists(self, artist_name: str, page: int = 1) -> dict[str, Any]:
        self.calls.append(("search_artists", artist_name))
        if self.error is not None:
            raise self.error
        mbid = self.mbids.get(artist_name)
        return {"artist": [{"mbid": mbid, "name": artist_name}] if mbid else []}

    async def find_artist_mbid(self, artist_name: str) -> str | None:
        self.calls.append(("find_artist_mbid", artist_name))
        if self.error is not None:
            raise self.error
        return self.mbids.get(artist_name)

    async def get_artist_setlists(self, mbid: str, page: int = 1) -> dict[str, Any]:
        self.calls.append(("get_artist_setlists", mbid))
        return {"setlist": list(self.setlists), "total": len(self.setlists), "page": page}

    async def get_recent_setlists(
        self,
        mbid: str,
        days: int = 30,
        max_pages: int = 5,
        page_delay: float = 1.0,
    ) -> list[dict[str, Any]]:
        self.calls.append(("get_recent_setlists", (mbid, days)))
        if self.error is not None:
            raise self.error
        return list(self.setlists)

    async def close(self) -> None:
        return None
