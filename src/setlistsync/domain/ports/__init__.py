"""Domain ports (interfaces) for dependency inversion.

Hey future me - the sync services talk ONLY to these interfaces. Production wires
the httpx clients from ``infrastructure/integrations``, the tests wire fakes.

    UnifiedSyncService
        ├─► ISpotifyClient       → SpotifyClient
        ├─► ITicketmasterClient  → TicketmasterClient
        ├─► ISetlistFmClient     → SetlistFmClient
        └─► IProgressStore       → InMemoryProgressStore | RedisProgressStore

    every client
        └─► IRateLimiter         → InMemoryRateLimiter | RedisRateLimiter
"""

from abc import ABC, abstractmethod
from typing import Any


class IRateLimiter(ABC):
    """Fixed-window request budget keyed by provider name."""

    @abstractmethod
    async def check_limit(self, key: str, max_requests: int, window_ms: int) -> bool:
        """Record one attempt for ``key`` and say whether it fits the window.

        Returns:
            True if the request may proceed, False if the window is exhausted
        """

    async def close(self) -> None:
        """Release backend connections. Nothing to do for in-process limiters."""
        return None


class IProgressStore(ABC):
    """Key-value store for sync progress snapshots, keyed by artist ID."""

    @abstractmethod
    async def get(self, artist_id: str) -> dict[str, Any] | None:
        """Return the stored snapshot or None."""

    @abstractmethod
    async def save(self, artist_id: str, state: dict[str, Any]) -> None:
        """Replace the snapshot for ``artist_id``."""

    async def close(self) -> None:
        """Release backend connections. Nothing to do for in-process stores."""
        return None


class ISpotifyClient(ABC):
    """Spotify Web API (client-credentials flow)."""

    @abstractmethod
    async def get_artist(self, artist_id: str) -> dict[str, Any]: ...

    @abstractmethod
    async def get_artist_top_tracks(
        self, artist_id: str, market: str | None = None
    ) -> dict[str, Any]: ...

    @abstractmethod
    async def search_artists(self, query: str, limit: int = 10) -> dict[str, Any]: ...

    @abstractmethod
    async def get_artist_albums(
        self,
        artist_id: str,
        offset: int = 0,
        limit: int = 50,
        include_groups: str = "album,single",
    ) -> dict[str, Any]: ...

    @abstractmethod
    async def get_album_tracks(
        self, album_id: str, offset: int = 0, limit: int = 50
    ) -> dict[str, Any]: ...

    @abstractmethod
    async def close(self) -> None: ...


class ITicketmasterClient(ABC):
    """Ticketmaster Discovery API."""

    @abstractmethod
    async def search_events(
        self,
        attraction_id: str | None = None,
        keyword: str | None = None,
        page: int = 0,
        size: int = 100,
        start_date_time: str | None = None,
        end_date_time: str | None = None,
        classification_name: str | None = "Music",
    ) -> dict[str, Any]: ...

    @abstractmethod
    async def search_attractions(self, keyword: str, size: int = 20) -> dict[str, Any]: ...

    @abstractmethod
    async def get_attraction(self, attraction_id: str) -> dict[str, Any]: ...

    @abstractmethod
    async def close(self) -> None: ...


class ISetlistFmClient(ABC):
    """Setlist.fm REST API."""

    @abstractmethod
    async def search_artists(self, artist_name: str, page: int = 1) -> dict[str, Any]: ...

    @abstractmethod
    async def find_artist_mbid(self, artist_name: str) -> str | None: ...

    @abstractmethod
    async def get_artist_setlists(self, mbid: str, page: int = 1) -> dict[str, Any]: ...

    @abstractmethod
    async def get_recent_setlists(
        self,
        mbid: str,
        days: int = 30,
        max_pages: int = 5,
        page_delay: float = 1.0,
    ) -> list[dict[str, Any]]: ...

    @abstractmethod
    async def close(self) -> None: ...


__all__ = [
    "IRateLimiter",
    "IProgressStore",
    "ISpotifyClient",
    "ITicketmasterClient",
    "ISetlistFmClient",
]
