"""Setlist.fm REST API client."""

import asyncio
import logging
from datetime import UTC, date, datetime, timedelta
from typing import Any, cast

import httpx

from setlistsync.config import Settings
from setlistsync.domain.exceptions import UpstreamCredentialError
from setlistsync.domain.ports import IRateLimiter, ISetlistFmClient
from setlistsync.infrastructure.integrations.base import (
    ProviderHttpClient,
    raise_for_provider_status,
)
from setlistsync.infrastructure.rate_limiter import RateLimitBudget

logger = logging.getLogger(__name__)

# Setlist.fm dates look like "23-08-2024"
EVENT_DATE_FORMAT = "%d-%m-%Y"


def parse_event_date(value: str | None) -> date | None:
    """Parse a Setlist.fm ``eventDate`` (dd-MM-yyyy). Returns None when unparseable."""
    if not value:
        return None
    try:
        return datetime.strptime(value, EVENT_DATE_FORMAT).date()
    except ValueError:
        return None


class SetlistFmClient(ProviderHttpClient, ISetlistFmClient):
    """HTTP client for Setlist.fm artist search and setlists.

    Hey future me - Setlist.fm is STRICT: about 1 request/second per key, and they do
    ban keys that hammer them. Keep the budget at 1/1s and the page delay in place.
    """

    PROVIDER = "setlistfm"
    API_BASE_URL = "https://api.setlist.fm/rest/1.0"

    def __init__(
        self,
        settings: Settings,
        rate_limiter: IRateLimiter,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(
            rate_limiter=rate_limiter,
            budget=RateLimitBudget.per_window(
                settings.setlistfm.requests_per_window,
                settings.setlistfm.window_seconds,
            ),
            timeout=settings.sync.http_timeout_seconds,
            max_retries=settings.sync.max_retries,
            deny_delay=settings.sync.rate_limit_deny_delay_seconds,
            transport=transport,
        )
        self.settings = settings.setlistfm

    @property
    def is_configured(self) -> bool:
        return self.settings.is_configured

    def _headers(self) -> dict[str, str]:
        if not self.is_configured:
            raise UpstreamCredentialError(
                "Setlist.fm API key not configured", provider=self.PROVIDER
            )
        return {"x-api-key": self.settings.api_key, "Accept": "application/json"}

    async def search_artists(self, artist_name: str, page: int = 1) -> dict[str, Any]:
        """Search artists by name, most relevant first.

        Returns:
            Raw page ``{"artist": [...], "total": n, "page": p, "itemsPerPage": k}``.
            A 404 (Setlist.fm's "no results") comes back as an empty page.
        """
        response = await self._send(
            "GET",
            f"{self.API_BASE_URL}/search/artists",
            params={"artistName": artist_name, "p": page, "sort": "relevance"},
            headers=self._headers(),
        )
        if response.status_code == 404:
            return {"artist": [], "total": 0, "page": page}
        raise_for_provider_status(response, self.PROVIDER)
        return cast(dict[str, Any], response.json())

    async def find_artist_mbid(self, artist_name: str) -> str | None:
        """Resolve a MusicBrainz ID for an artist name.

        Exact (case-insensitive) name match wins, otherwise the first hit, otherwise None.
        """
        page = await self.search_artists(artist_name)
        artists = page.get("artist") or []
        if not artists:
            return None

        wanted = artist_name.strip().lower()
        for candidate in artists:
            if str(candidate.get("name", "")).strip().lower() == wanted:
                return cast(str | None, candidate.get("mbid"))
        return cast(str | None, artists[0].get("mbid"))

    async def get_artist_setlists(self, mbid: str, page: int = 1) -> dict[str, Any]:
        """Get one page of an artist's setlists, newest first.

        Unknown MBID (404) comes back as an empty page instead of an error.
        """
        response = await self._send(
            "GET",
            f"{self.API_BASE_URL}/artist/{mbid}/setlists",
            params={"p": page},
            headers=self._headers(),
        )
        if response.status_code == 404:
            return {"setlist": [], "total": 0, "page": page}
        raise_for_provider_status(response, self.PROVIDER)
        return cast(dict[str, Any], response.json())

    # Hey future me - results are date-DESCENDING, so the first setlist older than the
    # cutoff means everything after it is older too. We stop right there instead of
    # burning more 1-req/sec budget on pages we'd throw away.
    async def get_recent_setlists(
        self,
        mbid: str,
        days: int = 30,
        max_pages: int = 5,
        page_delay: float = 1.0,
    ) -> list[dict[str, Any]]:
        """Collect setlists performed within the last ``days`` days.

        Args:
            mbid: MusicBrainz artist ID
            days: Look-back window
            max_pages: Hard cap on pages fetched
            page_delay: Seconds to sleep between pages

        Returns:
            Raw setlist objects, newest first
        """
        cutoff = datetime.now(UTC).date() - timedelta(days=days)
        recent: list[dict[str, Any]] = []

        for page in range(1, max_pages + 1):
            data = await self.get_artist_setlists(mbid, page=page)
            setlists = data.get("setlist") or []
            if not setlists:
                break

            reached_cutoff = False
            for setlist in setlists:
                event_date = parse_event_date(setlist.get("eventDate"))
                if event_date is not None and event_date < cutoff:
                    reached_cutoff = True
                    break
                recent.append(setlist)

            if reached_cutoff:
                break

            total = int(data.get("total") or 0)
            per_page = int(data.get("itemsPerPage") or len(setlists))
            if per_page and page * per_page >= total:
                break

            if page < max_pages and page_delay > 0:
                await asyncio.sleep(page_delay)

        logger.debug(
            "Setlist.fm: %d setlists for %s in the last %d days", len(recent), mbid, days
        )
        return recent
