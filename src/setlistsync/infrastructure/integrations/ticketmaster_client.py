"""Ticketmaster Discovery API client."""

import logging
from typing import Any

import httpx

from setlistsync.config import Settings
from setlistsync.domain.exceptions import UpstreamCredentialError
from setlistsync.domain.ports import IRateLimiter, ITicketmasterClient
from setlistsync.infrastructure.integrations.base import ProviderHttpClient
from setlistsync.infrastructure.rate_limiter import RateLimitBudget

logger = logging.getLogger(__name__)


class TicketmasterClient(ProviderHttpClient, ITicketmasterClient):
    """HTTP client for Ticketmaster events and attractions.

    Auth is the ``apikey`` query parameter on every request. Pages are 0-based and
    the response carries ``page.totalPages``/``page.totalElements``.
    """

    PROVIDER = "ticketmaster"
    API_BASE_URL = "https://app.ticketmaster.com/discovery/v2"

    def __init__(
        self,
        settings: Settings,
        rate_limiter: IRateLimiter,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(
            rate_limiter=rate_limiter,
            budget=RateLimitBudget.per_window(
                settings.ticketmaster.requests_per_window,
                settings.ticketmaster.window_seconds,
            ),
            timeout=settings.sync.http_timeout_seconds,
            max_retries=settings.sync.max_retries,
            deny_delay=settings.sync.rate_limit_deny_delay_seconds,
            transport=transport,
        )
        self.settings = settings.ticketmaster

    @property
    def is_configured(self) -> bool:
        return self.settings.is_configured

    async def _get(self, path: str, params: dict[str, Any]) -> dict[str, Any]:
        if not self.is_configured:
            raise UpstreamCredentialError(
                "Ticketmaster API key not configured", provider=self.PROVIDER
            )
        query = {k: v for k, v in params.items() if v is not None}
        query["apikey"] = self.settings.api_key
        return await self._request_json("GET", path, params=query)

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
        """
        Search events.

        Args:
            attraction_id: Only events featuring this attraction
            keyword: Free-text search
            page: 0-based page number
            size: Page size (Ticketmaster caps at 200)
            start_date_time: ISO-8601 UTC, e.g. "2026-01-01T00:00:00Z"
            end_date_time: ISO-8601 UTC
            classification_name: Segment filter, "Music" by default

        Returns:
            Raw response with ``_embedded.events`` (absent when the page is empty)
        """
        return await self._get(
            "/events.json",
            {
                "attractionId": attraction_id,
                "keyword": keyword,
                "page": page,
                "size": min(size, 200),
                "startDateTime": start_date_time,
                "endDateTime": end_date_time,
                "classificationName": classification_name,
                "sort": "date,asc",
            },
        )

    async def search_attractions(self, keyword: str, size: int = 20) -> dict[str, Any]:
        """Search attractions (performers) by keyword."""
        return await self._get(
            "/attractions.json",
            {"keyword": keyword, "size": min(size, 200), "classificationName": "Music"},
        )

    async def get_attraction(self, attraction_id: str) -> dict[str, Any]:
        """Get a single attraction by ID."""
        return await self._get(f"/attractions/{attraction_id}.json", {})
