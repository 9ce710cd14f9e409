"""Spotify Web API client (client-credentials flow)."""

import asyncio
import base64
import logging
import time
from typing import Any, cast

import httpx

from setlistsync.config import Settings
from setlistsync.domain.exceptions import UpstreamCredentialError
from setlistsync.domain.ports import IRateLimiter, ISpotifyClient
from setlistsync.infrastructure.integrations.base import (
    ProviderHttpClient,
    raise_for_provider_status,
)
from setlistsync.infrastructure.rate_limiter import RateLimitBudget

logger = logging.getLogger(__name__)


class SpotifyClient(ProviderHttpClient, ISpotifyClient):
    """HTTP client for the Spotify catalog endpoints.

    No user login here: the sync only reads public catalog data, so an app token from
    the client-credentials grant is enough.
    """

    PROVIDER = "spotify"
    TOKEN_URL = "https://accounts.spotify.com/api/token"  # nosec B105 - public endpoint URL
    API_BASE_URL = "https://api.spotify.com/v1"
    # Refresh this many seconds before Spotify says the token expires
    TOKEN_EXPIRY_BUFFER_SECONDS = 60

    def __init__(
        self,
        settings: Settings,
        rate_limiter: IRateLimiter,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(
            rate_limiter=rate_limiter,
            budget=RateLimitBudget.per_window(
                settings.spotify.requests_per_window, settings.spotify.window_seconds
            ),
            timeout=settings.sync.http_timeout_seconds,
            max_retries=settings.sync.max_retries,
            deny_delay=settings.sync.rate_limit_deny_delay_seconds,
            transport=transport,
        )
        self.settings = settings.spotify
        self._access_token: str | None = None
        self._token_expires_at = 0.0
        self._token_lock = asyncio.Lock()

    @property
    def is_configured(self) -> bool:
        return self.settings.is_configured

    # Hey future me - the token is cached until (expires_in - 60s). The lock keeps ten
    # concurrent searches from fetching ten tokens at once.
    async def authenticate(self) -> str:
        """Return a valid app access token, fetching a new one when needed.

        Raises:
            UpstreamCredentialError: Credentials missing or rejected
        """
        if not self.is_configured:
            raise UpstreamCredentialError(
                "Spotify client_id/client_secret not configured", provider=self.PROVIDER
            )

        async with self._token_lock:
            if self._access_token and time.monotonic() < self._token_expires_at:
                return self._access_token

            raw = f"{self.settings.client_id}:{self.settings.client_secret}".encode()
            response = await self._send(
                "POST",
                self.TOKEN_URL,
                headers={
                    "Authorization": f"Basic {base64.b64encode(raw).decode('ascii')}",
                    "Content-Type": "application/x-www-form-urlencoded",
                },
                data={"grant_type": "client_credentials"},
            )
            # Spotify answers bad credentials with 400 invalid_client
            if response.status_code == 400:
                raise UpstreamCredentialError(
                    "Spotify rejected client credentials",
                    provider=self.PROVIDER,
                    status_code=400,
                )
            raise_for_provider_status(response, self.PROVIDER)

            payload = response.json()
            self._access_token = cast(str, payload["access_token"])
            expires_in = int(payload.get("expires_in", 3600))
            self._token_expires_at = time.monotonic() + max(
                0, expires_in - self.TOKEN_EXPIRY_BUFFER_SECONDS
            )
            logger.debug("Spotify app token refreshed (expires in %ds)", expires_in)
            return self._access_token

    def invalidate_token(self) -> None:
        self._access_token = None
        self._token_expires_at = 0.0

    async def _api_get(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """GET an API path with the app token; one transparent retry after a 401."""
        url = f"{self.API_BASE_URL}{path}"
        token = await self.authenticate()
        response = await self._send(
            "GET", url, params=params, headers={"Authorization": f"Bearer {token}"}
        )
        if response.status_code == 401:
            logger.info("Spotify token rejected, fetching a fresh one")
            self.invalidate_token()
            token = await self.authenticate()
            response = await self._send(
                "GET", url, params=params, headers={"Authorization": f"Bearer {token}"}
            )
        raise_for_provider_status(response, self.PROVIDER)
        return cast(dict[str, Any], response.json())

    async def get_artist(self, artist_id: str) -> dict[str, Any]:
        """
        Get artist metadata.

        Args:
            artist_id: Spotify artist ID

        Returns:
            Spotify artist object (id, name, genres, images, popularity, followers)
        """
        return await self._api_get(f"/artists/{artist_id}")

    async def get_artist_top_tracks(
        self, artist_id: str, market: str | None = None
    ) -> dict[str, Any]:
        """Get an artist's top tracks (up to 10) for a market."""
        return await self._api_get(
            f"/artists/{artist_id}/top-tracks",
            params={"market": market or self.settings.market},
        )

    async def search_artists(self, query: str, limit: int = 10) -> dict[str, Any]:
        """Search artists by name. Returns the raw ``{"artists": {"items": [...]}}`` page."""
        return await self._api_get(
            "/search", params={"q": query, "type": "artist", "limit": min(limit, 50)}
        )

    async def get_artist_albums(
        self,
        artist_id: str,
        offset: int = 0,
        limit: int = 50,
        include_groups: str = "album,single",
    ) -> dict[str, Any]:
        """Get one page of an artist's albums."""
        return await self._api_get(
            f"/artists/{artist_id}/albums",
            params={
                "include_groups": include_groups,
                "limit": min(limit, 50),
                "offset": offset,
                "market": self.settings.market,
            },
        )

    async def get_album_tracks(
        self, album_id: str, offset: int = 0, limit: int = 50
    ) -> dict[str, Any]:
        """Get one page of an album's tracks (simplified track objects)."""
        return await self._api_get(
            f"/albums/{album_id}/tracks",
            params={"limit": min(limit, 50), "offset": offset},
        )
