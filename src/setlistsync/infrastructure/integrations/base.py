"""Shared HTTP plumbing for the provider clients.

Hey future me - Spotify, Ticketmaster and Setlist.fm clients all go through
``ProviderHttpClient._request()``. That's where:

- the rate limiter gets asked before EVERY request (wait_for_slot)
- 429 answers are retried up to max_retries, honoring Retry-After
- transport timeouts become UpstreamTimeoutError
- non-2xx answers become typed ExternalServiceError subclasses

Subclasses only know URLs, auth headers and response shapes. If you find yourself
catching httpx exceptions in a subclass, it probably belongs here.
"""

import asyncio
import logging
from typing import Any, cast

import httpx

from setlistsync.domain.exceptions import (
    ExternalServiceError,
    RateLimitExceededError,
    UpstreamCredentialError,
    UpstreamTimeoutError,
)
from setlistsync.domain.ports import IRateLimiter
from setlistsync.infrastructure.rate_limiter import RateLimitBudget, wait_for_slot

logger = logging.getLogger(__name__)


def _parse_retry_after(response: httpx.Response) -> int | None:
    value = response.headers.get("Retry-After")
    if value is None:
        return None
    try:
        return max(0, int(float(value)))
    except ValueError:
        return None


def raise_for_provider_status(response: httpx.Response, provider: str) -> None:
    """Map a provider response to our exception taxonomy.

    Args:
        response: The provider's answer
        provider: "spotify", "ticketmaster" or "setlistfm" (for messages and logs)

    Raises:
        UpstreamCredentialError: 401 or 403
        RateLimitExceededError: 429 (with retry_after from the header)
        ExternalServiceError: any other non-2xx, carrying the status code
    """
    if response.is_success:
        return

    status = response.status_code
    label = provider.capitalize()
    if status in (401, 403):
        raise UpstreamCredentialError(
            f"{label} rejected our credentials ({status})",
            provider=provider,
            status_code=status,
        )
    if status == 429:
        retry_after = _parse_retry_after(response)
        raise RateLimitExceededError(
            f"{label} rate limit exceeded (retry after {retry_after or '?'}s)",
            provider=provider,
            status_code=status,
            retry_after=retry_after,
        )
    raise ExternalServiceError(
        f"{label} API error: {status} {response.reason_phrase}".strip(),
        provider=provider,
        status_code=status,
    )


class ProviderHttpClient:
    """Base class for rate-limited provider clients."""

    PROVIDER: str = "provider"
    API_BASE_URL: str = ""

    def __init__(
        self,
        rate_limiter: IRateLimiter,
        budget: RateLimitBudget,
        timeout: float = 30.0,
        max_retries: int = 3,
        deny_delay: float = 1.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.rate_limiter = rate_limiter
        self.budget = budget
        self.timeout = timeout
        self.max_retries = max_retries
        self.deny_delay = deny_delay
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    # Lazy on purpose: the client binds to the running loop on first use, not at import.
    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _send(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        data: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Send one request through the limiter, retrying 429s.

        Returns the final response WITHOUT status mapping, callers that want
        special handling (404 → None, 401 → token refresh) look at it first.
        """
        client = await self._get_client()

        for attempt in range(self.max_retries + 1):
            await wait_for_slot(
                self.rate_limiter, self.PROVIDER, self.budget, self.deny_delay
            )
            try:
                response = await client.request(
                    method, url, params=params, headers=headers, data=data
                )
            except httpx.TimeoutException as e:
                raise UpstreamTimeoutError(
                    f"{self.PROVIDER.capitalize()} request timed out: {url}",
                    provider=self.PROVIDER,
                ) from e
            except httpx.TransportError as e:
                raise ExternalServiceError(
                    f"{self.PROVIDER.capitalize()} unreachable: {e}",
                    provider=self.PROVIDER,
                ) from e

            if response.status_code != 429 or attempt >= self.max_retries:
                return response

            retry_after = _parse_retry_after(response)
            wait_time = float(retry_after) if retry_after is not None else 2.0**attempt
            logger.warning(
                "%s 429 rate limit (attempt %d/%d), waiting %.1fs before retrying %s",
                self.PROVIDER,
                attempt + 1,
                self.max_retries,
                wait_time,
                url,
            )
            await asyncio.sleep(wait_time)

        return response

    async def _request_json(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """Request ``API_BASE_URL + path`` and return the JSON body (status mapped)."""
        response = await self._send(
            method, f"{self.API_BASE_URL}{path}", params=params, headers=headers
        )
        raise_for_provider_status(response, self.PROVIDER)
        return cast(dict[str, Any], response.json())
