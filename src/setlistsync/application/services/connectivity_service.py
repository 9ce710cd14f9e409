"""Provider connectivity diagnostics for GET /api/sync/diagnostics.

The three providers are probed concurrently with one cheap read each. A failing
provider never fails the report, it just shows up with ``ok: false`` and its error.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import asdict, dataclass
from typing import Any

from setlistsync.config import Settings
from setlistsync.domain.exceptions import DomainException
from setlistsync.domain.ports import ISetlistFmClient, ISpotifyClient, ITicketmasterClient

logger = logging.getLogger(__name__)

# Well-known artist used for the probes (Radiohead)
PROBE_ARTIST_NAME = "Radiohead"


@dataclass
class ProviderStatus:
    provider: str
    configured: bool
    ok: bool
    latency_ms: float | None = None
    error: str | None = None


class ConnectivityChecker:
    """Fan out one probe per provider and report the outcome of each."""

    def __init__(
        self,
        spotify: ISpotifyClient,
        ticketmaster: ITicketmasterClient,
        setlistfm: ISetlistFmClient,
        settings: Settings,
    ) -> None:
        self.spotify = spotify
        self.ticketmaster = ticketmaster
        self.setlistfm = setlistfm
        self.settings = settings

    async def check_all(self) -> dict[str, Any]:
        probes: list[tuple[str, bool, Callable[[], Awaitable[Any]]]] = [
            (
                "spotify",
                self.settings.spotify.is_configured,
                lambda: self.spotify.search_artists(PROBE_ARTIST_NAME, limit=1),
            ),
            (
                "ticketmaster",
                self.settings.ticketmaster.is_configured,
                lambda: self.ticketmaster.search_attractions(PROBE_ARTIST_NAME, size=1),
            ),
            (
                "setlistfm",
                self.settings.setlistfm.is_configured,
                lambda: self.setlistfm.search_artists(PROBE_ARTIST_NAME),
            ),
        ]

        async def timed(call: Callable[[], Awaitable[Any]]) -> float:
            started = time.perf_counter()
            await call()
            return (time.perf_counter() - started) * 1000

        configured = [(name, call) for name, ok, call in probes if ok]
        outcomes = await asyncio.gather(
            *(timed(call) for _, call in configured), return_exceptions=True
        )
        by_name = dict(zip((name for name, _ in configured), outcomes, strict=True))

        statuses: list[ProviderStatus] = []
        for name, is_configured, _ in probes:
            if not is_configured:
                statuses.append(
                    ProviderStatus(name, configured=False, ok=False, error="not configured")
                )
                continue
            outcome = by_name[name]
            if isinstance(outcome, BaseException):
                message = (
                    outcome.message if isinstance(outcome, DomainException) else str(outcome)
                )
                logger.warning("Connectivity check for %s failed: %s", name, message)
                statuses.append(
                    ProviderStatus(
                        name,
                        configured=True,
                        ok=False,
                        error=f"{type(outcome).__name__}: {message}",
                    )
                )
            else:
                statuses.append(
                    ProviderStatus(
                        name, configured=True, ok=True, latency_ms=round(outcome, 1)
                    )
                )

        return {
            "ok": all(s.ok for s in statuses),
            "providers": {s.provider: asdict(s) for s in statuses},
        }
