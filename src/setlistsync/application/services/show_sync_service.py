# Hey future me - this is the TICKETMASTER phase of an artist sync!
#
# Flow per artist:
#   page 0..max_pages-1 of /events.json?attractionId=... (now → now + lookahead_days)
#     └─► for each event (deduped by ID within this run):
#           SAVEPOINT
#             venue      upsert by ticketmaster_id (composite fallback for venues first
#                        seen via Setlist.fm)
#             show       upsert by ticketmaster_id (existing shows: price/status/url only)
#             headliner  show_artists row with order_index 0
#             support    attractions[1:] → artist (created minimal if unknown), order 1..n
#           RELEASE  (or ROLLBACK TO on error → error string, next event)
#
# One bad event never takes down the page, and a half-written show never survives.
"""Ticketmaster show sync for one artist."""

import asyncio
import logging
import math
from datetime import UTC, datetime, timedelta
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from setlistsync.application.services.sync_results import SyncResults
from setlistsync.config import TicketmasterSettings
from setlistsync.domain.dtos import TicketmasterEventDTO
from setlistsync.domain.entities import determine_show_status
from setlistsync.domain.exceptions import ValidationError
from setlistsync.domain.ports import ITicketmasterClient
from setlistsync.infrastructure.integrations.converters import ticketmaster_event_to_dto
from setlistsync.infrastructure.persistence.identity import VenueIdentityResolver
from setlistsync.infrastructure.persistence.models import ArtistModel, utc_now
from setlistsync.infrastructure.persistence.repositories import (
    ArtistRepository,
    ShowRepository,
    VenueRepository,
)

logger = logging.getLogger(__name__)


def _iso_utc(value: datetime) -> str:
    return value.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


class ShowSyncService:
    """Ticketmaster phase: shows, venues and billing."""

    def __init__(
        self,
        session: AsyncSession,
        ticketmaster: ITicketmasterClient,
        settings: TicketmasterSettings,
        resolver: VenueIdentityResolver | None = None,
    ) -> None:
        self.session = session
        self.ticketmaster = ticketmaster
        self.settings = settings
        self.artists = ArtistRepository(session)
        self.venues = VenueRepository(session, resolver)
        self.shows = ShowRepository(session)

    async def sync_artist_shows(
        self,
        artist: ArtistModel,
        results: SyncResults | None = None,
        now: datetime | None = None,
    ) -> SyncResults:
        """Run the Ticketmaster phase for one artist.

        Args:
            artist: Artist row; skipped (no error) when it has no Ticketmaster ID
            results: Results object to fill in (a fresh one when None)
            now: Reference time for the date window and status derivation

        Returns:
            The results object with ``shows`` and ``venues`` filled in

        Raises:
            UpstreamCredentialError, RateLimitExceededError, ExternalServiceError:
                a page fetch failed; events stored before that point stay stored
        """
        results = results or SyncResults()
        if not artist.ticketmaster_id:
            logger.info(
                "Artist '%s' has no Ticketmaster ID, skipping Ticketmaster phase",
                artist.name,
            )
            return results

        artist_id = artist.id
        artist_name = artist.name
        attraction_id = artist.ticketmaster_id
        now = now or datetime.now(UTC)
        window_start = _iso_utc(now)
        window_end = _iso_utc(now + timedelta(days=self.settings.lookahead_days))

        processed: set[str] = set()
        page = 0
        total_pages = 1
        while page < min(total_pages, self.settings.max_pages):
            if page > 0 and self.settings.page_delay_seconds > 0:
                await asyncio.sleep(self.settings.page_delay_seconds)

            data = await self.ticketmaster.search_events(
                attraction_id=attraction_id,
                page=page,
                size=self.settings.page_size,
                start_date_time=window_start,
                end_date_time=window_end,
            )
            events = (data.get("_embedded") or {}).get("events") or []
            if not events:
                break

            page_info = data.get("page") or {}
            total_elements = int(page_info.get("totalElements") or len(events))
            total_pages = int(
                page_info.get("totalPages")
                or math.ceil(total_elements / max(1, self.settings.page_size))
            )

            for raw_event in events:
                event_id = raw_event.get("id")
                if not event_id or event_id in processed:
                    continue
                processed.add(event_id)
                await self._process_event(artist_id, raw_event, results, now)

            page += 1

        # re-read after the savepoints, artist attributes may have been expired
        artist = await self.artists.get_by_id(artist_id) or artist
        artist.shows_synced_at = utc_now()
        logger.info(
            "Ticketmaster phase for '%s': %d shows, %d new venues, %d errors "
            "(%d events over %d pages)",
            artist_name,
            results.shows.synced,
            results.venues.synced,
            results.shows.error_count,
            len(processed),
            page,
        )
        return results

    async def _process_event(
        self,
        headliner_id: str,
        raw_event: dict[str, Any],
        results: SyncResults,
        now: datetime,
    ) -> None:
        event_id = raw_event.get("id")
        try:
            event = ticketmaster_event_to_dto(raw_event)
        except ValidationError as e:
            results.shows.add_error(f"event {event_id}: {e.message}")
            return

        try:
            async with self.session.begin_nested():
                venue_created = await self._store_event(headliner_id, event, now)
        except Exception as e:
            logger.warning(
                "Ticketmaster event %s failed, rolled back: %s",
                event_id,
                e,
                extra={"event_id": event_id, "error_type": type(e).__name__},
            )
            results.shows.add_error(f"event {event_id}: {type(e).__name__}: {e}")
            return

        results.shows.synced += 1
        if venue_created:
            results.venues.synced += 1

    async def _store_event(
        self, headliner_id: str, event: TicketmasterEventDTO, now: datetime
    ) -> bool:
        """Write venue, show and billing for one event. Returns True if the venue was new."""
        venue_id: str | None = None
        venue_created = False
        if event.venue is not None:
            v = event.venue
            venue, venue_created = await self.venues.upsert_by_ticketmaster_id(
                v.ticketmaster_id,
                v.name,
                {
                    "address": v.address,
                    "city": v.city,
                    "state": v.state,
                    "country": v.country,
                    "postal_code": v.postal_code,
                    "latitude": v.latitude,
                    "longitude": v.longitude,
                    "timezone": v.timezone,
                    "capacity": v.capacity,
                    "website": v.website,
                },
            )
            venue_id = venue.id

        status = determine_show_status(
            event.starts_at or event.local_date, event.status_code, now
        )
        show, _ = await self.shows.upsert_by_ticketmaster_id(
            event.ticketmaster_id,
            {
                "name": event.name,
                "date": event.local_date,
                "start_time": event.local_time,
                "doors_time": event.doors_time,
                "status": status.value,
                "description": event.description,
                "ticket_url": event.ticket_url,
                "min_price": event.min_price,
                "max_price": event.max_price,
                "currency": event.currency,
                "headliner_artist_id": headliner_id,
                "venue_id": venue_id,
                "is_verified": True,
            },
        )

        await self.shows.ensure_artist_link(show.id, headliner_id, order_index=0)

        # attractions[0] is normally the headliner itself
        for index, attraction in enumerate(event.attractions[1:], start=1):
            support, _ = await self.artists.get_or_create_support_act(
                attraction.ticketmaster_id,
                attraction.name,
                image_url=attraction.image_url,
                small_image_url=attraction.small_image_url,
            )
            if support.id == headliner_id:
                continue
            await self.shows.ensure_artist_link(show.id, support.id, order_index=index)

        return venue_created
