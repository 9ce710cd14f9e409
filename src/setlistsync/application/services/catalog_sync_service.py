# Hey future me - UnifiedSyncService is the ONE entry point for "sync this artist"!
#
#   Start ──► Spotify ──► Ticketmaster ──► Preseed ──► Setlist.fm ──► Stats ──► Complete
#     │          │             │              │            │            │
#     │          └─ commit ────┴─ commit ─────┴─ commit ───┴─ commit ───┴─ commit
#     └─ artist missing → EntityNotFoundException (progress "failed", re-raised)
#
# Phases run strictly one after another, each provider has its own rate budget and
# we don't want them competing. A phase that blows up (missing key, 429 after retries,
# provider down) becomes an error string in its category and the next phase still runs.
# Whatever a phase wrote before it failed is committed, unless the failure came from
# the database itself, then that phase is rolled back.
"""Multi-source catalog sync orchestrator."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from setlistsync.application.services.artist_stats_service import ArtistStatsService
from setlistsync.application.services.setlist_preseed_service import SetlistPreseedService
from setlistsync.application.services.setlist_sync_service import SetlistSyncService
from setlistsync.application.services.show_sync_service import ShowSyncService
from setlistsync.application.services.song_sync_service import SongSyncService
from setlistsync.application.services.sync_progress import SyncProgressTracker
from setlistsync.application.services.sync_results import (
    BulkArtistOutcome,
    BulkSyncResult,
    CategoryResult,
    SyncResults,
)
from setlistsync.config import Settings
from setlistsync.domain.exceptions import DomainException, EntityNotFoundException
from setlistsync.domain.ports import ISetlistFmClient, ISpotifyClient, ITicketmasterClient
from setlistsync.infrastructure.persistence.identity import VenueIdentityResolver
from setlistsync.infrastructure.persistence.models import ArtistModel
from setlistsync.infrastructure.persistence.repositories import ArtistRepository

logger = logging.getLogger(__name__)


class UnifiedSyncService:
    """Sequences the provider phases for one artist (or a batch of artists)."""

    def __init__(
        self,
        session: AsyncSession,
        spotify: ISpotifyClient,
        ticketmaster: ITicketmasterClient,
        setlistfm: ISetlistFmClient,
        settings: Settings,
        tracker: SyncProgressTracker,
    ) -> None:
        self.session = session
        self.settings = settings
        self.tracker = tracker
        self.artists = ArtistRepository(session)

        resolver = VenueIdentityResolver(
            session,
            match_threshold=settings.sync.venue_match_threshold,
            review_threshold=settings.sync.venue_review_threshold,
        )
        self.songs = SongSyncService(session, spotify)
        self.shows = ShowSyncService(session, ticketmaster, settings.ticketmaster, resolver)
        self.setlists = SetlistSyncService(
            session, setlistfm, settings.setlistfm, resolver
        )
        self.preseed = SetlistPreseedService(
            session, songs_per_setlist=settings.sync.predicted_setlist_size
        )
        self.stats = ArtistStatsService(session)

    async def _require_artist(self, artist_id: str) -> ArtistModel:
        artist = await self.artists.get_by_id(artist_id)
        if artist is None:
            raise EntityNotFoundException("Artist", artist_id)
        return artist

    async def _run_phase(
        self,
        provider: str,
        category: CategoryResult,
        phase: Callable[[], Awaitable[object]],
    ) -> bool:
        """Run one phase and commit it. Failures become ``"<provider>: ..."`` strings.

        Returns:
            True if the phase finished without raising
        """
        try:
            await phase()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.exception("%s phase failed in the database, rolled back", provider)
            category.add_error(f"{provider}: {type(e).__name__}: {e}")
            return False
        except DomainException as e:
            # provider failure, keep whatever the phase stored before it
            await self.session.commit()
            logger.warning(
                "%s phase aborted: %s",
                provider,
                e.message,
                extra={"provider": provider, "error_type": type(e).__name__},
            )
            category.add_error(f"{provider}: {e.message}")
            return False
        except Exception as e:
            await self.session.rollback()
            logger.exception("%s phase failed unexpectedly", provider)
            category.add_error(f"{provider}: {type(e).__name__}: {e}")
            return False

        await self.session.commit()
        return True

    async def sync_artist_catalog(
        self,
        artist_id: str,
        days: int | None = None,
        full_discography: bool = False,
        now: datetime | None = None,
    ) -> SyncResults:
        """Full sync for one artist: Spotify, Ticketmaster, predictions, Setlist.fm, stats.

        Args:
            artist_id: Internal artist ID (must exist)
            days: Setlist.fm look-back window (defaults to settings)
            full_discography: Spotify phase walks all albums instead of top tracks
            now: Reference time for show status (tests)

        Returns:
            SyncResults with per-category counts and error strings

        Raises:
            EntityNotFoundException: Artist doesn't exist
        """
        results = SyncResults()
        try:
            artist = await self._require_artist(artist_id)
            artist_name = artist.name
            await self.tracker.start_sync(artist_id, artist_name)
            logger.info("Starting catalog sync for '%s' (%s)", artist_name, artist_id)

            await self.tracker.update_progress(
                artist_id, current_step="Syncing Spotify catalog", completed_steps=1
            )
            if self.settings.spotify.is_configured:
                await self._run_phase(
                    "spotify",
                    results.songs,
                    lambda: self._spotify_phase(artist_id, results, full_discography),
                )
            else:
                results.songs.add_error("spotify: Spotify credentials are not configured")

            await self.tracker.update_progress(
                artist_id,
                current_step="Syncing Ticketmaster shows",
                completed_steps=2,
                details={"songs": results.songs.synced},
            )
            if self.settings.ticketmaster.is_configured:
                await self._run_phase(
                    "ticketmaster",
                    results.shows,
                    lambda: self._ticketmaster_phase(artist_id, results, now),
                )
            else:
                results.shows.add_error(
                    "ticketmaster: Ticketmaster API key is not configured"
                )
            # shows stored by earlier runs get predictions even without Ticketmaster
            await self._run_phase(
                "preseed",
                results.predictions,
                lambda: self._preseed_phase(artist_id, results, now),
            )

            await self.tracker.update_progress(
                artist_id,
                current_step="Importing Setlist.fm setlists",
                completed_steps=3,
                details={
                    "shows": results.shows.synced,
                    "venues": results.venues.synced,
                    "predictions": results.predictions.synced,
                },
            )
            if self.settings.setlistfm.is_configured:
                await self._run_phase(
                    "setlistfm",
                    results.setlists,
                    lambda: self._setlistfm_phase(artist_id, results, days, now),
                )
            else:
                results.setlists.add_error("setlistfm: Setlist.fm API key is not configured")

            await self.tracker.update_progress(
                artist_id,
                current_step="Calculating artist statistics",
                completed_steps=4,
                details={"setlists": results.setlists.synced},
            )
            await self._stats_phase(artist_id, results)

            await self.tracker.update_progress(
                artist_id, details=self._progress_details(results)
            )
            await self.tracker.complete_sync(artist_id)
        except Exception as e:
            message = e.message if isinstance(e, DomainException) else str(e)
            await self.tracker.complete_sync(artist_id, error=message or type(e).__name__)
            logger.error("Catalog sync for %s failed: %s", artist_id, message)
            raise

        logger.info(
            "Catalog sync for '%s' done: %d songs, %d shows, %d venues, %d setlists, "
            "%d predicted%s",
            artist_name,
            results.songs.synced,
            results.shows.synced,
            results.venues.synced,
            results.setlists.synced,
            results.predictions.synced,
            " (with errors)" if results.has_errors else "",
        )
        return results

    async def sync_artist_shows_only(
        self, artist_id: str, now: datetime | None = None
    ) -> SyncResults:
        """Ticketmaster phase, predicted setlists and stats, for the ``type=shows`` sync."""
        results = SyncResults()
        await self._require_artist(artist_id)
        if self.settings.ticketmaster.is_configured:
            await self._run_phase(
                "ticketmaster",
                results.shows,
                lambda: self._ticketmaster_phase(artist_id, results, now),
            )
        else:
            results.shows.add_error("ticketmaster: Ticketmaster API key is not configured")
        await self._run_phase(
            "preseed",
            results.predictions,
            lambda: self._preseed_phase(artist_id, results, now),
        )
        await self._stats_phase(artist_id, results)
        return results

    async def sync_artist_songs_only(
        self, artist_id: str, full_discography: bool = False
    ) -> SyncResults:
        """Spotify phase plus stats, for POST /api/sync/songs."""
        results = SyncResults()
        await self._require_artist(artist_id)
        if self.settings.spotify.is_configured:
            await self._run_phase(
                "spotify",
                results.songs,
                lambda: self._spotify_phase(artist_id, results, full_discography),
            )
        else:
            results.songs.add_error("spotify: Spotify credentials are not configured")
        await self._stats_phase(artist_id, results)
        return results

    async def sync_artist_setlists_only(
        self, artist_id: str, days: int | None = None
    ) -> SyncResults:
        """Setlist.fm phase plus stats, for POST /api/sync/setlistfm."""
        results = SyncResults()
        await self._require_artist(artist_id)
        if self.settings.setlistfm.is_configured:
            await self._run_phase(
                "setlistfm",
                results.setlists,
                lambda: self._setlistfm_phase(artist_id, results, days, None),
            )
        else:
            results.setlists.add_error("setlistfm: Setlist.fm API key is not configured")
        await self._stats_phase(artist_id, results)
        return results

    async def sync_bulk_artists(self, artist_ids: list[str]) -> BulkSyncResult:
        """Sync artists one after another. One failure never stops the batch."""
        bulk = BulkSyncResult(total=len(artist_ids))
        delay = self.settings.sync.bulk_artist_delay_seconds

        for index, artist_id in enumerate(artist_ids):
            if index > 0 and delay > 0:
                await asyncio.sleep(delay)
            try:
                results = await self.sync_artist_catalog(artist_id)
            except Exception as e:
                message = e.message if isinstance(e, DomainException) else str(e)
                bulk.errors += 1
                bulk.details.append(
                    BulkArtistOutcome(artist_id=artist_id, success=False, error=message)
                )
                continue
            bulk.synced += 1
            bulk.details.append(
                BulkArtistOutcome(artist_id=artist_id, success=True, results=results)
            )

        logger.info(
            "Bulk sync finished: %d/%d artists synced, %d failed",
            bulk.synced,
            bulk.total,
            bulk.errors,
        )
        return bulk

    # Each phase re-reads the artist: a rollback in the previous phase expires it.

    async def _spotify_phase(
        self, artist_id: str, results: SyncResults, full_discography: bool
    ) -> None:
        artist = await self._require_artist(artist_id)
        await self.songs.sync_artist_songs(artist, results, full_discography)

    async def _ticketmaster_phase(
        self, artist_id: str, results: SyncResults, now: datetime | None
    ) -> None:
        artist = await self._require_artist(artist_id)
        await self.shows.sync_artist_shows(artist, results, now)

    async def _preseed_phase(
        self, artist_id: str, results: SyncResults, now: datetime | None
    ) -> None:
        artist = await self._require_artist(artist_id)
        today = (now or datetime.now(UTC)).date()
        await self.preseed.preseed_artist_setlists(artist, results, today)

    async def _setlistfm_phase(
        self,
        artist_id: str,
        results: SyncResults,
        days: int | None,
        now: datetime | None,
    ) -> None:
        artist = await self._require_artist(artist_id)
        await self.setlists.sync_artist_setlists(artist, results, days, now)

    async def _stats_phase(self, artist_id: str, results: SyncResults) -> None:
        try:
            await self.stats.recalculate(artist_id)
            await self.session.commit()
        except EntityNotFoundException:
            raise
        except Exception as e:
            await self.session.rollback()
            logger.exception("Stats recalculation failed for %s", artist_id)
            results.stats.calculated = False
            results.stats.error = f"{type(e).__name__}: {e}"
            return
        results.stats.calculated = True

    @staticmethod
    def _progress_details(results: SyncResults) -> dict[str, object]:
        return {
            "songs": {"synced": results.songs.synced, "errors": results.songs.error_count},
            "shows": {"synced": results.shows.synced, "errors": results.shows.error_count},
            "venues": {"synced": results.venues.synced, "errors": results.venues.error_count},
            "setlists": {
                "synced": results.setlists.synced,
                "errors": results.setlists.error_count,
            },
            "predictions": {
                "synced": results.predictions.synced,
                "errors": results.predictions.error_count,
            },
        }
