# Hey future me - these endpoints are what the cron jobs hit!
#
#   POST /api/sync              type=artist → full catalog (UnifiedSyncService)
#                               type=artists → bulk, sequential with a delay
#                               type=shows → Ticketmaster phase + stats only
#   POST /api/sync/songs        Spotify phase + stats
#   POST /api/sync/setlistfm    Setlist.fm phase + stats (artist by id, MBID or name)
#   GET  /api/sync/progress/ID  poll what a running sync is doing (no auth, UI uses it)
#   GET  /api/sync/diagnostics  probe all three providers at once
#
# Sync calls are slow (Setlist.fm alone is 1 req/s). They run inside the request on
# purpose: cron wants the result in the response, there is no job queue.
"""Sync trigger, progress and diagnostics endpoints."""

import logging
from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from setlistsync.api.dependencies import (
    get_connectivity_checker,
    get_db_session,
    get_progress_tracker,
    get_unified_sync_service,
    verify_cron_secret,
)
from setlistsync.api.schemas import SetlistFmSyncRequest, SongSyncRequest, SyncRequest
from setlistsync.application.services import (
    ConnectivityChecker,
    SyncProgressTracker,
    SyncResults,
    UnifiedSyncService,
)
from setlistsync.domain.exceptions import EntityNotFoundException
from setlistsync.infrastructure.persistence.models import ArtistModel
from setlistsync.infrastructure.persistence.repositories import ArtistRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sync", tags=["Sync"])


def _single_artist_response(
    sync_type: str, artist_id: str, results: SyncResults
) -> dict[str, Any]:
    return {
        "success": True,
        "type": sync_type,
        "artistId": artist_id,
        "hasErrors": results.has_errors,
        "results": results.to_dict(),
    }


@router.post("", dependencies=[Depends(verify_cron_secret)])
async def trigger_sync(
    body: SyncRequest,
    service: UnifiedSyncService = Depends(get_unified_sync_service),
) -> dict[str, Any]:
    """Dispatch a sync by ``type``.

    Partial failures are NOT errors here: the response is 200 with the error strings
    under ``results.<category>.errors``. Only an unknown artist (404) or a broken
    request fails the call.
    """
    if body.type == "artists":
        bulk = await service.sync_bulk_artists(body.artist_ids or [])
        return {"success": True, "type": "artists", **bulk.to_dict()}

    artist_id = body.artist_id or ""
    if body.type == "shows":
        results = await service.sync_artist_shows_only(artist_id)
    else:
        results = await service.sync_artist_catalog(
            artist_id, days=body.days, full_discography=body.full_discography
        )
    return _single_artist_response(body.type, artist_id, results)


@router.post("/songs", dependencies=[Depends(verify_cron_secret)])
async def sync_songs(
    body: SongSyncRequest,
    service: UnifiedSyncService = Depends(get_unified_sync_service),
) -> dict[str, Any]:
    results = await service.sync_artist_songs_only(
        body.artist_id, full_discography=body.full_discography
    )
    return _single_artist_response("songs", body.artist_id, results)


async def _find_setlistfm_artist(
    session: AsyncSession, body: SetlistFmSyncRequest
) -> ArtistModel:
    artists = ArtistRepository(session)
    if body.artist_id:
        artist = await artists.get_by_id(body.artist_id)
        if artist is None:
            raise EntityNotFoundException("Artist", body.artist_id)
        return artist

    artist = None
    if body.artist_mbid:
        artist = await artists.get_by_musicbrainz_id(body.artist_mbid)
    if artist is None and body.artist_name:
        artist = await artists.get_by_name(body.artist_name)
    if artist is None:
        raise EntityNotFoundException("Artist", body.artist_mbid or body.artist_name)

    # caller told us the MBID, save the Setlist.fm name search
    if body.artist_mbid and artist.musicbrainz_id is None:
        artist.musicbrainz_id = body.artist_mbid
        await session.commit()
    return artist


@router.post("/setlistfm", dependencies=[Depends(verify_cron_secret)])
async def sync_setlistfm(
    body: SetlistFmSyncRequest,
    session: AsyncSession = Depends(get_db_session),
    service: UnifiedSyncService = Depends(get_unified_sync_service),
) -> dict[str, Any]:
    artist = await _find_setlistfm_artist(session, body)
    artist_id = artist.id
    results = await service.sync_artist_setlists_only(artist_id, days=body.days)
    return _single_artist_response("setlistfm", artist_id, results)


@router.get("/progress/{artist_id}")
async def get_sync_progress(
    artist_id: str,
    tracker: SyncProgressTracker = Depends(get_progress_tracker),
) -> dict[str, Any]:
    progress = await tracker.get_progress(artist_id)
    if progress is None:
        raise EntityNotFoundException("SyncProgress", artist_id)
    return progress.to_dict()


@router.get("/diagnostics", dependencies=[Depends(verify_cron_secret)])
async def sync_diagnostics(
    checker: ConnectivityChecker = Depends(get_connectivity_checker),
) -> dict[str, Any]:
    return await checker.check_all()
