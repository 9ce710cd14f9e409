"""Artist search and auto-import endpoints."""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request, status
from fastapi.responses import JSONResponse
from starlette.datastructures import State

from setlistsync.api.dependencies import (
    get_auto_import_service,
    get_search_service,
)
from setlistsync.api.schemas import (
    ArtistSearchResponse,
    AutoImportRequest,
    AutoImportResponse,
    SearchResultItem,
)
from setlistsync.application.services import (
    ArtistAutoImportService,
    SearchService,
    SyncProgressTracker,
    UnifiedSyncService,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/artists", tags=["Artists"])


@router.get("/search", response_model=ArtistSearchResponse)
async def search_artists(
    q: str = Query(default="", max_length=200),
    limit: int = Query(default=10, ge=1, le=50),
    service: SearchService = Depends(get_search_service),
) -> ArtistSearchResponse:
    """Stored artists first, then Spotify artists we don't have yet (``source=spotify``)."""
    hits = await service.search_artists(q, limit)
    return ArtistSearchResponse(artists=[SearchResultItem.from_hit(h) for h in hits])


# Hey future me - this runs AFTER the response went out, so the request's DB session
# is already closed. It opens its own session_scope and never lets an exception escape,
# there's nobody left to report it to except the log and the progress record.
async def run_background_catalog_sync(state: State, artist_id: str) -> None:
    tracker = SyncProgressTracker(state.progress_store)
    try:
        async with state.db.session_scope() as session:
            service = UnifiedSyncService(
                session,
                state.spotify_client,
                state.ticketmaster_client,
                state.setlistfm_client,
                state.settings,
                tracker,
            )
            await service.sync_artist_catalog(artist_id)
    except Exception:
        # sync_artist_catalog already marked the progress record failed
        logger.exception("Background catalog sync for %s failed", artist_id)


@router.post("/auto-import", response_model=AutoImportResponse)
async def auto_import_artist(
    body: AutoImportRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    service: ArtistAutoImportService = Depends(get_auto_import_service),
) -> JSONResponse:
    """Find-or-create an artist; new artists get a full sync in the background.

    Returns 200 for an artist we already had, 202 when a placeholder was created and
    the sync scheduled. Poll ``progressEndpoint`` for the sync's progress.
    """
    result = await service.import_artist(
        spotify_id=body.spotify_id,
        tm_attraction_id=body.tm_attraction_id,
        artist_name=body.artist_name,
    )
    artist = result.artist

    if result.created:
        background_tasks.add_task(run_background_catalog_sync, request.app.state, artist.id)

    response = AutoImportResponse(
        artist_id=artist.id,
        slug=artist.slug,
        name=artist.name,
        already_exists=not result.created,
        sync_scheduled=result.created,
        progress_endpoint=f"/api/sync/progress/{artist.id}",
    )
    return JSONResponse(
        content=response.model_dump(by_alias=True),
        status_code=status.HTTP_202_ACCEPTED if result.created else status.HTTP_200_OK,
        background=background_tasks,
    )
