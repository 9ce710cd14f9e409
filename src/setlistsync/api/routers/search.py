"""Catalog search endpoint."""

from fastapi import APIRouter, Depends, Query

from setlistsync.api.dependencies import get_search_service
from setlistsync.api.schemas import SearchResponse, SearchResultItem
from setlistsync.application.services import SearchService

router = APIRouter(tags=["Search"])


# Hey future me - short queries ("a") come back empty without a DB hit, the
# search box fires on every keystroke.
@router.get("/search", response_model=SearchResponse)
async def search(
    q: str = Query(default="", max_length=200, description="Search text"),
    limit: int = Query(default=10, ge=1, le=50),
    service: SearchService = Depends(get_search_service),
) -> SearchResponse:
    hits = await service.search(q, limit)
    return SearchResponse(results=[SearchResultItem.from_hit(h) for h in hits])
