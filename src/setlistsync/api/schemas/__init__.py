"""Pydantic request/response models for the HTTP API."""

from setlistsync.api.schemas.search import (
    ArtistSearchResponse,
    AutoImportRequest,
    AutoImportResponse,
    SearchResponse,
    SearchResultItem,
)
from setlistsync.api.schemas.sync import (
    SetlistFmSyncRequest,
    SongSyncRequest,
    SyncRequest,
)

__all__ = [
    "ArtistSearchResponse",
    "AutoImportRequest",
    "AutoImportResponse",
    "SearchResponse",
    "SearchResultItem",
    "SetlistFmSyncRequest",
    "SongSyncRequest",
    "SyncRequest",
]
