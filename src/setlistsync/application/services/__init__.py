"""Application services - sync phases, orchestration, search and auto-import."""

from setlistsync.application.services.artist_stats_service import ArtistStatsService
from setlistsync.application.services.auto_import import (
    ArtistAutoImportService,
    AutoImportResult,
)

# Hey future me - UnifiedSyncService is what routes call. The per-provider services
# below it are exported for tests and for the single-phase sync routes.
from setlistsync.application.services.catalog_sync_service import UnifiedSyncService
from setlistsync.application.services.connectivity_service import (
    ConnectivityChecker,
    ProviderStatus,
)
from setlistsync.application.services.search_service import SearchHit, SearchService
from setlistsync.application.services.setlist_preseed_service import SetlistPreseedService
from setlistsync.application.services.setlist_sync_service import SetlistSyncService
from setlistsync.application.services.show_sync_service import ShowSyncService
from setlistsync.application.services.song_sync_service import SongSyncService
from setlistsync.application.services.sync_progress import (
    SyncProgress,
    SyncProgressTracker,
)
from setlistsync.application.services.sync_results import (
    BulkArtistOutcome,
    BulkSyncResult,
    CategoryResult,
    SyncResults,
)

__all__ = [
    "ArtistAutoImportService",
    "ArtistStatsService",
    "AutoImportResult",
    "BulkArtistOutcome",
    "BulkSyncResult",
    "CategoryResult",
    "ConnectivityChecker",
    "ProviderStatus",
    "SearchHit",
    "SearchService",
    "SetlistPreseedService",
    "SetlistSyncService",
    "ShowSyncService",
    "SongSyncService",
    "SyncProgress",
    "SyncProgressTracker",
    "SyncResults",
    "UnifiedSyncService",
]
