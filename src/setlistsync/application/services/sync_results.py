"""Result objects returned by the sync phases and the orchestrator."""

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass
class CategoryResult:
    """Outcome of one category (songs, shows, venues, setlists, predictions).

    Hey future me - ``errors`` are strings, not exceptions. A per-event failure gets a
    line like "event G5v0Z9...: IntegrityError ..." and the sync carries on. Phase-level
    failures (missing API key, 429 after retries) land here too, prefixed with the phase.
    """

    synced: int = 0
    errors: list[str] = field(default_factory=list)

    def add_error(self, message: str) -> None:
        self.errors.append(message)

    @property
    def error_count(self) -> int:
        return len(self.errors)


@dataclass
class ArtistUpdateResult:
    updated: bool = False
    data: dict[str, Any] | None = None


@dataclass
class StatsResult:
    calculated: bool = False
    error: str | None = None


@dataclass
class SyncResults:
    """Everything one artist sync did."""

    artist: ArtistUpdateResult = field(default_factory=ArtistUpdateResult)
    songs: CategoryResult = field(default_factory=CategoryResult)
    shows: CategoryResult = field(default_factory=CategoryResult)
    venues: CategoryResult = field(default_factory=CategoryResult)
    setlists: CategoryResult = field(default_factory=CategoryResult)
    # predicted setlists opened for upcoming shows
    predictions: CategoryResult = field(default_factory=CategoryResult)
    stats: StatsResult = field(default_factory=StatsResult)

    @property
    def has_errors(self) -> bool:
        return bool(
            self.songs.errors
            or self.shows.errors
            or self.venues.errors
            or self.setlists.errors
            or self.predictions.errors
            or self.stats.error
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class BulkArtistOutcome:
    artist_id: str
    success: bool
    results: SyncResults | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "artistId": self.artist_id,
            "success": self.success,
            "results": self.results.to_dict() if self.results else None,
            "error": self.error,
        }


@dataclass
class BulkSyncResult:
    total: int = 0
    synced: int = 0
    errors: int = 0
    details: list[BulkArtistOutcome] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "synced": self.synced,
            "errors": self.errors,
            "details": [d.to_dict() for d in self.details],
        }
