"""Per-artist sync progress tracking.

Clients start a sync, then poll GET /api/sync/progress/{artist_id}. The tracker
writes a full snapshot on every change, the store keeps only the latest one.
"""

import logging
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from typing import Any

from setlistsync.domain.entities import SyncState
from setlistsync.domain.ports import IProgressStore

logger = logging.getLogger(__name__)

# Start, Spotify, Ticketmaster, Setlist.fm, stats
DEFAULT_TOTAL_STEPS = 5


@dataclass
class SyncProgress:
    """Snapshot of one artist's sync."""

    artist_id: str
    artist_name: str
    status: str = SyncState.IN_PROGRESS.value
    current_step: str = "Starting sync"
    completed_steps: int = 0
    total_steps: int = DEFAULT_TOTAL_STEPS
    details: dict[str, Any] | None = None
    error: str | None = None
    started_at: str | None = None
    completed_at: str | None = None

    @property
    def percentage(self) -> int:
        if self.total_steps <= 0:
            return 0
        return min(100, round(self.completed_steps * 100 / self.total_steps))

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["percentage"] = self.percentage
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SyncProgress":
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


class SyncProgressTracker:
    """start_sync → update_progress* → complete_sync, backed by an IProgressStore."""

    def __init__(self, store: IProgressStore) -> None:
        self._store = store

    async def start_sync(
        self, artist_id: str, artist_name: str, total_steps: int = DEFAULT_TOTAL_STEPS
    ) -> SyncProgress:
        progress = SyncProgress(
            artist_id=artist_id,
            artist_name=artist_name,
            total_steps=total_steps,
            started_at=_now_iso(),
        )
        await self._store.save(artist_id, progress.to_dict())
        return progress

    async def update_progress(
        self,
        artist_id: str,
        current_step: str | None = None,
        completed_steps: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> SyncProgress | None:
        """Merge changes into the stored snapshot. Unknown artist → None (no-op)."""
        progress = await self.get_progress(artist_id)
        if progress is None:
            logger.debug("No progress record for artist %s, update ignored", artist_id)
            return None

        if current_step is not None:
            progress.current_step = current_step
        if completed_steps is not None:
            progress.completed_steps = completed_steps
        if details is not None:
            progress.details = {**(progress.details or {}), **details}
        await self._store.save(artist_id, progress.to_dict())
        return progress

    async def complete_sync(
        self, artist_id: str, error: str | None = None
    ) -> SyncProgress | None:
        """Mark the sync finished: completed without ``error``, failed with one."""
        progress = await self.get_progress(artist_id)
        if progress is None:
            return None

        progress.completed_at = _now_iso()
        if error:
            progress.status = SyncState.FAILED.value
            progress.error = error
            progress.current_step = "Sync failed"
        else:
            progress.status = SyncState.COMPLETED.value
            progress.completed_steps = progress.total_steps
            progress.current_step = "Sync completed"
        await self._store.save(artist_id, progress.to_dict())
        return progress

    async def get_progress(self, artist_id: str) -> SyncProgress | None:
        data = await self._store.get(artist_id)
        return SyncProgress.from_dict(data) if data is not None else None
