"""Domain enums and small pure rules shared by the sync phases."""

from datetime import UTC, date, datetime, time
from enum import Enum


class ShowStatus(str, Enum):
    """Lifecycle of a show."""

    UPCOMING = "upcoming"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class SetlistType(str, Enum):
    """Predicted setlists are user-editable, actual ones come from imports."""

    PREDICTED = "predicted"
    ACTUAL = "actual"


class SyncState(str, Enum):
    """Status values of a progress record."""

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


# Ticketmaster writes "canceled", other feeds the British way
_CANCELLED_CODES = frozenset({"cancelled", "canceled"})


# Hey future me, cancellation ALWAYS wins, even for a past date. A cancelled show from last
# week must not suddenly show up as "completed" in the artist stats.
# Date-only events are compared at midnight UTC, so a show "today" counts as completed
# once the day has started. That matches how Ticketmaster localDate values were read before.
def determine_show_status(
    starts_at: datetime | date | None,
    provider_status_code: str | None,
    now: datetime | None = None,
) -> ShowStatus:
    """Derive a show status from provider data.

    Args:
        starts_at: Event start (aware datetime) or plain event date
        provider_status_code: Provider status such as "onsale" or "cancelled"
        now: Reference time, defaults to the current UTC time

    Returns:
        CANCELLED if the provider says so, else COMPLETED if the start lies in
        the past, else UPCOMING
    """
    if (provider_status_code or "").strip().lower() in _CANCELLED_CODES:
        return ShowStatus.CANCELLED

    if starts_at is None:
        return ShowStatus.UPCOMING

    reference = now or datetime.now(UTC)
    if isinstance(starts_at, datetime):
        start = starts_at if starts_at.tzinfo else starts_at.replace(tzinfo=UTC)
    else:
        start = datetime.combine(starts_at, time.min, tzinfo=UTC)

    return ShowStatus.COMPLETED if start < reference else ShowStatus.UPCOMING


__all__ = ["ShowStatus", "SetlistType", "SyncState", "determine_show_status"]
