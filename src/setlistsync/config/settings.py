"""Application settings loaded from environment variables via pydantic-settings.

Every group is its own BaseSettings with an env prefix, so ``SPOTIFY_CLIENT_ID``
lands in ``settings.spotify.client_id`` and ``TICKETMASTER_API_KEY`` in
``settings.ticketmaster.api_key``. Values come from the environment first and
from a local ``.env`` file second.

An empty credential means "provider not configured": the sync phase for that
provider is skipped and recorded as an error string instead of crashing the run.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Database connection settings."""

    model_config = SettingsConfigDict(
        env_prefix="DATABASE_", env_file=".env", extra="ignore"
    )

    url: str = "sqlite+aiosqlite:///./setlistsync.db"
    echo: bool = False
    pool_pre_ping: bool = True
    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 1800


class SpotifySettings(BaseSettings):
    """Spotify Web API credentials (client-credentials flow)."""

    model_config = SettingsConfigDict(
        env_prefix="SPOTIFY_", env_file=".env", extra="ignore"
    )

    client_id: str = ""
    client_secret: str = ""
    market: str = "US"
    # Roughly 90 requests per minute; Spotify doesn't publish a hard number.
    requests_per_window: int = 90
    window_seconds: float = 60.0

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)


class TicketmasterSettings(BaseSettings):
    """Ticketmaster Discovery API settings."""

    model_config = SettingsConfigDict(
        env_prefix="TICKETMASTER_", env_file=".env", extra="ignore"
    )

    api_key: str = ""
    requests_per_window: int = 200
    window_seconds: float = 3600.0
    page_size: int = 100
    max_pages: int = 20
    page_delay_seconds: float = 0.5
    lookahead_days: int = 730

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)


class SetlistFmSettings(BaseSettings):
    """Setlist.fm REST API settings."""

    model_config = SettingsConfigDict(
        env_prefix="SETLISTFM_", env_file=".env", extra="ignore"
    )

    api_key: str = ""
    requests_per_window: int = 1
    window_seconds: float = 1.0
    max_pages: int = 5
    page_delay_seconds: float = 1.0
    recent_days: int = 30

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)


class SyncSettings(BaseSettings):
    """Knobs for the sync orchestrator and its shared state."""

    model_config = SettingsConfigDict(
        env_prefix="SYNC_", env_file=".env", extra="ignore"
    )

    bulk_artist_delay_seconds: float = 0.5
    rate_limit_deny_delay_seconds: float = 1.0
    http_timeout_seconds: float = 30.0
    max_retries: int = 3
    # rapidfuzz scores are 0-100
    venue_match_threshold: float = 92.0
    venue_review_threshold: float = 80.0
    # songs in a freshly opened predicted setlist, 0 turns preseeding off
    predicted_setlist_size: int = Field(default=5, ge=0)
    # "memory" keeps limiter windows and progress in this process only,
    # "redis" shares them between instances.
    state_backend: Literal["memory", "redis"] = "memory"
    redis_url: str = "redis://localhost:6379/0"
    progress_ttl_seconds: int = 3600


class LoggingSettings(BaseSettings):
    """Log output settings."""

    model_config = SettingsConfigDict(
        env_prefix="LOG_", env_file=".env", extra="ignore"
    )

    level: str = "INFO"
    json_format: bool = False


class Settings(BaseSettings):
    """SetlistSync application settings."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    app_name: str = "setlistsync"
    app_version: str = "0.3.0"
    debug: bool = False
    # Shared secret for the sync trigger endpoints (cron jobs send it as a Bearer token)
    cron_secret: str = ""

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    spotify: SpotifySettings = Field(default_factory=SpotifySettings)
    ticketmaster: TicketmasterSettings = Field(default_factory=TicketmasterSettings)
    setlistfm: SetlistFmSettings = Field(default_factory=SetlistFmSettings)
    sync: SyncSettings = Field(default_factory=SyncSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    def _get_sqlite_db_path(self) -> Path | None:
        """Return the filesystem path of a file-based SQLite URL, else None."""
        url = self.database.url
        if not url.startswith("sqlite") or ":memory:" in url:
            return None
        _, _, path = url.partition(":///")
        return Path(path) if path else None


# Hey future me, lru_cache makes this a process-wide singleton. Tests that need different
# values build their own Settings(...) and pass it to create_app() instead of touching env.
@lru_cache
def get_settings() -> Settings:
    """Return the cached application settings."""
    return Settings()
