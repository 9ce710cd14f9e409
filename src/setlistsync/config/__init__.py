"""Configuration module for SetlistSync."""

from .settings import (
    DatabaseSettings,
    LoggingSettings,
    SetlistFmSettings,
    Settings,
    SpotifySettings,
    SyncSettings,
    TicketmasterSettings,
    get_settings,
)

__all__ = [
    "DatabaseSettings",
    "LoggingSettings",
    "SetlistFmSettings",
    "Settings",
    "SpotifySettings",
    "SyncSettings",
    "TicketmasterSettings",
    "get_settings",
]
