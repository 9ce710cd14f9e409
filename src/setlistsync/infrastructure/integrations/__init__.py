"""Provider clients: Spotify, Ticketmaster, Setlist.fm."""

from .base import ProviderHttpClient, raise_for_provider_status
from .setlistfm_client import SetlistFmClient
from .spotify_client import SpotifyClient
from .ticketmaster_client import TicketmasterClient

__all__ = [
    "ProviderHttpClient",
    "raise_for_provider_status",
    "SetlistFmClient",
    "SpotifyClient",
    "TicketmasterClient",
]
