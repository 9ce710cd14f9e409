"""Value objects: slugs and identity keys."""

from .identity import (
    is_artist_name_match,
    is_live_recording,
    normalize_identity,
    slugify,
    song_title_key,
    venue_match_key,
)

__all__ = [
    "slugify",
    "normalize_identity",
    "venue_match_key",
    "song_title_key",
    "is_live_recording",
    "is_artist_name_match",
]
