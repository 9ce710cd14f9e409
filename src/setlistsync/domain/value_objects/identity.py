"""Slugs and identity keys for matching entities across providers.

Hey future me - slugs are URL keys, identity keys are MATCHING keys. They look similar
but are used for different things:

- slugify("AC/DC") -> "ac-dc" is what ends up in /artists/ac-dc
- normalize_identity("  The  Fillmore, ") -> "the fillmore" is what we compare when
  Ticketmaster and Setlist.fm describe the same venue with different punctuation

Examples:
    >>> slugify("Guns N' Roses")
    'guns-n-roses'
    >>> slugify(slugify("Guns N' Roses"))
    'guns-n-roses'
    >>> normalize_identity("Madison  Square Garden!")
    'madison square garden'
"""

import re
import unicodedata

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")
_PUNCTUATION = re.compile(r"[^\w\s]", re.UNICODE)
_WHITESPACE = re.compile(r"\s+")
# "Song - Live", "Song (Live at Wembley)", "Live from Paris", "[Live]"
_LIVE_PATTERN = re.compile(r"[\(\[\-–]\s*live\b|\blive (at|from|in|on)\b", re.IGNORECASE)


def slugify(name: str) -> str:
    """Build a URL slug from a display name.

    Lowercases, replaces every run of characters outside ``[a-z0-9]`` with a single
    hyphen and strips leading/trailing hyphens. Deterministic and idempotent:
    ``slugify(slugify(x)) == slugify(x)``.

    Args:
        name: Display name (artist, venue, show)

    Returns:
        Slug, possibly empty if the name has no ASCII letters or digits
    """
    return _NON_SLUG_CHARS.sub("-", name.lower()).strip("-")


def normalize_identity(value: str | None) -> str:
    """Normalize a name for identity comparison.

    Case-folds, drops accents and punctuation, collapses whitespace.

    Args:
        value: Raw name from any provider (None is treated as empty)

    Returns:
        Normalized key
    """
    if not value:
        return ""
    decomposed = unicodedata.normalize("NFKD", value)
    without_marks = "".join(c for c in decomposed if not unicodedata.combining(c))
    stripped = _PUNCTUATION.sub(" ", without_marks.casefold())
    return _WHITESPACE.sub(" ", stripped).strip()


def venue_match_key(name: str | None, city: str | None) -> str:
    """Composite key used when a venue has no shared provider ID."""
    return f"{normalize_identity(name)}|{normalize_identity(city)}"


def song_title_key(title: str) -> str:
    """Catalog matching key for a song title.

    Titles made only of punctuation ("...", "!!!") normalize to nothing, so they
    fall back to the case-folded raw title instead of all sharing one empty key.
    """
    return normalize_identity(title) or title.strip().casefold()


def is_live_recording(title: str, album_name: str | None = None) -> bool:
    """Heuristic: does the track or album title mark a live recording?"""
    if _LIVE_PATTERN.search(title):
        return True
    return bool(album_name and _LIVE_PATTERN.search(album_name))


def is_artist_name_match(left: str | None, right: str | None) -> bool:
    """Loose artist name comparison for search results.

    Equal after removing everything but letters and digits, or one contains the
    other ("Foo Fighters" vs "Foo Fighters Official").
    """
    a = re.sub(r"[\W_]+", "", normalize_identity(left))
    b = re.sub(r"[\W_]+", "", normalize_identity(right))
    if not a or not b:
        return False
    return a == b or a in b or b in a


__all__ = [
    "slugify",
    "normalize_identity",
    "venue_match_key",
    "song_title_key",
    "is_live_recording",
    "is_artist_name_match",
]
