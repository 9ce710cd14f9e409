"""Venue identity resolution across providers.

Hey future me - Ticketmaster and Setlist.fm don't share venue IDs, so "The Fillmore" in
San Francisco arrives twice with slightly different names. We resolve in two steps:

1. Exact match on the normalized "name|city" key (cheap, indexed)
2. Fuzzy match with rapidfuzz token_sort_ratio, but ONLY against venues in the same city

The fuzzy step has two thresholds:
- score >= match_threshold  → same venue, reuse it
- score >= review_threshold → looks similar but we are NOT sure. Logged as a warning
  so someone can merge by hand, and treated as "no match" (a new venue gets created).
  A wrong merge silently moves shows between venues, a duplicate is just ugly.
"""

import logging
from dataclasses import dataclass

from rapidfuzz import fuzz
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from setlistsync.domain.value_objects import normalize_identity, venue_match_key
from setlistsync.infrastructure.persistence.models import VenueModel

logger = logging.getLogger(__name__)


@dataclass
class VenueMatch:
    """Outcome of a resolution attempt."""

    venue: VenueModel | None
    score: float
    method: str  # "exact", "fuzzy", "none"

    @property
    def matched(self) -> bool:
        return self.venue is not None


class VenueIdentityResolver:
    """Find an existing venue for a (name, city) pair."""

    def __init__(
        self,
        session: AsyncSession,
        match_threshold: float = 92.0,
        review_threshold: float = 80.0,
    ) -> None:
        self.session = session
        self.match_threshold = match_threshold
        self.review_threshold = review_threshold

    async def resolve(self, name: str, city: str | None) -> VenueMatch:
        """Resolve a venue by name and city.

        Args:
            name: Venue name as the provider spells it
            city: City name (may be None, then only exact key matches count)

        Returns:
            VenueMatch with the venue (or None), the score and how it was found
        """
        key = venue_match_key(name, city)
        stmt = select(VenueModel).where(VenueModel.match_key == key).limit(1)
        exact = (await self.session.execute(stmt)).scalar_one_or_none()
        if exact is not None:
            return VenueMatch(venue=exact, score=100.0, method="exact")

        city_key = normalize_identity(city)
        if not city_key:
            return VenueMatch(venue=None, score=0.0, method="none")

        stmt = select(VenueModel).where(VenueModel.city_key == city_key)
        candidates = (await self.session.execute(stmt)).scalars().all()
        if not candidates:
            return VenueMatch(venue=None, score=0.0, method="none")

        wanted = normalize_identity(name)
        best: VenueModel | None = None
        best_score = 0.0
        for candidate in candidates:
            score = fuzz.token_sort_ratio(wanted, normalize_identity(candidate.name))
            if score > best_score:
                best, best_score = candidate, score

        if best is not None and best_score >= self.match_threshold:
            logger.info(
                "Fuzzy venue match '%s' (%s) -> '%s' [%.0f]",
                name,
                city,
                best.name,
                best_score,
            )
            return VenueMatch(venue=best, score=best_score, method="fuzzy")

        if best is not None and best_score >= self.review_threshold:
            logger.warning(
                "Low-confidence venue match '%s' (%s) ~ '%s' [%.0f], creating a new venue. "
                "Review for a manual merge.",
                name,
                city,
                best.name,
                best_score,
                extra={"candidate_venue_id": best.id, "score": best_score},
            )

        return VenueMatch(venue=None, score=best_score, method="none")
