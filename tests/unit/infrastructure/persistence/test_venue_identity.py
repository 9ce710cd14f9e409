"""Tests for cross-provider venue identity resolution."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from setlistsync.infrastructure.persistence import (
    VenueIdentityResolver,
    VenueModel,
    VenueRepository,
)


@pytest.fixture
async def fillmore(session: AsyncSession) -> VenueModel:
    venue, _ = await VenueRepository(session).resolve_or_create(
        "The Fillmore Auditorium", "San Francisco", {}
    )
    return venue


class TestVenueIdentityResolver:
    async def test_exact_key_ignores_case_and_punctuation(
        self, session: AsyncSession, fillmore: VenueModel
    ) -> None:
        match = await VenueIdentityResolver(session).resolve(
            "the fillmore auditorium!", "SAN FRANCISCO"
        )

        assert match.method == "exact"
        assert match.venue is fillmore
        assert match.score == 100.0

    async def test_small_spelling_difference_is_a_fuzzy_match(
        self, session: AsyncSession, fillmore: VenueModel
    ) -> None:
        match = await VenueIdentityResolver(session).resolve(
            "The Filmore Auditorium", "San Francisco"
        )

        assert match.method == "fuzzy"
        assert match.matched
        assert match.venue is fillmore
        assert match.score >= 92

    async def test_review_band_is_not_merged(
        self, session: AsyncSession, caplog: pytest.LogCaptureFixture
    ) -> None:
        await VenueRepository(session).resolve_or_create("The Warfield", "San Francisco", {})

        match = await VenueIdentityResolver(session).resolve(
            "Warfield Theatre", "San Francisco"
        )

        assert match.method == "none"
        assert match.venue is None
        assert 80 <= match.score < 92
        assert "Low-confidence venue match" in caplog.text

    async def test_other_city_is_never_fuzzy_matched(
        self, session: AsyncSession, fillmore: VenueModel
    ) -> None:
        match = await VenueIdentityResolver(session).resolve(
            "The Filmore Auditorium", "Oakland"
        )

        assert match.method == "none"
        assert match.score == 0.0

    async def test_missing_city_only_matches_exactly(
        self, session: AsyncSession, fillmore: VenueModel
    ) -> None:
        match = await VenueIdentityResolver(session).resolve("The Fillmore Auditorium", None)
        assert match.matched is False

    async def test_thresholds_are_configurable(
        self, session: AsyncSession, fillmore: VenueModel
    ) -> None:
        strict = VenueIdentityResolver(session, match_threshold=99.5, review_threshold=99.0)

        match = await strict.resolve("The Filmore Auditorium", "San Francisco")

        assert match.matched is False
