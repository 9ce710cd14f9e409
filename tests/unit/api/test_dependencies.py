"""Tests for the cron bearer-token dependency."""

import pytest

from setlistsync.api.dependencies import verify_cron_secret
from setlistsync.config import Settings
from setlistsync.domain.exceptions import AuthenticationError, ConfigurationError
from tests.conftest import CRON_SECRET


class TestVerifyCronSecret:
    async def test_accepts_matching_token(self, settings: Settings) -> None:
        assert await verify_cron_secret(f"Bearer {CRON_SECRET}", settings) is None

    async def test_scheme_is_case_insensitive(self, settings: Settings) -> None:
        await verify_cron_secret(f"bearer {CRON_SECRET}", settings)

    @pytest.mark.parametrize(
        "header",
        [None, "", "Bearer", "Bearer ", f"Basic {CRON_SECRET}", CRON_SECRET],
    )
    async def test_missing_token(self, settings: Settings, header: str | None) -> None:
        with pytest.raises(AuthenticationError, match="Missing bearer token"):
            await verify_cron_secret(header, settings)

    async def test_wrong_token(self, settings: Settings) -> None:
        with pytest.raises(AuthenticationError, match="Invalid bearer token"):
            await verify_cron_secret("Bearer not-the-secret", settings)

    async def test_unset_secret_is_a_server_problem(self, settings: Settings) -> None:
        bare = settings.model_copy(update={"cron_secret": ""})

        with pytest.raises(ConfigurationError, match="CRON_SECRET"):
            await verify_cron_secret(f"Bearer {CRON_SECRET}", bare)
