"""Integration tests for the cron-facing sync endpoints."""

import httpx
import pytest
from fastapi import FastAPI

from setlistsync.domain.exceptions import RateLimitExceededError
from tests.fakes import FakeSetlistFmClient, FakeSpotifyClient, FakeTicketmasterClient


class TestCronAuth:
    @pytest.mark.parametrize(
        ("method", "path"),
        [
            ("POST", "/api/sync"),
            ("POST", "/api/sync/songs"),
            ("POST", "/api/sync/setlistfm"),
            ("GET", "/api/sync/diagnostics"),
        ],
    )
    async def test_missing_token_is_rejected(
        self, client: httpx.AsyncClient, method: str, path: str
    ) -> None:
        response = await client.request(method, path, json={})

        assert response.status_code == 401
        assert response.json() == {
            "error": "unauthorized",
            "message": "Missing bearer token",
        }
        assert response.headers["WWW-Authenticate"] == "Bearer"

    async def test_wrong_token_is_rejected(self, client: httpx.AsyncClient) -> None:
        response = await client.post(
            "/api/sync",
            json={"type": "artist", "artistId": "a1"},
            headers={"Authorization": "Bearer guess"},
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid bearer token"

    async def test_unset_secret_returns_503(
        self, app: FastAPI, client: httpx.AsyncClient, auth_headers: dict[str, str]
    ) -> None:
        app.state.settings = app.state.settings.model_copy(update={"cron_secret": ""})

        response = await client.post(
            "/api/sync", json={"type": "artist", "artistId": "a1"}, headers=auth_headers
        )

        assert response.status_code == 503
        assert response.json()["error"] == "service_unavailable"

    async def test_progress_needs_no_token(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/api/sync/progress/nobody")

        assert response.status_code == 404
        assert response.json() == {
            "error": "not_found",
            "message": "SyncProgress with id nobody not found",
        }


class TestTriggerSync:
    async def test_missing_artist_id_is_a_validation_error(
        self, client: httpx.AsyncClient, auth_headers: dict[str, str]
    ) -> None:
        response = await client.post("/api/sync", json={"type": "artist"}, headers=auth_headers)

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "validation_error"
        assert body["message"] == "artistId is required for type 'artist'"

    async def test_unknown_type_is_a_validation_error(
        self, client: httpx.AsyncClient, auth_headers: dict[str, str]
    ) -> None:
        response = await client.post(
            "/api/sync", json={"type": "everything", "artistId": "a1"}, headers=auth_headers
        )

        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == "type"

    async def test_unknown_artist_is_404(
        self, client: httpx.AsyncClient, auth_headers: dict[str, str]
    ) -> None:
        response = await client.post(
            "/api/sync", json={"type": "artist", "artistId": "missing"}, headers=auth_headers
        )

        assert response.status_code == 404
        assert response.json()["message"] == "Artist with id missing not found"

    @pytest.mark.usefixtures("loaded_providers")
    async def test_full_catalog_sync(
        self, client: httpx.AsyncClient, auth_headers: dict[str, str], stored_artist: str
    ) -> None:
        response = await client.post(
            "/api/sync",
            json={"type": "artist", "artistId": stored_artist},
            headers=auth_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["type"] == "artist"
        assert body["artistId"] == stored_artist
        assert body["hasErrors"] is False
        results = body["results"]
        assert results["songs"] == {"synced": 1, "errors": []}
        assert results["shows"] == {"synced": 2, "errors": []}
        assert results["setlists"]["synced"] == 1
        assert results["stats"] == {"calculated": True, "error": None}

        progress = await client.get(f"/api/sync/progress/{stored_artist}")
        assert progress.status_code == 200
        assert progress.json()["status"] == "completed"
        assert progress.json()["percentage"] == 100
        assert progress.json()["artist_name"] == "Foo Fighters"

    @pytest.mark.usefixtures("loaded_providers")
    async def test_partial_failure_is_still_200(
        self,
        client: httpx.AsyncClient,
        auth_headers: dict[str, str],
        stored_artist: str,
        ticketmaster: FakeTicketmasterClient,
    ) -> None:
        ticketmaster.error = RateLimitExceededError(
            "Ticketmaster rate limit exceeded", provider="ticketmaster", retry_after=30
        )

        response = await client.post(
            "/api/sync",
            json={"type": "artist", "artistId": stored_artist},
            headers=auth_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["hasErrors"] is True
        assert body["results"]["shows"]["errors"] == [
            "ticketmaster: Ticketmaster rate limit exceeded"
        ]
        assert body["results"]["songs"]["synced"] == 1

    @pytest.mark.usefixtures("loaded_providers")
    async def test_shows_only(
        self,
        client: httpx.AsyncClient,
        auth_headers: dict[str, str],
        stored_artist: str,
        spotify: FakeSpotifyClient,
    ) -> None:
        response = await client.post(
            "/api/sync",
            json={"type": "shows", "artistId": stored_artist},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["type"] == "shows"
        assert response.json()["results"]["shows"]["synced"] == 2
        assert spotify.calls == []

    @pytest.mark.usefixtures("loaded_providers")
    async def test_bulk(
        self, client: httpx.AsyncClient, auth_headers: dict[str, str], stored_artist: str
    ) -> None:
        response = await client.post(
            "/api/sync",
            json={"type": "artists", "artistIds": ["missing", stored_artist]},
            headers=auth_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["type"] == "artists"
        assert (body["total"], body["synced"], body["errors"]) == (2, 1, 1)
        assert body["details"][0]["error"] == "Artist with id missing not found"
        assert body["details"][1]["artistId"] == stored_artist


class TestSingleProviderRoutes:
    @pytest.mark.usefixtures("loaded_providers")
    async def test_songs(
        self,
        client: httpx.AsyncClient,
        auth_headers: dict[str, str],
        stored_artist: str,
        ticketmaster: FakeTicketmasterClient,
    ) -> None:
        response = await client.post(
            "/api/sync/songs", json={"artistId": stored_artist}, headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json()["type"] == "songs"
        assert response.json()["results"]["songs"]["synced"] == 1
        assert ticketmaster.calls == []

    @pytest.mark.usefixtures("loaded_providers")
    async def test_setlistfm_by_name_stores_given_mbid(
        self,
        client: httpx.AsyncClient,
        auth_headers: dict[str, str],
        stored_artist: str,
        setlistfm: FakeSetlistFmClient,
    ) -> None:
        response = await client.post(
            "/api/sync/setlistfm",
            json={"artistName": "foo fighters", "artistMbid": "mbid-foo", "days": 30},
            headers=auth_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["artistId"] == stored_artist
        assert body["results"]["setlists"]["synced"] == 1
        assert setlistfm.calls == [("get_recent_setlists", ("mbid-foo", 30))]

    async def test_setlistfm_unknown_artist_is_404(
        self, client: httpx.AsyncClient, auth_headers: dict[str, str]
    ) -> None:
        response = await client.post(
            "/api/sync/setlistfm", json={"artistName": "Nobody"}, headers=auth_headers
        )

        assert response.status_code == 404
        assert response.json()["message"] == "Artist with id Nobody not found"

    async def test_setlistfm_needs_an_identifier(
        self, client: httpx.AsyncClient, auth_headers: dict[str, str]
    ) -> None:
        response = await client.post("/api/sync/setlistfm", json={}, headers=auth_headers)

        assert response.status_code == 400


async def test_diagnostics_reports_every_provider(
    client: httpx.AsyncClient, auth_headers: dict[str, str]
) -> None:
    response = await client.get("/api/sync/diagnostics", headers=auth_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert set(body["providers"]) == {"spotify", "ticketmaster", "setlistfm"}
    assert all(p["configured"] for p in body["providers"].values())
