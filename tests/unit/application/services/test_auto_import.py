"""Tests for ArtistAutoImportService."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from setlistsync.application.services import ArtistAutoImportService
from setlistsync.config import Settings, SpotifySettings
from setlistsync.domain.exceptions import ExternalServiceError, ValidationException
from setlistsync.infrastructure.persistence import ArtistModel
from tests.fakes import FakeSpotifyClient, FakeTicketmasterClient, spotify_artist_payload


@pytest.fixture
def service(
    session: AsyncSession,
    spotify: FakeSpotifyClient,
    ticketmaster: FakeTicketmasterClient,
    settings: Settings,
) -> ArtistAutoImportService:
    return ArtistAutoImportService(session, spotify, ticketmaster, settings)


class TestArtistAutoImport:
    async def test_requires_an_identifier(self, service: ArtistAutoImportService) -> None:
        with pytest.raises(ValidationException) as exc_info:
            await service.import_artist(artist_name="   ")

        assert [d["field"] for d in exc_info.value.details] == [
            "spotifyId",
            "tmAttractionId",
            "artistName",
        ]

    async def test_existing_artist_short_circuits(
        self,
        artist: ArtistModel,
        service: ArtistAutoImportService,
        spotify: FakeSpotifyClient,
        ticketmaster: FakeTicketmasterClient,
    ) -> None:
        result = await service.import_artist(tm_attraction_id="tm-foo")

        assert result.created is False
        assert result.artist.id == artist.id
        assert spotify.calls == []
        assert ticketmaster.calls == []

    async def test_spotify_id_only_resolves_name_and_attraction(
        self,
        service: ArtistAutoImportService,
        spotify: FakeSpotifyClient,
        ticketmaster: FakeTicketmasterClient,
    ) -> None:
        spotify.artists["sp-new"] = spotify_artist_payload("sp-new", "Wet Leg")
        ticketmaster.attraction_search = [
            {"id": "tm-tribute", "name": "Wet Leg Tribute"},
            {"id": "tm-wetleg", "name": "Wet Leg"},
        ]

        result = await service.import_artist(spotify_id="sp-new")

        assert result.created is True
        assert result.artist.name == "Wet Leg"
        assert result.artist.slug == "wet-leg"
        assert result.artist.spotify_id == "sp-new"
        assert result.artist.ticketmaster_id == "tm-wetleg"
        assert result.artist.image_url == "https://img.example/sp-new/640.jpg"
        assert result.artist.verified is False

    async def test_name_resolving_to_known_spotify_id_returns_existing(
        self,
        artist: ArtistModel,
        service: ArtistAutoImportService,
        spotify: FakeSpotifyClient,
    ) -> None:
        spotify.search_results = [spotify_artist_payload("sp-foo", "Foo Fighters")]

        result = await service.import_artist(artist_name="The Foo Fighters")

        assert result.created is False
        assert result.artist.id == artist.id

    async def test_provider_outage_still_creates_placeholder(
        self,
        service: ArtistAutoImportService,
        spotify: FakeSpotifyClient,
        ticketmaster: FakeTicketmasterClient,
    ) -> None:
        spotify.error = ExternalServiceError("Spotify unreachable", provider="spotify")
        ticketmaster.error = ExternalServiceError("Ticketmaster down", provider="ticketmaster")

        result = await service.import_artist(artist_name="Wet Leg")

        assert result.created is True
        assert result.artist.spotify_id is None
        assert result.artist.ticketmaster_id is None

    async def test_unresolvable_attraction_is_rejected(
        self,
        service: ArtistAutoImportService,
        ticketmaster: FakeTicketmasterClient,
    ) -> None:
        ticketmaster.error = ExternalServiceError("Ticketmaster down", provider="ticketmaster")

        with pytest.raises(ValidationException, match="Could not resolve"):
            await service.import_artist(tm_attraction_id="tm-unknown")

    async def test_unconfigured_spotify_is_not_called(
        self,
        session: AsyncSession,
        spotify: FakeSpotifyClient,
        ticketmaster: FakeTicketmasterClient,
        settings: Settings,
    ) -> None:
        bare = settings.model_copy(
            update={"spotify": SpotifySettings(client_id="", client_secret="")}
        )
        service = ArtistAutoImportService(session, spotify, ticketmaster, bare)

        result = await service.import_artist(artist_name="Wet Leg")

        assert result.created is True
        assert spotify.calls == []
