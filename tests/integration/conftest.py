"""Fixtures for the HTTP-level tests.

Hey future me - seed through app.state.db, NOT the unit-test ``session`` fixture.
That one holds its own engine on the same SQLite file and an open session there
would fight the app's requests for the write lock.
"""

import pytest
from fastapi import FastAPI

from setlistsync.infrastructure.persistence import ArtistModel
from tests.fakes import (
    FakeSetlistFmClient,
    FakeSpotifyClient,
    FakeTicketmasterClient,
    setlistfm_setlist_payload,
    spotify_artist_payload,
    spotify_track_payload,
    tm_event_payload,
    tm_events_page,
)


@pytest.fixture
async def stored_artist(app: FastAPI) -> str:
    """ID of a verified headliner with Spotify and Ticketmaster IDs."""
    async with app.state.db.session_scope() as session:
        model = ArtistModel(
            name="Foo Fighters",
            slug="foo-fighters",
            spotify_id="sp-foo",
            ticketmaster_id="tm-foo",
            verified=True,
        )
        session.add(model)
        await session.flush()
        artist_id = model.id
    return artist_id


@pytest.fixture
def loaded_providers(
    spotify: FakeSpotifyClient,
    ticketmaster: FakeTicketmasterClient,
    setlistfm: FakeSetlistFmClient,
) -> None:
    spotify.artists["sp-foo"] = spotify_artist_payload("sp-foo", "Foo Fighters")
    spotify.top_tracks["sp-foo"] = [
        spotify_track_payload("t1", "Everlong", "sp-foo", "Foo Fighters"),
    ]
    ticketmaster.pages = [
        tm_events_page(
            [
                tm_event_payload("ev1", "Foo Fighters", "2030-09-01"),
                tm_event_payload("ev2", "Foo Fighters", "2030-09-02"),
            ]
        )
    ]
    setlistfm.mbids["Foo Fighters"] = "mbid-foo"
    setlistfm.setlists = [
        setlistfm_setlist_payload(
            "sl1", "01-06-2020", "Foo Fighters", "mbid-foo", songs=["Everlong", "My Hero"]
        )
    ]
