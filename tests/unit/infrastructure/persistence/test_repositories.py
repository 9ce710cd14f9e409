"""Tests for the SQLAlchemy repositories."""

from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession

from setlistsync.infrastructure.persistence import (
    ArtistModel,
    ArtistRepository,
    ArtistStatsRepository,
    SetlistRepository,
    ShowRepository,
    SongRepository,
    VenueRepository,
    serialize_genres,
)


class TestArtistRepository:
    async def test_slug_collision_gets_numeric_suffix(
        self, session: AsyncSession, artist: ArtistModel
    ) -> None:
        repo = ArtistRepository(session)

        second = await repo.create_placeholder("Foo Fighters", spotify_id="sp-other")
        third = await repo.create_placeholder("Foo  Fighters!", spotify_id="sp-third")

        assert artist.slug == "foo-fighters"
        assert second.slug == "foo-fighters-2"
        assert third.slug == "foo-fighters-3"

    async def test_slug_falls_back_to_provider_id(self, session: AsyncSession) -> None:
        created = await ArtistRepository(session).create_placeholder(
            "東京事変", spotify_id="sp-tokyo"
        )
        assert created.slug == "sp-tokyo"

    async def test_upsert_by_spotify_id_updates_in_place(
        self, session: AsyncSession, artist: ArtistModel
    ) -> None:
        repo = ArtistRepository(session)

        updated, created = await repo.upsert_by_spotify_id(
            "sp-foo", "Foo Fighters (Official)", {"popularity": 88, "genres": None}
        )

        assert created is False
        assert updated.id == artist.id
        assert updated.name == "Foo Fighters (Official)"
        assert updated.popularity == 88
        # URLs don't move when the display name changes
        assert updated.slug == "foo-fighters"

    async def test_upsert_by_spotify_id_creates(self, session: AsyncSession) -> None:
        created_artist, created = await ArtistRepository(session).upsert_by_spotify_id(
            "sp-new", "New Band", {"genres": serialize_genres(["indie", ""])}
        )

        assert created is True
        assert created_artist.slug == "new-band"
        assert created_artist.genres == '["indie"]'

    async def test_support_act_adopts_namesake(self, session: AsyncSession) -> None:
        repo = ArtistRepository(session)
        known = await repo.create_placeholder("Support Band", spotify_id="sp-sup")

        adopted, created = await repo.get_or_create_support_act(
            "tm-sup", "support band", image_url="https://img.example/sup.jpg"
        )

        assert created is False
        assert adopted.id == known.id
        assert adopted.ticketmaster_id == "tm-sup"
        assert adopted.image_url == "https://img.example/sup.jpg"

    async def test_support_act_without_namesake_is_unverified(
        self, session: AsyncSession, artist: ArtistModel
    ) -> None:
        repo = ArtistRepository(session)

        # the headliner already has a Ticketmaster ID, so it is not adopted
        support, created = await repo.get_or_create_support_act("tm-other", "Foo Fighters")

        assert created is True
        assert support.id != artist.id
        assert support.verified is False
        assert support.slug == "foo-fighters-2"

    async def test_support_act_lookup_is_idempotent(self, session: AsyncSession) -> None:
        repo = ArtistRepository(session)
        first, _ = await repo.get_or_create_support_act("tm-sup", "Support Band")
        again, created = await repo.get_or_create_support_act("tm-sup", "Support Band")

        assert created is False
        assert again.id == first.id

    async def test_get_by_name_prefers_verified(
        self, session: AsyncSession, artist: ArtistModel
    ) -> None:
        repo = ArtistRepository(session)
        await repo.create_placeholder("foo fighters", ticketmaster_id="tm-dupe")

        found = await repo.get_by_name("FOO FIGHTERS")

        assert found is not None
        assert found.id == artist.id

    async def test_search_escapes_wildcards(
        self, session: AsyncSession, artist: ArtistModel
    ) -> None:
        repo = ArtistRepository(session)
        assert [a.id for a in await repo.search("fight")] == [artist.id]
        assert await repo.search("%") == []


class TestShowRepository:
    async def test_existing_show_only_refreshes_mutable_fields(
        self, session: AsyncSession, artist: ArtistModel
    ) -> None:
        repo = ShowRepository(session)
        show, created = await repo.upsert_by_ticketmaster_id(
            "ev1",
            {
                "name": "Foo Fighters Live",
                "date": date(2026, 9, 1),
                "headliner_artist_id": artist.id,
                "min_price": 45.0,
                "status": "upcoming",
            },
        )
        assert created is True
        assert show.slug == "foo-fighters-live-2026-09-01"

        again, created = await repo.upsert_by_ticketmaster_id(
            "ev1",
            {
                "name": "Renamed Show",
                "date": date(2027, 1, 1),
                "headliner_artist_id": artist.id,
                "min_price": 55.0,
                "status": "cancelled",
            },
        )

        assert created is False
        assert again.id == show.id
        assert again.name == "Foo Fighters Live"
        assert again.date == date(2026, 9, 1)
        assert again.min_price == 55.0
        assert again.status == "cancelled"

    async def test_artist_links_are_unique(
        self, session: AsyncSession, artist: ArtistModel
    ) -> None:
        repo = ShowRepository(session)
        show = await repo.create(
            {"name": "Show", "date": date(2026, 9, 1), "headliner_artist_id": artist.id}
        )
        support = await ArtistRepository(session).create_placeholder("Support Band")

        assert await repo.ensure_artist_link(show.id, artist.id, 0) is True
        assert await repo.ensure_artist_link(show.id, support.id, 1) is True
        assert await repo.ensure_artist_link(show.id, artist.id, 0) is False

        links = await repo.list_show_artists(show.id)
        assert [(link.artist_id, link.is_headliner) for link in links] == [
            (artist.id, True),
            (support.id, False),
        ]

    async def test_find_by_composite_without_venue(
        self, session: AsyncSession, artist: ArtistModel
    ) -> None:
        repo = ShowRepository(session)
        show = await repo.create(
            {"name": "Show", "date": date(2026, 9, 1), "headliner_artist_id": artist.id}
        )

        found = await repo.find_by_composite(artist.id, date(2026, 9, 1), None)
        assert found is not None
        assert found.id == show.id
        assert await repo.find_by_composite(artist.id, date(2026, 9, 2), None) is None


class TestVenueRepository:
    async def test_ticketmaster_id_attaches_to_setlistfm_venue(
        self, session: AsyncSession
    ) -> None:
        repo = VenueRepository(session)
        from_setlistfm, created = await repo.resolve_or_create(
            "The Fillmore", "San Francisco", {"country": "US"}, setlistfm_id="sfm-1"
        )
        assert created is True

        from_tm, created = await repo.upsert_by_ticketmaster_id(
            "KovZ-1", "The Fillmore", {"city": "San Francisco", "capacity": 1150}
        )

        assert created is False
        assert from_tm.id == from_setlistfm.id
        assert from_tm.ticketmaster_id == "KovZ-1"
        assert from_tm.capacity == 1150

    async def test_resolve_only_fills_gaps(self, session: AsyncSession) -> None:
        repo = VenueRepository(session)
        venue, _ = await repo.upsert_by_ticketmaster_id(
            "KovZ-1", "The Fillmore", {"city": "San Francisco", "latitude": 37.784}
        )

        resolved, created = await repo.resolve_or_create(
            "The Fillmore",
            "San Francisco",
            {"latitude": 37.78, "country": "US"},
            setlistfm_id="sfm-1",
        )

        assert created is False
        assert resolved.id == venue.id
        assert resolved.latitude == 37.784
        assert resolved.country == "US"
        assert resolved.setlistfm_id == "sfm-1"

    async def test_same_name_different_city_is_a_new_venue(
        self, session: AsyncSession
    ) -> None:
        repo = VenueRepository(session)
        first, _ = await repo.resolve_or_create("The Fillmore", "San Francisco", {})
        second, created = await repo.resolve_or_create("The Fillmore", "Detroit", {})

        assert created is True
        assert second.id != first.id
        assert second.slug == "the-fillmore-detroit"


class TestSongRepository:
    async def test_title_match_adopts_spotify_id(
        self, session: AsyncSession, artist: ArtistModel
    ) -> None:
        repo = SongRepository(session)
        from_setlist, created = await repo.get_or_create_for_artist(artist, "Everlong")
        assert created is True

        from_spotify, created = await repo.get_or_create_for_artist(
            artist, "everlong", {"spotify_id": "t1", "album_name": "The Colour and the Shape"}
        )

        assert created is False
        assert from_spotify.id == from_setlist.id
        assert from_spotify.spotify_id == "t1"
        assert from_spotify.album_name == "The Colour and the Shape"
        assert await repo.count_for_artist(artist.id) == 1
        assert await repo.linked_spotify_ids(artist.id) == {"t1"}

    async def test_curly_and_straight_apostrophes_are_one_song(
        self, session: AsyncSession, artist: ArtistModel
    ) -> None:
        repo = SongRepository(session)
        from_spotify, _ = await repo.get_or_create_for_artist(
            artist, "Don’t Look Back", {"spotify_id": "t7"}
        )

        from_setlist, created = await repo.get_or_create_for_artist(artist, "Don't Look Back")

        assert created is False
        assert from_setlist.id == from_spotify.id
        assert from_spotify.title_key == "don t look back"
        assert await repo.count_for_artist(artist.id) == 1

    async def test_punctuation_only_titles_stay_apart(
        self, session: AsyncSession, artist: ArtistModel
    ) -> None:
        repo = SongRepository(session)
        dots, _ = await repo.get_or_create_for_artist(artist, "...")
        bangs, created = await repo.get_or_create_for_artist(artist, "!!!")

        assert created is True
        assert dots.id != bangs.id

    async def test_shared_track_gets_a_row_per_artist(
        self, session: AsyncSession, artist: ArtistModel
    ) -> None:
        repo = SongRepository(session)
        foo_song, _ = await repo.get_or_create_for_artist(
            artist, "Everlong", {"spotify_id": "t1"}
        )
        dave = await ArtistRepository(session).create_placeholder("Dave Grohl")

        dave_song, created = await repo.get_or_create_for_artist(
            dave, "Everlong", {"spotify_id": "t1"}
        )

        assert created is True
        assert dave_song.id != foo_song.id
        assert dave_song.artist_name == "Dave Grohl"
        assert dave_song.spotify_id == "t1"
        assert foo_song.artist_name == "Foo Fighters"
        assert [s.id for s in await repo.list_catalog(dave.id)] == [dave_song.id]
        assert [s.id for s in await repo.list_catalog(artist.id)] == [foo_song.id]

    async def test_spotify_id_match_stays_inside_catalog(
        self, session: AsyncSession, artist: ArtistModel
    ) -> None:
        repo = SongRepository(session)
        song, _ = await repo.get_or_create_for_artist(artist, "Everlong", {"spotify_id": "t1"})

        again, created = await repo.get_or_create_for_artist(
            artist, "Everlong (Remastered)", {"spotify_id": "t1"}
        )

        assert created is False
        assert again.id == song.id
        assert await repo.count_for_artist(artist.id) == 1

    async def test_list_catalog_orders_by_popularity(
        self, session: AsyncSession, artist: ArtistModel
    ) -> None:
        repo = SongRepository(session)
        await repo.get_or_create_for_artist(artist, "Deep Cut", {"popularity": 20})
        await repo.get_or_create_for_artist(artist, "Unknown")
        await repo.get_or_create_for_artist(artist, "Hit", {"popularity": 90})

        titles = [s.title for s in await repo.list_catalog(artist.id)]

        assert titles == ["Hit", "Deep Cut", "Unknown"]


class TestSetlistRepository:
    async def test_clear_songs_removes_entries(
        self, session: AsyncSession, artist: ArtistModel
    ) -> None:
        show = await ShowRepository(session).create(
            {"name": "Show", "date": date(2026, 8, 1), "headliner_artist_id": artist.id}
        )
        songs = SongRepository(session)
        a, _ = await songs.get_or_create_for_artist(artist, "A")
        b, _ = await songs.get_or_create_for_artist(artist, "B")

        repo = SetlistRepository(session)
        setlist = await repo.create_actual(show.id, artist.id, external_id="sl1")
        await repo.add_song(setlist.id, a.id, 1, set_name="Main Set")
        await repo.add_song(setlist.id, b.id, 2, set_name="Encore", notes="Encore")

        assert [s.song_id for s in await repo.list_songs(setlist.id)] == [a.id, b.id]
        assert (await repo.get_actual_for_show(show.id)) is not None
        assert (await repo.get_by_external_id("sl1")) is not None

        assert await repo.clear_songs(setlist.id) == 2
        assert await repo.list_songs(setlist.id) == []


class TestArtistStatsRepository:
    async def test_upsert_overwrites(self, session: AsyncSession, artist: ArtistModel) -> None:
        repo = ArtistStatsRepository(session)
        _, created = await repo.upsert(artist.id, {"total_shows": 3, "upcoming_shows": 1})
        stats, created_again = await repo.upsert(
            artist.id, {"total_shows": 4, "upcoming_shows": 2}
        )

        assert created is True
        assert created_again is False
        assert stats.total_shows == 4
        assert stats.upcoming_shows == 2
