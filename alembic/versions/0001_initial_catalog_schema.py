"""initial catalog schema

Revision ID: 0001
Revises:
Create Date: 2026-09-01 10:00:00.000000

Hey future me - this is the whole catalog in one go:

- artists: hub table, one nullable-unique column per provider ID
- venues: ticketmaster_id / setlistfm_id plus match_key + city_key for name matching
- shows + show_artists: the bill, headliner at order_index 0
- songs + artist_songs: Spotify catalog and songs that only appear in setlists
- setlists + setlist_songs: predicted or actual (imported) lists
- artist_stats: aggregates rewritten at the end of every artist sync

Timestamps are timezone-aware. Booleans get server defaults so raw SQL inserts work too.
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "artists",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False, unique=True),
        sa.Column("spotify_id", sa.String(64), nullable=True, unique=True),
        sa.Column("ticketmaster_id", sa.String(64), nullable=True, unique=True),
        sa.Column("musicbrainz_id", sa.String(36), nullable=True, unique=True),
        sa.Column("image_url", sa.String(512), nullable=True),
        sa.Column("small_image_url", sa.String(512), nullable=True),
        sa.Column("genres", sa.Text(), nullable=True),
        sa.Column("popularity", sa.Integer(), nullable=True),
        sa.Column("followers", sa.Integer(), nullable=True),
        sa.Column("external_url", sa.String(512), nullable=True),
        sa.Column("verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("total_shows", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("upcoming_shows", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_setlists", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_songs", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_synced_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("songs_synced_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("shows_synced_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("setlists_synced_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_artists_spotify_id", "artists", ["spotify_id"])
    op.create_index("ix_artists_ticketmaster_id", "artists", ["ticketmaster_id"])
    op.create_index("ix_artists_musicbrainz_id", "artists", ["musicbrainz_id"])
    op.create_index("ix_artists_name_lower", "artists", [sa.text("lower(name)")])

    op.create_table(
        "venues",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False, unique=True),
        sa.Column("ticketmaster_id", sa.String(64), nullable=True, unique=True),
        sa.Column("setlistfm_id", sa.String(64), nullable=True, unique=True),
        sa.Column("match_key", sa.String(512), nullable=False),
        sa.Column("city_key", sa.String(255), nullable=False),
        sa.Column("address", sa.String(512), nullable=True),
        sa.Column("city", sa.String(255), nullable=True),
        sa.Column("state", sa.String(64), nullable=True),
        sa.Column("country", sa.String(64), nullable=True),
        sa.Column("postal_code", sa.String(32), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("timezone", sa.String(64), nullable=True),
        sa.Column("capacity", sa.Integer(), nullable=True),
        sa.Column("website", sa.String(512), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_venues_ticketmaster_id", "venues", ["ticketmaster_id"])
    op.create_index("ix_venues_setlistfm_id", "venues", ["setlistfm_id"])
    op.create_index("ix_venues_match_key", "venues", ["match_key"])
    op.create_index("ix_venues_city_key", "venues", ["city_key"])

    op.create_table(
        "shows",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(512), nullable=False),
        sa.Column("slug", sa.String(512), nullable=False, unique=True),
        sa.Column("ticketmaster_id", sa.String(64), nullable=True, unique=True),
        sa.Column("setlistfm_id", sa.String(64), nullable=True),
        sa.Column(
            "headliner_artist_id",
            sa.String(36),
            sa.ForeignKey("artists.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "venue_id",
            sa.String(36),
            sa.ForeignKey("venues.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.String(16), nullable=True),
        sa.Column("doors_time", sa.String(16), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="upcoming"),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("ticket_url", sa.String(1024), nullable=True),
        sa.Column("min_price", sa.Float(), nullable=True),
        sa.Column("max_price", sa.Float(), nullable=True),
        sa.Column("currency", sa.String(8), nullable=False, server_default="USD"),
        sa.Column("is_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index("ix_shows_ticketmaster_id", "shows", ["ticketmaster_id"])
    op.create_index("ix_shows_setlistfm_id", "shows", ["setlistfm_id"])
    op.create_index(
        "ix_shows_headliner_date_venue", "shows", ["headliner_artist_id", "date", "venue_id"]
    )

    op.create_table(
        "show_artists",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "show_id",
            sa.String(36),
            sa.ForeignKey("shows.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "artist_id",
            sa.String(36),
            sa.ForeignKey("artists.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("order_index", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_headliner", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("show_id", "artist_id", name="uq_show_artist"),
    )

    op.create_table(
        "songs",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("title", sa.String(512), nullable=False),
        sa.Column("artist_name", sa.String(255), nullable=False),
        sa.Column("title_key", sa.String(512), nullable=False),
        sa.Column("spotify_id", sa.String(64), nullable=True),
        sa.Column("album_name", sa.String(512), nullable=True),
        sa.Column("album_art_url", sa.String(512), nullable=True),
        sa.Column("release_date", sa.String(16), nullable=True),
        sa.Column("duration_ms", sa.Integer(), nullable=True),
        sa.Column("popularity", sa.Integer(), nullable=True),
        sa.Column("preview_url", sa.String(512), nullable=True),
        sa.Column("is_explicit", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("isrc", sa.String(16), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_songs_spotify_id", "songs", ["spotify_id"])
    op.create_index("ix_songs_title_key", "songs", ["title_key"])

    op.create_table(
        "artist_songs",
        sa.Column(
            "artist_id",
            sa.String(36),
            sa.ForeignKey("artists.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "song_id",
            sa.String(36),
            sa.ForeignKey("songs.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "is_primary_artist", sa.Boolean(), nullable=False, server_default=sa.true()
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "setlists",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "show_id",
            sa.String(36),
            sa.ForeignKey("shows.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "artist_id",
            sa.String(36),
            sa.ForeignKey("artists.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("type", sa.String(16), nullable=False, server_default="predicted"),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("is_locked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("imported_from", sa.String(32), nullable=True),
        sa.Column("external_id", sa.String(64), nullable=True, unique=True),
        sa.Column("imported_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("total_votes", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_index("ix_setlists_show_id", "setlists", ["show_id"])
    op.create_index("ix_setlists_artist_id", "setlists", ["artist_id"])
    op.create_index("ix_setlists_external_id", "setlists", ["external_id"])

    op.create_table(
        "setlist_songs",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "setlist_id",
            sa.String(36),
            sa.ForeignKey("setlists.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "song_id",
            sa.String(36),
            sa.ForeignKey("songs.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("set_name", sa.String(128), nullable=True),
        sa.Column("notes", sa.String(255), nullable=True),
        sa.Column("is_played", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("upvotes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("downvotes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_setlist_songs_setlist_id", "setlist_songs", ["setlist_id"])

    op.create_table(
        "artist_stats",
        sa.Column(
            "artist_id",
            sa.String(36),
            sa.ForeignKey("artists.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("total_shows", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("upcoming_shows", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_setlists", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_songs", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("avg_setlist_length", sa.Float(), nullable=False, server_default="0"),
        sa.Column("total_votes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("most_played_song", sa.String(512), nullable=True),
        sa.Column(
            "most_played_song_count", sa.Integer(), nullable=False, server_default="0"
        ),
        sa.Column("last_show_date", sa.Date(), nullable=True),
        sa.Column("calculated_at", sa.DateTime(timezone=True), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("artist_stats")
    op.drop_index("ix_setlist_songs_setlist_id", table_name="setlist_songs")
    op.drop_table("setlist_songs")
    op.drop_index("ix_setlists_external_id", table_name="setlists")
    op.drop_index("ix_setlists_artist_id", table_name="setlists")
    op.drop_index("ix_setlists_show_id", table_name="setlists")
    op.drop_table("setlists")
    op.drop_table("artist_songs")
    op.drop_index("ix_songs_title_key", table_name="songs")
    op.drop_index("ix_songs_spotify_id", table_name="songs")
    op.drop_table("songs")
    op.drop_table("show_artists")
    op.drop_index("ix_shows_headliner_date_venue", table_name="shows")
    op.drop_index("ix_shows_setlistfm_id", table_name="shows")
    op.drop_index("ix_shows_ticketmaster_id", table_name="shows")
    op.drop_table("shows")
    op.drop_index("ix_venues_city_key", table_name="venues")
    op.drop_index("ix_venues_match_key", table_name="venues")
    op.drop_index("ix_venues_setlistfm_id", table_name="venues")
    op.drop_index("ix_venues_ticketmaster_id", table_name="venues")
    op.drop_table("venues")
    op.drop_index("ix_artists_name_lower", table_name="artists")
    op.drop_index("ix_artists_musicbrainz_id", table_name="artists")
    op.drop_index("ix_artists_ticketmaster_id", table_name="artists")
    op.drop_index("ix_artists_spotify_id", table_name="artists")
    op.drop_table("artists")
