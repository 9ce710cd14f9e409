"""SQLAlchemy ORM models for SetlistSync."""

import json
import uuid
from datetime import UTC, date, datetime

# ShowModel has a column called "date", which shadows the type inside its class body
datetime_date = date

import sqlalchemy as sa
from sqlalchemy import (
    Boolean,
    Date,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


# Hey future me, ALL timestamps are UTC-aware. Never store naive datetimes.
def utc_now() -> datetime:
    """Get current UTC time."""
    return datetime.now(UTC)


# SQLite hands DateTime columns back naive even with timezone=True. Use this before
# comparing anything from the DB with utc_now().
def ensure_utc_aware(dt: datetime) -> datetime:
    """Ensure datetime is UTC-aware, assuming naive datetimes are UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


def _uuid() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


# Listen up, ArtistModel is the hub: shows, songs, setlists and stats all point here.
# Each provider ID is unique but nullable - a support act discovered on a Ticketmaster
# event only has ticketmaster_id until the Spotify phase (or an auto-import) fills in more.
# verified=False marks those minimal records.
class ArtistModel(Base):
    """Performer known to the catalog."""

    __tablename__ = "artists"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    spotify_id: Mapped[str | None] = mapped_column(
        String(64), nullable=True, unique=True, index=True
    )
    ticketmaster_id: Mapped[str | None] = mapped_column(
        String(64), nullable=True, unique=True, index=True
    )
    musicbrainz_id: Mapped[str | None] = mapped_column(
        String(36), nullable=True, unique=True, index=True
    )
    image_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    small_image_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    # JSON list serialized as text (SQLite compatible), see genre_list
    genres: Mapped[str | None] = mapped_column(Text, nullable=True)
    popularity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    followers: Mapped[int | None] = mapped_column(Integer, nullable=True)
    external_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Denormalized counters, written by the stats phase
    total_shows: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    upcoming_shows: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_setlists: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_songs: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    last_synced_at: Mapped[datetime | None] = mapped_column(
        sa.DateTime(timezone=True), nullable=True
    )
    songs_synced_at: Mapped[datetime | None] = mapped_column(
        sa.DateTime(timezone=True), nullable=True
    )
    shows_synced_at: Mapped[datetime | None] = mapped_column(
        sa.DateTime(timezone=True), nullable=True
    )
    setlists_synced_at: Mapped[datetime | None] = mapped_column(
        sa.DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

    __table_args__ = (Index("ix_artists_name_lower", func.lower(name)),)

    @property
    def genre_list(self) -> list[str]:
        if not self.genres:
            return []
        value = json.loads(self.genres)
        return [str(g) for g in value] if isinstance(value, list) else []


# Hey future me - venues come from TWO providers that share no ID. Ticketmaster venues are
# keyed by ticketmaster_id; Setlist.fm venues are found through match_key
# (normalized "name|city") and, failing that, a fuzzy match within city_key.
class VenueModel(Base):
    """Physical location where shows happen."""

    __tablename__ = "venues"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    ticketmaster_id: Mapped[str | None] = mapped_column(
        String(64), nullable=True, unique=True, index=True
    )
    setlistfm_id: Mapped[str | None] = mapped_column(
        String(64), nullable=True, unique=True, index=True
    )
    match_key: Mapped[str] = mapped_column(String(512), nullable=False, index=True)
    city_key: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    address: Mapped[str | None] = mapped_column(String(512), nullable=True)
    city: Mapped[str | None] = mapped_column(String(255), nullable=True)
    state: Mapped[str | None] = mapped_column(String(64), nullable=True)
    country: Mapped[str | None] = mapped_column(String(64), nullable=True)
    postal_code: Mapped[str | None] = mapped_column(String(32), nullable=True)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    timezone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    capacity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    website: Mapped[str | None] = mapped_column(String(512), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )


class ShowModel(Base):
    """A dated performance by a headliner at a venue."""

    __tablename__ = "shows"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(512), nullable=False)
    slug: Mapped[str] = mapped_column(String(512), nullable=False, unique=True)
    ticketmaster_id: Mapped[str | None] = mapped_column(
        String(64), nullable=True, unique=True, index=True
    )
    setlistfm_id: Mapped[str | None] = mapped_column(
        String(64), nullable=True, index=True
    )
    headliner_artist_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("artists.id", ondelete="CASCADE"), nullable=False
    )
    venue_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("venues.id", ondelete="SET NULL"), nullable=True
    )
    date: Mapped[datetime_date] = mapped_column(Date, nullable=False)
    start_time: Mapped[str | None] = mapped_column(String(16), nullable=True)
    doors_time: Mapped[str | None] = mapped_column(String(16), nullable=True)
    # 'upcoming' | 'ongoing' | 'completed' | 'cancelled' (plain string for SQLite)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="upcoming")
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    ticket_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    min_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    max_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    currency: Mapped[str] = mapped_column(String(8), nullable=False, default="USD")
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

    __table_args__ = (
        Index("ix_shows_headliner_date_venue", "headliner_artist_id", "date", "venue_id"),
    )


# Headliner has order_index 0, support acts 1..n in billing order.
class ShowArtistModel(Base):
    """Performer on a show's bill."""

    __tablename__ = "show_artists"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    show_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("shows.id", ondelete="CASCADE"), nullable=False
    )
    artist_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("artists.id", ondelete="CASCADE"), nullable=False
    )
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_headliner: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, nullable=False
    )

    __table_args__ = (UniqueConstraint("show_id", "artist_id", name="uq_show_artist"),)


class SongModel(Base):
    """A track, from Spotify or from a performed setlist."""

    __tablename__ = "songs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    title: Mapped[str] = mapped_column(String(512), nullable=False)
    artist_name: Mapped[str] = mapped_column(String(255), nullable=False)
    # normalize_identity(title); the same song spelled two ways shares one key
    title_key: Mapped[str] = mapped_column(String(512), nullable=False, index=True)
    # not unique: a shared track gets one row per artist catalog
    spotify_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    album_name: Mapped[str | None] = mapped_column(String(512), nullable=True)
    album_art_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    release_date: Mapped[str | None] = mapped_column(String(16), nullable=True)
    duration_ms: Mapped[int | None] = mapped_column(Integer, nullable=True)
    popularity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    preview_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    is_explicit: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    isrc: Mapped[str | None] = mapped_column(String(16), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )


class ArtistSongModel(Base):
    """Link between an artist and a song in their catalog."""

    __tablename__ = "artist_songs"

    artist_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("artists.id", ondelete="CASCADE"), primary_key=True
    )
    song_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("songs.id", ondelete="CASCADE"), primary_key=True
    )
    is_primary_artist: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, nullable=False
    )


# Hey future me - an imported (actual) setlist is LOCKED: users can vote on its songs but
# not edit the list. total_votes is owned by the voting feature; sync only reads it.
class SetlistModel(Base):
    """Ordered song list for a show, predicted or actual."""

    __tablename__ = "setlists"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    show_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("shows.id", ondelete="CASCADE"), nullable=False, index=True
    )
    artist_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("artists.id", ondelete="CASCADE"), nullable=False, index=True
    )
    type: Mapped[str] = mapped_column(String(16), nullable=False, default="predicted")
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_locked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    imported_from: Mapped[str | None] = mapped_column(String(32), nullable=True)
    external_id: Mapped[str | None] = mapped_column(
        String(64), nullable=True, unique=True, index=True
    )
    imported_at: Mapped[datetime | None] = mapped_column(
        sa.DateTime(timezone=True), nullable=True
    )
    total_votes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )


class SetlistSongModel(Base):
    """A song at a position within a setlist."""

    __tablename__ = "setlist_songs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    setlist_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("setlists.id", ondelete="CASCADE"), nullable=False, index=True
    )
    song_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("songs.id", ondelete="CASCADE"), nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    set_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    notes: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_played: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    upvotes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    downvotes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, nullable=False
    )


class ArtistStatsModel(Base):
    """Aggregates recalculated at the end of each artist sync."""

    __tablename__ = "artist_stats"

    artist_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("artists.id", ondelete="CASCADE"), primary_key=True
    )
    total_shows: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    upcoming_shows: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_setlists: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_songs: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    avg_setlist_length: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    total_votes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    most_played_song: Mapped[str | None] = mapped_column(String(512), nullable=True)
    most_played_song_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_show_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    calculated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )
