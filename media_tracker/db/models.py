"""SQLAlchemy ORM models for the Media Tracker database."""

from datetime import UTC, datetime
from uuid import uuid4

from sqlalchemy import DateTime, Float, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utc_now() -> datetime:
    """Return current UTC datetime (timezone-aware)."""
    return datetime.now(UTC)


def _generate_uuid() -> str:
    """Generate a UUID string."""
    return str(uuid4())


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class MediaEntryDB(Base):
    """
    Database model for media entries.

    A flat record per tracked item. List-valued fields (genre,
    language) are stored as JSON arrays, NULL when unknown.
    """

    __tablename__ = "media_entries"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_generate_uuid)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now, onupdate=_utc_now)

    title: Mapped[str] = mapped_column(String(500), default="", index=True)
    medium: Mapped[str | None] = mapped_column(String(50), nullable=True, index=True)
    type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    season: Mapped[str | None] = mapped_column(String(100), nullable=True)
    episodes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    length: Mapped[str | None] = mapped_column(String(100), nullable=True)
    price: Mapped[float | None] = mapped_column(Float, nullable=True)
    status: Mapped[str | None] = mapped_column(String(50), nullable=True, index=True)
    my_rating: Mapped[float | None] = mapped_column(Float, nullable=True)
    average_rating: Mapped[float | None] = mapped_column(Float, nullable=True)
    platform: Mapped[str | None] = mapped_column(String(255), nullable=True)
    language_json: Mapped[str | None] = mapped_column(Text, nullable=True)  # JSON array
    start_date: Mapped[str | None] = mapped_column(String(10), nullable=True)
    finish_date: Mapped[str | None] = mapped_column(String(10), nullable=True)
    time_taken: Mapped[str | None] = mapped_column(String(50), nullable=True)
    genre_json: Mapped[str | None] = mapped_column(Text, nullable=True)  # JSON array
    poster_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    imdb_id: Mapped[str | None] = mapped_column(String(50), nullable=True)

    def __repr__(self) -> str:
        return f"<MediaEntryDB(id={self.id}, title='{self.title}', medium={self.medium})>"
