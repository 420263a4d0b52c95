"""Canonical Pydantic v2 models for media entries and import results."""

from typing import Any

from pydantic import BaseModel, Field, field_validator

from media_tracker.core.enums import SearchMediaType

# Placeholder values that mean "no value" in pasted or AI-cleaned data
NULL_MARKERS = {"", "n/a", "-"}

RawRow = dict[str, Any]
EnrichmentDelta = dict[str, Any]


def is_blank(value: Any) -> bool:
    """Return True for None and the string null markers ("", "N/A", "-")."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip().lower() in NULL_MARKERS
    if isinstance(value, list):
        return len(value) == 0
    return False


class CleanedEntry(BaseModel):
    """A normalized media entry ready to be persisted."""

    title: str
    medium: str | None = None
    type: str | None = None
    season: str | None = None
    episodes: int | None = None
    length: str | None = None
    price: float | None = None
    status: str | None = None
    my_rating: float | None = None
    average_rating: float | None = None
    platform: str | None = None
    language: list[str] | None = None
    start_date: str | None = None
    finish_date: str | None = None
    time_taken: str | None = None
    genre: list[str] | None = None
    poster_url: str | None = None
    imdb_id: str | None = None

    @field_validator("title", mode="before")
    @classmethod
    def _title_required(cls, v: Any) -> str:
        if v is None or not str(v).strip():
            raise ValueError("Title is required")
        return str(v).strip()

    @field_validator(
        "medium", "type", "season", "length", "status", "platform",
        "start_date", "finish_date", "time_taken", "poster_url", "imdb_id",
        mode="before",
    )
    @classmethod
    def _blank_to_none(cls, v: Any) -> Any:
        if is_blank(v):
            return None
        return str(v).strip()

    @field_validator(
        "episodes", "price", "my_rating", "average_rating", mode="before"
    )
    @classmethod
    def _blank_number_to_none(cls, v: Any) -> Any:
        return None if is_blank(v) else v

    @field_validator("genre", "language", mode="before")
    @classmethod
    def _split_list(cls, v: Any) -> list[str] | None:
        if is_blank(v):
            return None
        if isinstance(v, str):
            items = [item.strip() for item in v.split(",")]
        else:
            items = [str(item).strip() for item in v]
        items = [item for item in items if item]
        return items or None


class MediaEntry(CleanedEntry):
    """A persisted media entry.

    Stored rows may have lost their title; those load with an empty
    title and are skipped by enrichment.
    """

    id: str

    @field_validator("title", mode="before")
    @classmethod
    def _title_required(cls, v: Any) -> str:
        return "" if v is None else str(v).strip()


class ImportBatchResult(BaseModel):
    """Structured output of the AI cleaning stage."""

    entries: list[CleanedEntry] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    raw_count: int = 0


class SearchResult(BaseModel):
    """Provider-independent metadata search hit.

    The id encodes the provider: ``tmdb_<type>_<id>`` or ``omdb_<imdbId>``.
    """

    id: str
    title: str
    year: str | None = None
    poster_url: str | None = None
    media_type: SearchMediaType
    imdb_id: str | None = None

    @property
    def provider(self) -> str:
        """Name of the provider that produced this result."""
        return self.id.split("_", 1)[0]


class MediaMetadata(BaseModel):
    """Unified result of a single-title metadata lookup."""

    title: str | None = None
    poster_url: str | None = None
    genre: list[str] | None = None
    language: str | None = None
    average_rating: float | None = None
    length: str | None = None
    type: str | None = None
    episodes: int | None = None
    season: str | None = None
    year: str | None = None
    plot: str | None = None
    imdb_id: str | None = None
