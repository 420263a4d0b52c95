"""Enums for media entry fields."""

from enum import Enum


class Medium(str, Enum):
    """Top-level category of a tracked item."""

    MOVIE = "Movie"
    TV_SHOW = "TV Show"
    BOOK = "Book"
    GAME = "Game"
    PODCAST = "Podcast"
    THEATRE = "Theatre"
    LIVE_THEATRE = "Live Theatre"


class EntryStatus(str, Enum):
    """Consumption status of an entry."""

    WATCHING = "Watching"
    FINISHED = "Finished"
    DROPPED = "Dropped"
    PLAN_TO_WATCH = "Plan to Watch"
    ON_HOLD = "On Hold"


class SearchMediaType(str, Enum):
    """Media type of a metadata search result."""

    MOVIE = "movie"
    TV = "tv"


class EntryOutcome(str, Enum):
    """Per-entry outcome of a batch enrichment run."""

    SKIPPED = "skipped"
    UPDATED = "updated"
    NO_UPDATE_NEEDED = "no_update_needed"
    LOOKUP_FAILED = "lookup_failed"
    SAVE_FAILED = "save_failed"
