"""Database initialization and persistence layer."""

from media_tracker.db.engine import (
    get_database_url,
    get_engine,
    get_session,
    init_db,
    reset_engine,
)
from media_tracker.db.models import Base, MediaEntryDB
from media_tracker.db.repositories import MediaEntryRepository, SqlEntryStore

__all__ = [
    # Engine
    "get_database_url",
    "get_engine",
    "get_session",
    "init_db",
    "reset_engine",
    # Models
    "Base",
    "MediaEntryDB",
    # Repositories
    "MediaEntryRepository",
    "SqlEntryStore",
]
