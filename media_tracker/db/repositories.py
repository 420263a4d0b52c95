"""Repository classes for database operations."""

import json
from typing import Any

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from media_tracker.core.schema import CleanedEntry, EnrichmentDelta, MediaEntry
from media_tracker.db.engine import get_session
from media_tracker.db.models import MediaEntryDB

# Fields stored as JSON arrays
LIST_FIELDS = {"genre": "genre_json", "language": "language_json"}

# Plain columns that may be updated through update_fields
SCALAR_FIELDS = {
    "title", "medium", "type", "season", "episodes", "length", "price",
    "status", "my_rating", "average_rating", "platform", "start_date",
    "finish_date", "time_taken", "poster_url", "imdb_id",
}


def _dump_list(values: list[str] | None) -> str | None:
    return json.dumps(values) if values else None


def _load_list(raw: str | None) -> list[str] | None:
    if not raw:
        return None
    try:
        values = json.loads(raw)
    except json.JSONDecodeError:
        return None
    return values if isinstance(values, list) and values else None


class MediaEntryRepository:
    """Repository for MediaEntry CRUD operations."""

    def __init__(self, session: Session):
        self.session = session

    def create(self, entry: CleanedEntry) -> MediaEntry:
        """
        Create a new media entry in the database.

        Args:
            entry: The cleaned entry to persist.

        Returns:
            The created MediaEntry with its generated id.
        """
        data = entry.model_dump(exclude={"genre", "language"})
        data.pop("id", None)
        db_entry = MediaEntryDB(
            **data,
            genre_json=_dump_list(entry.genre),
            language_json=_dump_list(entry.language),
        )
        self.session.add(db_entry)
        self.session.flush()
        return self._to_domain(db_entry)

    def create_many(self, entries: list[CleanedEntry]) -> list[MediaEntry]:
        """Create several entries in one flush-per-entry pass."""
        return [self.create(entry) for entry in entries]

    def _get_db(self, entry_id: str) -> MediaEntryDB | None:
        stmt = select(MediaEntryDB).where(MediaEntryDB.id == str(entry_id))
        return self.session.execute(stmt).scalar_one_or_none()

    def get_by_id(self, entry_id: str) -> MediaEntry | None:
        """
        Get a media entry by ID.

        Args:
            entry_id: The entry id.

        Returns:
            The MediaEntry if found, None otherwise.
        """
        db_entry = self._get_db(entry_id)
        return self._to_domain(db_entry) if db_entry else None

    def list_all(self, limit: int | None = None) -> list[MediaEntry]:
        """List entries, oldest first."""
        stmt = select(MediaEntryDB).order_by(MediaEntryDB.created_at)
        if limit is not None:
            stmt = stmt.limit(limit)
        return [self._to_domain(e) for e in self.session.execute(stmt).scalars().all()]

    def list_missing_metadata(
        self,
        ids: list[str] | None = None,
        limit: int | None = None,
    ) -> list[MediaEntry]:
        """
        List entries that lack at least one enrichable field.

        Args:
            ids: Restrict to these entry ids.
            limit: Maximum number of entries.

        Returns:
            Matching entries, oldest first.
        """
        stmt = (
            select(MediaEntryDB)
            .where(
                or_(
                    MediaEntryDB.genre_json.is_(None),
                    MediaEntryDB.language_json.is_(None),
                    MediaEntryDB.average_rating.is_(None),
                    MediaEntryDB.length.is_(None),
                    MediaEntryDB.poster_url.is_(None),
                    MediaEntryDB.imdb_id.is_(None),
                )
            )
            .order_by(MediaEntryDB.created_at)
        )
        if ids:
            stmt = stmt.where(MediaEntryDB.id.in_(ids))
        if limit is not None:
            stmt = stmt.limit(limit)
        return [self._to_domain(e) for e in self.session.execute(stmt).scalars().all()]

    def update_fields(self, entry_id: str, fields: dict[str, Any]) -> MediaEntry:
        """
        Partially update an entry.

        Args:
            entry_id: The entry id.
            fields: Field name to new value; other fields are untouched.

        Returns:
            The updated MediaEntry.

        Raises:
            ValueError: If the entry does not exist or a field is unknown.
        """
        db_entry = self._get_db(entry_id)
        if db_entry is None:
            raise ValueError(f"MediaEntry with id {entry_id} not found")

        for name, value in fields.items():
            if name in LIST_FIELDS:
                setattr(db_entry, LIST_FIELDS[name], _dump_list(value))
            elif name in SCALAR_FIELDS:
                setattr(db_entry, name, value)
            else:
                raise ValueError(f"Unknown field: {name}")

        self.session.flush()
        return self._to_domain(db_entry)

    def delete(self, entry_id: str) -> bool:
        """Delete an entry. Returns True if it existed."""
        db_entry = self._get_db(entry_id)
        if db_entry is None:
            return False
        self.session.delete(db_entry)
        self.session.flush()
        return True

    def _to_domain(self, db_entry: MediaEntryDB) -> MediaEntry:
        """Convert database model to domain model."""
        return MediaEntry(
            id=db_entry.id,
            title=db_entry.title,
            medium=db_entry.medium,
            type=db_entry.type,
            season=db_entry.season,
            episodes=db_entry.episodes,
            length=db_entry.length,
            price=db_entry.price,
            status=db_entry.status,
            my_rating=db_entry.my_rating,
            average_rating=db_entry.average_rating,
            platform=db_entry.platform,
            language=_load_list(db_entry.language_json),
            start_date=db_entry.start_date,
            finish_date=db_entry.finish_date,
            time_taken=db_entry.time_taken,
            genre=_load_list(db_entry.genre_json),
            poster_url=db_entry.poster_url,
            imdb_id=db_entry.imdb_id,
        )


class SqlEntryStore:
    """EntryStore backed by the SQLite repository, one transaction per update."""

    async def update(self, entry_id: str, fields: EnrichmentDelta) -> None:
        with get_session() as session:
            MediaEntryRepository(session).update_fields(entry_id, fields)
            session.commit()
