"""Tests for database persistence layer."""

import asyncio
import tempfile
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from media_tracker.core.schema import CleanedEntry
from media_tracker.db import engine as db_engine
from media_tracker.db.models import Base, MediaEntryDB
from media_tracker.db.repositories import MediaEntryRepository, SqlEntryStore


@pytest.fixture
def temp_db_path():
    """Create a temporary database file."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir) / "test.db"


@pytest.fixture
def engine(temp_db_path):
    """Create a test database engine."""
    url = f"sqlite:///{temp_db_path}"
    engine = create_engine(url, echo=False)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    """Create a database session for testing."""
    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()
    yield session
    session.close()


def make_entry(**overrides) -> CleanedEntry:
    """Create a cleaned entry for testing."""
    data = {
        "title": "Dune",
        "medium": "Movie",
        "status": "Finished",
        "my_rating": 8.0,
        "genre": ["Sci-Fi", "Adventure"],
        "language": ["English"],
    }
    data.update(overrides)
    return CleanedEntry(**data)


class TestMediaEntryRepository:
    """Tests for MediaEntryRepository."""

    def test_create_and_get(self, session: Session) -> None:
        """Test creating and retrieving an entry."""
        repo = MediaEntryRepository(session)
        created = repo.create(make_entry())
        session.commit()

        retrieved = repo.get_by_id(created.id)

        assert retrieved is not None
        assert retrieved.title == "Dune"
        assert retrieved.genre == ["Sci-Fi", "Adventure"]
        assert retrieved.language == ["English"]
        assert retrieved.my_rating == 8.0

    def test_lists_stored_as_json(self, session: Session) -> None:
        """Test list fields are JSON arrays and empty lists are NULL."""
        repo = MediaEntryRepository(session)
        created = repo.create(make_entry(genre=None, language=["Korean"]))
        session.commit()

        row = session.get(MediaEntryDB, created.id)
        assert row.genre_json is None
        assert row.language_json == '["Korean"]'

    def test_get_missing(self, session: Session) -> None:
        """Test getting an unknown id."""
        assert MediaEntryRepository(session).get_by_id("nope") is None

    def test_create_many_and_list(self, session: Session) -> None:
        """Test bulk creation and listing."""
        repo = MediaEntryRepository(session)
        repo.create_many([make_entry(title="A"), make_entry(title="B"), make_entry(title="C")])
        session.commit()

        assert {e.title for e in repo.list_all()} == {"A", "B", "C"}
        assert len(repo.list_all(limit=2)) == 2

    def test_list_missing_metadata(self, session: Session) -> None:
        """Test only entries lacking an enrichable field are listed."""
        repo = MediaEntryRepository(session)
        complete = repo.create(
            make_entry(
                title="Complete",
                average_rating=8.0,
                length="2h",
                poster_url="https://example.org/p.jpg",
                imdb_id="tt1",
            )
        )
        incomplete = repo.create(make_entry(title="Incomplete"))
        session.commit()

        missing = repo.list_missing_metadata()

        assert [e.id for e in missing] == [incomplete.id]
        assert repo.list_missing_metadata(ids=[complete.id]) == []

    def test_update_fields(self, session: Session) -> None:
        """Test a partial update touches only the given fields."""
        repo = MediaEntryRepository(session)
        created = repo.create(make_entry(genre=None))
        session.commit()

        updated = repo.update_fields(created.id, {"genre": ["Drama"], "length": "2h 35m"})
        session.commit()

        assert updated.genre == ["Drama"]
        assert updated.length == "2h 35m"
        assert updated.title == "Dune"
        assert updated.my_rating == 8.0

    def test_update_unknown_entry(self, session: Session) -> None:
        """Test updating an unknown id raises."""
        with pytest.raises(ValueError, match="not found"):
            MediaEntryRepository(session).update_fields("nope", {"length": "2h"})

    def test_update_unknown_field(self, session: Session) -> None:
        """Test updating an unknown field raises."""
        repo = MediaEntryRepository(session)
        created = repo.create(make_entry())
        with pytest.raises(ValueError, match="Unknown field"):
            repo.update_fields(created.id, {"plot": "..."})

    def test_delete(self, session: Session) -> None:
        """Test deleting an entry."""
        repo = MediaEntryRepository(session)
        created = repo.create(make_entry())
        session.commit()

        assert repo.delete(created.id) is True
        assert repo.get_by_id(created.id) is None
        assert repo.delete(created.id) is False


@pytest.fixture
def shared_engine(temp_db_path, monkeypatch):
    """Point the shared engine at a temporary database."""
    monkeypatch.setenv("DATABASE_URL", str(temp_db_path))
    db_engine.reset_engine()
    db_engine.init_db()
    yield temp_db_path
    db_engine.reset_engine()


class TestEngine:
    """Tests for database URL resolution and the shared engine."""

    def test_url_from_path(self, tmp_path, monkeypatch) -> None:
        """Test a plain path becomes a SQLite URL and its directory is created."""
        db_file = tmp_path / "nested" / "media.db"
        monkeypatch.setenv("DATABASE_URL", str(db_file))

        assert db_engine.get_database_url() == f"sqlite:///{db_file}"
        assert db_file.parent.is_dir()

    def test_url_passthrough(self, monkeypatch) -> None:
        """Test full SQLAlchemy URLs are used verbatim."""
        monkeypatch.setenv("DATABASE_URL", "sqlite:///:memory:")
        assert db_engine.get_database_url() == "sqlite:///:memory:"

    def test_user_home_expanded(self, tmp_path, monkeypatch) -> None:
        """Test a leading ~ resolves against the home directory."""
        monkeypatch.setenv("HOME", str(tmp_path))
        monkeypatch.setenv("DATABASE_URL", "~/tracker/media.db")

        assert db_engine.get_database_url() == f"sqlite:///{tmp_path / 'tracker' / 'media.db'}"

    def test_default_path(self, monkeypatch) -> None:
        """Test the default location when DATABASE_URL is unset."""
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.setattr(db_engine, "DEFAULT_DB_PATH", Path(tempfile.mkdtemp()) / "media.db")

        assert db_engine.get_database_url() == f"sqlite:///{db_engine.DEFAULT_DB_PATH}"

    def test_reset_rereads_environment(self, tmp_path, monkeypatch) -> None:
        """Test the shared engine follows DATABASE_URL after a reset."""
        monkeypatch.setenv("DATABASE_URL", str(tmp_path / "first.db"))
        db_engine.reset_engine()
        first = db_engine.get_engine()
        assert db_engine.get_engine() is first

        monkeypatch.setenv("DATABASE_URL", str(tmp_path / "second.db"))
        db_engine.reset_engine()
        second = db_engine.get_engine()

        assert second is not first
        assert second.url.database == str(tmp_path / "second.db")
        db_engine.reset_engine()

    def test_session_rolls_back_on_error(self, shared_engine) -> None:
        """Test uncommitted work is discarded when the block raises."""
        with pytest.raises(RuntimeError):
            with db_engine.get_session() as session:
                MediaEntryRepository(session).create(make_entry())
                raise RuntimeError("boom")

        with db_engine.get_session() as session:
            assert MediaEntryRepository(session).list_all() == []


class TestSqlEntryStore:
    """Tests for the SQLite-backed entry store."""

    def test_update_commits(self, shared_engine) -> None:
        """Test the store persists an update in its own transaction."""
        with db_engine.get_session() as session:
            created = MediaEntryRepository(session).create(make_entry(length=None))
            session.commit()

        asyncio.run(SqlEntryStore().update(created.id, {"length": "2h 35m"}))

        with db_engine.get_session() as session:
            assert MediaEntryRepository(session).get_by_id(created.id).length == "2h 35m"

    def test_update_missing_entry(self, shared_engine) -> None:
        """Test updating an unknown id raises."""
        with pytest.raises(ValueError):
            asyncio.run(SqlEntryStore().update("missing", {"length": "1h"}))
