"""Engine and session handling for the entry store.

The process shares one engine, bound on first use to ``DATABASE_URL``
(a SQLAlchemy URL or a plain SQLite file path, ``~`` allowed) or to
``~/.media_tracker/media_tracker.db``.
"""

import logging
import os
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path.home() / ".media_tracker" / "media_tracker.db"

_engine: Engine | None = None
_SessionLocal: sessionmaker[Session] | None = None


def get_database_url() -> str:
    """
    Resolve the database URL from the environment.

    A value containing ``://`` is used verbatim. Anything else is a file
    path for SQLite; its parent directory is created.
    """
    raw = os.environ.get("DATABASE_URL", "").strip()
    if "://" in raw:
        return raw

    path = Path(raw).expanduser() if raw else DEFAULT_DB_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    return f"sqlite:///{path}"


def get_engine() -> Engine:
    """Get the shared engine, creating it on first use."""
    global _engine, _SessionLocal
    if _engine is None:
        url = get_database_url()
        # Routes run in a threadpool; SQLite must accept cross-thread use
        connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
        _engine = create_engine(url, connect_args=connect_args)
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_engine)
        logger.info(f"Using database {_engine.url.render_as_string(hide_password=True)}")
    return _engine


def reset_engine() -> None:
    """Dispose of the shared engine so the next use re-reads DATABASE_URL."""
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """
    Context manager for database sessions.

    Callers commit explicitly; an exception rolls back pending changes.

    Usage:
        with get_session() as session:
            MediaEntryRepository(session).create(entry)
            session.commit()
    """
    get_engine()
    session = _SessionLocal()
    try:
        yield session
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db() -> None:
    """Create the entry table if it does not exist yet."""
    from media_tracker.db.models import Base

    Base.metadata.create_all(bind=get_engine())
