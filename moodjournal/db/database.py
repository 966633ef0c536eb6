"""
Database engine and session factory for MoodJournal.

SQLite is the local default; any SQLAlchemy URL (e.g. MySQL through
DB_HOST/DB_DRIVER) can be configured. Tables are created with create_all;
there is no migration history table.
"""

from typing import Generator

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from moodjournal.core.config import settings
from moodjournal.db.session import Base

DATABASE_URL = settings.DATABASE_URL

ENGINE_INIT_ERROR_MSG: str | None = None


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record) -> None:
    # SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(url: str) -> Engine:
    """Create an engine for ``url``; in-memory SQLite shares one connection."""
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        eng = create_engine(url, **kwargs)
        event.listen(eng, "connect", _enable_sqlite_foreign_keys)
        return eng
    return create_engine(url, pool_pre_ping=True)


def create_session_factory(eng: Engine) -> sessionmaker:
    return sessionmaker(bind=eng, autocommit=False, autoflush=False, expire_on_commit=False)


try:
    engine = create_db_engine(DATABASE_URL)
except Exception as exc:  # pragma: no cover - surface initialization errors
    ENGINE_INIT_ERROR_MSG = f"{exc.__class__.__name__}: {exc}"
    engine = create_db_engine("sqlite://")

SessionLocal = create_session_factory(engine)


# Dependency for FastAPI routes
def get_db() -> Generator:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(eng: Engine | None = None) -> None:
    """Create all tables on ``eng`` (defaults to the application engine)."""
    from moodjournal.models import entry_embedding, journal, mood_analysis, user  # noqa: F401

    target = eng or engine
    Base.metadata.create_all(bind=target)
    with target.connect() as conn:
        conn.execute(text("SELECT 1"))
