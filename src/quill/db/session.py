"""Database session configuration."""

from __future__ import annotations

from collections.abc import Callable, Generator, Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from quill.core.settings import settings


class Base(DeclarativeBase):
    """Declarative base shared by all ORM models."""


# Ensure model modules are imported so that metadata is populated when create_all runs.
import quill.models  # noqa: E402,F401


def enable_sqlite_foreign_keys(target: Engine) -> None:
    """Turn on FK enforcement for SQLite connections so cascades behave like Postgres."""
    if target.dialect.name != "sqlite":
        return

    @event.listens_for(target, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record) -> None:  # pragma: no cover
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = create_engine(
    settings.effective_database_url,
    pool_pre_ping=True,
    echo=settings.sql_debug,
)
enable_sqlite_foreign_keys(engine)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Yield a database session for dependency injection."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory() -> Callable[[], Session]:
    """Return the factory used by work that outlives the request session.

    Background tasks and middlewares open their own sessions through this
    dependency so tests can point them at the test database.
    """
    return SessionLocal


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """Run the block as one unit of work: commit on success, roll back on error.

    On PostgreSQL ``TRANSACTION_TIMEOUT_SECONDS`` bounds every statement and
    every idle gap between them, so a stuck lookup-then-write sequence aborts
    without partial writes.
    """
    if db.get_bind().dialect.name == "postgresql":
        timeout = f"{settings.transaction_timeout_seconds * 1000}"
        for name in ("statement_timeout", "idle_in_transaction_session_timeout"):
            db.execute(
                text("SELECT set_config(:name, :timeout, true)"),
                {"name": name, "timeout": timeout},
            )
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise


def create_tables() -> None:
    """Create all database tables."""
    Base.metadata.create_all(bind=engine)


def drop_tables() -> None:
    """Drop all database tables."""
    Base.metadata.drop_all(bind=engine)
