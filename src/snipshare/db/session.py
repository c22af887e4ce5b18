"""Engine, session factory and table helpers for the SnipShare database."""

from __future__ import annotations

from collections.abc import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from snipshare.core.settings import settings


class Base(DeclarativeBase):
    """Declarative base shared by all ORM models."""


# Register the snippet, rate-limit, denylist and settings tables on Base.metadata.
import snipshare.models  # noqa: E402,F401

_database_url = settings.effective_database_url
# SQLite connections are shared across the threadpool FastAPI runs sync endpoints on.
_connect_args = {"check_same_thread": False} if _database_url.startswith("sqlite") else {}

engine = create_engine(
    _database_url,
    connect_args=_connect_args,
    pool_pre_ping=True,
    echo=settings.sql_debug,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Yield a database session for dependency injection."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables() -> None:
    """Create all database tables."""
    Base.metadata.create_all(bind=engine)


def drop_tables() -> None:
    """Drop all database tables."""
    Base.metadata.drop_all(bind=engine)
