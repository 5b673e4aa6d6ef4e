"""Database engine and session factory.

Provides database connectivity for the SQLAlchemy document repository.
Only used when DATABASE_URL is configured; without it the service keeps
records in memory.
"""

from contextlib import contextmanager
from typing import Callable, Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

import models  # noqa: F401  registers all tables on Base.metadata
from models.base import Base


def build_engine(database_url: str) -> Engine:
    """Create an engine with connection pooling.

    Pool settings only apply to PostgreSQL (not SQLite).
    """
    engine_kwargs = {
        "pool_pre_ping": True,  # Verify connections before using
        "echo": False,  # Set to True for SQL query logging
    }

    if database_url.startswith("sqlite"):
        engine_kwargs["connect_args"] = {"check_same_thread": False}
    else:
        engine_kwargs["pool_size"] = 5
        engine_kwargs["max_overflow"] = 10

    return create_engine(database_url, **engine_kwargs)


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=engine,
    )


def init_db(engine: Engine) -> None:
    """Create the document tables if they do not exist yet."""
    Base.metadata.create_all(engine)


@contextmanager
def session_scope(session_factory: Callable[[], Session]) -> Generator[Session, None, None]:
    """Context manager for database sessions.

    Usage:
        with session_scope(SessionLocal) as session:
            session.get(DocumentRecordModel, document_id)

    Automatically commits on success, rolls back on exception.
    """
    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
