"""
Database connection management for Deskport.

Provides engines for the two SQLite stores and session handling. The source
(desktop) database is always opened read-only.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from deskport.config import settings


def source_database_url(path: Path | str) -> str:
    """Build a read-only SQLite URI for the desktop database."""
    resolved = Path(path).expanduser().resolve()
    return f"sqlite:///file:{resolved.as_posix()}?mode=ro&uri=true"


def target_database_url(path: Path | str) -> str:
    """Build a SQLite URL for the target database."""
    resolved = Path(path).expanduser().resolve()
    return f"sqlite:///{resolved.as_posix()}"


def create_source_engine(path: Path | str) -> Engine:
    """
    Create an engine for the decrypted desktop database.

    Args:
        path: Path to the desktop database file

    Returns:
        Engine: Read-only SQLite engine
    """
    return create_engine(source_database_url(path), echo=settings.sql_echo)


def create_target_engine(path: Path | str) -> Engine:
    """
    Create an engine for the target database.

    Args:
        path: Path to the target database file

    Returns:
        Engine: SQLite engine
    """
    return create_engine(target_database_url(path), echo=settings.sql_echo)


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """
    Create a session factory bound to an engine.

    Objects are not expired on commit: the importer commits after every row
    and keeps reading generated ids afterwards.
    """
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=engine,
    )


@contextmanager
def session_scope(engine: Engine) -> Generator[Session, None, None]:
    """
    Context manager for database sessions with automatic cleanup.

    Yields:
        Session: A SQLAlchemy session

    Example:
        >>> with session_scope(engine) as db:
        >>>     db.add(Recipient(uuid="..."))
        >>>     # Commits automatically on success
        >>>     # Rolls back on exception
    """
    session = create_session_factory(engine)()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
