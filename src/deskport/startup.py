"""
Startup checks for a Deskport migration.

Validates both databases before anything is written. Fails fast with clear,
actionable error messages when a precondition isn't met.
"""

import logging
import time
from pathlib import Path
from typing import Iterable, Optional

from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError

from deskport.db.connection import create_source_engine, create_target_engine
from deskport.models import desktop, target

logger = logging.getLogger(__name__)


class StartupCheckError(Exception):
    """Raised when a critical startup check fails."""

    def __init__(self, message: str, hint: Optional[str] = None):
        self.message = message
        self.hint = hint
        super().__init__(message)

    def __str__(self) -> str:
        error_msg = f"\n{'='*70}\n❌ STARTUP CHECK FAILED\n{'='*70}\n\n{self.message}\n"
        if self.hint:
            error_msg += f"\n💡 Hint: {self.hint}\n"
        error_msg += f"{'='*70}\n"
        return error_msg


def wal_path(database_path: Path) -> Path:
    """Path of the write-ahead log SQLite keeps next to a database."""
    return database_path.with_name(database_path.name + "-wal")


def _check_file(path: Path, store: str) -> None:
    if not path.exists():
        raise StartupCheckError(
            f"{store} database not found: {path}",
            "Check the path; the database must already be decrypted",
        )
    if not path.is_file():
        raise StartupCheckError(f"{store} database is not a file: {path}")


def _check_tables(engine, path: Path, store: str, required: Iterable[str]) -> None:
    try:
        tables = set(inspect(engine).get_table_names())
    except SQLAlchemyError as e:
        raise StartupCheckError(
            f"Cannot read {store.lower()} database: {path}\nError: {e}",
            "Make sure the file is a decrypted SQLite database",
        ) from e
    finally:
        engine.dispose()

    missing = [name for name in required if name not in tables]
    if missing:
        raise StartupCheckError(
            f"{store} database {path} is missing tables:\n"
            + "\n".join(f"  - {name}" for name in missing),
            "Is this the right database?",
        )


def check_source_database(source_path: Path) -> None:
    """
    Verify the desktop database exists and has the expected tables.

    Raises:
        StartupCheckError: If the database is missing, unreadable or incomplete
    """
    _check_file(source_path, "Source")
    _check_tables(
        create_source_engine(source_path), source_path, "Source", desktop.REQUIRED_TABLES
    )


def check_source_wal(source_path: Path, ignore_wal: bool = False) -> None:
    """
    Refuse a desktop database that still has a write-ahead log.

    Rows in the log are invisible to a read-only connection, so migrating
    would silently lose the newest messages.

    Raises:
        StartupCheckError: If a WAL file exists and ``ignore_wal`` is False
    """
    wal = wal_path(source_path)
    if not wal.exists():
        return
    if ignore_wal:
        logger.warning(f"Ignoring write-ahead log {wal}; recent messages may be missing")
        return
    raise StartupCheckError(
        f"Source database has a write-ahead log: {wal}",
        "Close the desktop client and checkpoint the database first,\n"
        "  or pass --ignore-wal to migrate anyway",
    )


def check_target_database(target_path: Path) -> None:
    """
    Verify the target database exists and has the expected tables.

    Raises:
        StartupCheckError: If the database is missing, unreadable or incomplete
    """
    _check_file(target_path, "Target")
    _check_tables(
        create_target_engine(target_path), target_path, "Target", target.REQUIRED_TABLES
    )


def check_attachments_directory(attachments_dir: Optional[Path]) -> None:
    """Warn when the attachments directory is missing; attachments then migrate
    without file metadata."""
    if attachments_dir is not None and not attachments_dir.is_dir():
        logger.warning(
            f"Attachments directory not found: {attachments_dir}; "
            "attachments will be migrated without file metadata"
        )


def run_all_startup_checks(
    source_path: Path,
    target_path: Path,
    ignore_wal: bool = False,
    attachments_dir: Optional[Path] = None,
) -> None:
    """
    Execute all startup checks.

    Runs checks in order:
    1. Source database
    2. Source write-ahead log
    3. Target database
    4. Attachments directory (warning only)

    Raises:
        StartupCheckError: If any critical check fails
    """
    checks = [
        ("Source Database", lambda: check_source_database(source_path)),
        ("Source WAL", lambda: check_source_wal(source_path, ignore_wal)),
        ("Target Database", lambda: check_target_database(target_path)),
        ("Attachments Directory", lambda: check_attachments_directory(attachments_dir)),
    ]

    for check_name, check_func in checks:
        check_start = time.time()
        check_func()
        check_duration = (time.time() - check_start) * 1000
        logger.debug(f"Startup check {check_name} passed ({check_duration:.1f}ms)")
