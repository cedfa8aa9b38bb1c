"""
Pytest configuration and fixtures for Deskport tests.

Every test gets its own desktop and target SQLite files under ``tmp_path``.
Repositories commit after every row, so tests cannot rely on an outer
transaction being rolled back; throw-away files give the same isolation.
"""

import json
import uuid
from pathlib import Path
from typing import Any, Generator, Optional

import pytest
from sqlalchemy import create_engine, insert
from sqlalchemy.orm import Session

from deskport.db.connection import (
    create_session_factory,
    create_source_engine,
    create_target_engine,
)
from deskport.models.desktop import conversations_table, desktop_metadata, messages_table
from deskport.models.target import Recipient, TargetBase, Thread


class DesktopDatabase:
    """Writable handle on a throw-away desktop database."""

    def __init__(self, path: Path):
        self.path = path
        self.engine = create_engine(f"sqlite:///{path}")
        desktop_metadata.create_all(self.engine)

    def add_conversation(
        self,
        conversation_id: Optional[str] = None,
        type: str = "private",
        uuid_: Optional[str] = None,
        group_id: Optional[str] = None,
        message_count: int = 1,
        document: Optional[dict[str, Any]] = None,
    ) -> str:
        conversation_id = conversation_id or str(uuid.uuid4())
        document = document if document is not None else {"messageCount": message_count}
        with self.engine.begin() as conn:
            conn.execute(
                insert(conversations_table).values(
                    id=conversation_id,
                    json=json.dumps(document),
                    type=type,
                    uuid=uuid_,
                    groupId=group_id,
                )
            )
        return conversation_id

    def add_message(
        self,
        conversation_id: str,
        type: str = "incoming",
        sent_at: int = 1643874290360,
        body: Optional[str] = "hello",
        source_uuid: Optional[str] = None,
        server_guid: Optional[str] = None,
        is_erased: int = 0,
        raw_json: Optional[str] = None,
        **document: Any,
    ) -> int:
        """Insert a message; extra keyword arguments go into its JSON document."""
        with self.engine.begin() as conn:
            result = conn.execute(
                insert(messages_table).values(
                    id=str(uuid.uuid4()),
                    json=raw_json if raw_json is not None else json.dumps(document),
                    conversationId=conversation_id,
                    type=type,
                    body=body,
                    sent_at=sent_at,
                    isErased=is_erased,
                    serverGuid=server_guid,
                    sourceUuid=source_uuid,
                )
            )
            return result.lastrowid

    def close(self) -> None:
        self.engine.dispose()


class TargetDatabase:
    """Throw-away target database with helpers for pre-existing rows."""

    def __init__(self, path: Path):
        self.path = path
        self.engine = create_target_engine(path)
        TargetBase.metadata.create_all(self.engine)
        self.session: Session = create_session_factory(self.engine)()

    def add_recipient(
        self, uuid_: Optional[str] = None, group_id: Optional[str] = None
    ) -> int:
        recipient = Recipient(uuid=uuid_, group_id=group_id)
        self.session.add(recipient)
        self.session.commit()
        return recipient.id

    def add_thread(self, recipient_id: int) -> int:
        thread = Thread(recipient_id=recipient_id)
        self.session.add(thread)
        self.session.commit()
        return thread.id

    def close(self) -> None:
        self.session.close()
        self.engine.dispose()


@pytest.fixture
def desktop_db(tmp_path: Path) -> Generator[DesktopDatabase, None, None]:
    """Create an empty desktop database."""
    db = DesktopDatabase(tmp_path / "db.sqlite")
    yield db
    db.close()


@pytest.fixture
def target_db(tmp_path: Path) -> Generator[TargetDatabase, None, None]:
    """Create an empty target database with all required tables."""
    db = TargetDatabase(tmp_path / "target.sqlite")
    yield db
    db.close()


@pytest.fixture
def target_session(target_db: TargetDatabase) -> Session:
    """Session on the target database."""
    return target_db.session


@pytest.fixture
def source_session(desktop_db: DesktopDatabase) -> Generator[Session, None, None]:
    """Read-only session on the desktop database."""
    engine = create_source_engine(desktop_db.path)
    session = create_session_factory(engine)()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def attachments_dir(tmp_path: Path) -> Path:
    """Empty desktop attachments directory."""
    path = tmp_path / "attachments.noindex"
    path.mkdir()
    return path
