"""
Desktop (source) database reader.
"""

from typing import Any, List

from sqlalchemy import literal_column, select
from sqlalchemy.orm import Session

from deskport.models.desktop import conversations_table, messages_rowid, messages_table


class DesktopRepository:
    """Read-only queries against the desktop database."""

    def __init__(self, session: Session):
        self.session = session

    def list_conversation_rows(self) -> List[dict[str, Any]]:
        """
        Get all conversation rows in rowid order.

        Returns:
            List of row mappings (``id``, ``json``, ``type``, ``uuid``, ``groupId``)
        """
        stmt = select(
            conversations_table.c.id,
            conversations_table.c.json,
            conversations_table.c.type,
            conversations_table.c.uuid,
            conversations_table.c.groupId,
        ).order_by(literal_column("conversations.rowid"))
        return [dict(row._mapping) for row in self.session.execute(stmt)]

    def list_message_rows(self, conversation_id: str) -> List[dict[str, Any]]:
        """
        Get the message rows of a conversation in rowid order.

        Args:
            conversation_id: Desktop conversation id

        Returns:
            List of row mappings including ``rowid``
        """
        stmt = (
            select(
                messages_rowid,
                messages_table.c.json,
                messages_table.c.type,
                messages_table.c.body,
                messages_table.c.sent_at,
                messages_table.c.isErased,
                messages_table.c.serverGuid,
                messages_table.c.sourceUuid,
            )
            .where(messages_table.c.conversationId == conversation_id)
            .order_by(literal_column("messages.rowid"))
        )
        return [dict(row._mapping) for row in self.session.execute(stmt)]

    def conversation_identities(self) -> dict[str, str]:
        """
        Map desktop conversation ids to their partner uuid.

        Reactions name their author by conversation id in newer desktop
        versions; this map turns such ids back into identities.

        Returns:
            Dict of conversation id to uuid for conversations with a uuid
        """
        stmt = select(conversations_table.c.id, conversations_table.c.uuid).where(
            conversations_table.c.uuid.is_not(None),
            conversations_table.c.uuid != "",
        )
        return {row.id: row.uuid for row in self.session.execute(stmt)}
