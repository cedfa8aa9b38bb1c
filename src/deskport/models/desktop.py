"""
Table definitions for the source (desktop client) database.

The desktop database is only ever read. These Core tables describe the
columns the importer selects; ``messages`` rows are addressed by SQLite's
implicit ``rowid``.
"""

from sqlalchemy import Column, Integer, MetaData, Table, Text, literal_column

desktop_metadata = MetaData()

conversations_table = Table(
    "conversations",
    desktop_metadata,
    Column("id", Text, primary_key=True),
    Column("json", Text),
    Column("type", Text),
    Column("uuid", Text),
    Column("groupId", Text),
)

messages_table = Table(
    "messages",
    desktop_metadata,
    Column("id", Text, primary_key=True),
    Column("json", Text),
    Column("conversationId", Text, index=True),
    Column("type", Text),
    Column("body", Text),
    Column("sent_at", Integer),
    Column("isErased", Integer),
    Column("serverGuid", Text),
    Column("sourceUuid", Text),
)

messages_rowid = literal_column("messages.rowid").label("rowid")

REQUIRED_TABLES: tuple[str, ...] = ("conversations", "messages")
