"""
SQLAlchemy models for the target (mobile backup) database.

Only the columns this importer reads or writes are mapped. The real tables
carry many more columns; those keep their server-side defaults because the
ORM leaves unset attributes out of the INSERT.
"""

from typing import Optional

from sqlalchemy import Integer, LargeBinary, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class TargetBase(DeclarativeBase):
    """Base class for target database models."""

    pass


# Message type bits (see the mobile client's MmsSmsColumns.Types)
BASE_INBOX_TYPE = 20
BASE_SENT_TYPE = 23
SECURE_MESSAGE_BIT = 0x800000

# recipient.group_id values of v2 groups are this prefix + lower-case hex id
GROUP_ID_PREFIX = "__signal_group__v2__!"

# quote_type values
QUOTE_TYPE_NORMAL = 0
QUOTE_TYPE_GIFT_BADGE = 1


def message_type_for(incoming: bool) -> int:
    """Return the sms.type / mms.msg_box value for a message direction."""
    return SECURE_MESSAGE_BIT | (BASE_INBOX_TYPE if incoming else BASE_SENT_TYPE)


class Recipient(TargetBase):
    """A person or group known to the mobile installation."""

    __tablename__ = "recipient"

    id: Mapped[int] = mapped_column("_id", Integer, primary_key=True)
    uuid: Mapped[Optional[str]] = mapped_column(Text, nullable=True, index=True)
    group_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True, index=True)

    def __repr__(self) -> str:
        return f"<Recipient(id={self.id}, uuid={self.uuid!r}, group_id={self.group_id!r})>"


class Thread(TargetBase):
    """A conversation thread; matched against, never created."""

    __tablename__ = "thread"

    id: Mapped[int] = mapped_column("_id", Integer, primary_key=True)
    recipient_id: Mapped[Optional[int]] = mapped_column(
        "thread_recipient_id", Integer, nullable=True, index=True
    )

    def __repr__(self) -> str:
        return f"<Thread(id={self.id}, recipient_id={self.recipient_id})>"


class SmsMessage(TargetBase):
    """Simple message: text only, no quote, attachments or mentions."""

    __tablename__ = "sms"

    id: Mapped[int] = mapped_column("_id", Integer, primary_key=True)
    thread_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    address: Mapped[int] = mapped_column(Integer, nullable=False)
    date: Mapped[int] = mapped_column(Integer, nullable=False)
    date_sent: Mapped[int] = mapped_column(Integer, nullable=False)
    date_server: Mapped[int] = mapped_column(Integer, nullable=False, default=-1)
    type: Mapped[int] = mapped_column(Integer, nullable=False)
    body: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    remote_deleted: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    server_guid: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class MmsMessage(TargetBase):
    """Extended message: may carry a quote and owns attachment parts."""

    __tablename__ = "mms"

    id: Mapped[int] = mapped_column("_id", Integer, primary_key=True)
    thread_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    date: Mapped[int] = mapped_column(Integer, nullable=False)
    date_received: Mapped[int] = mapped_column(Integer, nullable=False)
    date_server: Mapped[int] = mapped_column(Integer, nullable=False, default=-1)
    msg_box: Mapped[int] = mapped_column(Integer, nullable=False)
    body: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    address: Mapped[int] = mapped_column(Integer, nullable=False)
    quote_id: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    quote_author: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    quote_body: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    quote_attachment: Mapped[int] = mapped_column(Integer, nullable=False, default=-1)
    quote_missing: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    quote_mentions: Mapped[Optional[bytes]] = mapped_column(LargeBinary, nullable=True)
    remote_deleted: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    quote_type: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class Part(TargetBase):
    """Attachment row owned by an mms message."""

    __tablename__ = "part"

    id: Mapped[int] = mapped_column("_id", Integer, primary_key=True)
    mid: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    ct: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    data_size: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    file_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    unique_id: Mapped[int] = mapped_column(Integer, nullable=False)
    width: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    height: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    quote: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    data_hash: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    cdn_number: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class Reaction(TargetBase):
    """Emoji reaction on either an sms or an mms message."""

    __tablename__ = "reaction"

    id: Mapped[int] = mapped_column("_id", Integer, primary_key=True)
    message_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    is_mms: Mapped[int] = mapped_column(Integer, nullable=False)
    author_id: Mapped[int] = mapped_column(Integer, nullable=False)
    emoji: Mapped[str] = mapped_column(Text, nullable=False)
    date_sent: Mapped[int] = mapped_column(Integer, nullable=False)
    date_received: Mapped[int] = mapped_column(Integer, nullable=False)


class Mention(TargetBase):
    """Mention of a recipient inside an mms message body."""

    __tablename__ = "mention"

    id: Mapped[int] = mapped_column("_id", Integer, primary_key=True)
    thread_id: Mapped[int] = mapped_column(Integer, nullable=False)
    message_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    recipient_id: Mapped[int] = mapped_column(Integer, nullable=False)
    range_start: Mapped[int] = mapped_column(Integer, nullable=False)
    range_length: Mapped[int] = mapped_column(Integer, nullable=False)


# Tables the importer writes to or reads from; checked at startup
REQUIRED_TABLES: tuple[str, ...] = (
    "recipient",
    "thread",
    "sms",
    "mms",
    "part",
    "reaction",
    "mention",
)
