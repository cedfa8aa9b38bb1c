"""
Records produced by the migration engine for the target database.

A source message becomes exactly one of ``SimpleMessage`` or
``ExtendedMessage``; both wrap the shared ``MessageCore``.
"""

from dataclasses import dataclass
from typing import ClassVar, Optional, Union

from deskport.models.target import message_type_for


@dataclass(frozen=True)
class QuoteDescriptor:
    """Quoted-reply attributes of an extended message."""

    quoted_timestamp: int
    author_id: int
    body: Optional[str]
    missing: bool
    mentions: Optional[bytes]  # Encoded BodyRangeList, None when no ranges
    quote_type: int
    view_once: bool = False


@dataclass(frozen=True)
class MessageCore:
    """Fields common to both target message shapes."""

    thread_id: int
    address: int  # Recipient id of the effective sender
    timestamp: int  # Source sent_at; used for every date column
    incoming: bool
    body: Optional[str] = None
    remote_deleted: bool = False

    @property
    def type_bits(self) -> int:
        return message_type_for(self.incoming)


@dataclass(frozen=True)
class SimpleMessage:
    """Message written to the ``sms`` table."""

    core: MessageCore
    server_guid: Optional[str] = None

    is_extended: ClassVar[bool] = False


@dataclass(frozen=True)
class ExtendedMessage:
    """Message written to the ``mms`` table."""

    core: MessageCore
    quote: Optional[QuoteDescriptor] = None

    is_extended: ClassVar[bool] = True


TargetMessage = Union[SimpleMessage, ExtendedMessage]


@dataclass(frozen=True)
class ResolvedReaction:
    """A reaction whose author has been resolved to a recipient id."""

    emoji: str
    timestamp: int
    author_id: int


@dataclass(frozen=True)
class AttachmentMetadata:
    """Result of probing an attachment file on disk."""

    found: bool = False
    width: int = 0
    height: int = 0
    data_hash: Optional[str] = None
    file_size: Optional[int] = None

    @classmethod
    def missing(cls) -> "AttachmentMetadata":
        return cls(found=False)
