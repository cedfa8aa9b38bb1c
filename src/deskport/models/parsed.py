"""
Parsed desktop data models.

These are intermediate Python dataclasses representing desktop conversations
and message documents after they are read from the source database and
before they are written to the target database.
"""

import enum
from dataclasses import dataclass, field
from typing import Optional


class ConversationKind(str, enum.Enum):
    """Kind of desktop conversation."""

    INDIVIDUAL = "individual"
    GROUP = "group"


class Direction(str, enum.Enum):
    """Message directions the importer can migrate."""

    INCOMING = "incoming"
    OUTGOING = "outgoing"


@dataclass(frozen=True)
class DesktopConversation:
    """A conversation row from the desktop database."""

    id: str
    kind: ConversationKind
    identity: Optional[str] = None  # Partner uuid (individual conversations)
    group_id: Optional[str] = None  # Base64 group identifier (group conversations)
    message_count: int = 0

    @property
    def is_group(self) -> bool:
        return self.kind is ConversationKind.GROUP


@dataclass
class DesktopAttachment:
    """One entry of a message document's ``attachments`` array."""

    index: int
    content_type: Optional[str] = None
    file_name: Optional[str] = None
    size: Optional[int] = None
    cdn_number: int = 0
    upload_timestamp: Optional[int] = None  # Nullable in the desktop client
    path: Optional[str] = None  # Relative to the attachments directory


@dataclass
class DesktopReaction:
    """One entry of a message document's ``reactions`` array."""

    emoji: str
    timestamp: int
    from_id: Optional[str] = None  # Identity string or reactor's conversation id


@dataclass
class DesktopBodyRange:
    """A range over message text; a mention when ``mention_uuid`` is set."""

    start: Optional[int] = None
    length: Optional[int] = None
    mention_uuid: Optional[str] = None


@dataclass
class DesktopQuote:
    """The ``quote`` sub-document of a reply."""

    quoted_timestamp: int = 0
    author: Optional[str] = None
    text: Optional[str] = None
    body_ranges: list[DesktopBodyRange] = field(default_factory=list)
    attachment_count: int = 0
    referenced_message_not_found: bool = False
    is_gift_badge: bool = False
    is_view_once: bool = False


@dataclass
class DesktopMessage:
    """A message row together with its parsed JSON document."""

    rowid: int
    direction: str  # Raw desktop value; only 'incoming'/'outgoing' are migrated
    sent_at: int
    body: Optional[str] = None
    is_erased: bool = False
    server_guid: Optional[str] = None
    source_uuid: Optional[str] = None
    attachments: list[DesktopAttachment] = field(default_factory=list)
    reactions: list[DesktopReaction] = field(default_factory=list)
    body_ranges: list[DesktopBodyRange] = field(default_factory=list)
    quote: Optional[DesktopQuote] = None
    malformed: list[str] = field(default_factory=list)  # Kinds of dropped children

    @property
    def is_incoming(self) -> bool:
        return self.direction == Direction.INCOMING.value

    @property
    def is_outgoing(self) -> bool:
        return self.direction == Direction.OUTGOING.value

    @property
    def has_quote(self) -> bool:
        return self.quote is not None

    @property
    def mentions(self) -> list[DesktopBodyRange]:
        """Body ranges that mention a recipient (style ranges excluded)."""
        # Deliberately narrower than "any body range": style-only ranges do not
        # make a message extended, so styled text alone stays in sms.
        return [r for r in self.body_ranges if r.mention_uuid]
