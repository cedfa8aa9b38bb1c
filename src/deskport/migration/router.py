"""
Message routing: one desktop message to one target message plus children.

A message is written either as a simple ``sms`` row or as an extended ``mms``
row. The choice is made once, before anything is written:

    extended = attachments or mentions or quote or (group and outgoing)

Children (attachments, reactions, mentions) are written after their parent
and each is skipped on its own when it fails.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from deskport.db.repositories import MmsMessageRepository, SmsMessageRepository
from deskport.migration.attachments import AttachmentImporter
from deskport.migration.identity import IdentityResolver, RecipientCache
from deskport.migration.mentions import MentionImporter
from deskport.migration.quotes import QuoteResolver
from deskport.migration.reactions import ReactionImporter, ReactionResolver
from deskport.migration.results import MessageOutcome, Unit, UnitResult
from deskport.models.parsed import DesktopConversation, DesktopMessage
from deskport.models.records import (
    ExtendedMessage,
    MessageCore,
    SimpleMessage,
    TargetMessage,
)

logger = logging.getLogger(__name__)


@dataclass
class MessageContext:
    """Per-conversation state shared by every message of the conversation."""

    conversation: DesktopConversation
    thread_id: int
    key: str  # Partner uuid or group key the thread was matched on
    cache: RecipientCache


def is_extended(message: DesktopMessage, is_group: bool) -> bool:
    """Decide whether a message needs the extended representation."""
    return bool(
        message.attachments
        or message.mentions
        or message.has_quote
        or (is_group and message.is_outgoing)
    )


class MessageRouter:
    """Classify, build and write one message with its children."""

    def __init__(
        self,
        identities: IdentityResolver,
        sms: SmsMessageRepository,
        mms: MmsMessageRepository,
        quotes: QuoteResolver,
        attachments: AttachmentImporter,
        reaction_resolver: ReactionResolver,
        reactions: ReactionImporter,
        mentions: MentionImporter,
    ):
        self.identities = identities
        self.sms = sms
        self.mms = mms
        self.quotes = quotes
        self.attachments = attachments
        self.reaction_resolver = reaction_resolver
        self.reactions = reactions
        self.mentions = mentions

    def _sender_identity(
        self, message: DesktopMessage, context: MessageContext
    ) -> Optional[str]:
        if not context.conversation.is_group:
            return context.conversation.identity
        if message.is_incoming:
            return message.source_uuid
        return context.key

    def build(
        self,
        message: DesktopMessage,
        context: MessageContext,
        address: int,
        extended: bool,
    ) -> TargetMessage:
        """Build the target record for a message whose sender is resolved."""
        core = MessageCore(
            thread_id=context.thread_id,
            address=address,
            timestamp=message.sent_at,
            incoming=message.is_incoming,
            body=message.body,
            remote_deleted=message.is_erased,
        )
        if not extended:
            return SimpleMessage(core=core, server_guid=message.server_guid)
        return ExtendedMessage(
            core=core, quote=self.quotes.resolve(message, context.cache)
        )

    def route(self, message: DesktopMessage, context: MessageContext) -> MessageOutcome:
        """
        Migrate one message.

        Args:
            message: Parsed desktop message
            context: Conversation the message belongs to

        Returns:
            MessageOutcome with the message result and all child results
        """
        if not (message.is_incoming or message.is_outgoing):
            logger.warning(
                f"Message {message.rowid}: unsupported message type "
                f"{message.direction!r}, skipping"
            )
            return MessageOutcome(
                rowid=message.rowid,
                result=UnitResult.skipped(Unit.MESSAGE, "unsupported-type"),
            )

        sender = self._sender_identity(message, context)
        address = self.identities.resolve(sender, context.cache)
        if address is None:
            logger.warning(
                f"Message {message.rowid}: failed to resolve sender {sender!r}, skipping"
            )
            return MessageOutcome(
                rowid=message.rowid,
                result=UnitResult.skipped(Unit.MESSAGE, "unresolved-sender"),
            )

        reactions, children = self.reaction_resolver.resolve(
            message.reactions, context.cache, message.rowid
        )
        children.extend(
            UnitResult.skipped(Unit(kind), "malformed") for kind in message.malformed
        )
        extended = is_extended(message, context.conversation.is_group)
        record = self.build(message, context, address, extended)

        if message.has_quote and record.quote is None:
            children.append(UnitResult.skipped(Unit.QUOTE, "unresolved-author"))

        try:
            if isinstance(record, ExtendedMessage):
                row = self.mms.insert(record)
            else:
                row = self.sms.insert(record)
        except SQLAlchemyError as e:
            logger.warning(f"Message {message.rowid}: failed to insert message: {e}")
            return MessageOutcome(
                rowid=message.rowid,
                result=UnitResult.skipped(Unit.MESSAGE, "insert-failed"),
                extended=extended,
                children=children,
            )

        if isinstance(record, ExtendedMessage):
            if record.quote is not None:
                children.append(UnitResult.inserted(Unit.QUOTE, row.id))
            children.extend(self.attachments.import_attachments(row.id, message))
            children.extend(self.reactions.import_reactions(row.id, True, reactions))
            children.extend(
                self.mentions.import_mentions(
                    context.thread_id, row.id, message, context.cache
                )
            )
        else:
            children.extend(self.reactions.import_reactions(row.id, False, reactions))

        logger.debug(
            f"Message {message.rowid} -> {'mms' if extended else 'sms'} {row.id}"
        )
        return MessageOutcome(
            rowid=message.rowid,
            result=UnitResult.inserted(Unit.MESSAGE, row.id),
            extended=extended,
            children=children,
        )
