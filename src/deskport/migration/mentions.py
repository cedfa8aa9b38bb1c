"""
Mention propagation for extended messages.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError

from deskport.db.repositories import MentionRepository
from deskport.migration.identity import IdentityResolver, RecipientCache
from deskport.migration.results import Unit, UnitResult
from deskport.models.parsed import DesktopMessage

logger = logging.getLogger(__name__)


class MentionImporter:
    """Write the mentions of one extended message."""

    def __init__(self, mentions: MentionRepository, identities: IdentityResolver):
        self.mentions = mentions
        self.identities = identities

    def import_mentions(
        self,
        thread_id: int,
        message_id: int,
        message: DesktopMessage,
        cache: RecipientCache,
    ) -> list[UnitResult]:
        """
        Insert one ``mention`` row per mention body range.

        Args:
            thread_id: Target thread of the message
            message_id: Id of the mms row
            message: Source message
            cache: Conversation-scoped recipient cache

        Returns:
            One result per mention
        """
        results = []
        for mention in message.mentions:
            recipient_id = self.identities.resolve(mention.mention_uuid, cache)
            if recipient_id is None:
                logger.warning(
                    f"Message {message.rowid}: failed to resolve mentioned "
                    f"recipient {mention.mention_uuid}, skipping mention"
                )
                results.append(UnitResult.skipped(Unit.MENTION, "unresolved-recipient"))
                continue

            try:
                row = self.mentions.create(
                    thread_id=thread_id,
                    message_id=message_id,
                    recipient_id=recipient_id,
                    range_start=mention.start or 0,
                    range_length=mention.length or 0,
                )
            except SQLAlchemyError as e:
                logger.warning(
                    f"Message {message.rowid}: failed to insert mention: {e}"
                )
                results.append(UnitResult.skipped(Unit.MENTION, "insert-failed"))
                continue
            results.append(UnitResult.inserted(Unit.MENTION, row.id))
        return results
