"""
Reaction propagation.

Reactions are resolved before their message is written, so a reaction whose
author is unknown is dropped alone and never affects the message.
"""

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from deskport.db.repositories import ReactionRepository
from deskport.migration.identity import IdentityResolver, RecipientCache
from deskport.migration.results import Unit, UnitResult
from deskport.models.parsed import DesktopReaction
from deskport.models.records import ResolvedReaction

logger = logging.getLogger(__name__)


class ReactionResolver:
    """
    Resolve reaction authors to recipient ids.

    Newer desktop versions name the reactor by conversation id instead of
    uuid; ``aliases`` maps such ids back to the identity they stand for.
    """

    def __init__(
        self, identities: IdentityResolver, aliases: Optional[dict[str, str]] = None
    ):
        self.identities = identities
        self.aliases = aliases or {}

    def resolve(
        self, reactions: list[DesktopReaction], cache: RecipientCache, rowid: int
    ) -> tuple[list[ResolvedReaction], list[UnitResult]]:
        """
        Resolve the authors of a message's reactions.

        Returns:
            Tuple of (resolved reactions, skip results for dropped ones)
        """
        resolved = []
        skipped = []
        for reaction in reactions:
            identity = self.aliases.get(reaction.from_id or "", reaction.from_id)
            author_id = self.identities.resolve(identity, cache)
            if author_id is None:
                logger.warning(
                    f"Message {rowid}: failed to resolve reaction author "
                    f"{reaction.from_id!r}, dropping reaction"
                )
                skipped.append(UnitResult.skipped(Unit.REACTION, "unresolved-author"))
                continue
            resolved.append(
                ResolvedReaction(
                    emoji=reaction.emoji,
                    timestamp=reaction.timestamp,
                    author_id=author_id,
                )
            )
        return resolved, skipped


class ReactionImporter:
    """Write pre-resolved reactions for one message."""

    def __init__(self, reactions: ReactionRepository):
        self.reactions = reactions

    def import_reactions(
        self, message_id: int, is_extended: bool, reactions: list[ResolvedReaction]
    ) -> list[UnitResult]:
        """
        Insert one ``reaction`` row per resolved reaction.

        Args:
            message_id: Id of the sms or mms row
            is_extended: True when message_id is an mms row
            reactions: Reactions with resolved authors

        Returns:
            One result per reaction
        """
        results = []
        for reaction in reactions:
            try:
                row = self.reactions.insert(message_id, is_extended, reaction)
            except SQLAlchemyError as e:
                logger.warning(
                    f"Failed to insert reaction {reaction.emoji} on message "
                    f"{message_id}: {e}"
                )
                results.append(UnitResult.skipped(Unit.REACTION, "insert-failed"))
                continue
            results.append(UnitResult.inserted(Unit.REACTION, row.id))
        return results
