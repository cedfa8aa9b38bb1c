"""
Reaction repository.
"""

from typing import List

from sqlalchemy import select
from sqlalchemy.orm import Session

from deskport.db.repositories.base import BaseRepository
from deskport.models.records import ResolvedReaction
from deskport.models.target import Reaction


class ReactionRepository(BaseRepository[Reaction]):
    """Repository for Reaction model."""

    def __init__(self, session: Session):
        super().__init__(Reaction, session)

    def insert(
        self, message_id: int, is_mms: bool, reaction: ResolvedReaction
    ) -> Reaction:
        """
        Insert a reaction; the single source timestamp fills both dates.

        Args:
            message_id: Id of the sms or mms row
            is_mms: Whether message_id refers to the mms table
            reaction: Reaction with resolved author

        Returns:
            Created row
        """
        return self.create(
            message_id=message_id,
            is_mms=int(is_mms),
            author_id=reaction.author_id,
            emoji=reaction.emoji,
            date_sent=reaction.timestamp,
            date_received=reaction.timestamp,
        )

    def get_by_message(self, message_id: int, is_mms: bool) -> List[Reaction]:
        stmt = (
            select(Reaction)
            .where(Reaction.message_id == message_id, Reaction.is_mms == int(is_mms))
            .order_by(Reaction.id)
        )
        return list(self.session.scalars(stmt))
