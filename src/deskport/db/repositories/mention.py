"""
Mention repository.
"""

from typing import List

from sqlalchemy import select
from sqlalchemy.orm import Session

from deskport.db.repositories.base import BaseRepository
from deskport.models.target import Mention


class MentionRepository(BaseRepository[Mention]):
    """Repository for Mention model."""

    def __init__(self, session: Session):
        super().__init__(Mention, session)

    def get_by_message(self, message_id: int) -> List[Mention]:
        stmt = (
            select(Mention).where(Mention.message_id == message_id).order_by(Mention.id)
        )
        return list(self.session.scalars(stmt))
