"""
Attachment (part) repository.
"""

from typing import List

from sqlalchemy import select
from sqlalchemy.orm import Session

from deskport.db.repositories.base import BaseRepository
from deskport.models.target import Part


class PartRepository(BaseRepository[Part]):
    """Repository for Part model."""

    def __init__(self, session: Session):
        super().__init__(Part, session)

    def get_by_message(self, message_id: int) -> List[Part]:
        """
        Get attachments of an mms message in insertion order.

        Args:
            message_id: mms row id

        Returns:
            List of parts
        """
        stmt = select(Part).where(Part.mid == message_id).order_by(Part.id)
        return list(self.session.scalars(stmt))
