"""
Thread repository.
"""

from typing import List

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from deskport.db.repositories.base import BaseRepository
from deskport.models.target import Recipient, Thread


class ThreadRepository(BaseRepository[Thread]):
    """Repository for Thread model."""

    def __init__(self, session: Session):
        super().__init__(Thread, session)

    def find_ids_by_recipient_key(self, key: str) -> List[int]:
        """
        Get ids of threads whose recipient has the given uuid or group id.

        Args:
            key: Person uuid or group key

        Returns:
            Thread ids in ascending order (empty when nothing matches)
        """
        recipient_ids = select(Recipient.id).where(
            or_(Recipient.uuid == key, Recipient.group_id == key)
        )
        stmt = (
            select(Thread.id)
            .where(Thread.recipient_id.in_(recipient_ids))
            .order_by(Thread.id)
        )
        return list(self.session.scalars(stmt))
