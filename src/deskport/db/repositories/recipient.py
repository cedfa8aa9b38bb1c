"""
Recipient repository.
"""

import logging
from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from deskport.db.repositories.base import BaseRepository
from deskport.models.target import GROUP_ID_PREFIX, Recipient

logger = logging.getLogger(__name__)


class RecipientRepository(BaseRepository[Recipient]):
    """
    Repository for Recipient model.

    Also serves as the default recipient provider of the identity resolver:
    it looks identities up by ``uuid`` or ``group_id`` and, when
    ``create_missing`` is set, creates a recipient for an unknown person.
    Groups are never created.
    """

    def __init__(self, session: Session, create_missing: bool = False):
        super().__init__(Recipient, session)
        self.create_missing = create_missing

    def get_by_identity(self, identity: str) -> Optional[Recipient]:
        """
        Get recipient by uuid or group id.

        Args:
            identity: Person uuid or group key

        Returns:
            Lowest-id matching recipient or None
        """
        stmt = (
            select(Recipient)
            .where(or_(Recipient.uuid == identity, Recipient.group_id == identity))
            .order_by(Recipient.id)
            .limit(1)
        )
        return self.session.scalars(stmt).first()

    def recipient_id_for(self, identity: str) -> Optional[int]:
        """
        Resolve an identity string to a recipient id.

        Args:
            identity: Person uuid or group key

        Returns:
            Recipient id, or None if unknown and not creatable
        """
        if not identity:
            return None

        recipient = self.get_by_identity(identity)
        if recipient:
            return recipient.id

        if not self.create_missing or identity.startswith(GROUP_ID_PREFIX):
            return None

        recipient = self.create(uuid=identity)
        logger.info(f"Created recipient {recipient.id} for {identity}")
        return recipient.id
