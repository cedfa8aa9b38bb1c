"""
Message repositories for the two target message tables.
"""

from sqlalchemy.orm import Session

from deskport.db.repositories.base import BaseRepository
from deskport.models.records import ExtendedMessage, SimpleMessage
from deskport.models.target import MmsMessage, SmsMessage


class SmsMessageRepository(BaseRepository[SmsMessage]):
    """Repository for SmsMessage model."""

    def __init__(self, session: Session):
        super().__init__(SmsMessage, session)

    def insert(self, message: SimpleMessage) -> SmsMessage:
        """
        Insert a simple message.

        Args:
            message: Simple message record

        Returns:
            Created row
        """
        core = message.core
        return self.create(
            thread_id=core.thread_id,
            address=core.address,
            date=core.timestamp,
            date_sent=core.timestamp,
            date_server=core.timestamp,
            type=core.type_bits,
            body=core.body,
            remote_deleted=int(core.remote_deleted),
            server_guid=message.server_guid,
        )


class MmsMessageRepository(BaseRepository[MmsMessage]):
    """Repository for MmsMessage model."""

    def __init__(self, session: Session):
        super().__init__(MmsMessage, session)

    def insert(self, message: ExtendedMessage) -> MmsMessage:
        """
        Insert an extended message, with its quote columns when quoted.

        Args:
            message: Extended message record

        Returns:
            Created row
        """
        core = message.core
        quote = message.quote
        return self.create(
            thread_id=core.thread_id,
            date=core.timestamp,
            date_received=core.timestamp,
            date_server=core.timestamp,
            msg_box=core.type_bits,
            body=core.body,
            address=core.address,
            quote_id=quote.quoted_timestamp if quote else 0,
            quote_author=quote.author_id if quote else None,
            quote_body=quote.body if quote else None,
            quote_attachment=-1,
            quote_missing=int(quote.missing) if quote else 0,
            quote_mentions=quote.mentions if quote else None,
            remote_deleted=int(core.remote_deleted),
            quote_type=quote.quote_type if quote else 0,
        )
