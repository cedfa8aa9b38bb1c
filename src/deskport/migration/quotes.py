"""
Quoted-reply reconstruction.
"""

import logging
from typing import Optional

from deskport.migration.identity import IdentityResolver, RecipientCache
from deskport.migration.ranges import (
    BodyRange,
    encode_body_range,
    encode_body_ranges,
)
from deskport.models.parsed import DesktopMessage, DesktopQuote
from deskport.models.records import QuoteDescriptor
from deskport.models.target import QUOTE_TYPE_GIFT_BADGE, QUOTE_TYPE_NORMAL

logger = logging.getLogger(__name__)


class QuoteResolver:
    """Build the quote columns of an extended message."""

    def __init__(self, identities: IdentityResolver):
        self.identities = identities

    def _mention_ranges(
        self, quote: DesktopQuote, cache: RecipientCache, rowid: int
    ) -> list[BodyRange]:
        ranges = []
        for body_range in quote.body_ranges:
            value = body_range.mention_uuid
            if value and self.identities.resolve(value, cache) is None:
                # Keep start/length so offsets stay meaningful to readers
                logger.warning(
                    f"Message {rowid}: quoted mention of unknown recipient {value}, "
                    "encoding without a value"
                )
                value = ""
            candidate = BodyRange(
                start=body_range.start, length=body_range.length, value=value
            )
            try:
                encode_body_range(candidate)
            except ValueError as e:
                logger.warning(f"Message {rowid}: dropping quoted range: {e}")
                continue
            ranges.append(candidate)
        return ranges

    def resolve(
        self, message: DesktopMessage, cache: RecipientCache
    ) -> Optional[QuoteDescriptor]:
        """
        Resolve the quote of a message.

        Args:
            message: Desktop message with a quote
            cache: Conversation-scoped recipient cache

        Returns:
            QuoteDescriptor, or None when the message has no quote or the
            quoted author cannot be resolved
        """
        quote = message.quote
        if quote is None:
            return None

        author_id = self.identities.resolve(quote.author, cache)
        if author_id is None:
            logger.warning(
                f"Message {message.rowid}: failed to find quote author "
                f"{quote.author!r}, migrating without quote"
            )
            return None

        return QuoteDescriptor(
            quoted_timestamp=quote.quoted_timestamp,
            author_id=author_id,
            body=quote.text,
            missing=quote.referenced_message_not_found,
            mentions=encode_body_ranges(
                self._mention_ranges(quote, cache, message.rowid)
            ),
            quote_type=(
                QUOTE_TYPE_GIFT_BADGE if quote.is_gift_badge else QUOTE_TYPE_NORMAL
            ),
            view_once=quote.is_view_once,
        )
