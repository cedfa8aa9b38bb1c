"""Tests for quoted-reply reconstruction."""

from unittest.mock import Mock

from deskport.migration.identity import IdentityResolver, RecipientCache
from deskport.migration.quotes import QuoteResolver
from deskport.migration.ranges import BodyRange, encode_body_ranges
from deskport.models.parsed import DesktopBodyRange, DesktopMessage, DesktopQuote

AUTHOR_UUID = "0b6cbd4c-8f0a-4a7e-a6c5-5a4c6c1e5a11"
MENTIONED_UUID = "d2f1c9a8-3b7e-4c55-9b1a-2e8f0c4d6a77"
UNKNOWN_UUID = "ffffffff-ffff-4fff-bfff-ffffffffffff"


def resolver_for(known: dict) -> QuoteResolver:
    provider = Mock()
    provider.recipient_id_for.side_effect = known.get
    return QuoteResolver(IdentityResolver(provider))


def quoted(quote: DesktopQuote) -> DesktopMessage:
    return DesktopMessage(rowid=1, direction="incoming", sent_at=2000, quote=quote)


class TestQuoteResolver:
    """Tests for QuoteResolver."""

    def test_message_without_quote(self):
        message = DesktopMessage(rowid=1, direction="incoming", sent_at=2000)

        assert resolver_for({}).resolve(message, RecipientCache()) is None

    def test_plain_quote(self):
        message = quoted(DesktopQuote(quoted_timestamp=1000, author=AUTHOR_UUID, text="hi"))

        quote = resolver_for({AUTHOR_UUID: 3}).resolve(message, RecipientCache())

        assert quote.quoted_timestamp == 1000
        assert quote.author_id == 3
        assert quote.body == "hi"
        assert quote.missing is False
        assert quote.mentions is None
        assert quote.quote_type == 0

    def test_unresolvable_author_drops_quote(self):
        message = quoted(DesktopQuote(quoted_timestamp=1000, author=UNKNOWN_UUID))

        assert resolver_for({}).resolve(message, RecipientCache()) is None

    def test_gift_badge_and_missing_flags(self):
        message = quoted(
            DesktopQuote(
                quoted_timestamp=1000,
                author=AUTHOR_UUID,
                referenced_message_not_found=True,
                is_gift_badge=True,
            )
        )

        quote = resolver_for({AUTHOR_UUID: 3}).resolve(message, RecipientCache())

        assert quote.missing is True
        assert quote.quote_type == 1

    def test_mentions_are_encoded(self):
        message = quoted(
            DesktopQuote(
                quoted_timestamp=1000,
                author=AUTHOR_UUID,
                text="@x hi",
                body_ranges=[
                    DesktopBodyRange(start=0, length=1, mention_uuid=MENTIONED_UUID)
                ],
            )
        )

        quote = resolver_for({AUTHOR_UUID: 3, MENTIONED_UUID: 4}).resolve(
            message, RecipientCache()
        )

        assert quote.mentions == encode_body_ranges(
            [BodyRange(start=0, length=1, value=MENTIONED_UUID)]
        )

    def test_unresolvable_mention_keeps_offsets_with_empty_value(self):
        message = quoted(
            DesktopQuote(
                quoted_timestamp=1000,
                author=AUTHOR_UUID,
                body_ranges=[
                    DesktopBodyRange(start=2, length=5, mention_uuid=UNKNOWN_UUID)
                ],
            )
        )

        quote = resolver_for({AUTHOR_UUID: 3}).resolve(message, RecipientCache())

        assert quote.mentions == encode_body_ranges(
            [BodyRange(start=2, length=5, value="")]
        )

    def test_range_outside_int32_is_dropped(self):
        message = quoted(
            DesktopQuote(
                quoted_timestamp=1000,
                author=AUTHOR_UUID,
                body_ranges=[
                    DesktopBodyRange(start=2**31, length=1, mention_uuid=MENTIONED_UUID),
                    DesktopBodyRange(start=0, length=1, mention_uuid=MENTIONED_UUID),
                ],
            )
        )

        quote = resolver_for({AUTHOR_UUID: 3, MENTIONED_UUID: 4}).resolve(
            message, RecipientCache()
        )

        assert quote.author_id == 3
        assert quote.mentions == encode_body_ranges(
            [BodyRange(start=0, length=1, value=MENTIONED_UUID)]
        )

    def test_only_unencodable_ranges_leave_no_mentions(self):
        message = quoted(
            DesktopQuote(
                quoted_timestamp=1000,
                author=AUTHOR_UUID,
                body_ranges=[DesktopBodyRange(start=0, length=-(2**40))],
            )
        )

        quote = resolver_for({AUTHOR_UUID: 3}).resolve(message, RecipientCache())

        assert quote.mentions is None
