"""End-to-end tests for the migration driver."""

import base64
from unittest.mock import patch

from deskport.db.repositories import (
    MmsMessageRepository,
    PartRepository,
    ReactionRepository,
    SmsMessageRepository,
)
from deskport.migration import MigrationDriver, Unit
from deskport.migration.payloads import AttachmentPayloadRegistry

PARTNER_UUID = "93722273-78e3-4136-8640-c8261969714c"
MEMBER_UUID = "0b6cbd4c-8f0a-4a7e-a6c5-5a4c6c1e5a11"
SENT_AT = 1643874290360


def matched_partner(desktop_db, target_db, message_count=1):
    recipient_id = target_db.add_recipient(uuid_=PARTNER_UUID)
    thread_id = target_db.add_thread(recipient_id)
    conversation_id = desktop_db.add_conversation(
        uuid_=PARTNER_UUID, message_count=message_count
    )
    return conversation_id, thread_id, recipient_id


class TestEndToEnd:
    """Full runs against throw-away databases."""

    def test_outgoing_message_with_pdf(
        self, desktop_db, target_db, source_session, target_session, attachments_dir
    ):
        conversation_id, thread_id, recipient_id = matched_partner(desktop_db, target_db)
        desktop_db.add_message(
            conversation_id,
            type="outgoing",
            sent_at=SENT_AT,
            body="qrcode",
            attachments=[
                {
                    "contentType": "application/pdf",
                    "size": 38749,
                    "fileName": "qrcode.pdf",
                    "path": "3f/3f2a",
                }
            ],
        )
        registry = AttachmentPayloadRegistry()

        summary = MigrationDriver(
            source_session,
            target_session,
            attachments_dir=attachments_dir,
            registry=registry,
        ).run()

        assert summary.completed
        assert summary.extended_messages == 1
        assert summary.simple_messages == 0
        assert SmsMessageRepository(target_session).count() == 0

        mms = MmsMessageRepository(target_session).get_all()
        assert len(mms) == 1
        row = mms[0]
        assert row.thread_id == thread_id
        assert row.address == recipient_id
        assert row.body == "qrcode"
        assert row.date == row.date_received == row.date_server == SENT_AT

        parts = PartRepository(target_session).get_by_message(row.id)
        assert len(parts) == 1
        assert parts[0].ct == "application/pdf"
        assert parts[0].data_size == 38749
        assert parts[0].unique_id == SENT_AT
        assert (parts[0].width, parts[0].height) == (0, 0)
        assert registry.entries[0].unique_id == SENT_AT

    def test_messages_migrate_in_row_order(
        self, desktop_db, target_db, source_session, target_session
    ):
        conversation_id, _, _ = matched_partner(desktop_db, target_db, message_count=3)
        for body in ("first", "second", "third"):
            desktop_db.add_message(conversation_id, body=body)

        summary = MigrationDriver(source_session, target_session).run()

        assert summary.simple_messages == 3
        rows = SmsMessageRepository(target_session).get_all()
        assert [r.body for r in rows] == ["first", "second", "third"]

    def test_group_conversation(
        self, desktop_db, target_db, source_session, target_session
    ):
        group_key = "__signal_group__v2__!0102"
        group_recipient = target_db.add_recipient(group_id=group_key)
        member = target_db.add_recipient(uuid_=MEMBER_UUID)
        thread_id = target_db.add_thread(group_recipient)
        conversation_id = desktop_db.add_conversation(
            type="group", group_id=base64.b64encode(bytes([1, 2])).decode()
        )
        desktop_db.add_message(conversation_id, type="incoming", source_uuid=MEMBER_UUID)
        desktop_db.add_message(conversation_id, type="outgoing")

        summary = MigrationDriver(source_session, target_session).run()

        assert summary.simple_messages == 1
        assert summary.extended_messages == 1
        sms = SmsMessageRepository(target_session).get_all()[0]
        mms = MmsMessageRepository(target_session).get_all()[0]
        assert (sms.thread_id, sms.address) == (thread_id, member)
        assert (mms.thread_id, mms.address) == (thread_id, group_recipient)

    def test_reactor_conversation_id(
        self, desktop_db, target_db, source_session, target_session
    ):
        conversation_id, _, _ = matched_partner(desktop_db, target_db)
        member = target_db.add_recipient(uuid_=MEMBER_UUID)
        desktop_db.add_conversation(
            conversation_id="member-conv", uuid_=MEMBER_UUID, message_count=0
        )
        desktop_db.add_message(
            conversation_id,
            reactions=[{"emoji": "👍", "timestamp": 5, "fromId": "member-conv"}],
        )

        MigrationDriver(source_session, target_session).run()

        reactions = ReactionRepository(target_session).get_all()
        assert [r.author_id for r in reactions] == [member]


class TestSkips:
    """Skips are counted, never raised."""

    def test_conversation_without_messages_is_ignored(
        self, desktop_db, target_db, source_session, target_session
    ):
        conversation_id, _, _ = matched_partner(desktop_db, target_db, message_count=0)
        desktop_db.add_message(conversation_id)

        summary = MigrationDriver(source_session, target_session).run()

        assert summary.inserted(Unit.CONVERSATION) == 0
        assert summary.skipped(Unit.CONVERSATION) == 0
        assert SmsMessageRepository(target_session).count() == 0

    def test_unmatched_conversation(self, desktop_db, source_session, target_session):
        conversation_id = desktop_db.add_conversation(uuid_=PARTNER_UUID)
        desktop_db.add_message(conversation_id)

        summary = MigrationDriver(source_session, target_session).run()

        assert summary.completed
        assert summary.skipped(Unit.CONVERSATION) == 1
        assert summary.to_dict()["skip_reasons"] == {"conversation:no-thread": 1}

    def test_malformed_document_skips_only_that_message(
        self, desktop_db, target_db, source_session, target_session
    ):
        conversation_id, _, _ = matched_partner(desktop_db, target_db, message_count=2)
        desktop_db.add_message(conversation_id, raw_json="{broken")
        desktop_db.add_message(conversation_id, body="fine")

        summary = MigrationDriver(source_session, target_session).run()

        assert summary.skipped(Unit.MESSAGE) == 1
        assert summary.inserted(Unit.MESSAGE) == 1
        assert summary.has_skips

    def test_unexpected_error_skips_only_that_message(
        self, desktop_db, target_db, source_session, target_session
    ):
        conversation_id, _, _ = matched_partner(desktop_db, target_db, message_count=3)
        for body in ("first", "bad", "third"):
            desktop_db.add_message(conversation_id, body=body)
        driver = MigrationDriver(source_session, target_session)
        route = driver.router.route

        def failing_route(message, context):
            if message.body == "bad":
                raise RuntimeError("boom")
            return route(message, context)

        with patch.object(driver.router, "route", side_effect=failing_route):
            summary = driver.run()

        assert summary.inserted(Unit.CONVERSATION) == 1
        assert summary.inserted(Unit.MESSAGE) == 2
        assert summary.to_dict()["skip_reasons"] == {"message:unexpected-error": 1}
        rows = SmsMessageRepository(target_session).get_all()
        assert [r.body for r in rows] == ["first", "third"]

    def test_unexpected_error_skips_conversation(
        self, desktop_db, target_db, source_session, target_session
    ):
        conversation_id, _, _ = matched_partner(desktop_db, target_db)
        desktop_db.add_message(conversation_id)
        driver = MigrationDriver(source_session, target_session)

        with patch.object(driver.matcher, "match", side_effect=RuntimeError("boom")):
            summary = driver.run()

        assert summary.completed
        assert summary.to_dict()["skip_reasons"] == {"conversation:unexpected-error": 1}

    def test_quote_range_outside_int32_does_not_stop_conversation(
        self, desktop_db, target_db, source_session, target_session
    ):
        conversation_id, _, _ = matched_partner(desktop_db, target_db, message_count=2)
        desktop_db.add_message(
            conversation_id,
            body="reply",
            quote={
                "id": 1000,
                "authorUuid": PARTNER_UUID,
                "text": "original",
                "bodyRanges": [
                    {"start": 2**31, "length": 1, "mentionUuid": PARTNER_UUID}
                ],
            },
        )
        desktop_db.add_message(conversation_id, body="plain")

        summary = MigrationDriver(source_session, target_session).run()

        assert summary.skipped(Unit.CONVERSATION) == 0
        assert summary.inserted(Unit.MESSAGE) == 2
        assert summary.inserted(Unit.QUOTE) == 1
        mms = MmsMessageRepository(target_session).get_all()
        assert [(m.body, m.quote_id, m.quote_mentions) for m in mms] == [
            ("reply", 1000, None)
        ]
        assert SmsMessageRepository(target_session).get_all()[0].body == "plain"

    def test_malformed_reaction_keeps_message(
        self, desktop_db, target_db, source_session, target_session
    ):
        conversation_id, _, recipient_id = matched_partner(desktop_db, target_db)
        desktop_db.add_message(
            conversation_id,
            reactions=[
                {"emoji": "x", "timestamp": "n/a", "fromId": PARTNER_UUID},
                {"emoji": "👍", "timestamp": 5, "fromId": PARTNER_UUID},
            ],
        )

        summary = MigrationDriver(source_session, target_session).run()

        assert summary.simple_messages == 1
        assert summary.to_dict()["skip_reasons"] == {"reaction:malformed": 1}
        reactions = ReactionRepository(target_session).get_all()
        assert [(r.emoji, r.author_id) for r in reactions] == [("👍", recipient_id)]


class TestMatchAll:
    """Tests for the matching preview."""

    def test_match_all_writes_nothing(
        self, desktop_db, target_db, source_session, target_session
    ):
        conversation_id, thread_id, _ = matched_partner(desktop_db, target_db)
        desktop_db.add_message(conversation_id)
        desktop_db.add_conversation(uuid_=MEMBER_UUID)

        matches = MigrationDriver(source_session, target_session).match_all()

        assert [(c.identity, m.thread_id) for c, m in matches] == [
            (PARTNER_UUID, thread_id),
            (MEMBER_UUID, None),
        ]
        assert SmsMessageRepository(target_session).count() == 0
