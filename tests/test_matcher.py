"""Tests for conversation matching."""

import base64
from unittest.mock import Mock

import pytest
from sqlalchemy.exc import OperationalError

from deskport.db.repositories import ThreadRepository
from deskport.exceptions import GroupIdDecodeError
from deskport.migration.matcher import (
    ConversationMatcher,
    conversation_key,
    decode_group_id,
    group_match_key,
)
from deskport.models.parsed import ConversationKind, DesktopConversation

PARTNER_UUID = "93722273-78e3-4136-8640-c8261969714c"


def individual(identity=PARTNER_UUID) -> DesktopConversation:
    return DesktopConversation(
        id="conv-1", kind=ConversationKind.INDIVIDUAL, identity=identity, message_count=1
    )


def group(group_id: str) -> DesktopConversation:
    return DesktopConversation(
        id="conv-g", kind=ConversationKind.GROUP, group_id=group_id, message_count=1
    )


class TestGroupKey:
    """Tests for group key construction."""

    def test_group_match_key(self):
        assert group_match_key(bytes([0x01, 0x02])) == "__signal_group__v2__!0102"

    def test_conversation_key_for_group(self):
        conversation = group(base64.b64encode(bytes([0x01, 0x02])).decode())

        assert conversation_key(conversation) == "__signal_group__v2__!0102"

    def test_hex_is_lower_case(self):
        assert group_match_key(bytes([0xAB, 0xCD])).endswith("abcd")

    def test_conversation_key_for_individual(self):
        assert conversation_key(individual()) == PARTNER_UUID

    @pytest.mark.parametrize("group_id", [None, "", "not base64!!"])
    def test_undecodable_group_id_raises(self, group_id):
        with pytest.raises(GroupIdDecodeError):
            decode_group_id(group(group_id))


class TestConversationMatcher:
    """Tests for ConversationMatcher against a target database."""

    def test_single_thread_matches(self, target_db, target_session):
        recipient_id = target_db.add_recipient(uuid_=PARTNER_UUID)
        thread_id = target_db.add_thread(recipient_id)

        result = ConversationMatcher(ThreadRepository(target_session)).match(individual())

        assert result.matched
        assert result.thread_id == thread_id
        assert result.key == PARTNER_UUID

    def test_group_thread_matches(self, target_db, target_session):
        recipient_id = target_db.add_recipient(group_id="__signal_group__v2__!0102")
        thread_id = target_db.add_thread(recipient_id)
        conversation = group(base64.b64encode(bytes([0x01, 0x02])).decode())

        result = ConversationMatcher(ThreadRepository(target_session)).match(conversation)

        assert result.thread_id == thread_id

    def test_no_thread_is_unmatched(self, target_db, target_session):
        target_db.add_recipient(uuid_=PARTNER_UUID)

        result = ConversationMatcher(ThreadRepository(target_session)).match(individual())

        assert not result.matched
        assert result.reason == "no-thread"
        assert result.candidates == 0

    def test_ambiguous_threads_are_unmatched(self, target_db, target_session):
        recipient_id = target_db.add_recipient(uuid_=PARTNER_UUID)
        target_db.add_thread(recipient_id)
        target_db.add_thread(recipient_id)

        result = ConversationMatcher(ThreadRepository(target_session)).match(individual())

        assert not result.matched
        assert result.reason == "ambiguous-thread"
        assert result.candidates == 2

    def test_matching_is_deterministic(self, target_db, target_session):
        recipient_id = target_db.add_recipient(uuid_=PARTNER_UUID)
        target_db.add_thread(recipient_id)
        matcher = ConversationMatcher(ThreadRepository(target_session))

        first = matcher.match(individual())
        second = matcher.match(individual())

        assert first.thread_id == second.thread_id

    def test_missing_identity_is_unmatched(self, target_session):
        result = ConversationMatcher(ThreadRepository(target_session)).match(
            individual(identity=None)
        )

        assert result.reason == "no-identity"

    def test_undecodable_group_is_unmatched(self, target_session):
        result = ConversationMatcher(ThreadRepository(target_session)).match(
            group("%%%")
        )

        assert result.reason == "group-id-undecodable"

    def test_lookup_failure_is_unmatched(self):
        threads = Mock()
        threads.find_ids_by_recipient_key.side_effect = OperationalError(
            "SELECT", {}, Exception("disk I/O error")
        )

        result = ConversationMatcher(threads).match(individual())

        assert result.reason == "thread-lookup-failed"
