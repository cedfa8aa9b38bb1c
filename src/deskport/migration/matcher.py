"""
Conversation matching: desktop conversation to target thread.

Threads are never created here. A conversation migrates only when exactly one
target thread belongs to its partner or group; no match and an ambiguous
match are both reported as unmatched.
"""

import base64
import binascii
import logging

from sqlalchemy.exc import SQLAlchemyError

from deskport.db.repositories import ThreadRepository
from deskport.exceptions import GroupIdDecodeError
from deskport.migration.results import MatchResult
from deskport.models.parsed import DesktopConversation
from deskport.models.target import GROUP_ID_PREFIX

logger = logging.getLogger(__name__)


def decode_group_id(conversation: DesktopConversation) -> bytes:
    """
    Decode a group conversation's base64 group id.

    Raises:
        GroupIdDecodeError: If the id is missing, not base64, or empty
    """
    if not conversation.group_id:
        raise GroupIdDecodeError(conversation.id, conversation.group_id)
    try:
        raw = base64.b64decode(conversation.group_id, validate=True)
    except (binascii.Error, ValueError) as e:
        raise GroupIdDecodeError(conversation.id, conversation.group_id) from e
    if not raw:
        raise GroupIdDecodeError(conversation.id, conversation.group_id)
    return raw


def group_match_key(group_id: bytes) -> str:
    """
    Build the target group key for raw group id bytes.

    >>> group_match_key(bytes([0x01, 0x02]))
    '__signal_group__v2__!0102'
    """
    return GROUP_ID_PREFIX + group_id.hex()


def conversation_key(conversation: DesktopConversation) -> str:
    """
    Compute the key identifying a conversation's recipient in the target.

    Returns:
        Group key for groups, partner uuid otherwise (may be empty)

    Raises:
        GroupIdDecodeError: If a group id cannot be decoded
    """
    if conversation.is_group:
        return group_match_key(decode_group_id(conversation))
    return conversation.identity or ""


class ConversationMatcher:
    """Match desktop conversations to existing target threads."""

    def __init__(self, threads: ThreadRepository):
        self.threads = threads

    def match(self, conversation: DesktopConversation) -> MatchResult:
        """
        Find the single target thread for a conversation.

        Args:
            conversation: Parsed desktop conversation

        Returns:
            MatchResult with ``thread_id`` set when exactly one thread matches,
            otherwise with a skip reason
        """
        result = MatchResult(conversation_id=conversation.id)

        try:
            key = conversation_key(conversation)
        except GroupIdDecodeError as e:
            logger.warning(f"{e}, skipping conversation")
            result.reason = "group-id-undecodable"
            return result

        result.key = key
        if not key:
            logger.warning(
                f"Conversation {conversation.id} has no partner identity, skipping"
            )
            result.reason = "no-identity"
            return result

        try:
            thread_ids = self.threads.find_ids_by_recipient_key(key)
        except SQLAlchemyError as e:
            logger.warning(
                f"Thread lookup failed for conversation {conversation.id} "
                f"(id: {key}): {e}"
            )
            result.reason = "thread-lookup-failed"
            return result

        result.candidates = len(thread_ids)
        if len(thread_ids) != 1:
            result.reason = "no-thread" if not thread_ids else "ambiguous-thread"
            logger.warning(
                f"Failed to find matching thread for conversation, skipping. "
                f"(id: {key}, candidates: {len(thread_ids)})"
            )
            return result

        result.thread_id = thread_ids[0]
        logger.info(
            f"Matched conversation {conversation.id} ({key}) to thread {result.thread_id}"
        )
        return result
