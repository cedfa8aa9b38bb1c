"""Custom exceptions for Deskport."""

from typing import Optional


class DeskportError(Exception):
    """Base exception for all Deskport errors."""

    pass


class GroupIdDecodeError(DeskportError):
    """Raised when a group conversation's identifier cannot be decoded."""

    def __init__(self, conversation_id: str, group_id: Optional[str]):
        self.conversation_id = conversation_id
        self.group_id = group_id
        super().__init__(
            f"Cannot decode group id {group_id!r} of conversation {conversation_id}"
        )
