"""
Identity resolution: desktop identity strings to target recipient ids.
"""

import logging
from typing import Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class RecipientProvider(Protocol):
    """
    Looks up (and possibly creates) the target recipient for an identity.

    :class:`deskport.db.repositories.RecipientRepository` is the default
    implementation.
    """

    def recipient_id_for(self, identity: str) -> Optional[int]:
        """
        Return the recipient id for an identity, or None if it cannot be
        resolved or created.
        """
        ...


class RecipientCache:
    """
    Identity to recipient id memo, scoped to one conversation.

    The driver creates a fresh cache per conversation and passes it to every
    resolver call.
    """

    def __init__(self) -> None:
        self._entries: dict[str, int] = {}

    def get(self, identity: str) -> Optional[int]:
        return self._entries.get(identity)

    def put(self, identity: str, recipient_id: int) -> None:
        self._entries[identity] = recipient_id

    def __contains__(self, identity: object) -> bool:
        return identity in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class IdentityResolver:
    """Resolve identities through a cache, falling back to the provider."""

    def __init__(self, provider: RecipientProvider):
        self.provider = provider

    def resolve(self, identity: Optional[str], cache: RecipientCache) -> Optional[int]:
        """
        Resolve an identity string to a recipient id.

        Args:
            identity: Person uuid or group key (None/empty never resolves)
            cache: Conversation-scoped cache

        Returns:
            Recipient id, or None when the caller should skip its unit of work
        """
        if not identity:
            return None

        cached = cache.get(identity)
        if cached is not None:
            return cached

        try:
            recipient_id = self.provider.recipient_id_for(identity)
        except SQLAlchemyError as e:
            logger.warning(f"Recipient lookup failed for {identity}: {e}")
            return None

        if recipient_id is None:
            logger.debug(f"No recipient for identity {identity}")
            return None

        cache.put(identity, recipient_id)
        return recipient_id
