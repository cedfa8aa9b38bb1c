"""
Repository layer for database operations.

Provides a clean API for reading the desktop database and writing the
target database.
"""

from deskport.db.repositories.attachment import PartRepository
from deskport.db.repositories.base import BaseRepository
from deskport.db.repositories.desktop import DesktopRepository
from deskport.db.repositories.mention import MentionRepository
from deskport.db.repositories.message import MmsMessageRepository, SmsMessageRepository
from deskport.db.repositories.reaction import ReactionRepository
from deskport.db.repositories.recipient import RecipientRepository
from deskport.db.repositories.thread import ThreadRepository

__all__ = [
    "BaseRepository",
    "DesktopRepository",
    "MentionRepository",
    "MmsMessageRepository",
    "PartRepository",
    "ReactionRepository",
    "RecipientRepository",
    "SmsMessageRepository",
    "ThreadRepository",
]
