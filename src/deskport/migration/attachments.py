"""
Attachment propagation for extended messages.

Each desktop attachment becomes one ``part`` row. File metadata (exact size,
content hash, pixel dimensions) comes from an ``AttachmentProbe``; the bytes
themselves are handed to a ``PayloadRegistry`` for the backup writer.
"""

import logging
from pathlib import Path
from typing import Optional, Protocol

from PIL import Image, UnidentifiedImageError
from sqlalchemy.exc import SQLAlchemyError

from deskport.db.repositories import PartRepository
from deskport.migration.payloads import PayloadRegistry
from deskport.migration.results import Unit, UnitResult
from deskport.models.parsed import DesktopAttachment, DesktopMessage
from deskport.models.records import AttachmentMetadata
from deskport.utils.hashing import calculate_file_hash

logger = logging.getLogger(__name__)


class AttachmentProbe(Protocol):
    """Inspects an attachment file on disk."""

    def probe(self, path: Path) -> AttachmentMetadata:
        """Return metadata for a file; must not raise."""
        ...


class FileAttachmentProbe:
    """Probe attachment files on the local filesystem."""

    def _dimensions(self, path: Path) -> tuple[int, int]:
        try:
            with Image.open(path) as image:
                return image.size
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError):
            # Not an image (or not one Pillow understands)
            return 0, 0

    def probe(self, path: Path) -> AttachmentMetadata:
        if not path.is_file():
            return AttachmentMetadata.missing()

        try:
            file_size = path.stat().st_size
            data_hash = calculate_file_hash(path)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to read attachment {path}: {e}")
            return AttachmentMetadata.missing()

        width, height = self._dimensions(path)
        return AttachmentMetadata(
            found=True,
            width=width,
            height=height,
            data_hash=data_hash,
            file_size=file_size,
        )


def attachment_unique_id(attachment: DesktopAttachment, sent_at: int) -> int:
    """
    Pick the unique id of an attachment.

    The desktop upload timestamp is used when present and non-zero, otherwise
    the sending time of the owning message.
    """
    if attachment.upload_timestamp:
        return attachment.upload_timestamp
    return sent_at


class AttachmentImporter:
    """Write the attachments of one extended message."""

    def __init__(
        self,
        parts: PartRepository,
        probe: AttachmentProbe,
        registry: PayloadRegistry,
        attachments_dir: Optional[Path] = None,
    ):
        self.parts = parts
        self.probe = probe
        self.registry = registry
        self.attachments_dir = attachments_dir

    def _locate(self, attachment: DesktopAttachment) -> Optional[Path]:
        if not attachment.path or self.attachments_dir is None:
            return None
        return self.attachments_dir / attachment.path

    def _import_one(
        self, message_id: int, message: DesktopMessage, attachment: DesktopAttachment
    ) -> UnitResult:
        path = self._locate(attachment)
        metadata = self.probe.probe(path) if path else AttachmentMetadata.missing()
        if not metadata.found:
            logger.warning(
                f"Message {message.rowid}: attachment {attachment.index} file not "
                f"found ({path}), migrating metadata only"
            )

        unique_id = attachment_unique_id(attachment, message.sent_at)
        if attachment.size is not None:
            data_size = attachment.size
        else:
            data_size = metadata.file_size or 0

        try:
            part = self.parts.create(
                mid=message_id,
                ct=attachment.content_type,
                data_size=data_size,
                file_name=attachment.file_name,
                unique_id=unique_id,
                width=metadata.width,
                height=metadata.height,
                quote=0,
                data_hash=metadata.data_hash,
                cdn_number=attachment.cdn_number,
            )
        except SQLAlchemyError as e:
            logger.warning(
                f"Message {message.rowid}: failed to insert attachment "
                f"{attachment.index}: {e}"
            )
            return UnitResult.skipped(Unit.ATTACHMENT, "insert-failed")

        length = metadata.file_size if metadata.found else data_size
        self.registry.register(
            part.id, unique_id, length or 0, path if metadata.found else None
        )
        return UnitResult.inserted(Unit.ATTACHMENT, part.id)

    def import_attachments(
        self, message_id: int, message: DesktopMessage
    ) -> list[UnitResult]:
        """
        Insert a ``part`` row for every attachment of a message, in order.

        Args:
            message_id: Id of the mms row the attachments belong to
            message: Source message

        Returns:
            One result per attachment; a failed attachment never affects
            the others
        """
        return [
            self._import_one(message_id, message, attachment)
            for attachment in message.attachments
        ]
