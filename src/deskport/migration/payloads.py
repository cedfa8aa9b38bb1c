"""
Attachment payload registry.

Attachment rows are written by the importer, but their bytes are packaged
later by whatever writes the final backup. The registry remembers which file
belongs to which new attachment so that step can find it.
"""

import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Optional, Protocol

logger = logging.getLogger(__name__)


class PayloadRegistry(Protocol):
    """Receives every attachment whose bytes must be included in the output."""

    def register(
        self,
        attachment_id: int,
        unique_id: int,
        length: int,
        source_path: Optional[Path] = None,
    ) -> None: ...


@dataclass(frozen=True)
class PayloadEntry:
    """One attachment payload to include in the output."""

    attachment_id: int
    unique_id: int
    length: int
    source_path: Optional[str] = None


class AttachmentPayloadRegistry:
    """In-memory payload registry that can be written out as a JSON manifest."""

    def __init__(self) -> None:
        self._entries: dict[tuple[int, int], PayloadEntry] = {}

    def register(
        self,
        attachment_id: int,
        unique_id: int,
        length: int,
        source_path: Optional[Path] = None,
    ) -> None:
        key = (attachment_id, unique_id)
        if key in self._entries:
            logger.warning(
                f"Attachment payload {attachment_id}/{unique_id} registered twice, "
                "keeping the latest"
            )
        self._entries[key] = PayloadEntry(
            attachment_id=attachment_id,
            unique_id=unique_id,
            length=length,
            source_path=str(source_path) if source_path else None,
        )

    @property
    def entries(self) -> list[PayloadEntry]:
        return list(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def total_bytes(self) -> int:
        return sum(entry.length for entry in self._entries.values())

    def write_manifest(self, path: Path) -> None:
        """
        Write all registered payloads to a JSON manifest.

        Args:
            path: Destination file (parent directories are created)
        """
        path.parent.mkdir(parents=True, exist_ok=True)
        manifest = {
            "attachments": [asdict(entry) for entry in self.entries],
            "total_bytes": self.total_bytes(),
        }
        path.write_text(json.dumps(manifest, indent=2), encoding="utf-8")
        logger.info(f"Wrote payload manifest with {len(self)} attachments to {path}")
