"""
Parser for desktop conversation rows and message documents.

Each desktop ``messages`` row stores most of the message in a JSON document.
The helpers here turn a row (column values plus that document) into the
typed dataclasses of :mod:`deskport.models.parsed`. Column values win over
document values when both are present.
"""

import json
import logging
from typing import Any, Callable, Mapping, Optional

from deskport.models.parsed import (
    ConversationKind,
    DesktopAttachment,
    DesktopBodyRange,
    DesktopConversation,
    DesktopMessage,
    DesktopQuote,
    DesktopReaction,
)
from deskport.parsers.base import ParseDataError, ParseFormatError

logger = logging.getLogger(__name__)


def load_document(raw: Optional[str]) -> dict[str, Any]:
    """
    Decode a JSON document column.

    Args:
        raw: Column value (may be None for rows without a document)

    Returns:
        Decoded document, empty dict when the column is empty

    Raises:
        ParseFormatError: If the value is not a JSON object
    """
    if raw is None or raw == "":
        return {}
    try:
        document = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise ParseFormatError(f"Invalid JSON document: {e}") from e
    if not isinstance(document, dict):
        raise ParseFormatError(
            f"Expected a JSON object, got {type(document).__name__}"
        )
    return document


def _as_int(value: Any, field: str) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool):
        return int(value)
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ParseDataError(f"Field '{field}' is not an integer: {value!r}") from e


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true")
    return bool(value)


def _as_list(document: Mapping[str, Any], key: str) -> list[Any]:
    value = document.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ParseDataError(f"Field '{key}' is not an array")
    return value


def _as_object(value: Any, field: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ParseDataError(f"Entry of '{field}' is not an object")
    return value


def parse_conversation(row: Mapping[str, Any]) -> DesktopConversation:
    """
    Parse a ``conversations`` row.

    Args:
        row: Mapping with ``id``, ``type``, ``uuid``, ``groupId`` and ``json``

    Returns:
        DesktopConversation (``type == 'group'`` is a group, anything else
        an individual conversation)
    """
    document = load_document(row.get("json"))
    kind = (
        ConversationKind.GROUP
        if row.get("type") == "group"
        else ConversationKind.INDIVIDUAL
    )
    return DesktopConversation(
        id=str(row["id"]),
        kind=kind,
        identity=row.get("uuid") or document.get("uuid"),
        group_id=row.get("groupId") or document.get("groupId"),
        message_count=_as_int(document.get("messageCount"), "messageCount") or 0,
    )


def _parse_body_range(entry: Mapping[str, Any], field: str) -> DesktopBodyRange:
    return DesktopBodyRange(
        start=_as_int(entry.get("start"), f"{field}.start"),
        length=_as_int(entry.get("length"), f"{field}.length"),
        mention_uuid=entry.get("mentionUuid"),
    )


def _parse_attachment(entry: Mapping[str, Any], index: int) -> DesktopAttachment:
    return DesktopAttachment(
        index=index,
        content_type=entry.get("contentType"),
        file_name=entry.get("fileName"),
        size=_as_int(entry.get("size"), "attachments.size"),
        cdn_number=_as_int(entry.get("cdnNumber"), "attachments.cdnNumber") or 0,
        upload_timestamp=_as_int(
            entry.get("uploadTimestamp"), "attachments.uploadTimestamp"
        ),
        path=entry.get("path"),
    )


def _parse_reaction(entry: Mapping[str, Any], index: int) -> DesktopReaction:
    emoji = entry.get("emoji")
    timestamp = _as_int(entry.get("timestamp"), "reactions.timestamp")
    if not emoji or timestamp is None:
        raise ParseDataError("Reaction has no emoji or timestamp")
    return DesktopReaction(emoji=emoji, timestamp=timestamp, from_id=entry.get("fromId"))


class _ChildParser:
    """
    Parse the child entries of one message document.

    A malformed entry is dropped on its own: it is logged and its kind
    (``attachment``, ``reaction``, ``mention`` or ``quote``) is added to
    ``malformed`` so it can be counted as a skipped unit.
    """

    def __init__(self, rowid: Any):
        self.rowid = rowid
        self.malformed: list[str] = []

    def _drop(self, kind: str, detail: str) -> None:
        logger.warning(f"Message {self.rowid}: dropping malformed {kind}: {detail}")
        self.malformed.append(kind)

    def entries(
        self,
        document: Mapping[str, Any],
        key: str,
        kind: str,
        parse: Callable[[Mapping[str, Any], int], Any],
    ) -> list[Any]:
        try:
            raw = _as_list(document, key)
        except ParseDataError as e:
            self._drop(kind, str(e))
            return []
        parsed = []
        for index, entry in enumerate(raw):
            try:
                parsed.append(parse(_as_object(entry, key), index))
            except ParseDataError as e:
                self._drop(kind, f"{key}[{index}]: {e}")
        return parsed

    def body_ranges(
        self, document: Mapping[str, Any], field: str, counted: bool
    ) -> list[DesktopBodyRange]:
        """Parse ranges; only dropped mentions are counted, and only if ``counted``."""
        try:
            raw = _as_list(document, "bodyRanges")
        except ParseDataError as e:
            logger.warning(f"Message {self.rowid}: ignoring {field}: {e}")
            return []
        ranges = []
        for index, entry in enumerate(raw):
            try:
                ranges.append(_parse_body_range(_as_object(entry, field), field))
            except ParseDataError as e:
                is_mention = isinstance(entry, Mapping) and entry.get("mentionUuid")
                if counted and is_mention:
                    self._drop("mention", f"{field}[{index}]: {e}")
                else:
                    logger.warning(
                        f"Message {self.rowid}: ignoring {field}[{index}]: {e}"
                    )
        return ranges

    def quote(self, document: Mapping[str, Any]) -> Optional[DesktopQuote]:
        quote = document.get("quote")
        if quote is None:
            return None
        try:
            quote = _as_object(quote, "quote")
            attachments = _as_list(quote, "attachments")
            return DesktopQuote(
                quoted_timestamp=_as_int(quote.get("id"), "quote.id") or 0,
                author=quote.get("authorUuid") or quote.get("author"),
                text=quote.get("text"),
                body_ranges=self.body_ranges(quote, "quote.bodyRanges", False),
                attachment_count=len(attachments),
                referenced_message_not_found=_as_bool(
                    quote.get("referencedMessageNotFound")
                ),
                is_gift_badge=_as_bool(quote.get("isGiftBadge")),
                is_view_once=_as_bool(quote.get("isViewOnce")),
            )
        except ParseDataError as e:
            self._drop("quote", str(e))
            return None


def parse_message(row: Mapping[str, Any]) -> DesktopMessage:
    """
    Parse a ``messages`` row and its JSON document.

    Malformed attachments, reactions, mentions or quotes do not fail the
    message; they are left out and listed in ``DesktopMessage.malformed``.

    Args:
        row: Mapping with ``rowid``, ``json``, ``type``, ``body``, ``sent_at``,
            ``isErased``, ``serverGuid`` and ``sourceUuid``

    Returns:
        DesktopMessage

    Raises:
        ParseFormatError: If the document is not a JSON object
        ParseDataError: If the message has no usable timestamp
    """
    document = load_document(row.get("json"))

    sent_at = _as_int(row.get("sent_at"), "sent_at")
    if sent_at is None:
        sent_at = _as_int(
            document.get("sent_at", document.get("timestamp")), "timestamp"
        )
    if sent_at is None:
        raise ParseDataError(f"Message {row.get('rowid')} has no timestamp")

    body = row.get("body")
    if body is None:
        body = document.get("body")

    is_erased = row.get("isErased")
    if is_erased is None:
        is_erased = document.get("isErased")

    children = _ChildParser(row.get("rowid"))
    return DesktopMessage(
        rowid=int(row["rowid"]),
        direction=str(row.get("type") or document.get("type") or ""),
        sent_at=sent_at,
        body=body,
        is_erased=_as_bool(is_erased),
        server_guid=row.get("serverGuid") or document.get("serverGuid"),
        source_uuid=row.get("sourceUuid") or document.get("sourceUuid"),
        attachments=children.entries(
            document, "attachments", "attachment", _parse_attachment
        ),
        reactions=children.entries(document, "reactions", "reaction", _parse_reaction),
        body_ranges=children.body_ranges(document, "bodyRanges", True),
        quote=children.quote(document),
        malformed=children.malformed,
    )
