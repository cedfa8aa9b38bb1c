"""
Parsers for desktop database rows.
"""

from deskport.parsers.base import ParseDataError, ParseFormatError, ParserError
from deskport.parsers.desktop import load_document, parse_conversation, parse_message

__all__ = [
    "ParseDataError",
    "ParseFormatError",
    "ParserError",
    "load_document",
    "parse_conversation",
    "parse_message",
]
