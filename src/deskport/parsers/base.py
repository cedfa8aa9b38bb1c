"""
Exception classes for desktop document parsing.
"""


class ParserError(Exception):
    """Base exception for all parser errors."""

    pass


class ParseFormatError(ParserError):
    """Raised when a document is not valid JSON or not a JSON object."""

    pass


class ParseDataError(ParserError):
    """Raised when required data is missing or malformed."""

    pass
