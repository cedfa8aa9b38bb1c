"""Deskport - desktop conversation history to mobile database migration."""

__version__ = "0.1.0"
