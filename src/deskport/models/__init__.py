"""Data models for Deskport."""
