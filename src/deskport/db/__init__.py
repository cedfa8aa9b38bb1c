"""Database access for Deskport."""
