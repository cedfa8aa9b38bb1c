"""
Deskport Configuration.

Centralized configuration management using Pydantic Settings.
Loads configuration from environment variables.
"""

import os
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

# Name of the directory the desktop client keeps attachment files in,
# next to its database directory.
DESKTOP_ATTACHMENTS_DIRNAME = "attachments.noindex"


def get_xdg_state_dir() -> str:
    """
    Get XDG-compliant state directory for Deskport logs.

    Follows XDG Base Directory Specification:
    - Uses $XDG_STATE_HOME/deskport if XDG_STATE_HOME is set
    - Falls back to $HOME/.local/state/deskport if not set
    - Returns relative path ./logs if HOME not available (dev/testing)

    Returns:
        str: Path to state/logs directory
    """
    xdg_state_home = os.getenv("XDG_STATE_HOME")
    if xdg_state_home:
        return str(Path(xdg_state_home) / "deskport" / "logs")

    home = os.getenv("HOME")
    if home:
        return str(Path(home) / ".local" / "state" / "deskport" / "logs")

    # Fallback for development/testing environments without HOME
    return "./logs"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Stores
    source_database_path: str = ""  # Decrypted desktop database (db.sqlite)
    target_database_path: str = ""  # Decrypted mobile backup database
    desktop_attachments_dir: str = ""  # Defaults to <source dir>/attachments.noindex
    sql_echo: bool = False

    # Migration behaviour
    ignore_wal: bool = False  # Read the source even if a WAL file is present
    create_missing_recipients: bool = False  # Let recipient lookups create rows
    payload_manifest_path: str = ""  # Where to write the attachment manifest

    # Application
    environment: str = "development"

    # Logging
    log_level: str = "INFO"
    log_dir: str = ""  # XDG-compliant log directory (defaults to XDG state dir if empty)
    log_format: str = "standard"  # standard or json
    log_console_enabled: bool = True  # Enable console (stdout/stderr) logging
    log_file_enabled: bool = True  # Enable file-based logging
    log_max_bytes: int = 10_485_760  # 10MB per log file
    log_backup_count: int = 5  # Keep 5 backup files

    @property
    def log_directory(self) -> Path:
        """Get the log directory path, using XDG default if not specified."""
        if self.log_dir:
            return Path(self.log_dir).expanduser()
        return Path(get_xdg_state_dir())

    def attachments_directory(self, source_path: Optional[Path] = None) -> Path:
        """
        Get the desktop attachments directory.

        Args:
            source_path: Source database path used to derive the default

        Returns:
            Path: Explicit directory if configured, otherwise the
            ``attachments.noindex`` directory beside the source database
        """
        if self.desktop_attachments_dir:
            return Path(self.desktop_attachments_dir).expanduser()
        base = source_path or Path(self.source_database_path)
        return Path(base).expanduser().parent / DESKTOP_ATTACHMENTS_DIRNAME


# Global settings instance
settings = Settings()
