"""
Logging setup for Deskport.

Console output is split by severity (INFO/DEBUG to stdout, WARNING and above
to stderr) and, when enabled, mirrored into a rotating log file per context.
"""

import json
import logging
import logging.handlers
import sys
from datetime import datetime, timezone

from deskport.config import settings

STANDARD_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class JsonFormatter(logging.Formatter):
    """Render log records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


class _MaxLevelFilter(logging.Filter):
    """Only pass records strictly below a level."""

    def __init__(self, max_level: int):
        super().__init__()
        self.max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < self.max_level


def _build_formatter() -> logging.Formatter:
    if settings.log_format == "json":
        return JsonFormatter()
    return logging.Formatter(fmt=STANDARD_FORMAT, datefmt=DATE_FORMAT)


def setup_logging(context: str = "cli") -> None:
    """
    Configure the root logger for a Deskport process.

    Args:
        context: Name of the running context; used as the log file name
            (e.g. ``cli`` writes ``<log_dir>/cli.log``)

    Raises:
        PermissionError: If the log directory cannot be created
    """
    root = logging.getLogger()
    root.setLevel(settings.log_level.upper())

    # Re-running setup (tests, repeated CLI invocations) must not stack handlers
    for handler in list(root.handlers):
        root.removeHandler(handler)

    formatter = _build_formatter()

    if settings.log_console_enabled:
        stdout_handler = logging.StreamHandler(sys.stdout)
        stdout_handler.setLevel(logging.DEBUG)
        stdout_handler.addFilter(_MaxLevelFilter(logging.WARNING))
        stdout_handler.setFormatter(formatter)
        root.addHandler(stdout_handler)

        stderr_handler = logging.StreamHandler(sys.stderr)
        stderr_handler.setLevel(logging.WARNING)
        stderr_handler.setFormatter(formatter)
        root.addHandler(stderr_handler)

    if settings.log_file_enabled:
        log_dir = settings.log_directory
        log_dir.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_dir / f"{context}.log",
            maxBytes=settings.log_max_bytes,
            backupCount=settings.log_backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    # SQLAlchemy engine logging is controlled by sql_echo, keep it quiet otherwise
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
