"""Tests for logging setup."""

import json
import logging
import logging.handlers
from pathlib import Path

import pytest

from deskport.config import settings
from deskport.logging_config import JsonFormatter, setup_logging


@pytest.fixture(autouse=True)
def reset_root_logger():
    root = logging.getLogger()
    level = root.level
    yield
    for handler in list(root.handlers):
        root.removeHandler(handler)
        if isinstance(handler, logging.FileHandler):
            handler.close()
    root.setLevel(level)


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_file_handler_per_context(self, tmp_path: Path, monkeypatch):
        monkeypatch.setattr(settings, "log_dir", str(tmp_path))
        monkeypatch.setattr(settings, "log_console_enabled", False)

        setup_logging(context="migrate")
        logging.getLogger("deskport.test").warning("written to file")

        handlers = logging.getLogger().handlers
        assert len(handlers) == 1
        assert isinstance(handlers[0], logging.handlers.RotatingFileHandler)
        handlers[0].flush()
        assert "written to file" in (tmp_path / "migrate.log").read_text()

    def test_repeated_setup_does_not_stack_handlers(self, tmp_path: Path, monkeypatch):
        monkeypatch.setattr(settings, "log_dir", str(tmp_path))

        setup_logging()
        setup_logging()

        # stdout, stderr and file
        assert len(logging.getLogger().handlers) == 3


class TestJsonFormatter:
    """Tests for JsonFormatter."""

    def test_formats_record_as_json(self):
        record = logging.LogRecord(
            "deskport.x", logging.WARNING, __file__, 1, "hello %s", ("world",), None
        )

        entry = json.loads(JsonFormatter().format(record))

        assert entry["level"] == "WARNING"
        assert entry["logger"] == "deskport.x"
        assert entry["message"] == "hello world"
