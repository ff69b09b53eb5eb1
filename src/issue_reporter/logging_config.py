"""Structured logging with redaction and optional file rotation."""

from __future__ import annotations

import json
import logging
import logging.handlers
from typing import TYPE_CHECKING

from issue_reporter.security.redaction import redact

if TYPE_CHECKING:
    from issue_reporter.config import Settings


class RedactingFilter(logging.Filter):
    """Runs the built-in redaction rules over every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = redact(str(record.getMessage()))
        record.args = None
        return True


class JSONFormatter(logging.Formatter):
    """Formats log records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def setup_logging(settings: Settings) -> None:
    """Configure root logger with a stderr handler and, if log_dir is set, a rotating file."""
    level = logging.getLevelName(settings.log_level)
    if not isinstance(level, int):
        level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)

    # Remove any existing handlers
    root.handlers.clear()

    redacting_filter = RedactingFilter()

    # Console: human-readable
    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
    console.addFilter(redacting_filter)
    root.addHandler(console)

    if settings.log_dir is None:
        return

    # File: JSON, rotating
    settings.log_dir.mkdir(parents=True, exist_ok=True)
    file_handler = logging.handlers.RotatingFileHandler(
        settings.log_dir / "issue-reporter.log",
        maxBytes=5_000_000,
        backupCount=3,
        encoding="utf-8",
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(JSONFormatter())
    file_handler.addFilter(redacting_filter)
    root.addHandler(file_handler)
