"""Scrubs secrets and PII from captured page text before it lands in an issue."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import TYPE_CHECKING

import yaml

from issue_reporter.exceptions import ConfigError

if TYPE_CHECKING:
    from issue_reporter.config import Settings

logger = logging.getLogger(__name__)

# Order matters: emails and tokens inside a query string are replaced before
# the query itself collapses, and every replacement is a fixed point of the
# rules that follow it.
BUILTIN_RULES: list[tuple[re.Pattern, str]] = [
    (re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b"), "[redacted-email]"),
    (re.compile(r"\beyJ[A-Za-z0-9_-]+\.eyJ[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\b"), "[redacted-jwt]"),
    (re.compile(r"\b[a-fA-F0-9]{32,64}\b"), "[redacted-token]"),
    (re.compile(r"\?[^#\s]+"), "?[redacted-query]"),
    (re.compile(r"(Authorization:\s*)[^\r\n]+", re.IGNORECASE), r"\1[redacted]"),
]


class Redactor:
    """Redacts secrets and PII from text using the built-in rules plus optional extra patterns.

    The built-in rules are idempotent: redacting already-redacted text is a
    no-op. Extra patterns are applied after them and carry no such guarantee.
    """

    def __init__(self, extra_rules: list[tuple[re.Pattern, str]] | None = None) -> None:
        self._rules = BUILTIN_RULES + list(extra_rules or [])

    @classmethod
    def from_settings(cls, settings: Settings) -> Redactor:
        return cls(load_patterns(settings.redaction_config_path))

    def redact(self, text: str | None) -> str:
        """Apply all redaction rules to the text."""
        if not text:
            return ""
        for pattern, replacement in self._rules:
            text = pattern.sub(replacement, text)
        return text


def load_patterns(path: Path) -> list[tuple[re.Pattern, str]]:
    """Load extra regex patterns from a redaction_patterns.yaml file."""
    if not path.exists():
        logger.debug("No redaction patterns file at %s", path)
        return []

    try:
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot read redaction patterns from {path}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"Redaction patterns file {path} must contain a mapping")

    rules: list[tuple[re.Pattern, str]] = []
    for entry in raw.get("patterns", []):
        try:
            pattern = re.compile(entry["regex"], re.IGNORECASE)
        except (re.error, KeyError, TypeError):
            logger.warning("Invalid redaction regex: %s", entry)
            continue
        rules.append((pattern, str(entry.get("replacement", "[redacted]"))))
    return rules


DEFAULT_REDACTOR = Redactor()


def redact(text: str | None) -> str:
    """Redact text with the built-in rules only."""
    return DEFAULT_REDACTOR.redact(text)
