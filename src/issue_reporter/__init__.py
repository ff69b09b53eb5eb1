"""Capture sanitization and issue body assembly for browser-filed bug reports."""

from issue_reporter.capture.models import CapturedContext, SanitizedIssue, UserInput
from issue_reporter.issue.assembler import build_sanitized_issue, context_hash
from issue_reporter.issue.title import sanitize_title
from issue_reporter.security.redaction import Redactor, redact

__all__ = [
    "CapturedContext",
    "Redactor",
    "SanitizedIssue",
    "UserInput",
    "build_sanitized_issue",
    "context_hash",
    "redact",
    "sanitize_title",
]
