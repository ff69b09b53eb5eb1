"""Caller-side helpers that turn a SanitizedIssue into an issue tracker request.

The sanitizer never sees screenshots or tracker metadata; these run after it.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from issue_reporter.capture.models import SanitizedIssue
from issue_reporter.config import Settings
from issue_reporter.exceptions import IssueTooLargeError
from issue_reporter.issue.text import utf8_len

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IssueRequest:
    """Body of a create-issue call to the tracker."""

    title: str
    body: str
    labels: list[str] = field(default_factory=list)
    milestone: int | None = None

    def to_dict(self) -> dict:
        payload: dict = {"title": self.title, "body": self.body, "labels": list(self.labels)}
        if self.milestone:
            payload["milestone"] = self.milestone
        return payload

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)


def attach_screenshot(body: str, screenshot_url: str | None) -> str:
    """Append the uploaded screenshot as a Markdown image line."""
    if not screenshot_url or not screenshot_url.strip():
        return body
    return f"{body}\n\n![Screenshot]({screenshot_url.strip()})"


def normalize_labels(labels: Iterable[str] | None) -> list[str]:
    seen: list[str] = []
    for label in labels or []:
        label = str(label).strip()
        if label and label not in seen:
            seen.append(label)
    return seen


def check_body_size(size_bytes: int, settings: Settings) -> None:
    """Reject bodies the tracker would refuse; warn when getting close."""
    if size_bytes >= settings.destination_body_limit_bytes:
        raise IssueTooLargeError(size_bytes, settings.destination_body_limit_bytes)
    if size_bytes >= settings.destination_warn_bytes:
        logger.warning("Issue body approaching tracker size limit: %d bytes", size_bytes)


def build_issue_request(
    issue: SanitizedIssue,
    settings: Settings,
    *,
    labels: Iterable[str] | None = None,
    milestone: int | None = None,
    screenshot_url: str | None = None,
) -> IssueRequest:
    """Combine a sanitized issue with labels, milestone and screenshot link.

    Labels fall back to the configured defaults when none are given.
    """
    body = attach_screenshot(issue.body, screenshot_url)
    check_body_size(utf8_len(body), settings)
    chosen = normalize_labels(labels if labels is not None else settings.default_labels)
    return IssueRequest(title=issue.title, body=body, labels=chosen, milestone=milestone)
