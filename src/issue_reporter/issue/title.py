"""Issue title cleanup."""

from __future__ import annotations

import re

from issue_reporter.issue.limits import FALLBACK_TITLE, TITLE_MAX_CHARS

_NEWLINES = re.compile(r"[\r\n]+")
# Misc symbols & pictographs through supplemental symbols, misc symbols, dingbats
_EMOJI = re.compile("[\U0001F300-\U0001F9FF\u2600-\u26FF\u2700-\u27BF]")
_WHITESPACE = re.compile(r"\s+")


def sanitize_title(raw: str | None) -> str:
    """Return a single-line title of at most 80 characters, never empty."""
    if not raw:
        return FALLBACK_TITLE
    title = _NEWLINES.sub(" ", raw)
    title = _EMOJI.sub("", title)
    title = _WHITESPACE.sub(" ", title).strip()
    if len(title) > TITLE_MAX_CHARS:
        title = title[:TITLE_MAX_CHARS].strip()
    return title or FALLBACK_TITLE
