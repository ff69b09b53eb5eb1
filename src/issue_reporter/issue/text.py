"""Text primitives shared by the section builders: UTF-8 budgets, whitespace, URLs, Markdown."""

from __future__ import annotations

import math
import re
from datetime import datetime, timedelta, timezone
from urllib.parse import urlsplit

_SPACE_RUN = re.compile(r"[ \t]+")
_NEWLINE_RUN = re.compile(r"\n{3,}")
_ANY_WHITESPACE = re.compile(r"\s+")
_BACKTICK_RUN = re.compile(r"`+")
_CLOSING_BLOCK_TAG = re.compile(r"</(details|summary)", re.IGNORECASE)
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def utf8_len(text: str) -> int:
    """Byte length of text once encoded as UTF-8."""
    return len(text.encode("utf-8", "replace"))


def truncate_bytes(text: str, max_bytes: int) -> str:
    """Cut text to at most max_bytes of UTF-8 without splitting a character.

    A partial multi-byte sequence at the cut point is dropped rather than
    decoded into U+FFFD.
    """
    if max_bytes <= 0:
        return ""
    encoded = text.encode("utf-8", "replace")
    if len(encoded) <= max_bytes:
        return text
    return encoded[:max_bytes].decode("utf-8", "ignore")


def truncate_chars(text: str, max_chars: int, ellipsis: str = "…") -> str:
    if len(text) <= max_chars:
        return text
    return text[:max_chars].rstrip() + ellipsis


def collapse_whitespace(text: str) -> str:
    """Collapse space/tab runs to one space and 3+ newlines to exactly two."""
    if not text:
        return ""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _SPACE_RUN.sub(" ", text)
    text = _NEWLINE_RUN.sub("\n\n", text)
    return text.strip()


def one_line(text: str | None) -> str:
    if not text:
        return ""
    return _ANY_WHITESPACE.sub(" ", text).strip()


def strip_url(url: str | None) -> str:
    """Reduce a URL to origin + path, dropping credentials, query and fragment."""
    if not url:
        return ""
    url = url.strip()
    try:
        parts = urlsplit(url)
    except ValueError:
        parts = None
    if parts is not None and parts.scheme and parts.netloc:
        host = parts.netloc.rpartition("@")[2]
        path = parts.path
        if not path and parts.scheme in ("http", "https"):
            path = "/"
        return f"{parts.scheme}://{host}{path}"
    return url.split("?", 1)[0].split("#", 1)[0]


def iso_timestamp(epoch_millis: float | None) -> str:
    """Render epoch milliseconds as ISO-8601 UTC, e.g. 2024-01-01T00:00:00.000Z."""
    if epoch_millis is None or not math.isfinite(epoch_millis):
        return ""
    try:
        dt = _EPOCH + timedelta(milliseconds=epoch_millis)
    except (OverflowError, OSError, ValueError):
        return ""
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def number_text(value: float | int | None) -> str:
    """Stable text form of a number: integral values render without a decimal point."""
    if value is None:
        return ""
    if isinstance(value, float):
        if not math.isfinite(value):
            return ""
        if value.is_integer():
            return str(int(value))
    return str(value)


def _longest_backtick_run(text: str) -> int:
    return max((len(m) for m in _BACKTICK_RUN.findall(text)), default=0)


def fence(content: str, lang: str = "") -> str:
    """Wrap content in a fenced code block that the content itself cannot close."""
    ticks = "`" * max(3, _longest_backtick_run(content) + 1)
    return f"{ticks}{lang}\n{content}\n{ticks}"


def fence_overhead(content: str, lang: str = "") -> int:
    return utf8_len(fence(content, lang)) - utf8_len(content)


def inline_code(text: str) -> str:
    if not text:
        return ""
    ticks = "`" * (_longest_backtick_run(text) + 1)
    if text.startswith("`") or text.endswith("`"):
        return f"{ticks} {text} {ticks}"
    return f"{ticks}{text}{ticks}"


def neutralize_block_tags(text: str) -> str:
    """Escape closing details/summary tags so captured text stays inside its block."""
    return _CLOSING_BLOCK_TAG.sub(r"&lt;/\1", text)


def details(summary: str, content: str) -> str:
    return f"<details>\n<summary>{summary}</summary>\n\n{content}\n</details>"


def render_section(label: str, content: str, *, truncated: bool, collapsible: bool = False) -> str:
    """Render a titled section.

    Truncated sections are always rendered collapsible with a "(truncated)"
    label so the reader can tell content was lost.
    """
    if truncated:
        return details(f"{label} (truncated)", content)
    if collapsible:
        return details(label, content)
    return f"## {label}\n\n{content}"


def collapse_blank_lines(text: str | None) -> str:
    """Whitespace cleanup for code: keeps indentation, caps blank-line runs."""
    if not text:
        return ""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    return _NEWLINE_RUN.sub("\n\n", text).strip("\n").rstrip()
