"""Section builders for the issue body.

Each builder takes one slice of the capture and returns a rendered Markdown
section, or an empty string when there is nothing to show. Builders are
independent of each other; ordering and the global budget are the
assembler's business.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Callable, Sequence

from issue_reporter.capture.models import CapturedContext, ConsoleEntry, JsError, NetworkRequest
from issue_reporter.issue.limits import (
    CONSOLE_DUMP_MAX_BYTES,
    CONSOLE_DUMP_MAX_ENTRIES,
    DESCRIPTION_MAX_BYTES,
    DOM_SNIPPET_MAX_BYTES,
    ELEMENT_FIELD_MAX_CHARS,
    HEADER_MAX_CHARS,
    JS_ERROR_MAX_BYTES,
    NETWORK_SAMPLE_MAX_BYTES,
    SELECTED_TEXT_MAX_CHARS,
    SUMMARY_MESSAGE_MAX_CHARS,
)
from issue_reporter.issue.text import (
    collapse_blank_lines,
    collapse_whitespace,
    fence,
    fence_overhead,
    inline_code,
    iso_timestamp,
    neutralize_block_tags,
    one_line,
    render_section,
    strip_url,
    truncate_bytes,
    truncate_chars,
    utf8_len,
)
from issue_reporter.security.redaction import redact as default_redact
from issue_reporter.security.sanitizer import sanitize_dom_snippet

logger = logging.getLogger(__name__)

RedactFn = Callable[[str | None], str]


def _fit(label: str, content: str, limit: int) -> tuple[str, bool]:
    """Cut content to the byte limit, reporting whether anything was lost."""
    size = utf8_len(content)
    if size <= limit:
        return content, False
    logger.debug("%s section truncated from %d to %d bytes", label, size, limit)
    return truncate_bytes(content, limit), True


def _fit_with_code(
    label: str,
    lines: list[str],
    code_label: str,
    code: str,
    limit: int,
) -> tuple[str, bool]:
    """Fit labelled lines plus a trailing fenced block into the byte limit.

    When over budget the fenced payload shrinks first so the fence itself is
    never cut open; the labelled lines are only cut if they alone exceed it.
    """
    head = "\n".join(lines)
    if not code:
        return _fit(label, head, limit)

    block = f"{code_label}\n{fence(code)}"
    full = f"{head}\n{block}" if head else block
    if utf8_len(full) <= limit:
        return full, False

    logger.debug("%s section truncated from %d to %d bytes", label, utf8_len(full), limit)
    head = truncate_bytes(head, limit)
    prefix = f"{head}\n{code_label}\n" if head else f"{code_label}\n"
    room = limit - utf8_len(prefix) - fence_overhead(code)
    if room <= 0:
        return head, True
    return prefix + fence(truncate_bytes(code, room)), True


def build_header(context: CapturedContext, redact: RedactFn = default_redact) -> str:
    """URL, capture time, user agent and viewport, capped at 300 characters."""
    lines = []
    url = one_line(redact(strip_url(context.url)))
    if url:
        lines.append(f"**URL:** {url}")
    timestamp = iso_timestamp(context.timestamp)
    if timestamp:
        lines.append(f"**Timestamp:** {timestamp}")
    user_agent = one_line(redact(context.user_agent))
    if user_agent:
        lines.append(f"**User Agent:** {user_agent}")
    viewport = one_line(redact(context.viewport))
    if viewport:
        lines.append(f"**Viewport:** {viewport}")

    header = "\n".join(lines)
    if len(header) > HEADER_MAX_CHARS:
        logger.debug("Header cut from %d to %d characters", len(header), HEADER_MAX_CHARS)
        header = header[:HEADER_MAX_CHARS]
    return header


def build_element_context(context: CapturedContext, redact: RedactFn = default_redact) -> str:
    lines = []
    description = one_line(redact(context.element_description))
    if description:
        lines.append(f"**Element:** {truncate_chars(description, ELEMENT_FIELD_MAX_CHARS)}")
    selector = one_line(redact(context.css_selector))
    if selector:
        lines.append(f"**Selector:** {inline_code(truncate_chars(selector, ELEMENT_FIELD_MAX_CHARS))}")
    selected = one_line(redact(context.selected_text))
    if selected:
        lines.append(f"**Selected Text:** {truncate_chars(selected, SELECTED_TEXT_MAX_CHARS)}")
    if not lines:
        return ""
    return render_section("Element Context", "\n".join(lines), truncated=False)


def build_description(description: str | None, redact: RedactFn = default_redact) -> str:
    if not description or not description.strip():
        return ""
    content = neutralize_block_tags(collapse_whitespace(redact(description)))
    if not content:
        return ""
    content, truncated = _fit("Description", content, DESCRIPTION_MAX_BYTES)
    return render_section("Description", content, truncated=truncated)


def _latest_message(entries: Sequence[ConsoleEntry], kind: str, redact: RedactFn) -> str:
    for entry in reversed(entries):
        if entry.type == kind:
            return truncate_chars(one_line(redact(entry.message)), SUMMARY_MESSAGE_MAX_CHARS)
    return ""


def build_console_summary(entries: Sequence[ConsoleEntry], redact: RedactFn = default_redact) -> str:
    """Always-visible console stats, independent of the full log dump."""
    if not entries:
        return ""
    counts = Counter(entry.type for entry in entries)
    lines = [
        f"- Errors: {counts['error']}",
        f"- Warnings: {counts['warn']}",
        f"- Info: {counts['info']}",
        f"- Debug: {counts['debug']}",
    ]
    latest_error = _latest_message(entries, "error", redact)
    latest_warning = _latest_message(entries, "warn", redact)
    if latest_error or latest_warning:
        lines.append("")
    if latest_error:
        lines.append(f"**Latest Error:** {inline_code(latest_error)}")
    if latest_warning:
        lines.append(f"**Latest Warning:** {inline_code(latest_warning)}")
    return render_section("Console Summary", "\n".join(lines), truncated=False)


def build_js_error(error: JsError | None, redact: RedactFn = default_redact) -> str:
    """Most recent uncaught error: message, location and stack."""
    if error is None:
        return ""
    lines = []
    message = collapse_whitespace(redact(error.message))
    if message:
        lines.append(f"**Message:** {message}")
    source = one_line(redact(strip_url(error.source)))
    if source:
        lines.append(f"**Source:** {source}:{error.line or 0}:{error.column or 0}")
    stack = collapse_blank_lines(redact(error.stack))
    if not lines and not stack:
        return ""
    content, truncated = _fit_with_code("JavaScript Error", lines, "**Stack:**", stack, JS_ERROR_MAX_BYTES)
    return render_section("JavaScript Error", content, truncated=truncated)


def build_network_sample(requests: Sequence[NetworkRequest], redact: RedactFn = default_redact) -> str:
    """The first failed request (status >= 400), if any."""
    failed = next((r for r in requests if r.status is not None and r.status >= 400), None)
    if failed is None:
        return ""
    lines = []
    method = one_line(failed.method)
    if method:
        lines.append(f"**Method:** {method}")
    url = one_line(redact(strip_url(failed.url)))
    if url:
        lines.append(f"**URL:** {url}")
    lines.append(f"**Status:** {failed.status}")
    preview = collapse_blank_lines(redact(failed.response_preview))
    content, truncated = _fit_with_code(
        "Network Sample", lines, "**Response Preview:**", preview, NETWORK_SAMPLE_MAX_BYTES
    )
    return render_section("Network Sample", content, truncated=truncated)


def dedupe_adjacent(entries: Sequence[ConsoleEntry]) -> list[ConsoleEntry]:
    """Collapse runs of consecutive entries with the same type and message."""
    deduped: list[ConsoleEntry] = []
    for entry in entries:
        if deduped and (deduped[-1].type, deduped[-1].message) == (entry.type, entry.message):
            continue
        deduped.append(entry)
    return deduped


def format_console_entry(entry: ConsoleEntry, redact: RedactFn = default_redact) -> str:
    message = collapse_whitespace(redact(entry.message))
    timestamp = iso_timestamp(entry.timestamp)
    prefix = f"[{timestamp}] " if timestamp else ""
    return f"{prefix}[{entry.type.upper()}] {message}".rstrip()


def build_console_dump(entries: Sequence[ConsoleEntry], redact: RedactFn = default_redact) -> str:
    """The last 20 console entries of every severity, oldest first."""
    if not entries:
        return ""
    recent = dedupe_adjacent(list(entries)[-CONSOLE_DUMP_MAX_ENTRIES:])
    text = "\n".join(format_console_entry(entry, redact) for entry in recent)
    text, truncated = _fit("Console Logs", text, CONSOLE_DUMP_MAX_BYTES)
    return render_section("Console Logs", fence(text), truncated=truncated, collapsible=True)


def build_dom_snippet(html: str | None, redact: RedactFn = default_redact) -> str:
    if not html or not html.strip():
        return ""
    cleaned = collapse_whitespace(redact(sanitize_dom_snippet(html)))
    if not cleaned:
        return ""
    cleaned, truncated = _fit("DOM Snippet", cleaned, DOM_SNIPPET_MAX_BYTES)
    return render_section("DOM Snippet", fence(cleaned, "html"), truncated=truncated, collapsible=True)
