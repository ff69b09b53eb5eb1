"""Budget-aware assembly of the sanitized issue body.

Mandatory sections (header, element context, description) are always kept.
Optional sections are tried in priority order, richest signal first and
heaviest last, and each is either included whole or skipped. If the
mandatory sections alone overflow the ceiling the body is hard-cut and
marked. A Context-Hash line identifying the raw capture closes the body.
"""

from __future__ import annotations

import logging
from typing import Any

from issue_reporter.capture.models import CapturedContext, SanitizedIssue, UserInput
from issue_reporter.issue import sections
from issue_reporter.issue.limits import BODY_CEILING_BYTES, TRUNCATION_MARKER
from issue_reporter.issue.text import number_text, truncate_bytes, utf8_len
from issue_reporter.issue.title import sanitize_title
from issue_reporter.security.redaction import DEFAULT_REDACTOR, Redactor

logger = logging.getLogger(__name__)

SECTION_SEPARATOR = "\n\n"
HASH_FIELD_SEPARATOR = "|"


def context_hash(context: CapturedContext) -> str:
    """DJB2 over the raw capture identity fields, as 8 lowercase hex digits.

    Characters are fed as UTF-16 code units, the unit a browser-side
    implementation iterates, so the digest is the same on every platform.
    """
    combined = HASH_FIELD_SEPARATOR.join(
        [
            context.url or "",
            number_text(context.timestamp),
            context.user_agent or "",
            context.html_snippet or "",
            context.css_selector or "",
        ]
    )
    units = combined.encode("utf-16-le", "surrogatepass")
    h = 5381
    for i in range(0, len(units), 2):
        h = ((h << 5) + h + (units[i] | units[i + 1] << 8)) & 0xFFFFFFFF
    return f"{h:08x}"


def _join(body: str, section: str) -> str:
    return f"{body}{SECTION_SEPARATOR}{section}" if body else section


def assemble_body(mandatory: list[str], optional: list[tuple[str, str]], ceiling: int) -> str:
    """Greedy whole-section assembly under a byte ceiling.

    optional holds (name, rendered section) pairs in priority order.
    """
    body = SECTION_SEPARATOR.join(section for section in mandatory if section)

    for name, section in optional:
        if not section:
            continue
        candidate = _join(body, section)
        if utf8_len(candidate) <= ceiling:
            body = candidate
        else:
            logger.debug("Skipping %s section (%d bytes) to stay under %d", name, utf8_len(section), ceiling)

    if utf8_len(body) > ceiling:
        marker = f"{SECTION_SEPARATOR}{TRUNCATION_MARKER}"
        logger.debug("Mandatory sections exceed %d bytes, hard-truncating body", ceiling)
        body = truncate_bytes(body, ceiling - utf8_len(marker)) + marker

    return body


def build_sanitized_issue(
    context: CapturedContext | dict[str, Any] | None,
    user_input: UserInput | dict[str, Any] | None,
    redactor: Redactor | None = None,
) -> SanitizedIssue:
    """Turn a raw capture plus the reporter's text into a redacted, bounded issue.

    Never raises: absent or malformed fields only drop their section.
    """
    context = CapturedContext.from_raw(context)
    user_input = UserInput.from_raw(user_input)
    redact = (redactor or DEFAULT_REDACTOR).redact

    mandatory = [
        sections.build_header(context, redact),
        sections.build_element_context(context, redact),
        sections.build_description(user_input.description, redact),
    ]
    optional = [
        ("console summary", sections.build_console_summary(context.console_logs, redact)),
        ("JavaScript error", sections.build_js_error(context.js_error, redact)),
        ("network sample", sections.build_network_sample(context.network_requests, redact)),
        ("console log", sections.build_console_dump(context.console_logs, redact)),
        ("DOM snippet", sections.build_dom_snippet(context.html_snippet, redact)),
    ]

    hash_line = f"Context-Hash: {context_hash(context)}"
    # The hash line and its separator are part of the ceiling
    budget = BODY_CEILING_BYTES - utf8_len(SECTION_SEPARATOR + hash_line)
    body = _join(assemble_body(mandatory, optional, budget), hash_line)

    title = sanitize_title(user_input.title or context.title)
    return SanitizedIssue(title=title, body=body, size_bytes=utf8_len(body))
