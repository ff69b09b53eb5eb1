"""DOM snippet cleanup: script/style stripping and attribute noise removal.

Regex based on purpose. The snippet ends up inside a fenced ``html`` block
that the issue tracker sanitizes again before rendering, so this only removes
noise and values that change between page loads. It is not an XSS filter.
"""

from __future__ import annotations

import re

# Attributes whose values differ per page load and would break context hashing
NON_DETERMINISTIC_ATTRS = ("nonce", "integrity", "crossorigin")

_ATTR_VALUE = r"""(?:"[^"]*"|'[^']*'|[^\s"'=<>`]+)"""

# An opening tag, allowing '>' inside quoted attribute values
_OPEN_TAG = re.compile(r"""<[A-Za-z][^\s/>]*(?:"[^"]*"|'[^']*'|[^'">])*>""")
_EVENT_HANDLER = re.compile(rf"\s+on[a-z0-9_-]+\s*=\s*{_ATTR_VALUE}", re.IGNORECASE)
_NON_DETERMINISTIC = re.compile(
    rf"\s+(?:{'|'.join(NON_DETERMINISTIC_ATTRS)})(?:\s*=\s*{_ATTR_VALUE})?(?=[\s/>])",
    re.IGNORECASE,
)
_COMMENT = re.compile(r"<!--.*?(?:-->|\Z)", re.DOTALL)


def _element_patterns(tag: str) -> tuple[re.Pattern, re.Pattern]:
    closed = re.compile(rf"<{tag}\b[^>]*>.*?</{tag}\s*>", re.DOTALL | re.IGNORECASE)
    # An opening tag with no closing tag swallows the rest of the snippet
    unterminated = re.compile(rf"<{tag}\b.*\Z", re.DOTALL | re.IGNORECASE)
    return closed, unterminated


_STRIPPED_ELEMENTS = [_element_patterns(tag) for tag in ("script", "style")]


def _clean_tag(match: re.Match) -> str:
    tag = _EVENT_HANDLER.sub("", match.group(0))
    return _NON_DETERMINISTIC.sub("", tag)


def sanitize_dom_snippet(html: str | None) -> str:
    """Strip script/style elements, comments, inline handlers and per-load attributes."""
    if not html:
        return ""

    for closed, unterminated in _STRIPPED_ELEMENTS:
        html = closed.sub("", html)
        html = unterminated.sub("", html)

    html = _COMMENT.sub("", html)

    # Attribute cleanup only touches markup, never text nodes
    return _OPEN_TAG.sub(_clean_tag, html)
