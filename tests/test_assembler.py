"""Tests for issue assembly: end-to-end scenarios, budget policy and the context hash."""

from __future__ import annotations

import re
from typing import Any

import pytest

from issue_reporter.capture.models import CapturedContext
from issue_reporter.issue import assembler, sections
from issue_reporter.issue.assembler import assemble_body, build_sanitized_issue, context_hash
from issue_reporter.issue.text import utf8_len
from issue_reporter.security.redaction import Redactor

CEILING = 40 * 1024


class TestScenarios:
    def test_empty_context_with_description(self):
        issue = build_sanitized_issue({}, {"description": "it's broken"})
        assert issue.title == "Issue Report"
        assert issue.body == f"## Description\n\nit's broken\n\nContext-Hash: {context_hash(CapturedContext())}"

    def test_js_error_only(self):
        context = {
            "jsError": {"message": "x is not defined", "source": "app.js", "line": 10, "column": 3, "stack": "..."}
        }
        body = build_sanitized_issue(context, {}).body
        assert "## JavaScript Error" in body
        assert "x is not defined" in body
        assert "app.js:10:3" in body

    def test_console_dump_keeps_most_recent_twenty(self):
        logs = [
            {"type": "warn" if i % 2 == 0 else "error", "message": f"message {i:02d}", "timestamp": 1700000000000 + i}
            for i in range(25)
        ]
        body = build_sanitized_issue({"consoleLogs": logs}, {}).body
        dump = body[body.index("<summary>Console Logs</summary>"):]
        assert len(re.findall(r"\[(?:WARN|ERROR)\] message \d\d", dump)) == 20
        for i in range(5):
            assert f"message {i:02d}" not in body
        for i in range(5, 25):
            assert f"message {i:02d}" in dump

    def test_url_query_stripped_and_email_redacted(self):
        context = {"url": "https://example.com/page?token=abc123&user=me@example.com"}
        body = build_sanitized_issue(context, {"description": "write to me@example.com"}).body
        assert body.startswith("**URL:** https://example.com/page\n")
        assert "token=abc123" not in body
        assert "me@example.com" not in body
        assert "[redacted-email]" in body

    def test_long_description_truncated(self):
        body = build_sanitized_issue({}, {"description": "Steps to reproduce. " * 256}).body
        assert "<summary>Description (truncated)</summary>" in body
        content = body.split("</summary>\n\n", 1)[1].split("\n</details>", 1)[0]
        assert utf8_len(content) == 2048

    def test_dom_snippet_cleaned(self):
        context = {"htmlSnippet": '<script>alert(1)</script><div onclick="x()">hi</div>'}
        body = build_sanitized_issue(context, {}).body
        assert "<script" not in body
        assert "onclick" not in body
        assert "<div>hi</div>" in body


class TestFullCapture:
    def test_section_order(self, full_context: dict[str, Any]):
        body = build_sanitized_issue(full_context, {"description": "Pay button fails"}).body
        markers = [
            "**URL:**",
            "## Element Context",
            "## Description",
            "## Console Summary",
            "## JavaScript Error",
            "## Network Sample",
            "<summary>Console Logs</summary>",
            "<summary>DOM Snippet</summary>",
            "Context-Hash: ",
        ]
        positions = [body.index(marker) for marker in markers]
        assert positions == sorted(positions)
        assert body.startswith("**URL:** https://app.example.com/orders/42\n")
        assert re.search(r"\nContext-Hash: [0-9a-f]{8}$", body)

    def test_title_fallback_chain(self, full_context: dict[str, Any]):
        assert build_sanitized_issue(full_context, {}).title == "Orders - Example App"
        assert build_sanitized_issue(full_context, {"title": "Pay 🔥 broken"}).title == "Pay broken"

    def test_size_bytes_matches_body(self, full_context: dict[str, Any]):
        issue = build_sanitized_issue(full_context, {"description": "ünïcödé 😀"})
        assert issue.size_bytes == utf8_len(issue.body)

    def test_deterministic(self, full_context: dict[str, Any]):
        first = build_sanitized_issue(full_context, {"title": "t", "description": "d"})
        second = build_sanitized_issue(dict(full_context), {"title": "t", "description": "d"})
        assert first == second

    def test_secrets_do_not_leak(self, full_context: dict[str, Any]):
        body = build_sanitized_issue(full_context, {}).body
        assert "me@example.com" not in body
        assert "session=abc123" not in body
        assert "token=secret" not in body
        assert "r4nd0m" not in body

    def test_accepts_models(self, full_context: dict[str, Any]):
        context = CapturedContext.model_validate(full_context)
        assert build_sanitized_issue(context, None) == build_sanitized_issue(full_context, {})

    def test_custom_redactor(self):
        redactor = Redactor([(re.compile(r"order-\d+"), "[order]")])
        body = build_sanitized_issue({}, {"description": "order-1234 failed"}, redactor).body
        assert "## Description\n\n[order] failed" in body


class TestBudget:
    def test_lowest_priority_dropped_first(self, full_context: dict[str, Any], monkeypatch: pytest.MonkeyPatch):
        full = build_sanitized_issue(full_context, {})
        monkeypatch.setattr(assembler, "BODY_CEILING_BYTES", full.size_bytes - 1)
        body = build_sanitized_issue(full_context, {}).body
        assert "## Console Summary" in body
        assert "## JavaScript Error" in body
        assert "## Network Sample" in body
        assert "<summary>Console Logs</summary>" in body
        assert "DOM Snippet" not in body
        assert utf8_len(body) <= full.size_bytes - 1

    def test_skipped_section_does_not_stop_later_ones(
        self, full_context: dict[str, Any], monkeypatch: pytest.MonkeyPatch
    ):
        full_context["consoleLogs"] = [
            {"type": "log", "message": f"line {i} " + "x" * 120} for i in range(20)
        ]
        full = build_sanitized_issue(full_context, {})
        context = CapturedContext.model_validate(full_context)
        dump = sections.build_console_dump(context.console_logs)
        dom = sections.build_dom_snippet(context.html_snippet)
        assert utf8_len(dump) > utf8_len(dom)

        monkeypatch.setattr(assembler, "BODY_CEILING_BYTES", full.size_bytes - utf8_len("\n\n" + dump) + 10)
        body = build_sanitized_issue(full_context, {}).body
        assert "Console Logs" not in body
        assert "<summary>DOM Snippet</summary>" in body

    def test_whole_sections_only(self):
        mandatory = ["## Description\n\nx"]
        optional = [
            ("summary", "S" * 100),
            ("js", "J" * 100),
            ("network", "N" * 100),
            ("dump", "D" * 600),
            ("dom", "M" * 600),
        ]
        body = assemble_body(mandatory, optional, 1000)
        assert "D" * 600 in body
        assert "M" not in body
        assert utf8_len(body) <= 1000

    def test_mandatory_overflow_is_hard_truncated(self):
        body = assemble_body(["A" * 2000], [("dom", "M" * 10)], 1000)
        assert body.endswith("\n\n[…] truncated")
        assert utf8_len(body) <= 1000
        assert "M" not in body

    def test_hard_truncation_is_utf8_safe(self):
        body = assemble_body(["😀" * 1000], [], 1001)
        assert "\ufffd" not in body
        assert utf8_len(body) <= 1001

    def test_description_survives_pressure(self, full_context: dict[str, Any], monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr(assembler, "BODY_CEILING_BYTES", 4096)
        body = build_sanitized_issue(full_context, {"description": "Long report. " * 1000}).body
        assert "Description (truncated)" in body
        assert utf8_len(body) <= 4096

    def test_ceiling_holds_for_huge_input(self):
        context = {
            "url": "https://example.com/" + "p" * 50_000,
            "userAgent": "UA " * 10_000,
            "elementDescription": "div " * 10_000,
            "cssSelector": "#a " * 10_000,
            "selectedText": "sel " * 10_000,
            "htmlSnippet": "<p>" + "x" * 100_000 + "</p>",
            "jsError": {"message": "m" * 50_000, "source": "s.js", "stack": "at x\n" * 20_000},
            "consoleLogs": [{"type": "error", "message": "e" * 5_000}] * 100,
            "networkRequests": [{"status": 500, "url": "https://a.test/x", "responsePreview": "r" * 50_000}],
        }
        issue = build_sanitized_issue(context, {"title": "t" * 500, "description": "😀" * 50_000})
        assert issue.size_bytes <= CEILING
        assert len(issue.title) <= 80
        assert "Description (truncated)" in issue.body


class TestNeverRaises:
    def test_no_input(self):
        issue = build_sanitized_issue(None, None)
        assert issue.title == "Issue Report"
        assert issue.body == "Context-Hash: 7ca32e75"

    def test_wrong_types_everywhere(self):
        context = {
            "url": 123,
            "consoleLogs": "nope",
            "jsError": "boom",
            "networkRequests": [1, None, {"status": "abc"}],
            "timestamp": "soon",
        }
        issue = build_sanitized_issue(context, {"title": ["x"], "description": 42})
        assert issue.title == "Issue Report"
        assert "**URL:** 123" in issue.body
        assert "## Description\n\n42" in issue.body
        assert "JavaScript Error" not in issue.body
        assert "Network Sample" not in issue.body

    def test_non_mapping_input(self):
        issue = build_sanitized_issue("garbage", ["also garbage"])
        assert issue.body.startswith("Context-Hash: ")

    def test_lone_surrogates(self):
        issue = build_sanitized_issue({"selectedText": "a\ud800b"}, {"description": "x\udfffy"})
        issue.body.encode("utf-8")


class TestContextHash:
    def test_known_value_for_empty_capture(self):
        # DJB2 over "||||"
        assert context_hash(CapturedContext()) == "7ca32e75"

    def test_stable_and_hex(self, full_context: dict[str, Any]):
        context = CapturedContext.model_validate(full_context)
        digest = context_hash(context)
        assert re.fullmatch(r"[0-9a-f]{8}", digest)
        assert context_hash(CapturedContext.model_validate(full_context)) == digest

    def test_uses_raw_fields(self, full_context: dict[str, Any]):
        base = context_hash(CapturedContext.model_validate(full_context))
        changed = dict(full_context, url=full_context["url"] + "&other=1")
        assert context_hash(CapturedContext.model_validate(changed)) != base

    def test_ignores_fields_outside_identity(self, full_context: dict[str, Any]):
        base = context_hash(CapturedContext.model_validate(full_context))
        changed = dict(full_context, selectedText="something else", consoleLogs=[])
        assert context_hash(CapturedContext.model_validate(changed)) == base

    def test_integral_float_timestamp_matches_int(self):
        assert context_hash(CapturedContext(timestamp=1700000000123)) == context_hash(
            CapturedContext(timestamp=1700000000123.0)
        )
