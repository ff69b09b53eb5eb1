"""Entry point: python -m issue_reporter CAPTURE

Builds a sanitized issue from a saved capture file and prints it, or prints
the tracker request JSON with --json.
"""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import yaml

from issue_reporter.config import get_settings
from issue_reporter.exceptions import CaptureLoadError, IssueReporterError
from issue_reporter.issue.assembler import build_sanitized_issue
from issue_reporter.issue.payload import attach_screenshot, build_issue_request
from issue_reporter.logging_config import setup_logging
from issue_reporter.security.redaction import Redactor


def load_capture(source: str) -> tuple[Any, Any]:
    """Read a capture file (JSON or YAML, "-" for stdin).

    The file holds either the context itself or {"context": ..., "userInput": ...}.
    Returns (raw context, raw user input).
    """
    try:
        text = sys.stdin.read() if source == "-" else Path(source).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise CaptureLoadError(f"Cannot read capture {source}: {e}") from e

    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise CaptureLoadError(f"Capture {source} is neither JSON nor YAML: {e}") from e

    if data is None:
        return {}, {}
    if not isinstance(data, dict):
        raise CaptureLoadError(f"Capture {source} must contain a mapping, got {type(data).__name__}")
    if "context" in data:
        return data.get("context") or {}, data.get("userInput") or data.get("user_input") or {}
    return data, {}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="issue-reporter",
        description="Build a redacted, size-bounded issue body from a captured page context.",
    )
    parser.add_argument("capture", help="capture file (JSON or YAML), or - for stdin")
    parser.add_argument("--title", help="issue title (overrides the capture)")
    desc = parser.add_mutually_exclusive_group()
    desc.add_argument("--description", help="what went wrong")
    desc.add_argument("--description-file", type=Path, help="read the description from a file")
    parser.add_argument("--label", action="append", dest="labels", help="issue label (repeatable)")
    parser.add_argument("--milestone", type=int, help="milestone number")
    parser.add_argument("--screenshot-url", help="uploaded screenshot to link below the body")
    parser.add_argument("--json", action="store_true", help="print the tracker request as JSON")
    return parser


def _user_input(raw: Any, args: argparse.Namespace) -> dict[str, Any]:
    user_input = dict(raw) if isinstance(raw, dict) else {}
    if args.title is not None:
        user_input["title"] = args.title
    if args.description is not None:
        user_input["description"] = args.description
    elif args.description_file is not None:
        try:
            user_input["description"] = args.description_file.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise CaptureLoadError(f"Cannot read description {args.description_file}: {e}") from e
    return user_input


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    setup_logging(settings)

    try:
        raw_context, raw_input = load_capture(args.capture)
        user_input = _user_input(raw_input, args)
        redactor = Redactor.from_settings(settings)
        issue = build_sanitized_issue(raw_context, user_input, redactor)

        if args.json:
            request = build_issue_request(
                issue,
                settings,
                labels=args.labels,
                milestone=args.milestone,
                screenshot_url=args.screenshot_url,
            )
            print(request.to_json())
        else:
            print(issue.title)
            print()
            print(attach_screenshot(issue.body, args.screenshot_url))
    except IssueReporterError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
