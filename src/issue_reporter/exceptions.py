"""Custom exception hierarchy for the issue reporter.

The sanitization pipeline itself never raises; these are used by the
caller-side helpers (request building, capture loading, configuration).
"""


class IssueReporterError(Exception):
    """Base exception for all issue reporter errors."""


class ConfigError(IssueReporterError):
    """Configuration is invalid or missing."""


class CaptureLoadError(IssueReporterError):
    """A capture file could not be read or decoded."""


class IssueTooLargeError(IssueReporterError):
    """Issue body exceeds what the issue tracker accepts."""

    def __init__(self, size_bytes: int, limit_bytes: int) -> None:
        self.size_bytes = size_bytes
        self.limit_bytes = limit_bytes
        super().__init__(
            f"Issue body is {round(size_bytes / 1024)}KB, which exceeds the tracker's "
            f"{limit_bytes // 1024}KB limit. Shorten the description or capture a smaller element."
        )
