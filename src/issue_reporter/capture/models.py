"""Data contracts between the page-capture provider, the sanitizer and the caller.

Everything coming from the page is untrusted and may be partially populated or
of the wrong type. Validators coerce instead of rejecting, so a capture always
loads; fields that cannot be made sense of degrade to None or an empty list.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)

ConsoleType = Literal["log", "info", "debug", "warn", "error"]
CONSOLE_TYPES: tuple[str, ...] = ("log", "info", "debug", "warn", "error")


def coerce_text(value: Any) -> str | None:
    """Best-effort conversion of an arbitrary value to a UTF-8-encodable string."""
    if value is None:
        return None
    if isinstance(value, bytes):
        return value.decode("utf-8", "replace")
    if isinstance(value, (list, dict, tuple, set)):
        return None
    text = value if isinstance(value, str) else str(value)
    # Lone surrogates (e.g. from JSON "\ud800") cannot be encoded as UTF-8
    return text.encode("utf-8", "replace").decode("utf-8")


def coerce_number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None


def coerce_int(value: Any) -> int | None:
    number = coerce_number(value)
    if number is None:
        return None
    try:
        return int(number)
    except (OverflowError, ValueError):
        return None


def _mapping_items(value: Any) -> list[Any]:
    if not isinstance(value, (list, tuple)):
        return []
    return [
        dict(item) if isinstance(item, Mapping) else item
        for item in value
        if isinstance(item, (Mapping, BaseModel))
    ]


class _CaptureModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class JsError(_CaptureModel):
    """The single most recent uncaught error on the page."""

    message: str | None = None
    source: str | None = None
    line: int | None = None
    column: int | None = None
    stack: str | None = None
    timestamp: float | None = None

    @field_validator("message", "source", "stack", mode="before")
    @classmethod
    def text_fields(cls, v: Any) -> str | None:
        return coerce_text(v)

    @field_validator("line", "column", mode="before")
    @classmethod
    def int_fields(cls, v: Any) -> int | None:
        return coerce_int(v)

    @field_validator("timestamp", mode="before")
    @classmethod
    def number_fields(cls, v: Any) -> float | None:
        return coerce_number(v)


class ConsoleEntry(_CaptureModel):
    type: ConsoleType = "log"
    message: str = ""
    timestamp: float | None = None

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, v: Any) -> str:
        kind = (coerce_text(v) or "").strip().lower()
        if kind == "warning":
            return "warn"
        return kind if kind in CONSOLE_TYPES else "log"

    @field_validator("message", mode="before")
    @classmethod
    def message_text(cls, v: Any) -> str:
        return coerce_text(v) or ""

    @field_validator("timestamp", mode="before")
    @classmethod
    def number_fields(cls, v: Any) -> float | None:
        return coerce_number(v)


class NetworkRequest(_CaptureModel):
    method: str | None = None
    url: str | None = None
    status: int | None = None
    response_preview: str | None = None

    @field_validator("method", "url", "response_preview", mode="before")
    @classmethod
    def text_fields(cls, v: Any) -> str | None:
        return coerce_text(v)

    @field_validator("status", mode="before")
    @classmethod
    def status_code(cls, v: Any) -> int | None:
        return coerce_int(v)


class CapturedContext(_CaptureModel):
    """Snapshot of page and browser state at the moment an issue report starts."""

    url: str | None = None
    title: str | None = None
    user_agent: str | None = None
    viewport: str | None = None
    selected_text: str | None = None
    html_snippet: str | None = None
    script_snippet: str | None = None
    css_selector: str | None = None
    element_description: str | None = None
    js_error: JsError | None = None
    console_logs: list[ConsoleEntry] = Field(default_factory=list)
    network_requests: list[NetworkRequest] = Field(default_factory=list)
    timestamp: float | None = None

    @field_validator(
        "url",
        "title",
        "user_agent",
        "viewport",
        "selected_text",
        "html_snippet",
        "script_snippet",
        "css_selector",
        "element_description",
        mode="before",
    )
    @classmethod
    def text_fields(cls, v: Any) -> str | None:
        return coerce_text(v)

    @field_validator("js_error", mode="before")
    @classmethod
    def js_error_mapping(cls, v: Any) -> Any:
        if isinstance(v, Mapping):
            return dict(v)
        return v if isinstance(v, JsError) else None

    @field_validator("console_logs", "network_requests", mode="before")
    @classmethod
    def mapping_entries(cls, v: Any) -> list[Any]:
        return _mapping_items(v)

    @field_validator("timestamp", mode="before")
    @classmethod
    def number_fields(cls, v: Any) -> float | None:
        return coerce_number(v)

    @classmethod
    def from_raw(cls, raw: Any) -> CapturedContext:
        """Build a context from whatever the capture provider handed over. Never raises."""
        if isinstance(raw, cls):
            return raw
        if not isinstance(raw, Mapping):
            if raw is not None:
                logger.warning("Ignoring capture context of type %s", type(raw).__name__)
            return cls()
        try:
            return cls.model_validate(dict(raw))
        except ValidationError as e:
            logger.warning("Capture context failed validation, using empty context: %s", e)
            return cls()


class UserInput(_CaptureModel):
    """Free text supplied by the person filing the issue."""

    title: str | None = None
    description: str | None = None

    @field_validator("title", "description", mode="before")
    @classmethod
    def text_fields(cls, v: Any) -> str | None:
        return coerce_text(v)

    @classmethod
    def from_raw(cls, raw: Any) -> UserInput:
        if isinstance(raw, cls):
            return raw
        if not isinstance(raw, Mapping):
            return cls()
        try:
            return cls.model_validate(dict(raw))
        except ValidationError as e:
            logger.warning("User input failed validation, ignoring it: %s", e)
            return cls()


class SanitizedIssue(BaseModel):
    """Redacted, size-bounded issue ready to hand to the tracker client."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    title: str
    body: str
    size_bytes: int
