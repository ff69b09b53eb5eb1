"""Pydantic Settings: loads .env and provides typed configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from issue_reporter.issue.limits import DESTINATION_BODY_LIMIT_BYTES, DESTINATION_WARN_BYTES


def _find_project_root() -> Path:
    """Find the project root by looking for config/ directory.

    Checks (in order):
    1. ISSUE_REPORTER_ROOT env var (explicit override)
    2. Current working directory
    3. Relative to source file (covers editable installs / development)
    """
    import os

    env_root = os.environ.get("ISSUE_REPORTER_ROOT")
    if env_root:
        return Path(env_root)

    cwd = Path.cwd()
    if (cwd / "config").is_dir():
        return cwd

    source_root = Path(__file__).resolve().parent.parent.parent
    if (source_root / "config").is_dir():
        return source_root

    return cwd


PROJECT_ROOT = _find_project_root()
CONFIG_DIR = PROJECT_ROOT / "config"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="ISSUE_REPORTER_",
        env_file=PROJECT_ROOT / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging
    log_level: str = "INFO"
    log_dir: Path | None = None  # rotating JSON log file only when set

    # Issue tracker
    default_labels: Annotated[list[str], NoDecode] = []  # comma-separated in env
    destination_body_limit_bytes: int = DESTINATION_BODY_LIMIT_BYTES
    destination_warn_bytes: int = DESTINATION_WARN_BYTES

    @field_validator("default_labels", mode="before")
    @classmethod
    def parse_labels(cls, v: str | list | None) -> list[str]:
        if v is None:
            return []
        if isinstance(v, str):
            return [x.strip() for x in v.split(",") if x.strip()]
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_level(cls, v: str) -> str:
        return str(v).strip().upper()

    @property
    def redaction_config_path(self) -> Path:
        return CONFIG_DIR / "redaction_patterns.yaml"


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
