"""Configuration management for the file-transfer content pipeline."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Sequence

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .mime import DEFAULT_FILEICON_PREFIX, normalize_mime_type

# Load .env early so BaseSettings can pick values up seamlessly.
load_dotenv()


def _split_list(value: str | Sequence[str] | None, coerce_lower: bool = True) -> list[str]:
    """Turn delimiter-separated env strings into cleaned lists."""
    if value is None:
        return []
    if isinstance(value, str):
        items = re.split(r"[;,]", value)
    else:
        items = list(value)
    cleaned: list[str] = []
    for item in items:
        trimmed = item.strip()
        if not trimmed:
            continue
        cleaned.append(trimmed.lower() if coerce_lower else trimmed)
    return cleaned


class Settings(BaseSettings):
    """App configuration derived from environment variables."""

    preview_max_bytes: int = Field(10 * 1024, alias="FT_PREVIEW_MAX_BYTES", gt=0)
    preview_scale: float = Field(0.05, alias="FT_PREVIEW_SCALE", gt=0)
    preview_quality: int = Field(90, alias="FT_PREVIEW_QUALITY", ge=1, le=100)
    preview_quality_step: int = Field(10, alias="FT_PREVIEW_QUALITY_STEP", ge=1)
    preview_candidate_types_raw: str = Field(
        "image/jpeg;image/png", alias="FT_PREVIEW_CANDIDATE_TYPES"
    )
    fileicon_prefix: str = Field(DEFAULT_FILEICON_PREFIX, alias="FT_FILEICON_PREFIX")

    content_dir: Path = Field(Path("data/content"), alias="FT_CONTENT_DIR")
    content_index_db: Path = Field(Path("data/content_index.db"), alias="FT_CONTENT_INDEX_DB")

    http_timeout: float = Field(30.0, alias="FT_HTTP_TIMEOUT", gt=0)
    http_user_agent: str = Field("ftcontent/0.1", alias="FT_HTTP_USER_AGENT")

    log_level: str = Field("INFO", alias="LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("fileicon_prefix", mode="before")
    @classmethod
    def _normalize_prefix(cls, value):
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped or any(sep in stripped for sep in ("/", "\\")):
                raise ValueError("FT_FILEICON_PREFIX must be a non-empty plain name.")
            return stripped
        return value

    @field_validator("preview_candidate_types_raw")
    @classmethod
    def _require_candidates(cls, value: str) -> str:
        if not _split_list(value):
            raise ValueError("FT_PREVIEW_CANDIDATE_TYPES must name at least one MIME type.")
        return value

    @property
    def preview_candidate_types(self) -> list[str]:
        """Embedded preview types in priority order."""
        return [normalize_mime_type(item) for item in _split_list(self.preview_candidate_types_raw)]
