"""Centralized configuration for the docs datastore search index using Pydantic Settings."""

import json
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from docs_datastore.search.analyzers import available_analyzers


DEFAULT_HEADING_TAGS = ["h1", "h2", "h3", "h4"]
DEFAULT_BLACKLISTED_BLOCK_TAGS = ["pre", "html", "image", "imageReference", "linkReference", "th"]
DEFAULT_BLACKLISTED_CLASSES = ["dimer-highlight", "toc-container"]


class IndexSettings(BaseSettings):
    """Strictly typed configuration loaded from ``DOCS_INDEX_*`` environment variables.

    List settings accept either a JSON array or a comma-separated string, e.g.
    ``DOCS_INDEX_HEADING_TAGS=h1,h2,h3``.
    """

    model_config = SettingsConfigDict(
        env_prefix="DOCS_INDEX_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
    )

    # Section extraction
    heading_tags: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_HEADING_TAGS),
        description="Element tags that open a new indexable section",
    )
    blacklisted_block_tags: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_BLACKLISTED_BLOCK_TAGS),
        description="Element tags dropped entirely from the index",
    )
    blacklisted_classes: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_BLACKLISTED_CLASSES),
        description="CSS classes whose elements are dropped regardless of tag",
    )

    # Term index
    analyzer: str = Field(default="default", description="Analyzer used for indexed text and queries")
    content_boost: float = Field(default=2.0, gt=0, description="Boost applied to the content field")
    default_limit: int = Field(default=0, ge=0, description="Flat match limit for searches (0 = unlimited)")

    # Logging
    log_level: str = Field(default="info", description="Logging level")
    log_json: bool = Field(default=True, description="Emit structured JSON logs")

    @field_validator("heading_tags", "blacklisted_block_tags", "blacklisted_classes", mode="before")
    @classmethod
    def _split_csv(cls, value: object) -> object:
        if isinstance(value, str):
            stripped = value.strip()
            if stripped.startswith("["):
                return json.loads(stripped)
            return [item.strip() for item in stripped.split(",") if item.strip()]
        return value

    @field_validator("heading_tags")
    @classmethod
    def _require_headings(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("At least one heading tag is required to split documents into sections")
        return value

    @field_validator("analyzer")
    @classmethod
    def _known_analyzer(cls, value: str) -> str:
        normalized = value.lower()
        if normalized not in available_analyzers():
            raise ValueError(f"Unknown analyzer '{value}'. Available: {available_analyzers()}")
        return normalized
