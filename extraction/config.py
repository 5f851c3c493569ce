"""Application configuration for the extraction core."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from extraction.exceptions import ConfigError


class ExtractionConfig(BaseSettings):  # type: ignore[misc]
    """Settings controlling match thresholds and log-probability scanning."""

    min_confidence: float = Field(
        0.5, description="Minimum candidate score accepted into an assignment"
    )
    doi_threshold: float = Field(0.9, description="DOI similarity must exceed this value")
    title_threshold: float = Field(0.6, description="Title similarity must exceed this value")
    filename_threshold: float = Field(
        0.5, description="Filename-to-title similarity must exceed this value"
    )
    yield_every: int = Field(
        100, description="Comparisons between cooperative yields to the event loop"
    )
    ignore_opening_quote: bool = Field(
        True, description="Resolve string values to the token after the opening quote"
    )
    log_level: str = Field("WARNING", description="Root log level used by the CLI")

    model_config = SettingsConfigDict(env_prefix="EXTRACTION_", env_file=".env", extra="ignore")

    @field_validator("min_confidence", "doi_threshold", "title_threshold", "filename_threshold")
    @classmethod
    def validate_unit_interval(cls, value: float) -> float:
        if not 0.0 <= value <= 1.0:
            raise ValueError("thresholds must lie within [0, 1]")
        return value

    @field_validator("yield_every")
    @classmethod
    def validate_yield_every(cls, value: int) -> int:
        if value < 1:
            raise ValueError("yield_every must be at least 1")
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level: {value}")
        return level


def load_config(**overrides: Any) -> ExtractionConfig:
    """Build an :class:`ExtractionConfig`, surfacing validation failures as ``ConfigError``."""

    try:
        return ExtractionConfig(**overrides)
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc
