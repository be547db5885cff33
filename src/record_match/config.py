"""
Engine defaults, overridable through ``RECORD_MATCH_*`` environment variables
or a ``.env`` file.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from record_match.models import ComparisonMode, MultipleMatchPolicy, ResolutionKind


class EngineSettings(BaseSettings):
    """Defaults applied when an option is not given explicitly."""

    model_config = SettingsConfigDict(
        env_prefix="RECORD_MATCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    comparison_mode: ComparisonMode = ComparisonMode.STRICT
    dot_notation: bool = True
    lenient_missing_keys: bool = True
    multiple_matches: MultipleMatchPolicy = MultipleMatchPolicy.FIRST
    resolution: ResolutionKind = ResolutionKind.INCLUDE_BOTH

    # Logging
    log_level: str = "INFO"
    log_file: Path | None = None
    log_rotation: str = "10 MB"
    log_retention: str = "1 week"

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        """Accept lowercase level names."""
        return value.strip().upper()


@lru_cache
def get_settings() -> EngineSettings:
    """Get cached settings instance."""
    return EngineSettings()
