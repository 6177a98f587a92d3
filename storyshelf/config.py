"""
Runtime configuration for the storyshelf service.

Settings are read from ``STORYSHELF_*`` environment variables or an
optional ``.env`` file, falling back to the defaults below. The
defaults mirror the page sizes the public site has always used: the
primary catalogue is indexed from its 500 newest stories and each
secondary source contributes at most 20 hits per search.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DATA_FILE = Path(__file__).resolve().parent / "data" / "sample_catalog.json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="STORYSHELF_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    data_file: Path = DEFAULT_DATA_FILE

    # Index lifecycle
    primary_fetch_limit: int = Field(default=500, ge=1)
    build_timeout_seconds: float = Field(default=10.0, gt=0)

    # Result sizes
    primary_result_limit: int = Field(default=20, ge=1)
    secondary_result_limit: int = Field(default=20, ge=1)
    suggest_limit: int = Field(default=5, ge=1)
    suggest_max_limit: int = Field(default=20, ge=1)
    suggest_min_chars: int = Field(default=2, ge=1)

    log_level: str = "INFO"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
