"""Application configuration."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

ClassifierStrategy = Literal["platform_tag", "lexicon", "hybrid"]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="TICKER_SENTIMENT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Stocktwits
    stocktwits_base_url: str = "https://api.stocktwits.com/api/2"
    stocktwits_timeout_seconds: float = 10.0

    # Pipeline
    default_post_limit: int = 30
    max_post_limit: int = 100
    display_cap: int = 20
    classifier_strategy: ClassifierStrategy = "platform_tag"
    tag_overall_score: bool = False
    classify_workers: int = 1
    lexicon_overrides_path: str = ""

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
