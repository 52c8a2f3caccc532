from pydantic_settings import BaseSettings
from pydantic import ConfigDict
from functools import lru_cache
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App
    app_name: str = "ChatPulse"
    debug: bool = False

    # Day bucketing for aggregates and drill-downs
    reference_timezone: str = "UTC"

    # Sentiment scorer (LLM via gen_ai_hub proxy)
    openai_model: str = "gpt-4o"
    temperature: float = 0.0
    scorer_timeout_seconds: float = 15.0

    # Intake filters (startup values; editable at runtime via /api/channels)
    min_content_length: int = 3
    excluded_user_ids: List[str] = []
    monitored_channel_ids: List[str] = []
    monitor_all_channels: Optional[bool] = None  # Unset: on unless channels are listed

    # Query defaults
    default_recent_limit: int = 10
    default_trend_days: int = 30
    max_trend_days: int = 365

    # Platform workers
    poll_interval_seconds: float = 30.0
    worker_queue_size: int = 1000
    max_ingest_attempts: int = 5
    dead_letter_limit: int = 1000
    retry_backoff_start_seconds: float = 1.0
    retry_backoff_max_seconds: float = 60.0

    # Discord REST (channel permission checks)
    discord_bot_token: str = ""
    discord_api_base_url: str = "https://discord.com/api/v10"
    permission_check_timeout_seconds: float = 10.0

    model_config = ConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
