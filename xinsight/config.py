"""Configuration management using Pydantic Settings."""

from enum import Enum

from pydantic import field_validator
from pydantic_settings import BaseSettings


class LogFormat(str, Enum):
    """Log output format."""
    JSON = "json"
    CONSOLE = "console"


class XinsightConfig(BaseSettings):
    """Configuration for the xinsight workflow.

    Provider credentials are deliberately absent: they are passed to each
    call by the caller and never read from the environment by the core.
    """

    # Scrape provider (Apify)
    apify_base_url: str = "https://api.apify.com/v2"
    actor_id: str = "web.harvester~twitter-scraper"
    proxy_groups: list[str] = ["RESIDENTIAL"]
    replies_depth: int = 2

    # Polling
    poll_interval_seconds: float = 5.0
    poll_deadline_seconds: float | None = None

    # Completion provider (OpenAI)
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-4o-mini"
    openai_temperature: float = 0.7

    # HTTP
    http_timeout_seconds: float = 30.0

    # Logging
    log_level: str = "INFO"
    log_format: LogFormat = LogFormat.CONSOLE

    model_config = {
        "env_prefix": "XINSIGHT_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @field_validator("poll_interval_seconds")
    @classmethod
    def _non_negative_interval(cls, value: float) -> float:
        if value < 0:
            raise ValueError("poll_interval_seconds must be >= 0")
        return value

    @field_validator("apify_base_url", "openai_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")
