"""
Rewatch Configuration Module.

Centralizes all configuration settings using Pydantic Settings.
Requires Python 3.11+.
"""

from functools import lru_cache
from pathlib import Path
from typing import Annotated

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

# Load .env file into os.environ at module import time
# This ensures nested BaseSettings classes can read the values
_env_file = Path(__file__).parent.parent / ".env"
if _env_file.exists():
    load_dotenv(_env_file)
else:
    # Try current working directory
    load_dotenv()

MAX_INTERVAL_MS = 60000
MIN_POLL_INTERVAL_MS = 10


class WatchSettings(BaseSettings):
    """Watch loop and debounce settings."""

    model_config = SettingsConfigDict(env_prefix="WATCH_")

    debounce_ms: int = Field(
        default=1000, ge=0, le=MAX_INTERVAL_MS, description="Quiet period before a change settles"
    )
    poll_interval_ms: int = Field(
        default=1000, ge=MIN_POLL_INTERVAL_MS, le=MAX_INTERVAL_MS, description="Scheduler poll interval"
    )
    literal_separator: bool = Field(
        default=False, description="Keep * and ? from matching the path separator"
    )
    keep_going: bool = Field(
        default=False, description="Log command spawn failures instead of exiting"
    )
    ignored_event_types: Annotated[list[str], NoDecode] = Field(
        default=["opened", "closed_no_write"],
        description="watchdog event types that never count as a change",
    )

    @field_validator("ignored_event_types", mode="before")
    @classmethod
    def parse_ignored_event_types(cls, v: str | list[str]) -> list[str]:
        """Parse event types from comma-separated string or list."""
        if isinstance(v, str):
            return [t.strip() for t in v.split(",") if t.strip()]
        return v


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = Field(default="WARNING")
    format: str = Field(default="console")  # "json" or "console"

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Normalize and check the log level name."""
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level: {v}")
        return level


class Settings(BaseSettings):
    """Main application settings aggregating all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application metadata
    app_name: str = Field(default="rewatch")
    app_version: str = Field(default="0.1.0")

    # Sub-settings
    watch: WatchSettings = Field(default_factory=WatchSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns singleton instance of Settings.
    """
    return Settings()
